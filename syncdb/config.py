"""
Configuration loading and validation for syncdb.
"""

import os
import re
from typing import Any, Optional

import yaml

from .errors import ConfigurationError, UnsupportedDriver
from .models import DEFAULT_DATABASE_KEY, DbSpec, Driver, SyncOptions


class ConfigLoader:
    """Loads and validates configuration from YAML file."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')
    CONNECTION_FIELDS = ('driver', 'host', 'port', 'user', 'password', 'database')
    TABLE_LIST_OPTIONS = ('skip_tables', 'structure_tables', 'tables')

    def __init__(self, config_path: str):
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self.config_path, 'r') as f:
            config = yaml.safe_load(f)

        return self._resolve_env_vars(config or {})

    def _resolve_env_vars(self, obj: Any) -> Any:
        """Recursively resolve environment variables in config."""
        if isinstance(obj, str):
            matches = self.ENV_VAR_PATTERN.findall(obj)
            for match in matches:
                env_value = os.environ.get(match, '')
                obj = obj.replace(f'${{{match}}}', env_value)
            return obj
        elif isinstance(obj, dict):
            return {k: self._resolve_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._resolve_env_vars(item) for item in obj]
        return obj

    def get_site(self, alias: str) -> dict[str, Any]:
        """Get site configuration."""
        sites = self.config.get('sites', {})
        if alias not in sites:
            raise ConfigurationError(f"Site '{alias}' not found in configuration")
        return sites[alias]

    def get_db_spec(self, alias: str, database_key: Optional[str] = None) -> DbSpec:
        """
        Build the DbSpec of a site's database connection.

        The 'default' key (also used when database_key is None) is the
        site's primary connection. Other keys name entries of the site's
        'connections' map, which override the primary connection fields.
        """
        site = self.get_site(alias)
        fields = {key: site.get(key) for key in self.CONNECTION_FIELDS}

        key = database_key or DEFAULT_DATABASE_KEY
        if key != DEFAULT_DATABASE_KEY:
            connections = site.get('connections') or {}
            if key not in connections:
                raise ConfigurationError(
                    f"Database key '{key}' not defined for site '{alias}'"
                )
            fields.update({k: v for k, v in connections[key].items() if k in self.CONNECTION_FIELDS})

        if not fields.get('database'):
            raise ConfigurationError(f"Site '{alias}' has no database name")
        if not fields.get('driver'):
            raise ConfigurationError(f"Site '{alias}' has no database driver")

        driver = Driver.parse(fields['driver'])
        if driver == Driver.UNSUPPORTED:
            raise UnsupportedDriver(fields['driver'])

        return DbSpec(
            driver=driver,
            database=fields['database'],
            host=fields.get('host') or 'localhost',
            port=int(fields['port']) if fields.get('port') else None,
            user=fields.get('user'),
            password=fields.get('password'),
            remote_host=site.get('remote_host'),
            remote_user=site.get('remote_user')
        )

    def get_table_list(self, key: str) -> list[str]:
        """Get a named table list."""
        table_lists = self.config.get('table_lists', {})
        if key not in table_lists:
            raise ConfigurationError(f"Table list '{key}' not found in configuration")
        return list(table_lists[key] or [])

    def get_defaults(self) -> dict[str, Any]:
        """Get default settings."""
        return self.config.get('defaults', {})

    def get_logging_settings(self) -> dict[str, Any]:
        """Get logging settings."""
        return self.config.get('logging', {})

    def _resolve_table_lists(self, settings: dict[str, Any]) -> dict[str, Any]:
        """Turn '<name>_key' and '<name>_list' entries into table lists."""
        resolved = dict(settings)
        for option in self.TABLE_LIST_OPTIONS:
            list_key = resolved.pop(f'{option}_key', None)
            inline = resolved.pop(f'{option}_list', None)
            if list_key:
                resolved[option] = self.get_table_list(list_key)
            if inline:
                if isinstance(inline, str):
                    inline = [t.strip() for t in inline.split(',') if t.strip()]
                resolved[option] = list(inline)
        return resolved

    def build_options(self, overrides: Optional[dict[str, Any]] = None) -> SyncOptions:
        """Merge defaults with run overrides into SyncOptions."""
        defaults = self._resolve_table_lists(self.get_defaults())
        overrides = self._resolve_table_lists(overrides or {})
        return SyncOptions.from_configs(defaults, overrides)
