"""
Database introspection for syncdb.

Local sites are queried directly through mysql-connector or psycopg;
remote sites are queried through the database CLI over ssh.
"""

import logging
from typing import Optional

import mysql.connector
import psycopg
from mysql.connector import Error as MySQLError

from .drivers import PostgresProfile, get_profile
from .errors import SyncDbError, UnsupportedDriver
from .invoker import ProcessInvoker
from .models import DbSpec, Driver


class DatabaseConnection:
    """Manages a MySQL or PostgreSQL connection with context manager support."""

    DEFAULT_PORTS = {Driver.MYSQL: 3306, Driver.POSTGRES: 5432}
    DEFAULT_CHARSET = 'utf8mb4'
    CONNECT_TIMEOUT = 10

    def __init__(self, db_spec: DbSpec):
        if db_spec.driver not in self.DEFAULT_PORTS:
            raise UnsupportedDriver(db_spec.driver.value)
        self.db_spec = db_spec
        self.port = db_spec.port or self.DEFAULT_PORTS[db_spec.driver]
        self.connection = None

    def __enter__(self) -> "DatabaseConnection":
        """Context manager entry - establish connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close connection."""
        self.disconnect()

    def connect(self) -> None:
        """Establish database connection."""
        spec = self.db_spec
        try:
            if spec.driver == Driver.MYSQL:
                self.connection = mysql.connector.connect(
                    host=spec.host,
                    port=self.port,
                    user=spec.user,
                    password=spec.password or '',
                    database=spec.database,
                    charset=self.DEFAULT_CHARSET,
                    use_unicode=True,
                    connection_timeout=self.CONNECT_TIMEOUT
                )
            else:
                self.connection = psycopg.connect(
                    host=spec.host,
                    port=self.port,
                    user=spec.user,
                    password=spec.password,
                    dbname=spec.database,
                    connect_timeout=self.CONNECT_TIMEOUT
                )
            logging.info(f"Connected to {spec.host}:{self.port}/{spec.database}")
        except (MySQLError, psycopg.Error) as e:
            logging.error(f"Failed to connect to database: {e}")
            raise SyncDbError(f"Failed to connect to {spec.host}:{self.port}/{spec.database}: {e}") from e

    def disconnect(self) -> None:
        """Close database connection."""
        if self.connection is None:
            return
        if self.db_spec.driver == Driver.MYSQL and not self.connection.is_connected():
            return
        self.connection.close()
        self.connection = None
        logging.debug("Database connection closed")

    def execute_query(self, query: str, params: Optional[tuple] = None) -> list[tuple]:
        """Execute a query and return results."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        finally:
            cursor.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the current database."""
        if self.db_spec.driver == Driver.MYSQL:
            results = self.execute_query("SHOW TABLES")
        else:
            results = self.execute_query(PostgresProfile.LIST_TABLES_QUERY)
        return [row[0] for row in results]


class ShellTableLister:
    """Lists tables by running the database CLI through an invoker."""

    def __init__(self, db_spec: DbSpec, invoker: ProcessInvoker):
        self.db_spec = db_spec
        self.invoker = invoker

    def get_tables(self) -> list[str]:
        command = get_profile(self.db_spec).build_list_tables_command()
        result = self.invoker.execute(command)
        if not result.ok:
            raise SyncDbError(
                f"Could not list tables of '{self.db_spec.database}': {result.stderr.strip()}"
            )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def list_all_tables(db_spec: DbSpec, invoker: ProcessInvoker) -> list[str]:
    """Return every table of the database, in the order the server reports them."""
    if db_spec.is_remote:
        tables = ShellTableLister(db_spec, invoker).get_tables()
    else:
        with DatabaseConnection(db_spec) as conn:
            tables = conn.get_tables()
    logging.info(f"Found {len(tables)} table(s) in '{db_spec.database}'")
    return tables
