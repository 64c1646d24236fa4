"""
Table classification for syncdb.

Splits the tables of a database into data, structure-only and skipped
tables. List entries may be exact names or shell wildcards ('cache_*').
"""

import fnmatch
import logging
import re
from typing import Iterable, Optional

from .models import TableSelection


def _is_wildcard(pattern: str) -> bool:
    return any(ch in pattern for ch in '*?[')


def expand_tables(
    patterns: Iterable[str],
    all_tables: list[str],
    keep_unknown: bool = False
) -> list[str]:
    """
    Expand a list of table names/wildcards against the live table list.

    Output follows the order of the patterns; a wildcard contributes its
    matches in enumeration order. Literal names missing from the database
    are dropped unless keep_unknown is set.
    """
    known = set(all_tables)
    expanded: list[str] = []
    for pattern in dict.fromkeys(patterns):
        if _is_wildcard(pattern):
            regex = re.compile(fnmatch.translate(pattern))
            matches = [t for t in all_tables if regex.match(t)]
            if not matches:
                logging.debug(f"Pattern '{pattern}' matched no tables")
        elif pattern in known or keep_unknown:
            matches = [pattern]
        else:
            logging.warning(f"Table '{pattern}' not found in database, ignoring")
            matches = []
        expanded.extend(t for t in matches if t not in expanded)
    return expanded


def classify_tables(
    all_tables: list[str],
    skip: Iterable[str] = (),
    structure: Iterable[str] = (),
    tables: Optional[Iterable[str]] = None
) -> TableSelection:
    """
    Produce the TableSelection for one dump run.

    When an explicit data list is supplied it is used verbatim (wildcards
    expanded). Otherwise data is every known table that is neither
    structure-only nor skipped, in enumeration order.
    """
    skip_tables = expand_tables(skip, all_tables)
    structure_tables = expand_tables(structure, all_tables)
    # A table listed both ways is structure-only.
    skip_tables = [t for t in skip_tables if t not in set(structure_tables)]

    if tables is not None:
        data_tables = expand_tables(tables, all_tables, keep_unknown=True)
    else:
        excluded = set(skip_tables) | set(structure_tables)
        data_tables = [t for t in all_tables if t not in excluded]

    logging.debug(
        f"Table selection: {len(data_tables)} data, "
        f"{len(structure_tables)} structure-only, {len(skip_tables)} skipped"
    )
    return TableSelection(
        data=tuple(data_tables),
        structure=tuple(structure_tables),
        skip=tuple(skip_tables),
    )
