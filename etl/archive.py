# WORKFLOW: FIAS archive traversal.
# Used by: etl/ingest_archive.py
# Functions:
# 1. table_name_from_entry() - Derive the logical table name from an entry name
# 2. parse_table_list() - Normalize the comma-separated table allow-list
# 3. iter_table_entries() - Yield (table, stream) for allowed entries
#
# Entry naming: AS_<TABLE>_<date>_<uuid>.XML, e.g. AS_ADDROBJ_20171217_33bb6037-....XML

"""
FIAS archive traversal.
"""

import zipfile
from pathlib import Path, PurePosixPath
from typing import IO, Iterable, Iterator, List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


def table_name_from_entry(entry_name: str) -> Optional[str]:
    """
    Derive the logical table name from an archive entry name.

    Args:
        entry_name: Entry path inside the archive

    Returns:
        The component between the first and second underscore, or None
    """
    parts = PurePosixPath(entry_name).name.split("_")
    if len(parts) < 3 or not parts[1]:
        return None
    return parts[1]


def parse_table_list(tables: str) -> List[str]:
    """
    Split a comma-separated table list, dropping spaces and empty items.

    Args:
        tables: e.g. "ADDROBJ, SOCRBASE"

    Returns:
        Upper-cased table names in the given order
    """
    names = [name.strip().upper() for name in tables.replace(" ", "").split(",")]
    return [name for name in names if name]


def iter_table_entries(archive_path: Path, tables: Iterable[str]) -> Iterator[Tuple[str, IO[bytes]]]:
    """
    Yield a byte stream per archive entry whose table is allowed.

    Entries of other tables are skipped by name only and never opened. Each
    stream is closed once the consumer advances past it.

    Args:
        archive_path: Path to the ZIP archive
        tables: Allowed logical table names

    Yields:
        (table name, entry stream) pairs
    """
    allowed = {name.upper() for name in tables}

    with zipfile.ZipFile(archive_path, "r") as archive:
        for info in archive.infolist():
            if info.is_dir():
                continue

            table = table_name_from_entry(info.filename)
            if table is None or table.upper() not in allowed:
                logger.debug("Skipping archive entry", entry=info.filename)
                continue

            with archive.open(info) as stream:
                yield table.upper(), stream
