# WORKFLOW: FIAS archive ingestion into the rdev___fias_* tables.
# Used by: etl/pipeline.py (full run mode)
# Functions:
# 1. resolve_table() - Destination table for a logical FIAS table
# 2. ingest_table() - Stream one XML dump, filter records and insert them
# 3. ingest_archive() - Ingest every allowed table of the archive
#
# Ingestion flow: ZIP archive -> allowed entries -> XML elements -> records -> filter -> INSERT
# A failed insert aborts the whole run; tables imported before the failure stay committed.

"""
FIAS archive ingestion into the destination tables.
"""

import threading
import time
from pathlib import Path
from typing import IO, Dict, Iterable, Optional

import structlog
from sqlalchemy import MetaData, Table, insert
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from core.errors import FiasImportError, ImportCancelled, IngestionError
from db.models import AddressObject, destination_table_name
from etl.archive import iter_table_entries
from etl.records import is_address_table, prepare_record
from etl.xml_stream import iter_element_attributes

logger = structlog.get_logger(__name__)


def resolve_table(table: str, db: Session) -> Table:
    """
    Get the destination table for a logical FIAS table.

    ADDROBJ maps to the AddressObject model; other tables are reflected from
    the store.

    Args:
        table: Logical table name
        db: Database session

    Returns:
        SQLAlchemy Table
    """
    if is_address_table(table):
        return AddressObject.__table__

    name = destination_table_name(table)
    try:
        return Table(name, MetaData(), autoload_with=db.connection())
    except NoSuchTableError as e:
        raise IngestionError(table, e, message=f"destination table {name} does not exist") from e


def ingest_table(
    table: str,
    stream: IO[bytes],
    db: Session,
    cancel_event: Optional[threading.Event] = None,
) -> Dict[str, int]:
    """
    Stream one table dump into the store.

    cancel_event is checked before each record; once set, the uncommitted
    part of the table is rolled back and ImportCancelled is raised.

    Args:
        table: Logical table name
        stream: XML byte stream of the dump
        db: Database session
        cancel_event: Optional cooperative cancellation signal

    Returns:
        Dictionary with accepted and rejected record counts
    """
    log = logger.bind(table=table)
    started = time.monotonic()
    accepted = 0
    rejected = 0

    try:
        target = resolve_table(table, db)
        log.info("Table import started", destination=target.name)

        for _tag, attributes in iter_element_attributes(stream):
            if cancel_event is not None and cancel_event.is_set():
                raise ImportCancelled(f"Import of table {table} cancelled after {accepted} records")

            record = prepare_record(table, attributes)
            if record is None:
                rejected += 1
                continue

            try:
                db.execute(insert(target).values(record))
            except SQLAlchemyError as e:
                raise IngestionError(table, e) from e

            accepted += 1
            if accepted % settings.commit_every == 0:
                db.commit()
            if accepted % settings.progress_every == 0:
                log.info("Table import progress", accepted=accepted, rejected=rejected)

        db.commit()

    except Exception as e:
        db.rollback()
        log.error(
            "Table import failed",
            accepted=accepted,
            elapsed_seconds=round(time.monotonic() - started, 3),
            error=str(e),
        )
        if isinstance(e, FiasImportError):
            raise
        raise IngestionError(table, e) from e

    log.info(
        "Table import completed",
        accepted=accepted,
        rejected=rejected,
        elapsed_seconds=round(time.monotonic() - started, 3),
    )
    return {"accepted": accepted, "rejected": rejected}


def ingest_archive(
    archive_path: Path,
    tables: Iterable[str],
    db: Session,
    cancel_event: Optional[threading.Event] = None,
) -> Dict[str, Dict[str, int]]:
    """
    Ingest every allowed table of a FIAS archive.

    Args:
        archive_path: Path to the ZIP archive
        tables: Allowed logical table names
        db: Database session
        cancel_event: Optional cooperative cancellation signal

    Returns:
        Per-table record counts keyed by logical table name
    """
    tables = list(tables)
    logger.info("Archive ingestion started", archive=str(archive_path), tables=tables)

    results: Dict[str, Dict[str, int]] = {}
    for table, stream in iter_table_entries(archive_path, tables):
        counts = ingest_table(table, stream, db, cancel_event=cancel_event)
        previous = results.get(table)
        if previous:
            # A table may be split across several dump files
            counts = {key: previous[key] + value for key, value in counts.items()}
        results[table] = counts

    missing = [table for table in tables if table.upper() not in results]
    if missing:
        logger.warning("Tables not found in archive", tables=missing)

    logger.info("Archive ingestion completed", tables=list(results))
    return results
