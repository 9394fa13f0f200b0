# WORKFLOW: FIAS import orchestration.
# Used by: scripts/import_fias.py
# Functions:
# 1. validate_run() - Check run parameters before touching the store
# 2. run_import() - Run the stages selected by the run mode
#
# Run modes:
# full    - ingest archive -> refresh full addresses (if ADDROBJ was ingested) -> lexeme index
# address - refresh full addresses -> lexeme index
# lexeme  - lexeme index only

"""
FIAS import orchestration.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from core.errors import ConfigurationError, ImportCancelled
from db.models import ADDRESS_TABLE
from etl.full_address import refresh_full_addresses
from etl.ingest_archive import ingest_archive
from etl.lexemes import LexemeIndexResult, build_lexeme_index

logger = structlog.get_logger(__name__)

MODE_FULL = "full"
MODE_ADDRESS = "address"
MODE_LEXEME = "lexeme"
RUN_MODES = (MODE_FULL, MODE_ADDRESS, MODE_LEXEME)


@dataclass
class ImportSummary:
    mode: str
    ingested: Dict[str, Dict[str, int]] = field(default_factory=dict)
    full_address_rows: Optional[int] = None
    lexemes: Optional[LexemeIndexResult] = None


def validate_run(
    mode: str,
    archive_path: Optional[Path],
    tables: List[str],
    batch_size: Optional[int] = None,
) -> None:
    """
    Validate run parameters.

    Args:
        mode: Run mode
        archive_path: Archive to ingest (required in full mode)
        tables: Allowed table names (required in full mode)
        batch_size: Lexeme batch size override, positive when given

    Raises:
        ConfigurationError: If the parameters cannot produce a run
    """
    if mode not in RUN_MODES:
        raise ConfigurationError(f"Unknown run mode '{mode}', expected one of {', '.join(RUN_MODES)}")

    if batch_size is not None and batch_size < 1:
        raise ConfigurationError(f"Lexeme batch size must be a positive integer, got {batch_size}")

    if mode != MODE_FULL:
        return

    if archive_path is None or not Path(archive_path).is_file():
        raise ConfigurationError(f"FIAS archive not found at {archive_path}")

    if not tables:
        raise ConfigurationError("The list of tables to import is empty")


def run_import(
    db: Session,
    mode: str = MODE_FULL,
    archive_path: Optional[Path] = None,
    tables: Optional[List[str]] = None,
    batch_size: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ImportSummary:
    """
    Run the import stages for a run mode.

    Args:
        db: Database session
        mode: One of full, address, lexeme
        archive_path: Archive to ingest in full mode
        tables: Allowed table names in full mode
        batch_size: Lexeme batch size override
        cancel_event: Cooperative cancellation signal, checked during ingestion,
            before the full-address refresh and before each lexeme batch

    Returns:
        ImportSummary of the executed stages
    """
    tables = tables or []
    validate_run(mode, archive_path, tables, batch_size)

    summary = ImportSummary(mode=mode)
    logger.info("FIAS import started", mode=mode)

    refresh = mode == MODE_ADDRESS
    if mode == MODE_FULL:
        summary.ingested = ingest_archive(Path(archive_path), tables, db, cancel_event=cancel_event)
        refresh = ADDRESS_TABLE in summary.ingested

    if refresh:
        if cancel_event is not None and cancel_event.is_set():
            raise ImportCancelled("Import cancelled before the full address refresh")
        summary.full_address_rows = refresh_full_addresses(db)

    summary.lexemes = build_lexeme_index(db, batch_size=batch_size, cancel_event=cancel_event)

    logger.info("FIAS import completed", mode=mode)
    return summary
