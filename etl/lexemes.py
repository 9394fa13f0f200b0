# WORKFLOW: Prefix-lexeme search index for full addresses.
# Used by: etl/pipeline.py (all run modes)
# Functions:
# 1. tokenize() - Turn a full address into deduplicated prefix lexemes
# 2. fetch_lexeme_batch() - Next batch of rows with a full address but no search index
# 3. write_lexemes() - Write the computed lexemes back, one UPDATE per row
# 4. build_lexeme_index() - Repeat fetch -> tokenize -> write until nothing is left
#
# Index flow: fulladdress -> parts -> words -> prefixes -> dedup -> fulladdress_search
# Every batch is committed on its own, so an aborted run resumes where it stopped.

"""
Prefix-lexeme search index for full addresses.
"""

import threading
import time
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from core.config import settings
from core.errors import ConfigurationError, LexemeIndexError, describe_error
from db.models import AddressObject

logger = structlog.get_logger(__name__)

# Words up to this length are indexed whole, longer ones by their prefixes
SHORT_WORD_LENGTH = 3
MIN_PREFIX_LENGTH = 2


def _word_lexemes(word: str) -> Iterator[str]:
    if len(word) <= SHORT_WORD_LENGTH:
        yield word
        return
    for end in range(MIN_PREFIX_LENGTH, len(word) + 1):
        yield word[:end]


def tokenize(full_address: Optional[str]) -> str:
    """
    Build the search lexemes of a full address.

    The address is split on commas into parts, each part is lower-cased and
    split into words on dots and whitespace. Words of up to three characters
    are kept whole; longer words contribute every prefix of two or more
    characters. Each lexeme appears once, in first-seen order.

    Args:
        full_address: Full address, e.g. "Москва, ул.Ленина"

    Returns:
        Space-separated lexemes, e.g. "мо мос моск москв москва ул ле лен ..."
    """
    if not full_address:
        return ""

    lexemes: Dict[str, None] = {}
    for part in full_address.split(","):
        for word in part.strip().lower().replace(".", " ").split():
            for lexeme in _word_lexemes(word):
                lexemes.setdefault(lexeme)

    return " ".join(lexemes)


@dataclass
class LexemeIndexResult:
    iterations: int = 0
    rows_updated: int = 0
    cancelled: bool = False
    elapsed_seconds: float = 0.0


def fetch_lexeme_batch(db: Session, batch_size: int) -> Dict[str, str]:
    """
    Fetch rows that have a full address but no search index yet.

    Args:
        db: Database session
        batch_size: Maximum number of rows

    Returns:
        Dictionary of recid to fulladdress
    """
    rows = db.execute(
        select(AddressObject.recid, AddressObject.fulladdress)
        .where(AddressObject.fulladdress_search.is_(None))
        .where(AddressObject.fulladdress.is_not(None))
        .limit(batch_size)
    ).all()
    return {recid: fulladdress for recid, fulladdress in rows}


def write_lexemes(db: Session, batch: Dict[str, str]) -> int:
    """
    Tokenize a batch and write each row's lexemes back.

    Args:
        db: Database session
        batch: Dictionary of recid to fulladdress

    Returns:
        Number of affected rows
    """
    affected = 0
    for recid, full_address in batch.items():
        result = db.execute(
            update(AddressObject)
            .where(AddressObject.recid == recid)
            .values(fulladdress_search=tokenize(full_address))
            .execution_options(synchronize_session=False)
        )
        affected += result.rowcount
    return affected


def build_lexeme_index(
    db: Session,
    batch_size: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> LexemeIndexResult:
    """
    Fill fulladdress_search for every row that has a full address.

    Runs until a fetch returns no rows or cancel_event is set. The event is
    checked before each batch.

    Rows whose fulladdress is NULL are never fetched, so their
    fulladdress_search stays NULL after the loop converges. They are picked
    up by a later run once the full-address refresh has filled them.

    Args:
        db: Database session
        batch_size: Rows per batch; defaults to settings.lexeme_batch_size
        cancel_event: Optional cooperative cancellation signal

    Returns:
        LexemeIndexResult with batch and row counts

    Raises:
        ConfigurationError: If batch_size is not a positive integer
    """
    if batch_size is None:
        batch_size = settings.lexeme_batch_size
    if batch_size < 1:
        raise ConfigurationError(f"Lexeme batch size must be a positive integer, got {batch_size}")

    result = LexemeIndexResult()
    started = time.monotonic()

    logger.info("Lexeme index build started", batch_size=batch_size)

    try:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                logger.warning("Lexeme index build cancelled", iterations=result.iterations)
                break

            batch = fetch_lexeme_batch(db, batch_size)
            if not batch:
                break

            affected = write_lexemes(db, batch)
            db.commit()
            result.rows_updated += affected
            result.iterations += 1

            logger.debug(
                "Lexeme batch written",
                iteration=result.iterations,
                batch_rows=len(batch),
                rows_updated=result.rows_updated,
            )

    except Exception as e:
        db.rollback()
        result.elapsed_seconds = time.monotonic() - started
        message = (
            f"Lexeme index build failed after {result.elapsed_seconds:.3f}s "
            f"({result.rows_updated} rows committed): {describe_error(e)}"
        )
        logger.error("Lexeme index build failed", iterations=result.iterations, error=describe_error(e))
        raise LexemeIndexError(message) from e

    result.elapsed_seconds = time.monotonic() - started
    logger.info(
        "Lexeme index build completed",
        iterations=result.iterations,
        rows_updated=result.rows_updated,
        cancelled=result.cancelled,
        elapsed_seconds=round(result.elapsed_seconds, 3),
    )
    return result
