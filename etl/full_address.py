# WORKFLOW: Full hierarchical address refresh for address objects.
# Used by: etl/pipeline.py (full and address run modes)
# Functions:
# 1. build_refresh_statement() - UPDATE calling the store-side full-address function
# 2. refresh_full_addresses() - Run the refresh, commit, report the affected row count
#
# Refresh flow: active rows -> get_addrobj_fulladdress(aoguid) -> fulladdress, search index reset
# Failures are logged and reported as None so the lexeme index stage still runs.

"""
Full hierarchical address refresh for address objects.
"""

import time
from typing import Optional

import structlog
from sqlalchemy import func, null, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import RECORD_STATE_ACTIVE, AddressObject

logger = structlog.get_logger(__name__)

FULL_ADDRESS_FUNCTION = "get_addrobj_fulladdress"


def build_refresh_statement():
    """
    Build the bulk refresh statement.

    Only active rows (recstate = 1) are refreshed. The search index of a
    refreshed row is reset so the lexeme builder recomputes it.
    """
    full_address = getattr(func, FULL_ADDRESS_FUNCTION)(AddressObject.aoguid)
    return (
        update(AddressObject)
        .where(AddressObject.recstate == RECORD_STATE_ACTIVE)
        .values(fulladdress=full_address, fulladdress_search=null())
        .execution_options(synchronize_session=False)
    )


def refresh_full_addresses(db: Session) -> Optional[int]:
    """
    Recompute fulladdress for every active address object.

    Args:
        db: Database session

    Returns:
        Number of updated rows, or None if the refresh failed
    """
    logger.info("Full address refresh started")
    started = time.monotonic()

    try:
        result = db.execute(build_refresh_statement())
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(
            "Full address refresh failed, continuing with existing full addresses",
            elapsed_seconds=round(time.monotonic() - started, 3),
            error=str(e),
        )
        return None

    logger.info(
        "Full address refresh completed",
        rows_updated=result.rowcount,
        elapsed_seconds=round(time.monotonic() - started, 3),
    )
    return result.rowcount
