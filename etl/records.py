# WORKFLOW: Record assembly, defaulting and filtering for FIAS XML elements.
# Used by: etl/ingest_archive.py
# Functions:
# 1. sanitize_value() - Normalize quote characters in attribute values
# 2. assemble_record() - Build a field map from element attributes
# 3. apply_defaults() - Fill blank status fields of address objects
# 4. is_accepted() - Keep only actual address objects
# 5. stamp_record() - Add record id, timestamps and record state
# 6. prepare_record() - Full assemble -> default -> filter -> stamp chain
#
# Record flow: XML attributes -> field map -> defaults -> filter -> stamped record -> insert

"""
Record assembly and filtering for FIAS XML elements.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from db.models import ADDRESS_TABLE, RECORD_STATE_ACTIVE

# Status fields of ADDROBJ defaulted to "0" when missing or blank
DEFAULTED_FIELDS = ("currstatus", "operstatus")
DEFAULT_STATUS = "0"

_QUOTE_TRANSLATION = str.maketrans({"'": None, "«": '"', "»": '"'})


def sanitize_value(value: str) -> str:
    """
    Strip apostrophes and map typographic quotes to a plain double quote.

    Args:
        value: Raw attribute value

    Returns:
        Normalized value
    """
    return value.translate(_QUOTE_TRANSLATION)


def assemble_record(attributes: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """
    Build a field map from element attributes.

    Args:
        attributes: Attribute name/value pairs in document order

    Returns:
        Dictionary of lower-cased field names to sanitized values
    """
    return {name.lower(): sanitize_value(value) for name, value in attributes}


def is_address_table(table: str) -> bool:
    return table.upper() == ADDRESS_TABLE


def apply_defaults(table: str, record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill currstatus/operstatus with "0" for address objects when absent or blank.

    Args:
        table: Logical table name
        record: Field map, updated in place

    Returns:
        The same field map
    """
    if not is_address_table(table):
        return record

    for field in DEFAULTED_FIELDS:
        value = record.get(field)
        if value is None or not str(value).strip():
            record[field] = DEFAULT_STATUS

    return record


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def is_accepted(table: str, record: Dict[str, Any]) -> bool:
    """
    Decide whether a record is persisted.

    Address objects are kept only when actual in FIAS (actstatus = 1) and in
    KLADR (currstatus = 0). Records of other tables are always kept.

    Args:
        table: Logical table name
        record: Field map after defaulting

    Returns:
        True if the record should be inserted
    """
    if not is_address_table(table):
        return True

    return _as_int(record.get("actstatus")) == 1 and _as_int(record.get("currstatus")) == 0


def stamp_record(
    record: Dict[str, Any],
    now: Optional[datetime] = None,
    id_factory: Callable[[], Any] = uuid.uuid4,
) -> Dict[str, Any]:
    """
    Add the synthesized bookkeeping fields.

    Args:
        record: Field map, updated in place
        now: Creation time; current UTC time when omitted
        id_factory: Generator for the record identifier

    Returns:
        The same field map
    """
    created = now or datetime.now(timezone.utc)

    record["recid"] = str(id_factory())
    record["reccreated"] = created
    record["recupdated"] = created
    record["recstate"] = RECORD_STATE_ACTIVE

    return record


def prepare_record(table: str, attributes: Iterable[Tuple[str, str]]) -> Optional[Dict[str, Any]]:
    """
    Turn one XML element into a ready-to-insert record.

    Args:
        table: Logical table name
        attributes: Attribute name/value pairs of the element

    Returns:
        Stamped record, or None if the record is filtered out
    """
    record = apply_defaults(table, assemble_record(attributes))
    if not is_accepted(table, record):
        return None
    return stamp_record(record)
