"""Shared fixtures: an in-memory SQLite store and FIAS archive builders."""

import logging
import signal
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import structlog
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import db.session as session_module
from db.models import AddressObject, Base

# Stand-in for the store-side hierarchy walk: aoguid -> full address
FULL_ADDRESSES: Dict[str, str] = {}


def _fake_full_address(aoguid: Optional[str]) -> Optional[str]:
    return FULL_ADDRESSES.get(aoguid)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def register_functions(dbapi_connection, connection_record):
        dbapi_connection.create_function("get_addrobj_fulladdress", 1, _fake_full_address)

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    FULL_ADDRESSES.clear()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


def make_address(recid: str, fulladdress: Optional[str] = None, recstate: int = 1, **fields) -> AddressObject:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return AddressObject(
        recid=recid,
        recstate=recstate,
        reccreated=now,
        recupdated=now,
        aoguid=fields.pop("aoguid", f"guid-{recid}"),
        fulladdress=fulladdress,
        **fields,
    )


def address_xml(objects: List[Dict[str, str]]) -> bytes:
    rows = "".join(
        "<Object " + " ".join(f'{name}="{value}"' for name, value in obj.items()) + "/>"
        for obj in objects
    )
    return f'<?xml version="1.0" encoding="utf-8"?><AddressObjects>{rows}</AddressObjects>'.encode("utf-8")


def write_archive(path: Path, entries: Dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for name, payload in entries.items():
            archive.writestr(name, payload)
    return path


@pytest.fixture
def restore_signals():
    saved = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    yield
    for sig, handler in saved.items():
        signal.signal(sig, handler)


@pytest.fixture
def restore_runtime():
    """Undo the global engine and logging setup done by the import script."""
    saved_engine = session_module._engine
    saved_factory = session_module._SessionLocal
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    sqlalchemy_logger = logging.getLogger("sqlalchemy.engine")
    saved_sqlalchemy_level = sqlalchemy_logger.level

    yield

    if session_module._engine is not None and session_module._engine is not saved_engine:
        session_module._engine.dispose()
    session_module._engine = saved_engine
    session_module._SessionLocal = saved_factory

    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    sqlalchemy_logger.setLevel(saved_sqlalchemy_level)
    structlog.reset_defaults()
