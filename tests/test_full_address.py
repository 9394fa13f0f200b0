"""Tests for the full-address refresh stage."""

import etl.full_address as full_address_module
from conftest import FULL_ADDRESSES, make_address
from db.models import AddressObject
from etl.full_address import refresh_full_addresses


def test_refreshes_active_rows_only(db):
    FULL_ADDRESSES.update({"g-1": "г Москва, ул Ленина", "g-2": "г Тверь", "g-3": "г Уфа"})
    db.add_all([
        make_address("a-1", aoguid="g-1"),
        make_address("a-2", aoguid="g-2"),
        make_address("a-3", aoguid="g-3", recstate=0),
    ])
    db.commit()

    updated = refresh_full_addresses(db)

    assert updated == 2
    assert db.get(AddressObject, "a-1").fulladdress == "г Москва, ул Ленина"
    assert db.get(AddressObject, "a-2").fulladdress == "г Тверь"
    assert db.get(AddressObject, "a-3").fulladdress is None


def test_refresh_resets_search_index(db):
    FULL_ADDRESSES["g-1"] = "г Тверь"
    row = make_address("a-1", aoguid="g-1", fulladdress="г Калинин")
    row.fulladdress_search = "г ка кал кали калин калини"
    db.add(row)
    db.commit()

    refresh_full_addresses(db)

    refreshed = db.get(AddressObject, "a-1")
    assert refreshed.fulladdress == "г Тверь"
    assert refreshed.fulladdress_search is None


def test_failure_is_reported_without_raising(db, monkeypatch):
    db.add(make_address("a-1", fulladdress="г Тверь"))
    db.commit()
    monkeypatch.setattr(full_address_module, "FULL_ADDRESS_FUNCTION", "missing_fulladdress_function")

    assert refresh_full_addresses(db) is None

    # Session is still usable and the previous value survives
    assert db.get(AddressObject, "a-1").fulladdress == "г Тверь"
