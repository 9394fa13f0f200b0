"""Tests for record assembly, defaulting, filtering and archive entry naming."""

import uuid
from datetime import datetime, timezone

import pytest

from etl.archive import parse_table_list, table_name_from_entry
from etl.records import (
    apply_defaults,
    assemble_record,
    is_accepted,
    prepare_record,
    sanitize_value,
    stamp_record,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Ленина", "Ленина"),
        ("Д'Артаньяна", "ДАртаньяна"),
        ("ЖК «Северный»", 'ЖК "Северный"'),
        ("'«»'", '""'),
    ],
)
def test_sanitize_value(raw, expected):
    assert sanitize_value(raw) == expected


def test_assemble_record_lower_cases_names_and_sanitizes_values():
    record = assemble_record([("AOGUID", "abc"), ("FORMALNAME", "«Заря»"), ("OffName", "О'Хара")])
    assert record == {"aoguid": "abc", "formalname": '"Заря"', "offname": "ОХара"}


class TestDefaults:
    def test_missing_status_fields_default_to_zero(self):
        record = apply_defaults("ADDROBJ", {"actstatus": "1"})
        assert record["currstatus"] == "0"
        assert record["operstatus"] == "0"

    def test_blank_status_fields_default_to_zero(self):
        record = apply_defaults("ADDROBJ", {"currstatus": "  ", "operstatus": ""})
        assert record == {"currstatus": "0", "operstatus": "0"}

    def test_present_values_are_kept(self):
        record = apply_defaults("ADDROBJ", {"currstatus": "51", "operstatus": "10"})
        assert record == {"currstatus": "51", "operstatus": "10"}

    def test_other_tables_are_not_defaulted(self):
        assert apply_defaults("SOCRBASE", {"scname": "ул"}) == {"scname": "ул"}


class TestFilter:
    def test_actual_address_is_accepted(self):
        assert is_accepted("ADDROBJ", {"actstatus": "1", "currstatus": "0"})

    def test_kladr_outdated_address_is_rejected(self):
        assert not is_accepted("ADDROBJ", {"actstatus": "1", "currstatus": "1"})

    def test_fias_outdated_address_is_rejected(self):
        assert not is_accepted("ADDROBJ", {"actstatus": "0", "currstatus": "0"})

    def test_missing_actstatus_is_rejected(self):
        assert not is_accepted("ADDROBJ", {"currstatus": "0"})

    def test_non_numeric_status_is_rejected(self):
        assert not is_accepted("ADDROBJ", {"actstatus": "yes", "currstatus": "0"})

    def test_other_tables_bypass_filter(self):
        assert is_accepted("SOCRBASE", {"actstatus": "0"})

    def test_table_name_is_case_insensitive(self):
        assert not is_accepted("addrobj", {"actstatus": "1", "currstatus": "2"})


def test_stamp_record_adds_bookkeeping_fields():
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    fixed = uuid.UUID("33bb6037-d55f-49e1-bb44-b24e834a7ff5")

    record = stamp_record({"aoguid": "x"}, now=now, id_factory=lambda: fixed)

    assert record["recid"] == str(fixed)
    assert record["reccreated"] == now
    assert record["recupdated"] == now
    assert record["recstate"] == 1


def test_stamp_record_uses_fresh_ids_and_utc_time():
    first = stamp_record({})
    second = stamp_record({})
    assert first["recid"] != second["recid"]
    assert first["reccreated"].tzinfo is not None
    assert first["reccreated"].utcoffset().total_seconds() == 0


class TestPrepareRecord:
    def test_absent_currstatus_is_treated_as_zero(self):
        record = prepare_record("ADDROBJ", [("AOGUID", "g"), ("ACTSTATUS", "1")])
        assert record is not None
        assert record["currstatus"] == "0"
        assert record["operstatus"] == "0"
        assert "recid" in record

    def test_rejected_record_returns_none(self):
        assert prepare_record("ADDROBJ", [("ACTSTATUS", "1"), ("CURRSTATUS", "1")]) is None

    def test_other_table_record_is_stamped(self):
        record = prepare_record("SOCRBASE", [("SCNAME", "ул"), ("SOCRNAME", "Улица")])
        assert record["scname"] == "ул"
        assert record["recstate"] == 1


@pytest.mark.parametrize(
    "entry, expected",
    [
        ("AS_ADDROBJ_20171217_33bb6037-d55f-49e1-bb44-b24e834a7ff5.XML", "ADDROBJ"),
        ("fias/AS_SOCRBASE_20171217_1b2c.XML", "SOCRBASE"),
        ("AS_ADDROBJ.XML", None),
        ("README.txt", None),
    ],
)
def test_table_name_from_entry(entry, expected):
    assert table_name_from_entry(entry) == expected


def test_parse_table_list():
    assert parse_table_list(" ADDROBJ, socrbase,,") == ["ADDROBJ", "SOCRBASE"]
    assert parse_table_list(" , ") == []
