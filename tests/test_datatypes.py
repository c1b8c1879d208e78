"""Test the protocol.datatypes coercion table"""

from datetime import datetime

import pytest

from fritzclient.protocol import datatypes


@pytest.mark.parametrize("datatype", datatypes.DATATYPE_INTEGERS)
def test_integer_coercion(datatype):
    for value in (0, 1, 100, 49443):
        wire_value = datatypes.to_wire(value, datatype)
        assert wire_value == str(value)
        assert datatypes.from_wire(wire_value, datatype) == value


def test_integer_invalid_wire_value():
    """Garbage from the wire is passed through untouched"""
    assert datatypes.from_wire("", "ui4") == ""
    assert datatypes.from_wire("n/a", "i4") == "n/a"


def test_boolean_coercion():
    assert datatypes.to_wire(True, "boolean") == "1"
    assert datatypes.to_wire(False, "boolean") == "0"
    assert datatypes.to_wire(1, "boolean") == "1"
    assert datatypes.to_wire("true", "boolean") == "1"
    assert datatypes.to_wire("no", "boolean") == "0"
    assert datatypes.from_wire("1", "boolean") is True
    assert datatypes.from_wire("0", "boolean") is False
    assert datatypes.from_wire("TRUE", "boolean") is True
    assert datatypes.from_wire(1, "boolean") is True
    assert datatypes.from_wire(2, "boolean") is False
    for value in (True, False):
        assert (
            datatypes.from_wire(datatypes.to_wire(value, "boolean"), "boolean")
            is value
        )


def test_string_coercion():
    assert datatypes.to_wire(1234, "string") == "1234"
    assert datatypes.from_wire("abc", "uuid") == "abc"


def test_datetime_coercion():
    value = datetime(2026, 1, 1, 12, 30, 0)
    assert datatypes.to_wire(value, "dateTime") == "2026-01-01T12:30:00"
    assert datatypes.from_wire("2026-01-01T12:30:00", "dateTime") == value
    assert datatypes.from_wire("unknown", "dateTime") == "unknown"


def test_unknown_datatype():
    assert datatypes.to_wire(5, "bin.base64") == 5
    assert datatypes.from_wire("5", None) == "5"


def test_from_wire_tree():
    tree = {
        "List": {
            "TAMRunning": "1",
            "Item": [
                {"Index": "0", "Enable": "1", "Name": "TAM 1"},
                {"Index": "1", "Enable": "0", "Name": "TAM 2"},
            ],
        }
    }
    result = datatypes.from_wire_tree(
        tree, {"Index": "ui2", "Enable": "boolean", "Name": "string"}
    )
    assert result is tree
    assert tree == {
        "List": {
            "TAMRunning": "1",
            "Item": [
                {"Index": 0, "Enable": True, "Name": "TAM 1"},
                {"Index": 1, "Enable": False, "Name": "TAM 2"},
            ],
        }
    }
