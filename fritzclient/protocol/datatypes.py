"""
TR-064 state variable data types and their wire <-> python coercion.

The same table is used when building requests ('in' arguments) and
when parsing responses ('out' arguments). Unknown data types are passed
through untouched.
"""

from datetime import datetime
import typing

DATATYPE_INTEGERS = ("i1", "i2", "i4", "i8", "ui1", "ui2", "ui4", "ui8", "int")
DATATYPE_STRINGS = ("string", "uuid")
DATATYPE_BOOLEAN = "boolean"
DATATYPE_DATETIME = "dateTime"

_TRUE_VALUES = ("1", "true")


def _int_to_wire(value) -> str:
    return str(int(value))


def _int_from_wire(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


def _str_to_wire(value) -> str:
    return str(value)


def _bool_to_wire(value) -> str:
    if isinstance(value, str):
        return "1" if value.strip().lower() in _TRUE_VALUES else "0"
    return "1" if value else "0"


def _bool_from_wire(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return value


def _datetime_to_wire(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _datetime_from_wire(value):
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return value
    return value


class Coercion(typing.NamedTuple):
    to_wire: typing.Callable[[typing.Any], typing.Any]
    from_wire: typing.Callable[[typing.Any], typing.Any]


COERCIONS: dict[str, Coercion] = {
    **{_type: Coercion(_int_to_wire, _int_from_wire) for _type in DATATYPE_INTEGERS},
    **{_type: Coercion(_str_to_wire, _str_to_wire) for _type in DATATYPE_STRINGS},
    DATATYPE_BOOLEAN: Coercion(_bool_to_wire, _bool_from_wire),
    DATATYPE_DATETIME: Coercion(_datetime_to_wire, _datetime_from_wire),
}


def to_wire(value, datatype: str | None):
    """Converts a python value into its wire representation for 'datatype'"""
    if coercion := COERCIONS.get(datatype):  # type: ignore
        return coercion.to_wire(value)
    return value


def from_wire(value, datatype: str | None):
    """Converts a wire value (usually str) into the python type for 'datatype'"""
    if coercion := COERCIONS.get(datatype):  # type: ignore
        return coercion.from_wire(value)
    return value


def from_wire_tree(tree, datatypes: typing.Mapping[str, str], /):
    """
    Converts in place every scalar in the tree whose key is a known
    state variable. Used for results carrying embedded xml documents
    (i.e. NewTAMList). Returns the (same) tree.
    """
    if isinstance(tree, dict):
        for key, value in tree.items():
            if isinstance(value, (dict, list)):
                from_wire_tree(value, datatypes)
            elif key in datatypes:
                tree[key] = from_wire(value, datatypes[key])
    elif isinstance(tree, list):
        for value in tree:
            from_wire_tree(value, datatypes)
    return tree
