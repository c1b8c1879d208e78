"""
A collection of utilities to help managing the FRITZ!Box protocols
(TR-064 SOAP and AHA http interface)

Parsed xml documents are represented as a tree of:
- dict (xml element with children/attributes, keys in document order)
- list (repeated elements or declared lists)
- str (scalar text)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from . import const as fc
from .protocol import ProtocolError

if TYPE_CHECKING:
    from typing import Any, Iterator


#
# General purpose utilities for tree handling
#
def _iter_value_by_key(tree, key: str, /) -> "Iterator[Any]":
    if isinstance(tree, dict):
        for _key, _value in tree.items():
            if _key == key:
                yield _value
            yield from _iter_value_by_key(_value, key)
    elif isinstance(tree, list):
        for _value in tree:
            yield from _iter_value_by_key(_value, key)


def get_value_by_key(tree, key: str, /):
    """
    depth-first (left to right) search of the tree for the first
    element named 'key'. Raises KeyError when not found.
    """
    for value in _iter_value_by_key(tree, key):
        return value
    raise KeyError(f"No match for key '{key}' in tree")


def get_value_by_key_safe(tree, key: str, default=None, /):
    """Same as get_value_by_key but returning 'default' when not found"""
    for value in _iter_value_by_key(tree, key):
        return value
    return default


def get_element(tree, *keys: str):
    """
    walks down the tree following the keys path and returns the
    element (or None as soon as any step is missing)
    """
    for key in keys:
        if not isinstance(tree, dict):
            return None
        tree = tree.get(key)
    return tree


def as_list(value) -> list:
    """
    Helper to manage elements which might carry a single item or a list:
    value = { "name": "a" }
    or
    value = [{ "name": "a" }, { "name": "b" }]
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def get_text(value) -> str | None:
    """returns the text of a scalar element (None for structured or missing)"""
    return value if isinstance(value, str) else None


#
#
#
@dataclass(slots=True)
class DeviceDescriptor:
    """
    Device info extracted from the TR-064 root description
    (tr64desc.xml). Only firmware_version is expected to change
    during the client lifetime (see Tr064Client.async_refresh_firmware).
    """

    host: str
    manufacturer: str
    model: str
    serial: str
    firmware_version: str
    display_name: str

    @staticmethod
    def build(host: str, tree: dict):
        device = get_element(tree, fc.KEY_ROOT, fc.KEY_DEVICE)
        manufacturer = get_text(get_element(device, fc.KEY_MANUFACTURER))
        serial = get_text(get_element(device, fc.KEY_SERIALNUMBER))
        model = get_text(get_element(device, fc.KEY_MODELNAME))
        firmware_version = DeviceDescriptor.get_firmware_version(tree)
        if not (manufacturer and serial and model and firmware_version):
            raise ProtocolError(tree, "Error getting device info")
        return DeviceDescriptor(
            host,
            manufacturer,
            model,
            serial,
            firmware_version,
            get_text(get_element(device, fc.KEY_FRIENDLYNAME)) or model,
        )

    @staticmethod
    def get_firmware_version(tree: dict) -> str | None:
        return get_text(
            get_element(tree, fc.KEY_ROOT, fc.KEY_SYSTEMVERSION, fc.KEY_DISPLAY)
        )
