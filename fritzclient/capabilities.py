"""
Static tables describing what a smart home device (as reported in
'getdevicelistinfos') is able to do.
"""

from enum import StrEnum
import typing

from . import const as fc, get_element, get_text


class Capability(StrEnum):
    BLIND = "blind"
    THERMOSTAT = "thermostat"
    OUTLET = "outlet"
    LIGHT = "light"
    SWITCH = "switch"
    ENERGY_METER = "energy_meter"
    CONTACT_SENSOR = "contact_sensor"
    LEAK_SENSOR = "leak_sensor"
    MOTION_SENSOR = "motion_sensor"
    TEMPERATURE_SENSOR = "temperature_sensor"
    HUMIDITY_SENSOR = "humidity_sensor"
    BATTERY = "battery"


PRIMARY_ORDER = (
    Capability.BLIND,
    Capability.THERMOSTAT,
    Capability.OUTLET,
    Capability.LIGHT,
    Capability.SWITCH,
)
"""Mutually exclusive capabilities: the first one reported wins"""
SECONDARY_ORDER = (
    Capability.ENERGY_METER,
    Capability.CONTACT_SENSOR,
    Capability.LEAK_SENSOR,
    Capability.MOTION_SENSOR,
    Capability.TEMPERATURE_SENSOR,
    Capability.HUMIDITY_SENSOR,
)

FUNCTION_BIT_HANFUN_UNIT = 13
FUNCTION_BITS: dict[int, Capability] = {
    2: Capability.LIGHT,
    6: Capability.THERMOSTAT,
    7: Capability.ENERGY_METER,
    8: Capability.TEMPERATURE_SENSOR,
    9: Capability.OUTLET,
    15: Capability.SWITCH,
    17: Capability.LIGHT,  # color light
    18: Capability.BLIND,
    20: Capability.HUMIDITY_SENSOR,
}
"""'@functionbitmask' bit -> capability. Bit 16 (level) is ambiguous"""

HANFUN_UNIT_TYPES: dict[int, Capability] = {
    256: Capability.SWITCH,  # SIMPLE_ON_OFF_SWITCHABLE
    257: Capability.SWITCH,  # SIMPLE_ON_OFF_SWITCH
    262: Capability.OUTLET,  # AC_OUTLET
    263: Capability.OUTLET,  # AC_OUTLET_SIMPLE_POWER_METERING
    264: Capability.LIGHT,  # SIMPLE_LIGHT
    265: Capability.LIGHT,  # DIMMABLE_LIGHT
    266: Capability.LIGHT,  # DIMMER_SWITCH
    277: Capability.LIGHT,  # COLOR_BULB
    278: Capability.LIGHT,  # DIMMABLE_COLOR_BULB
    281: Capability.BLIND,  # BLIND
    282: Capability.BLIND,  # LAMELLAR
    512: Capability.CONTACT_SENSOR,  # SIMPLE_DETECTOR
    513: Capability.CONTACT_SENSOR,  # DOOR_OPEN_CLOSE_DETECTOR
    514: Capability.CONTACT_SENSOR,  # WINDOW_OPEN_CLOSE_DETECTOR
    515: Capability.MOTION_SENSOR,  # MOTION_DETECTOR
    518: Capability.LEAK_SENSOR,  # FLOOD_DETECTOR
}


class CapabilityDescriptor(typing.NamedTuple):
    id: str
    name: str
    unit: str
    min: float
    max: float
    step: float
    permissions: tuple[str, ...] = ("read", "notify")


CHARACTERISTIC_VOLTAGE = CapabilityDescriptor(
    "E863F10A-079E-48FF-8F27-9C2605A29F52", "Voltage", "V", 0, 380, 0.1
)
CHARACTERISTIC_TOTAL_CONSUMPTION = CapabilityDescriptor(
    "E863F10C-079E-48FF-8F27-9C2605A29F52", "Total Consumption", "kWh", 0, 1000000, 0.01
)
CHARACTERISTIC_CONSUMPTION = CapabilityDescriptor(
    "E863F10D-079E-48FF-8F27-9C2605A29F52", "Consumption", "W", 0, 12000, 0.1
)
CHARACTERISTICS = (
    CHARACTERISTIC_VOLTAGE,
    CHARACTERISTIC_TOTAL_CONSUMPTION,
    CHARACTERISTIC_CONSUMPTION,
)
"""Energy meter readings not covered by standard accessory characteristics"""


class ColorModes(typing.NamedTuple):
    hue_saturation: bool
    color_temperature: bool
    mapped: bool


COLOR_MODE_HUE_SATURATION = 1
COLOR_MODE_COLOR_TEMPERATURE = 4


def _parse_int(value, default=0):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _get_reported_capabilities(device: dict):
    bitmask = _parse_int(device.get(fc.ATTR_FUNCTIONBITMASK))
    if bitmask & (1 << FUNCTION_BIT_HANFUN_UNIT):
        unit_type = _parse_int(
            get_text(get_element(device, fc.KEY_ETSIUNITINFO, fc.KEY_UNITTYPE))
        )
        if capability := HANFUN_UNIT_TYPES.get(unit_type):
            return {capability}
        return set()
    return {
        capability for bit, capability in FUNCTION_BITS.items() if bitmask & (1 << bit)
    }


def get_device_capabilities(device: dict) -> list[Capability]:
    """
    Returns the device capabilities: at most one (primary) among
    PRIMARY_ORDER followed by any of SECONDARY_ORDER and finally
    BATTERY when the device reports any battery info.
    """
    reported = _get_reported_capabilities(device)
    capabilities = []
    for capability in PRIMARY_ORDER:
        if capability in reported:
            capabilities.append(capability)
            break
    for capability in SECONDARY_ORDER:
        if capability in reported:
            capabilities.append(capability)
    if (fc.KEY_BATTERY in device) or (fc.KEY_BATTERYLOW in device):
        capabilities.append(Capability.BATTERY)
    return capabilities


def get_color_modes(device: dict) -> ColorModes:
    colorcontrol = device.get(fc.KEY_COLORCONTROL)
    if not isinstance(colorcontrol, dict):
        return ColorModes(False, False, False)
    supported_modes = _parse_int(colorcontrol.get(fc.ATTR_SUPPORTED_MODES))
    current_mode = _parse_int(colorcontrol.get(fc.ATTR_CURRENT_MODE))
    return ColorModes(
        bool(supported_modes & (1 << 0)) or current_mode == COLOR_MODE_HUE_SATURATION,
        bool(supported_modes & (1 << 2))
        or current_mode == COLOR_MODE_COLOR_TEMPERATURE,
        bool(_parse_int(colorcontrol.get(fc.ATTR_MAPPED))),
    )


def has_level_control(device: dict) -> bool:
    levelcontrol = device.get(fc.KEY_LEVELCONTROL)
    return isinstance(levelcontrol, dict) and (
        (fc.KEY_LEVEL in levelcontrol) or (fc.KEY_LEVELPERCENTAGE in levelcontrol)
    )
