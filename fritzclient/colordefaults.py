"""
Color and white temperature palettes ('getcolordefaults').

Some lamps only render the discrete set of colors/temperatures
the box declares so any requested value has to be snapped to the
closest palette entry before being sent.
"""

import math
import typing

from . import as_list, const as fc, get_element
from .helpers import mired_to_kelvin


class ColorPoint(typing.NamedTuple):
    hue: int
    """0..359 degrees"""
    saturation: int
    """0..255"""
    value: int
    """0..255"""


def _parse_int(element: dict, *keys: str):
    # attributes are either named in short (sat/val) or long form
    for key in keys:
        if value := element.get(key):
            try:
                return int(value)
            except ValueError:
                return None
    return None


def _to_vector(hue: float, saturation: float, value: float):
    hue = math.radians(hue)
    return (
        math.sin(hue) * saturation * value,
        math.cos(hue) * saturation * value,
        value,
    )


class ColorDefaults:
    """
    Holds the palettes once loaded. Instances are owned by AhaClient
    (see AhaClient.async_get_color_defaults) and loaded once.
    """

    __slots__ = (
        "colors",
        "temperatures",
        "_loaded",
    )

    def __init__(self):
        self.colors: list[ColorPoint] = []
        self.temperatures: list[int] = []
        """Kelvin"""
        self._loaded = False

    @property
    def loaded(self):
        """True once a (possibly empty) palette has been loaded"""
        return self._loaded

    def load(self, tree: dict):
        if self.loaded:
            return

        for hs in as_list(
            get_element(tree, fc.KEY_COLORDEFAULTS, fc.KEY_HSDEFAULTS, fc.KEY_HS)
        ):
            if not isinstance(hs, dict):
                continue
            for color in as_list(hs.get(fc.KEY_COLOR)):
                if not isinstance(color, dict):
                    continue
                hue = _parse_int(color, fc.ATTR_HUE)
                saturation = _parse_int(color, fc.ATTR_SAT, fc.ATTR_SATURATION)
                value = _parse_int(color, fc.ATTR_VAL, fc.ATTR_VALUE)
                if hue is None or saturation is None or value is None:
                    continue
                self.colors.append(ColorPoint(hue, saturation, value))

        for temp in as_list(
            get_element(
                tree, fc.KEY_COLORDEFAULTS, fc.KEY_TEMPERATUREDEFAULTS, fc.KEY_TEMP
            )
        ):
            if isinstance(temp, dict) and (
                (kelvin := _parse_int(temp, fc.ATTR_VALUE, fc.ATTR_VAL)) is not None
            ):
                self.temperatures.append(kelvin)

        self._loaded = True

    def get_closest_color(
        self, color: tuple[float, float, float]
    ) -> ColorPoint | None:
        """
        color: (hue 0..360, saturation 0..100, value 0..100)
        Returns the palette entry at the minimum (squared) distance in the
        hsv cone. Ties resolve to the earliest entry.
        """
        if not self.colors:
            return None
        x, y, z = _to_vector(color[0], color[1] / 100, color[2] / 100)

        def _distance(point: ColorPoint):
            _x, _y, _z = _to_vector(point.hue, point.saturation / 255, point.value / 255)
            return (x - _x) ** 2 + (y - _y) ** 2 + (z - _z) ** 2

        return min(self.colors, key=_distance)

    def get_closest_color_temperature(self, mired: float) -> int | None:
        """Returns the palette temperature (Kelvin) closest to 'mired'"""
        if not self.temperatures:
            return None
        kelvin = mired_to_kelvin(mired)
        return min(self.temperatures, key=lambda _kelvin: abs(_kelvin - kelvin))
