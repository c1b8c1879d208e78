"""Global fixtures for fritzclient tests."""

# Fixtures that are defined in conftest.py are available across all tests.
# The box is emulated by helpers.FritzBoxMocker which stands in for the
# aiohttp.ClientSession so that no network access happens during tests.
import pytest

from fritzclient import obfuscate

from . import helpers


@pytest.fixture(autouse=True)
def clear_obfuscation_maps():
    """Obfuscation maps are process wide: reset them to get stable results."""
    for rule in obfuscate.OBFUSCATE_KEYS.values():
        if isinstance(rule, obfuscate.ObfuscateMap):
            rule.clear()
    yield


@pytest.fixture()
def box_mock():
    return helpers.FritzBoxMocker()


@pytest.fixture()
def time_mock():
    with helpers.TimeMocker("2026-01-01 12:00:00") as _time_mock:
        yield _time_mock
