"""
    Obfuscation:

    working on a set of well-known keys to hide values from a structure
    when logging/tracing.
    The 'OBFUSCATE_KEYS' dict mandates which key values are patched and
    how (ObfuscateRule). It generally mantains a set of obfuscated values stored in
    the ObfuscateMap instance so that every time we obfuscate a key value,
    we return the same (stable) obfuscation in order to correlate data in
    traces and logs. Some keys are not cached/mapped and just 'redacted'
"""

import typing

from . import const as fc


class ObfuscateRule:
    """
    Obfuscate data without caching and mapping. This is needed
    for ever-varying key values like i.e. login responses
    """

    def obfuscate(self, value):
        return "<redacted>"


class ObfuscateMap(ObfuscateRule, dict):
    def obfuscate(self, value):
        """
        for every value we obfuscate, we'll keep
        a cache of 'unique' obfuscated values in order
        to be able to relate 'stable' identical vales in traces
        for debugging/diagnostics purposes
        """
        if value not in self:
            # first time seen: generate the obfuscation
            count = len(self)
            if isinstance(value, str):
                # we'll preserve string length when obfuscating strings
                obfuscated_value = str(count)
                padding = len(value) - len(obfuscated_value)
                if padding > 0:
                    self[value] = "#" * padding + obfuscated_value
                else:
                    self[value] = "#" + obfuscated_value
            else:
                self[value] = "@" + str(count)

        return self[value]


class ObfuscateSidMap(ObfuscateMap):
    def obfuscate(self, value: str):
        # the 'no session' sentinel is not sensitive and helps
        # a lot when reading login traces
        if value == fc.AHA_SID_INVALID:
            return value
        return super().obfuscate(value)


# common (shared) obfuscation mappings for related keys
OBFUSCATE_NO_MAP = ObfuscateRule()
OBFUSCATE_HOST_MAP = ObfuscateMap({})
OBFUSCATE_USERNAME_MAP = ObfuscateMap({})
OBFUSCATE_SID_MAP = ObfuscateSidMap({})
OBFUSCATE_KEYS: dict[str, ObfuscateRule] = {
    # AHA login_sid.lua query/response keys
    fc.PARAM_SID: OBFUSCATE_SID_MAP,
    fc.KEY_SID: OBFUSCATE_SID_MAP,
    fc.PARAM_USERNAME: OBFUSCATE_USERNAME_MAP,
    fc.PARAM_RESPONSE: OBFUSCATE_NO_MAP,
    # TR-064 descriptions and results
    fc.KEY_SERIALNUMBER: ObfuscateMap({}),
    fc.ARG_NEWCURRENTUSERNAME: OBFUSCATE_USERNAME_MAP,
    "NewMACAddress": ObfuscateMap({}),
    "NewSerialNumber": ObfuscateMap({}),
    "Authorization": OBFUSCATE_NO_MAP,
    #
    # FritzConfig keys
    fc.CONF_HOST: OBFUSCATE_HOST_MAP,
    fc.CONF_PASSWORD: OBFUSCATE_NO_MAP,
}


def obfuscated_list(data: list):
    """
    List obfuscation: recursevely invokes dict/list obfuscation on the list items.
    Simple objects are not obfuscated.
    """
    return [
        obfuscated_dict(value)
        if isinstance(value, dict)
        else obfuscated_list(value)
        if isinstance(value, list)
        else value
        for value in data
    ]


def obfuscated_dict(data: typing.Mapping[str, typing.Any]) -> dict[str, typing.Any]:
    """Dictionary obfuscation based on the set keys defined in OBFUSCATE_KEYS."""
    return {
        key: obfuscated_dict(value)
        if isinstance(value, dict)
        else obfuscated_list(value)
        if isinstance(value, list)
        else OBFUSCATE_KEYS[key].obfuscate(value)
        if key in OBFUSCATE_KEYS
        else value
        for key, value in data.items()
    }
