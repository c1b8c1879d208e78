"""
Protocol level definitions shared by the TR-064 and AHA clients
"""


#
# Custom Exceptions
#
class FritzError(Exception):
    """Base class for all the errors raised by fritzclient"""


class DiscoveryError(FritzError):
    """signals a socket level failure while searching for devices"""


class DeviceNotFoundError(FritzError):
    """
    signals an empty or ambiguous discovery result. Only raised by the
    FritzBoxApi facade: discovery itself returns an empty list.
    """

    def __init__(self, reason: object, candidates: "list | None" = None):
        self.candidates = candidates or []
        super().__init__(reason)


class TransportError(FritzError):
    """signals a connection/tls/http status failure"""


class ProtocolError(FritzError):
    """
    signal a protocol error like:
    - malformed xml documents
    - missing mandatory keys in description documents

    - response is the full (raw or parsed) response payload
    - reason is an additional context error
    """

    def __init__(self, response, reason: object | None = None):
        self.response = response
        self.reason = reason
        super().__init__(reason)


class AuthenticationError(FritzError):
    """signals a digest or session login failure"""


class ArgumentError(FritzError):
    """signals a missing (or not convertible) input argument in a TR-064 call"""

    def __init__(self, action: str, argument: str, reason: object = None):
        self.action = action
        self.argument = argument
        if reason is None:
            super().__init__(f"Required argument '{argument}' missing for action '{action}'")
        else:
            super().__init__(
                f"Invalid value for argument '{argument}' of action '{action}' ({reason})"
            )
