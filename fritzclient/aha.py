"""
AHA http interface client (login_sid.lua + homeautoswitch.lua).

Session ids are valid for 60 minutes and get renewed on every
request, so the client reuses the current SID as long as it was
used within the last hour and only then goes through the
(challenge/response) login procedure.
"""

import asyncio
from enum import StrEnum
from time import time
from typing import TYPE_CHECKING

import aiohttp
from yarl import URL

from . import const as fc, get_element, get_text
from .colordefaults import ColorDefaults
from .httpclient import FritzHttpClient
from .protocol import AuthenticationError, TransportError
from .protocol.message import compute_login_response, parse_xml

if TYPE_CHECKING:
    from typing import Any, Mapping, Unpack


class SessionState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    CHALLENGED = "challenged"
    AUTHENTICATED = "authenticated"


class AhaClient(FritzHttpClient):

    __slots__ = (
        "sid",
        "timestamp",
        "challenge",
        "color_defaults",
        "_login_url",
        "_service_url",
        "_login_lock",
    )

    def __init__(
        self,
        url: "URL | str",
        username: str = "",
        password: str = "",
        *,
        color_defaults: ColorDefaults | None = None,
        **kwargs: "Unpack[FritzHttpClient.Args]",
    ):
        """
        url: any url pointing to the box (i.e. the TR-064 description url):
        only scheme and host are used since the AHA interface is served
        on the default http(s) port.
        """
        url = URL(url)
        self.sid = fc.AHA_SID_INVALID
        self.timestamp = 0.0
        self.challenge: str | None = None
        self.color_defaults = color_defaults or ColorDefaults()
        self._login_url = URL.build(
            scheme=url.scheme, host=url.host or "", path=fc.AHA_LOGIN_PATH
        )
        self._service_url = URL.build(
            scheme=url.scheme, host=url.host or "", path=fc.AHA_SERVICE_PATH
        )
        self._login_lock = asyncio.Lock()
        super().__init__(url.host, username, password, **kwargs)

    @property
    def login_url(self):
        return self._login_url

    @property
    def service_url(self):
        return self._service_url

    @property
    def state(self):
        if self.sid != fc.AHA_SID_INVALID:
            return SessionState.AUTHENTICATED
        if self.challenge:
            return SessionState.CHALLENGED
        return SessionState.UNAUTHENTICATED

    def set_security_port(self, port: int):
        self._login_url = self._login_url.with_scheme("https").with_port(port)
        self._service_url = self._service_url.with_scheme("https").with_port(port)

    def _is_session_valid(self):
        return (self.sid != fc.AHA_SID_INVALID) and (
            (time() - self.timestamp) < fc.AHA_SESSION_TIMEOUT
        )

    def _reset_session(self):
        self.sid = fc.AHA_SID_INVALID
        self.timestamp = 0.0
        self.challenge = None

    async def async_ensure_session(self):
        """
        Checks the current SID or requests a new one. Concurrent callers
        share the same login round trip.
        """
        if self._is_session_valid():
            self.timestamp = time()
            return
        async with self._login_lock:
            # a concurrent caller might have logged in meanwhile
            if self._is_session_valid():
                self.timestamp = time()
                return

            session_info = await self._async_get_session_info(
                {fc.PARAM_SID: self.sid}
            )
            if self._adopt_sid(session_info):
                return

            self.challenge = get_text(session_info.get(fc.KEY_CHALLENGE))
            if not self.challenge:
                raise AuthenticationError("Session info contains no challenge")

            self.log(self.DEBUG, "Logging in (user:%s)", self.username)
            session_info = await self._async_get_session_info(
                {
                    fc.PARAM_USERNAME: self.username,
                    fc.PARAM_RESPONSE: compute_login_response(
                        self.challenge, self.password
                    ),
                }
            )
            if self._adopt_sid(session_info):
                return

            raise AuthenticationError(
                f"Could not get a session id for user '{self.username}'"
            )

    def _adopt_sid(self, session_info: dict):
        sid = get_text(session_info.get(fc.KEY_SID))
        if sid and sid != fc.AHA_SID_INVALID:
            self.sid = sid
            self.timestamp = time()
            self.challenge = None
            return True
        return False

    async def _async_get_session_info(self, query: "Mapping[str, str]") -> dict:
        url = self._login_url.with_query(query)
        response = await self.async_request(
            aiohttp.hdrs.METH_GET, url, redact_response=True
        )
        if not response.ok:
            raise TransportError(
                f"Error getting session info: {response.status} {response.reason}"
            )
        return get_element(parse_xml(response.text), fc.KEY_SESSIONINFO) or {}

    async def async_send(
        self, command: str, params: "Mapping[str, Any] | None" = None
    ) -> "dict | str":
        """
        Sends 'command' (switchcmd) along with its (optional) params.
        The box answers with plain text except for a few commands
        (CMD_STRUCTURED_SET) answering with an xml document which is
        returned parsed.
        """
        await self.async_ensure_session()

        query = {fc.PARAM_SID: self.sid, fc.PARAM_SWITCHCMD: command}
        if params:
            for key, value in params.items():
                query[key] = str(value)
        url = self._service_url.with_query(query)

        response = await self.async_request(aiohttp.hdrs.METH_GET, url)
        if response.status == 403:
            # the box dropped our session (i.e. reboot or explicit logout)
            self._reset_session()
            raise AuthenticationError(f"Session rejected while sending {command}")
        if not response.ok:
            raise TransportError(
                f"Error sending command {command}: {response.status} {response.reason}"
            )

        if command in fc.CMD_STRUCTURED_SET:
            return parse_xml(response.text)
        return response.text.strip()

    async def async_get_state(self):
        """Returns the (parsed) device list with their current state"""
        return await self.async_send(fc.CMD_GETDEVICELISTINFOS)

    async def async_get_color_defaults(self):
        """Loads (only the first time) the box color and temperature palettes"""
        if not self.color_defaults.loaded:
            tree = await self.async_send(fc.CMD_GETCOLORDEFAULTS)
            self.color_defaults.load(tree)  # type: ignore
        return self.color_defaults

    async def async_logout(self):
        if self.sid == fc.AHA_SID_INVALID:
            return
        try:
            await self._async_get_session_info(
                {fc.PARAM_LOGOUT: "1", fc.PARAM_SID: self.sid}
            )
        finally:
            self._reset_session()
