import asyncio
import contextlib
from datetime import timedelta
import hashlib
import re
import typing

import aiohttp
from freezegun.api import freeze_time
from multidict import CIMultiDict
from yarl import URL

from fritzclient import const as fc

from . import const as tc

if typing.TYPE_CHECKING:
    from freezegun.api import FrozenDateTimeFactory


class MockRequest(typing.NamedTuple):
    method: str
    url: URL
    headers: dict
    data: bytes | None


class MockResponse:
    """Mimics the (few) aiohttp.ClientResponse members used by the clients"""

    def __init__(
        self,
        status: int = 200,
        text: str = "",
        *,
        reason: str | None = None,
        headers: dict | None = None,
    ):
        self.status = status
        self.reason = reason or ("OK" if status < 300 else "Error")
        self.headers = CIMultiDict(headers or {})
        self._text = text

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        return None


class ClientSessionMocker:
    """
    Stands in for aiohttp.ClientSession: requests are dispatched to
    handlers registered by (method, path) and are all recorded.
    """

    def __init__(self):
        self.requests: list[MockRequest] = []
        self._handlers: dict[tuple[str, str], typing.Callable[[MockRequest], MockResponse]] = {}

    def add(self, method: str, path: str, handler):
        """handler: a MockResponse, a str (200 body) or a callable(MockRequest)"""
        self._handlers[(method, path)] = handler

    def get(self, path: str, handler):
        self.add(aiohttp.hdrs.METH_GET, path, handler)

    def post(self, path: str, handler):
        self.add(aiohttp.hdrs.METH_POST, path, handler)

    def clear_requests(self):
        self.requests.clear()

    def count_requests(self, path: str | None = None):
        if path is None:
            return len(self.requests)
        return len([request for request in self.requests if request.url.path == path])

    def request(self, method: str, url, *, headers=None, data=None, timeout=None):
        request = MockRequest(method, URL(url), dict(headers or {}), data)
        self.requests.append(request)
        handler = self._handlers.get((method, request.url.path))
        if handler is None:
            return MockResponse(404, reason="Not Found")
        if isinstance(handler, MockResponse):
            return handler
        if isinstance(handler, str):
            return MockResponse(200, handler)
        if isinstance(handler, Exception):
            raise handler
        return handler(request)

    async def close(self):
        pass


RE_AUTHORIZATION_PARAM = re.compile(r'(\w+)="([^"]*)"')


class FritzBoxMocker(ClientSessionMocker):
    """
    Emulates the box server side: TR-064 descriptions and control
    (with digest authentication), jason_boxinfo.xml and the AHA
    login_sid.lua/homeautoswitch.lua endpoints.
    """

    def __init__(
        self,
        *,
        username: str = tc.MOCK_USERNAME,
        password: str = tc.MOCK_PASSWORD,
        anonymous_login: bool = False,
    ):
        super().__init__()
        self.username = username
        self.password = password
        self.anonymous_login = anonymous_login
        self.sid = fc.AHA_SID_INVALID
        self.aha_commands: list[dict] = []
        self.soap_bodies = dict(tc.MOCK_SOAP_BODIES)
        self.colordefaults = tc.MOCK_COLORDEFAULTS
        if anonymous_login:
            self.soap_bodies[(tc.SERVICE_LANCONFIGSECURITY, "X_AVM-DE_GetAnonymousLogin")] = (
                "<NewX_AVM-DE_AnonymousLoginEnabled>1</NewX_AVM-DE_AnonymousLoginEnabled>"
            )
        self.get(fc.TR064_DESC_PATH, tc.MOCK_TR64DESC)
        for path, scpd in tc.MOCK_SCPD.items():
            self.get(path, scpd)
        for path in (
            "/upnp/control/deviceinfo",
            "/upnp/control/lanconfigsecurity",
            "/upnp/control/x_tam",
            "/upnp/control/x_remote",
        ):
            self.post(path, self._handle_soap)
        self.get(fc.BOXINFO_PATH, tc.MOCK_BOXINFO_MASTER)
        self.get(fc.AHA_LOGIN_PATH, self._handle_login)
        self.get(fc.AHA_SERVICE_PATH, self._handle_switchcmd)

    def soap_requests(self, path: str | None = None):
        return [
            request
            for request in self.requests
            if request.method == aiohttp.hdrs.METH_POST
            and (path is None or request.url.path == path)
        ]

    @staticmethod
    def _md5(value: bytes):
        return hashlib.md5(value).hexdigest()

    def _check_authorization(self, request: MockRequest):
        authorization = request.headers.get(aiohttp.hdrs.AUTHORIZATION)
        if not authorization or not authorization.startswith("Digest "):
            return False
        if self.anonymous_login:
            return True
        params = dict(RE_AUTHORIZATION_PARAM.findall(authorization))
        # the box also accepts the TR-064 default user along with the password
        username = params.get("username")
        if username not in (self.username, fc.DEFAULT_USERNAME):
            return False
        ha1 = self._md5(f"{username}:{tc.MOCK_REALM}:{self.password}".encode("utf-8"))
        ha2 = self._md5(f"POST:{request.url.path}".encode("utf-8"))
        expected = self._md5(f"{ha1}:{tc.MOCK_NONCE}:{ha2}".encode("utf-8"))
        return (
            params.get("nonce") == tc.MOCK_NONCE
            and params.get("realm") == tc.MOCK_REALM
            and params.get("uri") == request.url.path
            and params.get("response") == expected
        )

    def _handle_soap(self, request: MockRequest):
        if not self._check_authorization(request):
            return MockResponse(
                401,
                reason="Unauthorized",
                headers={
                    aiohttp.hdrs.WWW_AUTHENTICATE: f'Digest realm="{tc.MOCK_REALM}", '
                    f'nonce="{tc.MOCK_NONCE}", algorithm=MD5'
                },
            )
        soapaction = request.headers[fc.HEADER_SOAPACTION].strip('"')
        service_type, _, action = soapaction.partition("#")
        body = self.soap_bodies.get((service_type, action))
        if body is None:
            return MockResponse(500, tc.SOAP_FAULT, reason="Internal Server Error")
        return MockResponse(
            200,
            tc.SOAP_RESPONSE_TEMPLATE.format(
                action=action, service_type=service_type, body=body
            ),
        )

    def _session_info(self, sid: str):
        return MockResponse(
            200,
            tc.SESSIONINFO_TEMPLATE.format(
                sid=sid,
                challenge=tc.MOCK_CHALLENGE,
                rights="" if sid == fc.AHA_SID_INVALID else "<Name>HomeAuto</Name>",
            ),
        )

    def _handle_login(self, request: MockRequest):
        query = request.url.query
        if fc.PARAM_LOGOUT in query:
            self.sid = fc.AHA_SID_INVALID
            return self._session_info(fc.AHA_SID_INVALID)
        if fc.PARAM_RESPONSE in query:
            hash = self._md5(
                f"{tc.MOCK_CHALLENGE}-{self.password}".encode("utf-16-le")
            )
            if (query.get(fc.PARAM_USERNAME) == self.username) and (
                query[fc.PARAM_RESPONSE] == f"{tc.MOCK_CHALLENGE}-{hash}"
            ):
                self.sid = tc.MOCK_SID
                return self._session_info(self.sid)
            return self._session_info(fc.AHA_SID_INVALID)
        if query.get(fc.PARAM_SID) == self.sid:
            return self._session_info(self.sid)
        return self._session_info(fc.AHA_SID_INVALID)

    def _handle_switchcmd(self, request: MockRequest):
        query = request.url.query
        if (self.sid == fc.AHA_SID_INVALID) or (query.get(fc.PARAM_SID) != self.sid):
            return MockResponse(403, reason="Forbidden")
        self.aha_commands.append(dict(query))
        command = query.get(fc.PARAM_SWITCHCMD)
        if command == fc.CMD_GETDEVICELISTINFOS:
            return MockResponse(200, tc.MOCK_DEVICELIST)
        if command == fc.CMD_GETCOLORDEFAULTS:
            return MockResponse(200, self.colordefaults)
        if command in (fc.CMD_SETSWITCHON, fc.CMD_SETSWITCHOFF):
            return MockResponse(200, "1\n" if command == fc.CMD_SETSWITCHON else "0\n")
        return MockResponse(400, reason="Bad Request")


class TimeMocker(contextlib.AbstractContextManager):
    """
    time mocker helper using freeztime. Since the clients only rely on
    time.time(), ticking doesn't need to interact with the event loop.
    """

    time: "FrozenDateTimeFactory"

    __slots__ = (
        "time",
        "_freeze_time",
    )

    def __init__(self, time_to_freeze=None):
        super().__init__()
        self._freeze_time = freeze_time(time_to_freeze, real_asyncio=True)

    def __enter__(self):
        self.time = self._freeze_time.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self._freeze_time.stop()

    def tick(self, tick: timedelta | float | int):
        self.time.tick(tick if isinstance(tick, timedelta) else timedelta(seconds=tick))

    async def async_tick(self, tick: timedelta | float | int):
        self.tick(tick)
        await asyncio.sleep(0)
