"""
Implementation for an async (aiohttp.ClientSession) http transport
shared by the TR-064 and AHA clients.
"""

import asyncio
import logging
import socket
import sys
from typing import TYPE_CHECKING, NamedTuple

import aiohttp
from yarl import URL

from .helpers import Loggable
from .obfuscate import obfuscated_dict
from .protocol import TransportError

if TYPE_CHECKING:
    from typing import ClassVar, Mapping, Unpack

    from multidict import CIMultiDictProxy


class HttpResponse(NamedTuple):
    status: int
    reason: str | None
    headers: "CIMultiDictProxy[str] | Mapping[str, str]"
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class FritzHttpClient(Loggable):
    if TYPE_CHECKING:
        SESSION_MAXIMUM_CONNECTIONS: ClassVar
        SESSION_MAXIMUM_CONNECTIONS_PER_HOST: ClassVar
        SESSION_TIMEOUT: ClassVar
        _SESSION: ClassVar[aiohttp.ClientSession | None]

        class Args(Loggable.Args):
            session: aiohttp.ClientSession | None
            log_level_dump: int

    SESSION_MAXIMUM_CONNECTIONS = 20
    SESSION_MAXIMUM_CONNECTIONS_PER_HOST = 4
    SESSION_TIMEOUT = aiohttp.ClientTimeout(total=10, connect=5)

    # The box https interface uses a self-signed certificate so the
    # library dedicated session skips verification.
    _SESSION = None

    @staticmethod
    def _get_or_create_client_session():
        if not FritzHttpClient._SESSION:
            FritzHttpClient._SESSION = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(
                    family=socket.AF_INET,
                    limit=FritzHttpClient.SESSION_MAXIMUM_CONNECTIONS,
                    limit_per_host=FritzHttpClient.SESSION_MAXIMUM_CONNECTIONS_PER_HOST,
                    ssl=False,
                ),
                headers={
                    aiohttp.hdrs.USER_AGENT: "fritzclient aiohttp/{0} Python/{1[0]}.{1[1]}".format(
                        aiohttp.__version__, sys.version_info
                    ),
                },
                timeout=FritzHttpClient.SESSION_TIMEOUT,
            )
        return FritzHttpClient._SESSION

    @staticmethod
    async def async_shutdown_session():
        if FritzHttpClient._SESSION:
            await FritzHttpClient._SESSION.close()
            FritzHttpClient._SESSION = None

    __slots__ = (
        "username",
        "password",
        "timeout",
        "_session",
        "_log_level_dump",
    )

    def __init__(
        self,
        id,
        username: str = "",
        password: str = "",
        **kwargs: "Unpack[Args]",
    ):
        """
        username, password: the box credentials (both protocols share them)
        session: the shared session to use or None to use the library dedicated one
        logger: a shared logger to enable logging
        log_level_dump: the logging level at which the full payloads will be dumped
        """
        self.username = username
        self.password = password
        self.timeout = FritzHttpClient.SESSION_TIMEOUT
        self._session = (
            kwargs.get("session") or FritzHttpClient._get_or_create_client_session()
        )
        self._log_level_dump = kwargs.get("log_level_dump", logging.DEBUG)
        super().__init__(id, logger=kwargs.get("logger"))

    def set_default_user(self, username: str):
        """Sets the username used for authentication"""
        self.username = username

    async def async_request(
        self,
        method: str,
        url: URL,
        *,
        headers: "Mapping[str, str] | None" = None,
        data: bytes | None = None,
        redact_response: bool = False,
    ) -> HttpResponse:
        dump = self.isEnabledFor(self._log_level_dump)
        if dump:
            self.log(
                self._log_level_dump,
                "HTTP %s %s query:%s headers:%s",
                method,
                url.path,
                obfuscated_dict(url.query),
                obfuscated_dict(headers or {}),
            )
        try:
            async with self._session.request(
                method, url, headers=headers, data=data, timeout=self.timeout
            ) as response:
                result = HttpResponse(
                    response.status,
                    response.reason,
                    response.headers,
                    await response.text(),
                )
        except aiohttp.ClientConnectorCertificateError as error:
            raise TransportError(
                f"Can not establish SSL connection to {url.host} ({error})"
            ) from error
        except (aiohttp.ClientError, asyncio.TimeoutError) as error:
            self.log(
                logging.DEBUG,
                "HTTP %s %s: %s(%s)",
                method,
                url.path,
                error.__class__.__name__,
                str(error),
            )
            raise TransportError(
                f"{method} {url.path}: {error.__class__.__name__}({error})"
            ) from error

        if dump:
            self.log(
                self._log_level_dump,
                "HTTP %s %s: %s %s (%s)",
                method,
                url.path,
                result.status,
                result.reason,
                "<redacted>" if redact_response else result.text,
            )
        return result
