"""
FritzBoxApi: puts together discovery, the TR-064 interview and the
AHA client out of a FritzConfig.
"""

from typing import TYPE_CHECKING

from yarl import URL

from . import const as fc
from .aha import AhaClient
from .colordefaults import ColorDefaults
from .helpers import Loggable
from .httpclient import FritzHttpClient
from .protocol import AuthenticationError, DeviceNotFoundError
from .ssdp import async_discover
from .tr064 import Tr064Client

if TYPE_CHECKING:
    from typing import Unpack

    import aiohttp

    from .const import FritzConfig


class FritzBoxApi(Loggable):
    """
    Usage:
        api = FritzBoxApi({"password": "..."})
        await api.async_setup()
        await api.tr064.async_send(...)
        await api.aha.async_send(...)
        await api.async_shutdown()
    """

    __slots__ = (
        "config",
        "tr064",
        "aha",
        "color_defaults",
        "_session",
    )

    def __init__(
        self,
        config: "FritzConfig",
        *,
        session: "aiohttp.ClientSession | None" = None,
        **kwargs: "Unpack[Loggable.Args]",
    ):
        self.config = config
        self.tr064: Tr064Client | None = None
        self.aha: AhaClient | None = None
        self.color_defaults = ColorDefaults()
        self._session = session
        super().__init__(config.get(fc.CONF_HOST), **kwargs)

    async def async_get_description_url(self) -> URL:
        if host := self.config.get(fc.CONF_HOST):
            return URL.build(
                scheme="http",
                host=host,
                port=fc.TR064_DEFAULT_PORT,
                path=fc.TR064_DESC_PATH,
            )
        candidates = await async_discover(session=self._session)
        if not candidates:
            raise DeviceNotFoundError("No FRITZ!Box found")
        if len(candidates) > 1:
            raise DeviceNotFoundError(
                f"Multiple FRITZ!Box found: {', '.join(str(url.host) for url in candidates)}",
                candidates,
            )
        return candidates[0]

    async def async_setup(self):
        url = await self.async_get_description_url()
        password = self.config.get(fc.CONF_PASSWORD, "")
        username = self.config.get(fc.CONF_USERNAME, "")

        tr064 = Tr064Client(
            username, password, session=self._session, logger=self.logger
        )
        await tr064.async_init(url)
        self.id = url.host
        self.configure_logger()
        self.log(self.INFO, "Device found: %s", tr064.descriptor.display_name)  # type: ignore

        ssl = self.config.get(fc.CONF_SSL)
        if ssl:
            result = await tr064.async_send(
                fc.SERVICE_DEVICEINFO, fc.ACTION_GETSECURITYPORT
            )
            if result and (
                (security_port := result.get(fc.ARG_NEWSECURITYPORT)) is not None
            ):
                tr064.set_security_port(security_port)
            else:
                self.log(self.WARNING, "Security port not available: keeping http")

        if not password:
            result = await tr064.async_send(
                fc.SERVICE_LANCONFIGSECURITY, fc.ACTION_GETANONYMOUSLOGIN
            )
            if not (result and result.get(fc.ARG_NEWANONYMOUSLOGINENABLED) is True):
                raise AuthenticationError(
                    "This FRITZ!Box does not allow access without a username and/or a password"
                )
        elif not username:
            tr064.set_default_user(fc.DEFAULT_USERNAME)
            result = await tr064.async_send(
                fc.SERVICE_LANCONFIGSECURITY, fc.ACTION_GETCURRENTUSER
            )
            if not (result and (username := result.get(fc.ARG_NEWCURRENTUSERNAME))):
                raise AuthenticationError(
                    "This FRITZ!Box does not support retrieving a valid username"
                )
            tr064.set_default_user(username)

        aha = None
        if tr064.has_service(fc.SERVICE_HOMEAUTO):
            aha = AhaClient(
                url,
                tr064.username,
                password,
                color_defaults=self.color_defaults,
                session=self._session,
                logger=self.logger,
            )
            if ssl:
                # the http interface is served on the remote access port
                result = await tr064.async_send(
                    fc.SERVICE_REMOTEACCESS, fc.ACTION_GETINFO
                )
                if result and ((port := result.get(fc.ARG_NEWPORT)) is not None):
                    aha.set_security_port(port)
                else:
                    self.log(
                        self.WARNING, "Remote access port not available: keeping http"
                    )
        else:
            self.log(self.INFO, "Smart home service not available")

        self.tr064 = tr064
        self.aha = aha

    async def async_shutdown(self):
        if self.aha:
            try:
                await self.aha.async_logout()
            except Exception as exception:
                self.log_exception(self.WARNING, exception, "async_shutdown")
            self.aha = None
        self.tr064 = None
        if not self._session:
            # we were using the library dedicated session
            await FritzHttpClient.async_shutdown_session()
