"""
TR-064 client: the action/argument/type contract of every service is
not hardcoded but read at runtime from the box service descriptions
(tr64desc.xml and the per-service SCPD documents).
"""

import asyncio
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

import aiohttp
from yarl import URL

from . import (
    DeviceDescriptor,
    as_list,
    const as fc,
    get_element,
    get_text,
    get_value_by_key,
)
from .httpclient import FritzHttpClient
from .protocol import ArgumentError, AuthenticationError, ProtocolError, TransportError
from .protocol.datatypes import from_wire, from_wire_tree, to_wire
from .protocol.message import (
    DigestChallenge,
    build_digest_authorization,
    build_message,
    build_soapaction,
    is_embedded_xml,
    parse_xml,
)

if TYPE_CHECKING:
    from typing import Any, Mapping, Unpack

    from .httpclient import HttpResponse


@dataclass(slots=True, frozen=True)
class ArgumentDescriptor:
    name: str
    direction: str
    related_state_variable: str


@dataclass(slots=True, frozen=True)
class ActionDescriptor:
    name: str
    args: tuple[ArgumentDescriptor, ...] = ()

    @property
    def args_in(self):
        return tuple(arg for arg in self.args if arg.direction == fc.DIRECTION_IN)

    @property
    def args_out(self):
        return tuple(arg for arg in self.args if arg.direction == fc.DIRECTION_OUT)


@dataclass(slots=True, frozen=True)
class ServiceDescriptor:
    service_type: str
    control_url: str
    actions: tuple[ActionDescriptor, ...]
    datatypes: "Mapping[str, str]" = field(default_factory=dict)

    def get_action(self, action_name: str) -> ActionDescriptor | None:
        for action in self.actions:
            if action.name == action_name:
                return action
        return None


def parse_scpd(service_type: str, control_url: str, scpd: dict):
    """
    Builds the ServiceDescriptor out of the SCPD document. Returns None
    when the document misses the action list or the state table.
    Actions without a name and arguments missing any of name, direction
    or related state variable are skipped.
    """
    action_list = get_element(scpd, fc.KEY_SCPD, fc.KEY_ACTIONLIST, fc.KEY_ACTION)
    if not action_list:
        return None
    state_table = get_element(
        scpd, fc.KEY_SCPD, fc.KEY_SERVICESTATETABLE, fc.KEY_STATEVARIABLE
    )
    if not state_table:
        return None

    actions = []
    for p_action in as_list(action_list):
        if not (name := get_text(get_element(p_action, fc.KEY_NAME))):
            continue
        args = []
        for p_argument in as_list(
            get_element(p_action, fc.KEY_ARGUMENTLIST, fc.KEY_ARGUMENT)
        ):
            arg_name = get_text(get_element(p_argument, fc.KEY_NAME))
            direction = get_text(get_element(p_argument, fc.KEY_DIRECTION))
            related = get_text(get_element(p_argument, fc.KEY_RELATEDSTATEVARIABLE))
            if arg_name and direction and related:
                args.append(ArgumentDescriptor(arg_name, direction, related))
        actions.append(ActionDescriptor(name, tuple(args)))

    datatypes = {}
    for p_variable in as_list(state_table):
        variable_name = get_text(get_element(p_variable, fc.KEY_NAME))
        datatype = get_text(get_element(p_variable, fc.KEY_DATATYPE))
        if variable_name and datatype:
            datatypes[variable_name] = datatype

    return ServiceDescriptor(
        service_type, control_url, tuple(actions), MappingProxyType(datatypes)
    )


class Tr064Client(FritzHttpClient):
    """
    Introspected SOAP client. Call async_init with the url of the
    root description (i.e. http://fritz.box:49000/tr64desc.xml) then
    use async_send to invoke any action the box firmware exposes.
    """

    __slots__ = (
        "descriptor",
        "_base_url",
        "_desc_path",
        "_raw_services",
        "_services",
        "_service_locks",
        "_challenge",
    )

    def __init__(
        self,
        username: str = "",
        password: str = "",
        **kwargs: "Unpack[FritzHttpClient.Args]",
    ):
        self.descriptor: DeviceDescriptor | None = None
        self._base_url: URL | None = None
        self._desc_path = fc.TR064_DESC_PATH
        self._raw_services: list[dict] = []
        self._services: dict[str, ServiceDescriptor] = {}
        self._service_locks: dict[str, asyncio.Lock] = {}
        self._challenge: DigestChallenge | None = None
        super().__init__(None, username, password, **kwargs)

    @property
    def base_url(self) -> URL:
        assert self._base_url, "Tr064Client not initialized"
        return self._base_url

    async def async_init(self, url: "URL | str"):
        """
        Loads the root description: device info and the (flattened)
        raw service list. Raises ProtocolError when the document
        is missing mandatory info.
        """
        url = URL(url)
        self.id = url.host
        self.configure_logger()
        tree = await self._async_get_xml(url)
        self.descriptor = DeviceDescriptor.build(url.host or "", tree)

        device = get_element(tree, fc.KEY_ROOT, fc.KEY_DEVICE)
        if not isinstance(get_element(device, fc.KEY_SERVICELIST, fc.KEY_SERVICE), list):
            raise ProtocolError(tree, "Error getting service list")

        self._raw_services = self._flatten_service_list(device)
        self._base_url = url.origin()
        self._desc_path = url.path
        self.log(
            self.DEBUG,
            "Device found: %s (%d services)",
            self.descriptor.display_name,
            len(self._raw_services),
        )

    def _flatten_service_list(self, device) -> list[dict]:
        services = [
            service
            for service in as_list(get_element(device, fc.KEY_SERVICELIST, fc.KEY_SERVICE))
            if isinstance(service, dict)
        ]
        for subdevice in as_list(get_element(device, fc.KEY_DEVICELIST, fc.KEY_DEVICE)):
            services.extend(self._flatten_service_list(subdevice))
        return services

    def _get_raw_service(self, service_type: str) -> dict | None:
        for service in self._raw_services:
            if get_text(service.get(fc.KEY_SERVICETYPE)) == service_type:
                return service
        return None

    def has_service(self, service_type: str) -> bool:
        """Check, if the given service exists on this box"""
        return self._get_raw_service(service_type) is not None

    async def async_get_service(self, service_type: str) -> ServiceDescriptor | None:
        """
        Returns the (cached) ServiceDescriptor or None when the service
        is not supported by this firmware.
        """
        if service := self._services.get(service_type):
            return service
        lock = self._service_locks.setdefault(service_type, asyncio.Lock())
        async with lock:
            # another task might have loaded it while we were waiting
            if service := self._services.get(service_type):
                return service
            if service := await self._async_load_service(service_type):
                self._services[service_type] = service
            return service

    async def _async_load_service(self, service_type: str):
        if not (raw_service := self._get_raw_service(service_type)):
            self.log(self.DEBUG, "No such service: %s", service_type)
            return None
        if not (scpd_url := get_text(raw_service.get(fc.KEY_SCPDURL))):
            self.log(self.DEBUG, "No SCPDURL for service: %s", service_type)
            return None
        if not (control_url := get_text(raw_service.get(fc.KEY_CONTROLURL))):
            self.log(self.DEBUG, "No controlURL for service: %s", service_type)
            return None

        scpd = await self._async_get_xml(self.base_url.join(URL(scpd_url)))
        service = parse_scpd(service_type, control_url, scpd)
        if not service:
            self.log(self.DEBUG, "Invalid service description for: %s", service_type)
        return service

    async def async_send(
        self,
        service_type: str,
        action_name: str,
        args: "Mapping[str, Any] | None" = None,
    ) -> dict | None:
        """
        Invokes 'action_name' and returns the 'out' arguments found in the
        response (converted to their declared type). Returns None when either
        the service or the action are not supported.
        """
        service = await self.async_get_service(service_type)
        if service is None:
            return None

        action = service.get_action(action_name)
        if action is None:
            self.log(self.DEBUG, "No such action: %s", action_name)
            return None

        request_args = None
        if args is not None:
            request_args = {}
            for argument in action.args_in:
                if argument.name not in args:
                    raise ArgumentError(action_name, argument.name)
                try:
                    request_args[argument.name] = to_wire(
                        args[argument.name],
                        service.datatypes.get(argument.related_state_variable),
                    )
                except (TypeError, ValueError) as error:
                    raise ArgumentError(action_name, argument.name, error) from error

        response = await self._async_post(
            self.base_url.join(URL(service.control_url)),
            service_type,
            action_name,
            request_args,
        )

        results = {}
        for argument in action.args_out:
            try:
                value = get_value_by_key(response, argument.name)
            except KeyError:
                continue
            if is_embedded_xml(value):
                value = from_wire_tree(parse_xml(value), service.datatypes)
            elif isinstance(value, (dict, list)):
                value = from_wire_tree(value, service.datatypes)
            elif (datatype := service.datatypes.get(argument.related_state_variable)) is not None:
                value = from_wire(value, datatype)
            else:
                self.log(
                    self.DEBUG,
                    "No data type for: %s",
                    argument.related_state_variable,
                    timeout=3600,
                )
            results[argument.name] = value

        return results

    async def async_refresh_firmware(self) -> str | None:
        """Reloads the root description to update the firmware version"""
        assert self.descriptor
        tree = await self._async_get_xml(self.base_url.with_path(self._desc_path))
        if firmware_version := DeviceDescriptor.get_firmware_version(tree):
            self.descriptor.firmware_version = firmware_version
        return firmware_version

    def set_security_port(self, port: int):
        """Switches to https on the box security port"""
        self._base_url = self.base_url.with_scheme("https").with_port(port)

    async def _async_get_xml(self, url: URL) -> dict:
        response = await self.async_request(aiohttp.hdrs.METH_GET, url)
        if not response.ok:
            raise TransportError(
                f"GET {url.path}: {response.status} {response.reason}"
            )
        return parse_xml(response.text)

    async def _async_post(
        self,
        url: URL,
        service_type: str,
        action_name: str,
        args: "Mapping[str, Any] | None",
    ) -> dict:
        headers = {
            aiohttp.hdrs.CONTENT_TYPE: fc.SOAP_CONTENT_TYPE,
            fc.HEADER_SOAPACTION: build_soapaction(service_type, action_name),
        }
        data = build_message(service_type, action_name, args)
        # If we already have a challenge, we can reuse it
        if self._challenge:
            headers[aiohttp.hdrs.AUTHORIZATION] = self._build_authorization(url)

        response = await self.async_request(
            fc.METHOD_POST, url, headers=headers, data=data
        )
        if response.status == 401:
            self._challenge = DigestChallenge.parse(
                response.headers.get(aiohttp.hdrs.WWW_AUTHENTICATE)
            )
            headers[aiohttp.hdrs.AUTHORIZATION] = self._build_authorization(url)
            response = await self.async_request(
                fc.METHOD_POST, url, headers=headers, data=data
            )
            if response.status == 401:
                raise AuthenticationError(
                    f"POST {url.path}: authentication failed for user '{self.username}'"
                )

        if not response.ok:
            self._raise_for_fault(url, response)
        return parse_xml(response.text)

    def _build_authorization(self, url: URL) -> str:
        assert self._challenge
        return build_digest_authorization(
            self._challenge, self.username, self.password, url.path
        )

    def _raise_for_fault(self, url: URL, response: "HttpResponse"):
        """
        SOAP faults come with http status 500 and carry an UPnPError
        (errorCode/errorDescription) which is more meaningful than the status
        """
        try:
            fault = get_value_by_key(parse_xml(response.text), "UPnPError")
        except (ProtocolError, KeyError):
            fault = None
        if isinstance(fault, dict):
            raise ProtocolError(
                fault,
                f"POST {url.path}: UPnPError {fault.get('errorCode')} "
                f"({fault.get('errorDescription')})",
            )
        raise TransportError(f"POST {url.path}: {response.status} {response.reason}")
