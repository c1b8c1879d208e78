"""
SSDP discovery of the gateway (TR-064 root device).

A single M-SEARCH is multicast and replies are collected for a fixed
time window. Every unique LOCATION is then validated against the
box info document so that only the authoritative box of a mesh
(and not the repeaters/secondary nodes) is reported.
"""

import asyncio
import logging
import socket
import typing

import aiohttp
from yarl import URL

from . import as_list, const as fc, get_element, get_text
from .helpers import LOGGER
from .httpclient import FritzHttpClient
from .protocol import DiscoveryError, FritzError
from .protocol.message import parse_xml

SSDP_SEARCH_MESSAGE = (
    f"{fc.SSDP_METHOD_SEARCH} * HTTP/1.1\r\n"
    f"HOST: {fc.SSDP_MULTICAST_ADDRESS}:{fc.SSDP_PORT}\r\n"
    'MAN: "ssdp:discover"\r\n'
    f"MX: {fc.SSDP_MX}\r\n"
    f"ST: {fc.SSDP_SEARCH_TARGET}\r\n"
    "\r\n"
).encode("ascii")


def parse_ssdp_response(data: bytes, /) -> str | None:
    """
    Returns the LOCATION of a search reply for our search target or None
    for anything else (other devices, other M-SEARCH or NOTIFY traffic).
    """
    text = data.decode("utf-8", errors="replace")
    if text.startswith((fc.SSDP_METHOD_SEARCH, fc.SSDP_METHOD_NOTIFY)):
        return None
    headers = {}
    for line in text.splitlines()[1:]:
        key, sep, value = line.partition(":")
        if sep:
            headers[key.strip().lower()] = value.strip()
    if headers.get(fc.SSDP_HEADER_ST) != fc.SSDP_SEARCH_TARGET:
        return None
    return headers.get(fc.SSDP_HEADER_LOCATION) or None


class _SearchProtocol(asyncio.DatagramProtocol):
    """Collects the (unique) locations of the search replies."""

    def __init__(self):
        self.locations: list[str] = []
        self.error: Exception | None = None
        self.transport = None

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data: bytes, addr):
        location = parse_ssdp_response(data)
        if location and (location not in self.locations):
            LOGGER.debug("SSDP reply from %s: %s", addr[0], location)
            self.locations.append(location)

    def error_received(self, exc: Exception):
        self.error = exc


async def _async_search(timeout: float) -> list[str]:
    loop = asyncio.get_running_loop()
    try:
        transport, protocol = await loop.create_datagram_endpoint(
            _SearchProtocol,
            local_addr=("0.0.0.0", 0),
            family=socket.AF_INET,
        )
    except OSError as error:
        raise DiscoveryError(f"Unable to open the discovery socket ({error})") from error

    try:
        transport.sendto(
            SSDP_SEARCH_MESSAGE, (fc.SSDP_MULTICAST_ADDRESS, fc.SSDP_PORT)
        )
        await asyncio.sleep(timeout)
    except OSError as error:
        raise DiscoveryError(f"Unable to send the discovery request ({error})") from error
    finally:
        transport.close()

    if protocol.error:
        raise DiscoveryError(
            f"Socket error during discovery ({protocol.error})"
        ) from protocol.error
    return protocol.locations


async def _async_is_authoritative(client: FritzHttpClient, location: URL) -> bool:
    url = URL.build(scheme="http", host=location.host or "", path=fc.BOXINFO_PATH)
    response = await client.async_request(aiohttp.hdrs.METH_GET, url)
    if not response.ok:
        raise FritzError(f"GET {url.path}: {response.status} {response.reason}")
    flags = as_list(get_element(parse_xml(response.text), fc.KEY_BOXINFO, fc.KEY_FLAG))
    return any(get_text(flag) in fc.BOXINFO_ROLES_ALLOWED for flag in flags)


async def async_filter_candidates(
    locations: typing.Iterable[str],
    *,
    session: aiohttp.ClientSession | None = None,
) -> list[URL]:
    """Keeps only the locations pointing to an authoritative box."""
    client = FritzHttpClient("ssdp", session=session)
    candidates = []
    for location in locations:
        url = URL(location)
        try:
            if await _async_is_authoritative(client, url):
                candidates.append(url)
            else:
                LOGGER.debug("Skipping %s: not the authoritative box", url.host)
        except FritzError as error:
            LOGGER.warning(
                "Skipping %s: %s(%s) while reading box info",
                url.host,
                error.__class__.__name__,
                str(error),
            )
    return candidates


async def async_discover(
    *,
    timeout: float = fc.SSDP_DISCOVERY_TIMEOUT,
    session: aiohttp.ClientSession | None = None,
) -> list[URL]:
    """
    Returns the description urls of the boxes found (empty if none).
    Raises DiscoveryError on socket failures.
    """
    LOGGER.debug("Searching for %s (%s s)", fc.SSDP_SEARCH_TARGET, timeout)
    locations = await _async_search(timeout)
    candidates = await async_filter_candidates(locations, session=session)
    if LOGGER.isEnabledFor(logging.DEBUG):
        LOGGER.debug(
            "Discovery found %d candidate(s) out of %d replies",
            len(candidates),
            len(locations),
        )
    return candidates
