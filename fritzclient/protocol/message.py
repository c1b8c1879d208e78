from dataclasses import dataclass
from hashlib import md5
import re
from typing import TYPE_CHECKING
from urllib.parse import quote

from lxml import etree

from . import AuthenticationError, ProtocolError
from .. import const as fc

if TYPE_CHECKING:
    from typing import Any, Mapping


#
# xml parsing into a plain (dict/list/str) tree
#
_XML_PARSER = etree.XMLParser(
    resolve_entities=False, no_network=True, remove_comments=True, recover=False
)

RE_PATTERN_EMBEDDED_XML = re.compile(
    r"^\s*(?:<\?xml[^>]*\?>\s*)?<(?P<tag>[^>\s/]+)[^>]*>.*</(?P=tag)>\s*$", re.S
)
"""matches results carrying an escaped xml document (i.e. NewTAMList)"""

_FORCED_LISTS = {
    ("servicestatetable", "statevariable"),
    ("list", "item"),
}


def _localname(tag) -> str:
    return etree.QName(tag).localname


def _is_forced_list(parent: str, child: str) -> bool:
    """
    'serviceList/service', 'devicelist/device', 'List/Item' and the likes
    must be parsed as lists even when carrying a single element
    """
    parent = parent.lower()
    child = child.lower()
    return parent == child + "list" or (parent, child) in _FORCED_LISTS


def _element_to_tree(element, tag: str):
    children = [child for child in element if isinstance(child.tag, str)]
    if not children and not element.attrib:
        return (element.text or "").strip()

    tree: dict[str, Any] = {}
    for key, value in element.attrib.items():
        tree["@" + _localname(key)] = value
    for child in children:
        child_tag = _localname(child.tag)
        child_tree = _element_to_tree(child, child_tag)
        if child_tag in tree:
            current = tree[child_tag]
            if isinstance(current, list):
                current.append(child_tree)
            else:
                tree[child_tag] = [current, child_tree]
        elif _is_forced_list(tag, child_tag):
            tree[child_tag] = [child_tree]
        else:
            tree[child_tag] = child_tree
    if not children and (text := (element.text or "").strip()):
        tree["#text"] = text
    return tree


def parse_xml(text: "str | bytes", /) -> dict:
    """
    Parses an xml document into a tree. Namespace prefixes are
    dropped so that 's:Envelope' becomes 'Envelope'.
    """
    if isinstance(text, str):
        text = text.encode("utf-8")
    try:
        root = etree.fromstring(text, parser=_XML_PARSER)
    except etree.XMLSyntaxError as error:
        raise ProtocolError(text, f"Invalid xml document ({error})") from error
    tag = _localname(root.tag)
    return {tag: _element_to_tree(root, tag)}


def is_embedded_xml(value, /) -> bool:
    return isinstance(value, str) and bool(RE_PATTERN_EMBEDDED_XML.match(value))


#
# TR-064 SOAP
#
def build_message(
    service_type: str, action_name: str, args: "Mapping[str, Any] | None", /
) -> bytes:
    """Builds the SOAP envelope invoking 'action_name' on 'service_type'"""
    ns_s = fc.SOAP_ENVELOPE_NS
    envelope = etree.Element(f"{{{ns_s}}}Envelope", nsmap={"s": ns_s})
    envelope.set(f"{{{ns_s}}}encodingStyle", fc.SOAP_ENCODING_NS)
    body = etree.SubElement(envelope, f"{{{ns_s}}}Body")
    action = etree.SubElement(
        body, f"{{{service_type}}}{action_name}", nsmap={"u": service_type}
    )
    if args:
        for key, value in args.items():
            etree.SubElement(action, key).text = str(value)
    return etree.tostring(envelope, xml_declaration=True, encoding="utf-8")


def build_soapaction(service_type: str, action_name: str, /) -> str:
    return f'"{service_type}#{action_name}"'


#
# Digest authentication
#
RE_PATTERN_DIGEST_PARAM = re.compile(r'(\w+)\s*=\s*(?:"([^"]*)"|([^,\s]*))')


@dataclass(slots=True, frozen=True)
class DigestChallenge:
    """A parsed 'WWW-Authenticate' challenge"""

    scheme: str
    realm: str
    nonce: str

    @staticmethod
    def parse(header: str | None):
        if not header:
            raise AuthenticationError("Missing authentication challenge")
        scheme, _, params = header.strip().partition(" ")
        if scheme != fc.AUTH_SCHEME_DIGEST:
            raise AuthenticationError(f"Unexpected auth scheme: {scheme}")
        values = {
            match.group(1).lower(): match.group(2)
            if match.group(2) is not None
            else match.group(3)
            for match in RE_PATTERN_DIGEST_PARAM.finditer(params)
        }
        try:
            return DigestChallenge(scheme, values["realm"], values["nonce"])
        except KeyError as error:
            raise AuthenticationError(f"Malformed digest challenge: {header}") from error


def _md5_hex(value: str, /) -> str:
    return md5(value.encode("utf-8"), usedforsecurity=False).hexdigest()


def compute_digest_response(
    username: str,
    realm: str,
    password: str,
    nonce: str,
    method: str,
    uri: str,
    /,
) -> str:
    """response = MD5( MD5(username:realm:password) : nonce : MD5(method:uri) )"""
    hash1 = _md5_hex(f"{username}:{realm}:{password}")
    hash2 = _md5_hex(f"{method}:{uri}")
    return _md5_hex(f"{hash1}:{nonce}:{hash2}")


def build_digest_authorization(
    challenge: DigestChallenge,
    username: str,
    password: str,
    uri: str,
    method: str = fc.METHOD_POST,
    /,
) -> str:
    """Minimal digest header: no qop, no cnonce, no algorithm"""
    response = compute_digest_response(
        username, challenge.realm, password, challenge.nonce, method, uri
    )
    return (
        f'{fc.AUTH_SCHEME_DIGEST} username="{quote(username, safe="")}", '
        f'realm="{challenge.realm}", nonce="{challenge.nonce}", '
        f'uri="{uri}", response="{response}"'
    )


#
# AHA session login
#
def compute_login_response(challenge: str, password: str, /) -> str:
    """
    login_sid.lua challenge-response:
    response = challenge-MD5(UTF-16LE(challenge-password))
    """
    hash = md5(
        f"{challenge}-{password}".encode("utf-16-le"), usedforsecurity=False
    ).hexdigest()
    return f"{challenge}-{hash}"
