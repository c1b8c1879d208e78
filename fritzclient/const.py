"""
    static constants symbols for FRITZ!Box protocol symbols/semantics
"""

import typing

#
# SSDP discovery
#
SSDP_MULTICAST_ADDRESS = "239.255.255.250"
SSDP_PORT = 1900
SSDP_MX = 5
SSDP_SEARCH_TARGET = "urn:dslforum-org:device:InternetGatewayDevice:1"
SSDP_DISCOVERY_TIMEOUT = 5.0
"""Seconds spent collecting search replies"""
SSDP_METHOD_SEARCH = "M-SEARCH"
SSDP_METHOD_NOTIFY = "NOTIFY"
SSDP_HEADER_ST = "st"
SSDP_HEADER_LOCATION = "location"

BOXINFO_PATH = "/jason_boxinfo.xml"
KEY_BOXINFO = "BoxInfo"
KEY_FLAG = "Flag"
BOXINFO_FLAG_MESH_MASTER = "mesh_master"
BOXINFO_FLAG_MESH_MASTER_NO_TRUSTED = "mesh_master_no_trusted"
BOXINFO_FLAG_CABLE_RETAIL = "cable_retail"
BOXINFO_ROLES_ALLOWED = {
    BOXINFO_FLAG_MESH_MASTER,
    BOXINFO_FLAG_MESH_MASTER_NO_TRUSTED,
    BOXINFO_FLAG_CABLE_RETAIL,
}
"""Roles identifying the authoritative box (secondary mesh nodes are skipped)"""

#
# TR-064
#
TR064_DEFAULT_PORT = 49000
TR064_DESC_PATH = "/tr64desc.xml"
DEFAULT_USERNAME = "dslf-config"

SOAP_ENVELOPE_NS = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_ENCODING_NS = "http://schemas.xmlsoap.org/soap/encoding/"
SOAP_CONTENT_TYPE = 'text/xml; charset="utf-8"'
HEADER_SOAPACTION = "SOAPAction"

AUTH_SCHEME_DIGEST = "Digest"
METHOD_POST = "POST"

DIRECTION_IN = "in"
DIRECTION_OUT = "out"

# root description document keys
KEY_ROOT = "root"
KEY_DEVICE = "device"
KEY_DEVICELIST = "deviceList"
KEY_SERVICELIST = "serviceList"
KEY_SERVICE = "service"
KEY_SERVICETYPE = "serviceType"
KEY_SCPDURL = "SCPDURL"
KEY_CONTROLURL = "controlURL"
KEY_FRIENDLYNAME = "friendlyName"
KEY_MANUFACTURER = "manufacturer"
KEY_MODELNAME = "modelName"
KEY_SERIALNUMBER = "serialNumber"
KEY_SYSTEMVERSION = "systemVersion"
KEY_DISPLAY = "Display"

# SCPD keys
KEY_SCPD = "scpd"
KEY_ACTIONLIST = "actionList"
KEY_ACTION = "action"
KEY_ARGUMENTLIST = "argumentList"
KEY_ARGUMENT = "argument"
KEY_NAME = "name"
KEY_DIRECTION = "direction"
KEY_RELATEDSTATEVARIABLE = "relatedStateVariable"
KEY_SERVICESTATETABLE = "serviceStateTable"
KEY_STATEVARIABLE = "stateVariable"
KEY_DATATYPE = "dataType"

# well known services/actions used when interviewing the box
SERVICE_DEVICEINFO = "urn:dslforum-org:service:DeviceInfo:1"
ACTION_GETSECURITYPORT = "GetSecurityPort"
ARG_NEWSECURITYPORT = "NewSecurityPort"
SERVICE_LANCONFIGSECURITY = "urn:dslforum-org:service:LANConfigSecurity:1"
ACTION_GETANONYMOUSLOGIN = "X_AVM-DE_GetAnonymousLogin"
ARG_NEWANONYMOUSLOGINENABLED = "NewX_AVM-DE_AnonymousLoginEnabled"
ACTION_GETCURRENTUSER = "X_AVM-DE_GetCurrentUser"
ARG_NEWCURRENTUSERNAME = "NewX_AVM-DE_CurrentUsername"
SERVICE_REMOTEACCESS = "urn:dslforum-org:service:X_AVM-DE_RemoteAccess:1"
ACTION_GETINFO = "GetInfo"
ARG_NEWPORT = "NewPort"
SERVICE_HOMEAUTO = "urn:dslforum-org:service:X_AVM-DE_Homeauto:1"

#
# AHA http interface
#
AHA_LOGIN_PATH = "/login_sid.lua"
AHA_SERVICE_PATH = "/webservices/homeautoswitch.lua"
AHA_SID_INVALID = "0000000000000000"
"""Sentinel SID meaning 'no session'"""
AHA_SESSION_TIMEOUT = 60 * 60
"""Session ids expire after 60 minutes without use"""

KEY_SESSIONINFO = "SessionInfo"
KEY_SID = "SID"
KEY_CHALLENGE = "Challenge"
PARAM_SID = "sid"
PARAM_SWITCHCMD = "switchcmd"
PARAM_USERNAME = "username"
PARAM_RESPONSE = "response"
PARAM_LOGOUT = "logout"

CMD_GETDEVICELISTINFOS = "getdevicelistinfos"
CMD_GETBASICDEVICESTATS = "getbasicdevicestats"
CMD_GETTRIGGERLISTINFOS = "gettriggerlistinfos"
CMD_GETTEMPLATELISTINFOS = "gettemplatelistinfos"
CMD_GETCOLORDEFAULTS = "getcolordefaults"
CMD_GETSUBSCRIPTIONSTATE = "getsubscriptionstate"
CMD_GETDEVICEINFOS = "getdeviceinfos"
CMD_SETSWITCHON = "setswitchon"
CMD_SETSWITCHOFF = "setswitchoff"
CMD_STRUCTURED_SET = {
    CMD_GETDEVICELISTINFOS,
    CMD_GETBASICDEVICESTATS,
    CMD_GETTRIGGERLISTINFOS,
    CMD_GETTEMPLATELISTINFOS,
    CMD_GETCOLORDEFAULTS,
    CMD_GETSUBSCRIPTIONSTATE,
    CMD_GETDEVICEINFOS,
}
"""Commands answering with text/xml instead of text/plain"""

# getcolordefaults keys
KEY_COLORDEFAULTS = "colordefaults"
KEY_HSDEFAULTS = "hsdefaults"
KEY_HS = "hs"
KEY_COLOR = "color"
KEY_TEMPERATUREDEFAULTS = "temperaturedefaults"
KEY_TEMP = "temp"
ATTR_HUE = "@hue"
ATTR_SAT = "@sat"
ATTR_SATURATION = "@saturation"
ATTR_VAL = "@val"
ATTR_VALUE = "@value"

# getdevicelistinfos keys
KEY_DEVICELIST_AHA = "devicelist"
KEY_ETSIUNITINFO = "etsiunitinfo"
KEY_UNITTYPE = "unittype"
KEY_BATTERY = "battery"
KEY_BATTERYLOW = "batterylow"
KEY_LEVELCONTROL = "levelcontrol"
KEY_LEVEL = "level"
KEY_LEVELPERCENTAGE = "levelpercentage"
KEY_COLORCONTROL = "colorcontrol"
ATTR_IDENTIFIER = "@identifier"
ATTR_FUNCTIONBITMASK = "@functionbitmask"
ATTR_SUPPORTED_MODES = "@supported_modes"
ATTR_CURRENT_MODE = "@current_mode"
ATTR_MAPPED = "@mapped"

#
# Client configuration
#
CONF_USERNAME = "username"
CONF_PASSWORD = "password"
CONF_HOST = "host"
CONF_SSL = "ssl"


class FritzConfig(typing.TypedDict):
    """Configuration consumed by the FritzBoxApi facade"""

    username: typing.NotRequired[str]
    password: typing.NotRequired[str]
    host: typing.NotRequired[str]
    """fixed host: skips SSDP discovery"""
    ssl: typing.NotRequired[bool]
    """use https for both protocols (TR-064 security port, AHA remote access port)"""
