"""Protocol constants: connection status codes, namespaces, BOSH defaults."""

from __future__ import annotations

from enum import IntEnum


class Status(IntEnum):
    """Connection status codes reported to the connect callback."""

    ERROR = 0
    CONNECTING = 1
    CONNFAIL = 2
    AUTHENTICATING = 3
    AUTHFAIL = 4
    CONNECTED = 5
    DISCONNECTED = 6
    DISCONNECTING = 7
    ATTACHED = 8


NS_HTTPBIND = "http://jabber.org/protocol/httpbind"
NS_BOSH = "urn:xmpp:xbosh"
NS_SASL = "urn:ietf:params:xml:ns:xmpp-sasl"

BOSH_VERSION = "1.6"
XMPP_VERSION = "1.0"
CONTENT_TYPE = "text/xml; charset=utf-8"

DEFAULT_LANG = "en"
DEFAULT_WAIT = 60
DEFAULT_HOLD = 1
DEFAULT_WINDOW = 5
DEFAULT_MAX_ERRORS = 5

CONDITION_UNKNOWN = "unknown"
CONDITION_CONFLICT = "conflict"
CONDITION_REMOTE_STREAM_ERROR = "remote-stream-error"

MECHANISM_PLAIN = "PLAIN"
