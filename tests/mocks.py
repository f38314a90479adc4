"""Fake transport and status recorder for driving a Connection without HTTP."""

from __future__ import annotations

from tuenti_bosh.bosh import Connection, Request
from tuenti_bosh.config import Config
from tuenti_bosh.core.constants import NS_HTTPBIND, NS_SASL, Status

NS_STREAM = "http://etherx.jabber.org/streams"


class RecordingTransport:
    """Transport that keeps dispatched requests; tests answer them by hand."""

    def __init__(self) -> None:
        self.dispatched: list[Request] = []

    def dispatch(self, connection: Connection, request: Request) -> None:
        self.dispatched.append(request)

    @property
    def last(self) -> Request:
        return self.dispatched[-1]


class StatusRecorder:
    """Connect callback capturing (status, condition) pairs."""

    def __init__(self) -> None:
        self.calls: list[tuple[Status, str | None]] = []

    def __call__(self, status: Status, condition: str | None) -> None:
        self.calls.append((status, condition))

    @property
    def statuses(self) -> list[Status]:
        return [status for status, _ in self.calls]


def make_connection(data: dict | None = None) -> tuple[Connection, RecordingTransport]:
    transport = RecordingTransport()
    return Connection(transport, Config(data or {})), transport


def body_xml(children: str = "", **attrs: str) -> str:
    """Response envelope text with the given attributes and inner XML."""
    attr_text = "".join(f' {key}="{value}"' for key, value in attrs.items())
    return f'<body xmlns="{NS_HTTPBIND}"{attr_text}>{children}</body>'


def features(*mechanisms: str) -> str:
    """<stream:features/> advertising the given SASL mechanisms."""
    mechs = "".join(f"<mechanism>{m}</mechanism>" for m in mechanisms)
    return (
        f'<stream:features xmlns:stream="{NS_STREAM}">'
        f'<mechanisms xmlns="{NS_SASL}">{mechs}</mechanisms>'
        "</stream:features>"
    )
