"""Pending BOSH requests and the continuations that consume their responses."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from xml.etree import ElementTree as ET

from loguru import logger

from tuenti_bosh.bosh.body import parse, serialize


@dataclass(frozen=True)
class Continuation:
    """Named callback run once the transport delivers a request's response."""

    name: str
    callback: Callable[[Request], None]

    def __call__(self, request: Request) -> None:
        self.callback(request)


@dataclass(eq=False)
class Request:
    """One BOSH request: body element, its rid, and the continuation for the reply."""

    xml: ET.Element
    continuation: Continuation
    rid: int
    data: str = ""
    response_text: str | None = None
    sends: int = 0
    dispatched: bool = False

    def __post_init__(self) -> None:
        if not self.data:
            self.data = serialize(self.xml)

    def get_response(self) -> ET.Element | None:
        """Parsed <body/> of the response; None if nothing (or nothing parseable) arrived."""
        if not self.response_text:
            return None
        try:
            return parse(self.response_text)
        except ET.ParseError as exc:
            logger.error("Invalid response for rid {}: {}", self.rid, exc)
            return None
