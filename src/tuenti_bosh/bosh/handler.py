"""Stanza handlers keyed by namespace, name, type and id."""

from __future__ import annotations

from collections.abc import Callable
from xml.etree import ElementTree as ET

from loguru import logger

from tuenti_bosh.bosh.body import local_name, namespace_of


class Handler:
    """Match incoming stanzas and run a callback.

    A None key matches anything. The handler is kept after run() only when
    the callback returns a truthy value.
    """

    def __init__(
        self,
        callback: Callable[[ET.Element], bool | None],
        ns: str | None = None,
        name: str | None = None,
        type: str | None = None,
        id: str | None = None,
    ) -> None:
        self.callback = callback
        self.ns = ns
        self.name = name
        self.type = type
        self.id = id

    def matches(self, elem: ET.Element) -> bool:
        if self.ns is not None and namespace_of(elem) != self.ns:
            return False
        if self.name is not None and local_name(elem.tag) != self.name:
            return False
        if self.type is not None and elem.get("type") != self.type:
            return False
        return self.id is None or elem.get("id") == self.id

    def run(self, elem: ET.Element) -> bool:
        """Invoke the callback; return whether the handler stays registered."""
        try:
            return bool(self.callback(elem))
        except Exception as exc:
            logger.exception("Handler for <{}> raised: {}", self.name, exc)
            return False

    def __repr__(self) -> str:
        return f"Handler(ns={self.ns!r}, name={self.name!r}, type={self.type!r}, id={self.id!r})"
