"""BOSH envelope construction and lookup helpers over ElementTree."""

from __future__ import annotations

from typing import Any
from xml.etree import ElementTree as ET

from slixmpp.xmlstream import tostring

from tuenti_bosh.core.constants import NS_HTTPBIND


class Builder:
    """Chainable element builder: Builder("auth", {...}).t("...").tree().

    c() descends into the new child, up() climbs back to its parent.
    Attributes set to None are removed.
    """

    def __init__(self, name: str, attrs: dict[str, Any] | None = None) -> None:
        self._root = ET.Element(name)
        self._stack: list[ET.Element] = [self._root]
        if attrs:
            self.attrs(attrs)

    @property
    def node(self) -> ET.Element:
        return self._stack[-1]

    def attrs(self, attrs: dict[str, Any]) -> Builder:
        for key, value in attrs.items():
            if value is None:
                self.node.attrib.pop(key, None)
            else:
                self.node.set(key, str(value))
        return self

    def c(self, name: str, attrs: dict[str, Any] | None = None) -> Builder:
        child = ET.SubElement(self.node, name)
        self._stack.append(child)
        if attrs:
            self.attrs(attrs)
        return self

    def cnode(self, elem: ET.Element) -> Builder:
        """Append an existing element as a child without descending into it."""
        self.node.append(elem)
        return self

    def t(self, text: str) -> Builder:
        self.node.text = (self.node.text or "") + text
        return self

    def up(self) -> Builder:
        if len(self._stack) > 1:
            self._stack.pop()
        return self

    def tree(self) -> ET.Element:
        return self._root


def build_body(rid: int, sid: str | None = None) -> Builder:
    """Bare <body/> envelope carrying rid (and sid once the session exists)."""
    attrs: dict[str, Any] = {"rid": rid, "xmlns": NS_HTTPBIND}
    if sid:
        attrs["sid"] = sid
    return Builder("body", attrs)


def serialize(elem: ET.Element) -> str:
    return tostring(elem)


def parse(text: str) -> ET.Element:
    return ET.fromstring(text)


def local_name(tag: str) -> str:
    """'{ns}name' -> 'name'."""
    return tag.rsplit("}", 1)[-1]


def namespace_of(elem: ET.Element) -> str | None:
    """Namespace from a parsed '{ns}tag', falling back to a literal xmlns attribute."""
    if elem.tag.startswith("{"):
        return elem.tag[1:].split("}", 1)[0]
    return elem.get("xmlns")


def elements_by_local_name(elem: ET.Element, name: str) -> list[ET.Element]:
    """All descendants (not elem itself) whose local name matches, in document order."""
    return [e for e in elem.iter() if e is not elem and local_name(e.tag) == name]


def get_text(elem: ET.Element) -> str:
    return elem.text or ""
