"""BOSH connection state and the request/handler primitives adapters build on.

The HTTP side is injected as a Transport: it receives dispatched requests and
reports back through Connection.complete() or Connection.fail().
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Any, Protocol
from xml.etree import ElementTree as ET

from loguru import logger

from tuenti_bosh.bosh.body import Builder, build_body, local_name, serialize
from tuenti_bosh.bosh.handler import Handler
from tuenti_bosh.bosh.request import Continuation, Request
from tuenti_bosh.config import Config, cfg
from tuenti_bosh.core.constants import (
    CONDITION_UNKNOWN,
    NS_BOSH,
    Status,
)

ConnectCallback = Callable[[Status, str | None], Any]

_MAX_RID = 4294967295


class Transport(Protocol):
    """Delivers request bodies; must call back complete() or fail() exactly once each."""

    def dispatch(self, connection: Connection, request: Request) -> None:
        ...


class SetOnce:
    """Value that keeps the first truthy assignment."""

    def __init__(self) -> None:
        self._value: str | None = None

    @property
    def value(self) -> str | None:
        return self._value

    def set_if_empty(self, value: str | None) -> bool:
        """Store value unless one is already set. Returns True if stored."""
        if self._value or not value:
            return False
        self._value = value
        return True

    def clear(self) -> None:
        self._value = None

    def __bool__(self) -> bool:
        return bool(self._value)

    def __repr__(self) -> str:
        return f"SetOnce({self._value!r})"


class Connection:
    """Mutable state of one BOSH session plus queueing, status and handler plumbing."""

    def __init__(self, transport: Transport, config: Config | None = None) -> None:
        config = config or cfg
        self._transport = transport

        self.jid = ""
        self.user_id = ""
        self.session_id = ""
        self.domain: str | None = None

        self.wait = config.wait
        self.hold = config.hold
        self.window = config.window
        self.lang = config.lang
        self.max_errors = config.max_errors

        self.sid = SetOnce()
        self.stream_id = SetOnce()
        self.rid = random.randint(0, _MAX_RID)

        self.connected = False
        self.authenticated = False
        self.disconnecting = False
        self.errors = 0
        self.connect_callback: ConnectCallback | None = None

        self.sasl_success_handler: Handler | None = None
        self.sasl_failure_handler: Handler | None = None

        self._requests: list[Request] = []
        self._handlers: list[Handler] = []

    def reset(self) -> None:
        """Forget the session so the object can be reconnected."""
        self.sid.clear()
        self.stream_id.clear()
        self.rid = random.randint(0, _MAX_RID)
        self.connected = False
        self.authenticated = False
        self.disconnecting = False
        self.errors = 0
        self.sasl_success_handler = None
        self.sasl_failure_handler = None
        self._requests.clear()
        self._handlers.clear()

    @property
    def requests(self) -> list[Request]:
        """Requests not yet completed, oldest first."""
        return list(self._requests)

    @property
    def handlers(self) -> list[Handler]:
        return list(self._handlers)

    # -- requests ----------------------------------------------------------

    def build_body(self) -> Builder:
        """Fresh <body/> with the next rid and the sid when known."""
        rid = self.rid
        self.rid += 1
        return build_body(rid, self.sid.value)

    def queue(self, body: Builder | ET.Element, continuation: Continuation) -> Request:
        tree = body.tree() if isinstance(body, Builder) else body
        request = Request(tree, continuation, int(tree.get("rid", "0")))
        self._requests.append(request)
        return request

    def throttled_request_handler(self) -> None:
        """Dispatch the oldest request, and the next one if it is inside the window."""
        if not self._requests:
            return
        first = self._requests[0]
        self._dispatch(first)
        if len(self._requests) > 1:
            second = self._requests[1]
            if abs(second.rid - first.rid) < self.window:
                self._dispatch(second)

    def _dispatch(self, request: Request) -> None:
        if request.dispatched:
            return
        request.dispatched = True
        request.sends += 1
        self.xml_output(request.xml)
        self.raw_output(request.data)
        self._transport.dispatch(self, request)

    def complete(self, request: Request, response_text: str | None) -> None:
        """Transport delivered a response: run the request's continuation.

        Replies to requests no longer pending (e.g. from before reset()) are dropped.
        """
        if request not in self._requests:
            logger.debug("Dropping reply to request {}: no longer pending", request.rid)
            return
        self._requests.remove(request)
        request.response_text = response_text
        self.errors = 0
        logger.debug("Request {} completed; continuing with {}", request.rid, request.continuation.name)
        request.continuation(request)
        self.throttled_request_handler()

    def fail(self, request: Request, reason: str = CONDITION_UNKNOWN) -> None:
        """Transport gave up on a request: resend it, or CONNFAIL once max_errors is reached."""
        if request not in self._requests:
            logger.debug("Ignoring failure of request {}: no longer pending", request.rid)
            return
        self.errors += 1
        logger.warning(
            "Request {} failed ({}); sends={} errors={}", request.rid, reason, request.sends, self.errors
        )
        if self.errors >= self.max_errors:
            self._requests.remove(request)
            self.change_connect_status(Status.CONNFAIL, reason)
        else:
            request.dispatched = False
        self.throttled_request_handler()

    def send(self, elem: ET.Element) -> Request:
        """Wrap a stanza in a body and queue it for dispatch."""
        request = self.queue(self.build_body().cnode(elem), Continuation("data_recv", self._data_recv))
        self.throttled_request_handler()
        return request

    def _data_recv(self, request: Request) -> bool:
        """Route the reply's stanzas to handlers. False if nothing usable arrived."""
        body = request.get_response()
        if body is None:
            return False
        self.xml_input(body)
        self.raw_input(serialize(body))
        if body.get("type") == "terminate":
            self.connected = False
            self.change_connect_status(Status.CONNFAIL, body.get("condition") or CONDITION_UNKNOWN)
            return False
        for child in list(body):
            self.dispatch_stanza(child)
        return True

    def _restart_recv(self, request: Request) -> None:
        """Reply to the post-auth stream restart: the session is usable."""
        if self._data_recv(request) and self.authenticated:
            self.change_connect_status(Status.CONNECTED)

    # -- status and handlers ----------------------------------------------

    def change_connect_status(self, status: Status, condition: str | None = None) -> None:
        """Notify the connect callback. Callback exceptions are logged, never raised."""
        logger.debug("Status {} (condition={})", status.name, condition)
        if self.connect_callback is None:
            return
        try:
            self.connect_callback(status, condition)
        except Exception as exc:
            logger.exception("User connection callback caused an exception: {}", exc)

    def add_sys_handler(
        self,
        callback: Callable[[ET.Element], bool | None],
        ns: str | None = None,
        name: str | None = None,
        type: str | None = None,
        id: str | None = None,
    ) -> Handler:
        handler = Handler(callback, ns=ns, name=name, type=type, id=id)
        self._handlers.append(handler)
        return handler

    def delete_handler(self, handler: Handler | None) -> None:
        if handler is not None and handler in self._handlers:
            self._handlers.remove(handler)

    def dispatch_stanza(self, elem: ET.Element) -> None:
        """Run every matching handler; drop those that return falsy."""
        for handler in list(self._handlers):
            if handler not in self._handlers or not handler.matches(elem):
                continue
            if not handler.run(elem):
                self.delete_handler(handler)

    # -- SASL outcome -----------------------------------------------------

    def sasl_success(self, elem: ET.Element) -> bool:
        """<success/>: mark authenticated and restart the stream; CONNECTED follows its reply."""
        self.delete_handler(self.sasl_failure_handler)
        self.sasl_failure_handler = None
        self.sasl_success_handler = None
        self.authenticated = True
        logger.info("SASL authentication succeeded for {}", self.jid)

        body = self.build_body().attrs(
            {
                "to": self.domain,
                "xml:lang": self.lang,
                "xmpp:restart": "true",
                "xmlns:xmpp": NS_BOSH,
            }
        )
        self.queue(body, Continuation("stream_restart", self._restart_recv))
        self.throttled_request_handler()
        return False

    def sasl_failure(self, elem: ET.Element) -> bool:
        """<failure/>: report AUTHFAIL with the failure's condition element, if any."""
        self.delete_handler(self.sasl_success_handler)
        self.sasl_success_handler = None
        self.sasl_failure_handler = None
        condition = local_name(elem[0].tag) if len(elem) else None
        logger.warning("SASL authentication failed for {}: {}", self.jid, condition)
        self.change_connect_status(Status.AUTHFAIL, condition)
        return False

    # -- tracing hooks (override to observe traffic) ------------------------

    def xml_input(self, elem: ET.Element) -> None:
        pass

    def xml_output(self, elem: ET.Element) -> None:
        pass

    def raw_input(self, data: str) -> None:
        logger.trace("RECV {}", data)

    def raw_output(self, data: str) -> None:
        logger.trace("SEND {}", data)
