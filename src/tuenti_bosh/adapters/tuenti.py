"""Tuenti adapter: log in with a Tuenti user id + session id over SASL PLAIN.

The JID must be ``<tuenti id>@xmppX.tuenti.com`` where xmppX is the user's
chat server. The user id and session id come from an existing Tuenti web
session and replace the password.
"""

from __future__ import annotations

import base64
from xml.etree import ElementTree as ET

from loguru import logger

from tuenti_bosh.adapters.base import ConnectionAdapter
from tuenti_bosh.bosh.body import Builder, elements_by_local_name, get_text, serialize
from tuenti_bosh.bosh.connection import ConnectCallback
from tuenti_bosh.bosh.request import Continuation, Request
from tuenti_bosh.core.constants import (
    BOSH_VERSION,
    CONDITION_CONFLICT,
    CONDITION_REMOTE_STREAM_ERROR,
    CONDITION_UNKNOWN,
    CONTENT_TYPE,
    MECHANISM_PLAIN,
    NS_BOSH,
    NS_SASL,
    XMPP_VERSION,
    Status,
)
from tuenti_bosh.jid import get_domain, validate_jid


def build_plain_auth(jid: str, user_id: str, session_id: str) -> str:
    """base64('jid\\0user_id\\0session_id'), the SASL PLAIN payload."""
    auth_str = f"{jid}\u0000{user_id}\u0000{session_id}"
    return base64.b64encode(auth_str.encode("utf-8")).decode("ascii")


def _int_attr(body: ET.Element, name: str) -> int | None:
    """Integer value of a body attribute; None when absent, empty or not a number."""
    raw = body.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric '{}' attribute: {!r}", name, raw)
        return None


class TuentiAdapter(ConnectionAdapter):
    """Tuenti login flow for a BOSH Connection."""

    @property
    def name(self) -> str:
        return "tuenti"

    @property
    def continuation(self) -> Continuation:
        return Continuation("tuenti_initial_response", self.on_initial_response)

    def connect(
        self,
        jid: str,
        user_id: str,
        session_id: str,
        callback: ConnectCallback,
        wait: int | None = None,
        hold: int | None = None,
    ) -> None:
        """Start a Tuenti session.

        The callback receives (status, condition) every time the connection
        status changes. wait and hold are the optional HTTP-bind values
        (XEP-0124); when omitted the connection keeps its configured values.

        Raises InvalidJIDError if jid has no domain; nothing is changed then.
        """
        validate_jid(jid)
        conn = self.connection

        conn.jid = jid
        conn.user_id = user_id
        conn.session_id = session_id
        conn.connect_callback = callback
        conn.disconnecting = False
        conn.connected = False
        conn.authenticated = False
        conn.errors = 0

        if wait is not None:
            conn.wait = wait
        if hold is not None:
            conn.hold = hold

        conn.domain = get_domain(jid)

        body = conn.build_body().attrs(
            {
                "to": conn.domain,
                "xml:lang": conn.lang,
                "wait": conn.wait,
                "hold": conn.hold,
                "content": CONTENT_TYPE,
                "ver": BOSH_VERSION,
                "xmpp:version": XMPP_VERSION,
                "xmlns:xmpp": NS_BOSH,
            }
        )
        logger.debug("Tuenti connect: jid={} domain={}", jid, conn.domain)

        conn.change_connect_status(Status.CONNECTING, None)
        conn.queue(body, self.continuation)
        conn.throttled_request_handler()

    def on_initial_response(self, request: Request) -> None:
        """Handle a reply to the session request (or to a features poll).

        Fails the connection on terminate, polls again until stream features
        arrive, and starts SASL PLAIN once the server offers it.
        """
        conn = self.connection
        conn.connected = True

        body = request.get_response()
        if body is None:
            return

        conn.xml_input(body)
        conn.raw_input(serialize(body))

        if body.get("type") == "terminate":
            cond = body.get("condition")
            if cond is None:
                cond = CONDITION_UNKNOWN
            elif cond == CONDITION_REMOTE_STREAM_ERROR and elements_by_local_name(body, "conflict"):
                cond = CONDITION_CONFLICT
            conn.change_connect_status(Status.CONNFAIL, cond)
            return

        # Replies to features polls carry the same handler; keep the first ids.
        conn.sid.set_if_empty(body.get("sid"))
        conn.stream_id.set_if_empty(body.get("authid"))

        window = _int_attr(body, "requests")
        if window is not None:
            conn.window = window
        hold = _int_attr(body, "hold")
        if hold is not None:
            conn.hold = hold
        wait = _int_attr(body, "wait")
        if wait is not None:
            conn.wait = wait

        mechanisms = [get_text(m) for m in elements_by_local_name(body, "mechanism")]
        if not mechanisms:
            # No stream:features yet; poll with an empty body.
            conn.queue(conn.build_body(), self.continuation)
            conn.throttled_request_handler()
            return

        if MECHANISM_PLAIN not in mechanisms:
            logger.debug("Server offers no PLAIN mechanism ({}); not authenticating", mechanisms)
            return

        self._auth_plain()

    def _auth_plain(self) -> None:
        conn = self.connection
        payload = build_plain_auth(conn.jid, conn.user_id, conn.session_id)

        conn.change_connect_status(Status.AUTHENTICATING, None)
        conn.sasl_success_handler = conn.add_sys_handler(conn.sasl_success, name="success")
        conn.sasl_failure_handler = conn.add_sys_handler(conn.sasl_failure, name="failure")

        auth = Builder("auth", {"xmlns": NS_SASL, "mechanism": MECHANISM_PLAIN}).t(payload)
        conn.send(auth.tree())
