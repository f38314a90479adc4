"""Tests for Connection plumbing: rids, throttling, completion, handlers, status."""

from __future__ import annotations

from xml.etree import ElementTree as ET

from tests.mocks import StatusRecorder, body_xml, make_connection
from tuenti_bosh.bosh import Continuation, SetOnce
from tuenti_bosh.core.constants import Status


def noop_continuation(seen=None):
    return Continuation("noop", lambda req: seen.append(req) if seen is not None else None)


class TestSetOnce:
    def test_first_truthy_value_wins(self):
        value = SetOnce()

        assert value.set_if_empty("a") is True
        assert value.set_if_empty("b") is False
        assert value.value == "a"

    def test_empty_values_do_not_count(self):
        value = SetOnce()

        assert value.set_if_empty(None) is False
        assert value.set_if_empty("") is False
        assert not value
        assert value.set_if_empty("x") is True

    def test_clear(self):
        value = SetOnce()
        value.set_if_empty("a")

        value.clear()

        assert value.value is None


class TestBuildBody:
    def test_rid_increments(self):
        conn, _ = make_connection()
        start = conn.rid

        first = conn.build_body().tree()
        second = conn.build_body().tree()

        assert first.get("rid") == str(start)
        assert second.get("rid") == str(start + 1)

    def test_sid_included_once_known(self):
        conn, _ = make_connection()
        assert conn.build_body().tree().get("sid") is None

        conn.sid.set_if_empty("abc")

        assert conn.build_body().tree().get("sid") == "abc"


class TestThrottle:
    def test_dispatches_two_requests_inside_window(self):
        # Arrange
        conn, transport = make_connection()
        conn.queue(conn.build_body(), noop_continuation())
        conn.queue(conn.build_body(), noop_continuation())
        conn.queue(conn.build_body(), noop_continuation())

        # Act
        conn.throttled_request_handler()

        # Assert
        assert len(transport.dispatched) == 2

    def test_second_request_held_outside_window(self):
        conn, transport = make_connection({"bosh": {"window": 1}})
        conn.queue(conn.build_body(), noop_continuation())
        conn.queue(conn.build_body(), noop_continuation())

        conn.throttled_request_handler()

        assert len(transport.dispatched) == 1

    def test_request_dispatched_once(self):
        conn, transport = make_connection()
        request = conn.queue(conn.build_body(), noop_continuation())

        conn.throttled_request_handler()
        conn.throttled_request_handler()

        assert transport.dispatched == [request]
        assert request.sends == 1

    def test_completion_releases_next_request(self):
        conn, transport = make_connection({"bosh": {"window": 1}})
        first = conn.queue(conn.build_body(), noop_continuation())
        second = conn.queue(conn.build_body(), noop_continuation())
        conn.throttled_request_handler()

        conn.complete(first, body_xml())

        assert transport.dispatched == [first, second]
        assert conn.requests == [second]


class TestCompleteAndFail:
    def test_complete_runs_continuation_with_response(self):
        # Arrange
        conn, _ = make_connection()
        seen = []
        request = conn.queue(conn.build_body(), noop_continuation(seen))
        conn.errors = 2

        # Act
        conn.complete(request, body_xml(sid="x"))

        # Assert
        assert seen == [request]
        assert request.get_response().get("sid") == "x"
        assert conn.errors == 0

    def test_fail_resends_pending_request(self):
        # Arrange
        conn, transport = make_connection()
        recorder = StatusRecorder()
        conn.connect_callback = recorder
        request = conn.queue(conn.build_body(), noop_continuation())
        conn.throttled_request_handler()

        # Act
        conn.fail(request, "timeout")

        # Assert
        assert transport.dispatched == [request, request]
        assert request.sends == 2
        assert conn.requests == [request]
        assert conn.errors == 1
        assert recorder.calls == []

    def test_fail_counts_errors_then_connfail(self):
        # Arrange
        conn, transport = make_connection({"bosh": {"max_errors": 2}})
        recorder = StatusRecorder()
        conn.connect_callback = recorder
        request = conn.queue(conn.build_body(), noop_continuation())
        conn.throttled_request_handler()

        # Act
        conn.fail(request, "timeout")
        first_statuses = list(recorder.calls)
        conn.fail(request, "timeout")

        # Assert
        assert first_statuses == []
        assert recorder.calls == [(Status.CONNFAIL, "timeout")]
        assert conn.requests == []
        assert len(transport.dispatched) == 2

    def test_fail_at_limit_releases_next_request(self):
        conn, transport = make_connection({"bosh": {"max_errors": 1, "window": 1}})
        first = conn.queue(conn.build_body(), noop_continuation())
        second = conn.queue(conn.build_body(), noop_continuation())
        conn.throttled_request_handler()

        conn.fail(first, "timeout")

        assert transport.dispatched == [first, second]

    def test_reply_to_request_no_longer_pending_is_dropped(self):
        # Arrange
        conn, _ = make_connection()
        seen = []
        request = conn.queue(conn.build_body(), noop_continuation(seen))
        conn.reset()

        # Act
        conn.complete(request, body_xml(sid="stale"))

        # Assert
        assert seen == []
        assert conn.sid.value is None


class TestStatus:
    def test_no_callback_is_fine(self):
        conn, _ = make_connection()

        conn.change_connect_status(Status.CONNECTING)

    def test_callback_exception_not_raised(self):
        conn, _ = make_connection()

        def boom(status, condition):
            raise RuntimeError("user bug")

        conn.connect_callback = boom

        conn.change_connect_status(Status.CONNFAIL, "x")


class TestHandlers:
    def test_one_shot_handler_removed_after_match(self):
        # Arrange
        conn, _ = make_connection()
        seen = []
        conn.add_sys_handler(lambda elem: seen.append(elem.tag), name="success")

        # Act
        conn.dispatch_stanza(ET.Element("success"))
        conn.dispatch_stanza(ET.Element("success"))

        # Assert
        assert seen == ["success"]
        assert conn.handlers == []

    def test_handler_returning_true_is_kept(self):
        conn, _ = make_connection()
        seen = []
        handler = conn.add_sys_handler(lambda elem: seen.append(elem) or True, name="message")

        conn.dispatch_stanza(ET.Element("message"))
        conn.dispatch_stanza(ET.Element("message"))

        assert len(seen) == 2
        assert conn.handlers == [handler]

    def test_match_on_namespace_type_and_id(self):
        conn, _ = make_connection()
        handler = conn.add_sys_handler(lambda elem: True, ns="jabber:client", name="iq", type="result", id="b1")

        matching = ET.fromstring('<iq xmlns="jabber:client" type="result" id="b1"/>')
        other_id = ET.fromstring('<iq xmlns="jabber:client" type="result" id="b2"/>')
        other_ns = ET.fromstring('<iq xmlns="jabber:server" type="result" id="b1"/>')

        assert handler.matches(matching)
        assert not handler.matches(other_id)
        assert not handler.matches(other_ns)

    def test_raising_handler_is_dropped(self):
        conn, _ = make_connection()

        def boom(elem):
            raise ValueError("bad")

        conn.add_sys_handler(boom, name="success")

        conn.dispatch_stanza(ET.Element("success"))

        assert conn.handlers == []

    def test_handler_deleted_mid_dispatch_is_skipped(self):
        # Arrange
        conn, _ = make_connection()
        seen = []
        later: list = []
        conn.add_sys_handler(lambda elem: conn.delete_handler(later[0]) or True, name="x")
        later.append(conn.add_sys_handler(lambda elem: seen.append("second"), name="x"))

        # Act
        conn.dispatch_stanza(ET.Element("x"))

        # Assert
        assert seen == []


class TestSendAndReceive:
    def test_send_wraps_stanza_in_body(self):
        conn, transport = make_connection()
        conn.sid.set_if_empty("s1")

        conn.send(ET.Element("presence"))

        body = transport.last.xml
        assert body.get("sid") == "s1"
        assert [child.tag for child in body] == ["presence"]
        assert transport.last.continuation.name == "data_recv"

    def test_received_stanzas_reach_handlers(self):
        conn, transport = make_connection()
        seen = []
        conn.add_sys_handler(lambda elem: seen.append(elem.get("id")), name="message")
        request = conn.send(ET.Element("presence"))

        conn.complete(request, body_xml('<message xmlns="jabber:client" id="m1"/>'))

        assert seen == ["m1"]

    def test_terminate_while_receiving_is_connfail(self):
        conn, transport = make_connection()
        recorder = StatusRecorder()
        conn.connect_callback = recorder
        conn.connected = True
        request = conn.send(ET.Element("presence"))

        conn.complete(request, body_xml(type="terminate", condition="see-other-uri"))

        assert recorder.calls == [(Status.CONNFAIL, "see-other-uri")]
        assert conn.connected is False


class TestReset:
    def test_reset_clears_session(self):
        # Arrange
        conn, _ = make_connection()
        conn.sid.set_if_empty("s1")
        conn.stream_id.set_if_empty("a1")
        conn.authenticated = True
        conn.add_sys_handler(lambda elem: None, name="success")
        conn.queue(conn.build_body(), noop_continuation())

        # Act
        conn.reset()

        # Assert
        assert conn.sid.value is None
        assert conn.stream_id.value is None
        assert conn.authenticated is False
        assert conn.handlers == []
        assert conn.requests == []
