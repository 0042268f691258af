"""Tests for the remote log sink."""

import json
import logging

import httpx
import pytest

from shortlinks.core.remote_log import RemoteLogHandler, RemoteLogSink, package_for

LOG_URL = "http://logs.example.com/evaluation-service/logs"


@pytest.fixture
def received():
    return []


@pytest.fixture
def sink(received):
    """Create a sink whose collector records every posted event."""
    def handler(request: httpx.Request) -> httpx.Response:
        received.append(
            {
                "body": json.loads(request.content),
                "authorization": request.headers.get("authorization"),
            }
        )
        return httpx.Response(200, json={"logID": str(len(received)), "message": "ok"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    sink = RemoteLogSink(LOG_URL, token="secret", client=client)
    yield sink
    sink.close()


class TestRemoteLogSink:
    """Tests for event delivery."""

    def test_send_posts_event(self, sink, received):
        """Test that send posts the event with a bearer token."""
        reply = sink.send(
            {"stack": "backend", "level": "info", "package": "service", "message": "hello"}
        )
        assert reply == {"logID": "1", "message": "ok"}
        assert received == [
            {
                "body": {
                    "stack": "backend",
                    "level": "info",
                    "package": "service",
                    "message": "hello",
                },
                "authorization": "Bearer secret",
            }
        ]

    def test_log_is_delivered_by_worker(self, sink, received):
        """Test that queued events are posted in order by the worker."""
        sink.start()
        sink.log("backend", "info", "service", "first")
        sink.log("backend", "warn", "route", "second")
        sink.flush()
        assert [r["body"]["message"] for r in received] == ["first", "second"]
        assert [r["body"]["level"] for r in received] == ["info", "warn"]

    def test_no_token_means_no_authorization(self, sink, received):
        """Test that no Authorization header is sent without a token."""
        sink.set_access_token(None)
        sink.send({"stack": "backend", "level": "debug", "package": "db", "message": "x"})
        assert received[0]["authorization"] is None

    def test_delivery_failure_is_swallowed(self):
        """Test that an unreachable collector is not an error."""
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        sink = RemoteLogSink(LOG_URL, client=httpx.Client(transport=httpx.MockTransport(handler)))
        try:
            assert sink.send({"message": "lost"}) is None
        finally:
            sink.close()

    def test_error_status_is_swallowed(self):
        """Test that an error reply from the collector is not an error."""
        sink = RemoteLogSink(
            LOG_URL,
            client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(503))),
        )
        try:
            assert sink.send({"message": "rejected"}) is None
        finally:
            sink.close()

    def test_worker_survives_unexpected_errors(self):
        """Test that one failing delivery does not stop later ones."""
        delivered = []

        def handler(request):
            body = json.loads(request.content)
            if body["message"] == "poison":
                raise RuntimeError("transport bug")
            delivered.append(body["message"])
            return httpx.Response(200, json={})

        sink = RemoteLogSink(LOG_URL, client=httpx.Client(transport=httpx.MockTransport(handler)))
        sink.start()
        try:
            sink.log("backend", "info", "service", "poison")
            sink.log("backend", "info", "service", "after")
            sink.flush()
            assert sink._worker.is_alive()
            assert delivered == ["after"]
        finally:
            sink.close()

    def test_full_queue_drops_events(self, received):
        """Test that events beyond the queue size are dropped and counted."""
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        sink = RemoteLogSink(LOG_URL, queue_size=2, client=client)
        for i in range(5):
            sink.log("backend", "info", "service", f"event {i}")
        assert sink.dropped == 3
        sink.close()


class TestRemoteLogHandler:
    """Tests for the stdlib logging bridge."""

    @pytest.mark.parametrize(
        "name,package",
        [
            ("shortlinks.api.routes.urls", "route"),
            ("shortlinks.api.middleware", "middleware"),
            ("shortlinks.core.config", "config"),
            ("shortlinks.main", "handler"),
            ("shortlinks.utils.geo", "utils"),
        ],
    )
    def test_package_for(self, name, package):
        """Test mapping logger names to remote packages."""
        assert package_for(name) == package

    def test_records_are_forwarded(self, sink, received):
        """Test that log records reach the sink with mapped level and package."""
        sink.start()
        log = logging.getLogger("shortlinks.api.routes.test_bridge")
        log.setLevel(logging.DEBUG)
        handler = RemoteLogHandler(sink, stack="backend")
        log.addHandler(handler)
        try:
            log.warning("Shortcode %s missing", "abc")
            log.critical("boom")
        finally:
            log.removeHandler(handler)
        sink.flush()

        assert [r["body"] for r in received] == [
            {"stack": "backend", "level": "warn", "package": "route", "message": "Shortcode abc missing"},
            {"stack": "backend", "level": "fatal", "package": "route", "message": "boom"},
        ]
