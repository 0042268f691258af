"""Remote logging sink.

Log events are ``(stack, level, package, message)`` tuples posted as JSON to a
collector endpoint. Posting happens on a background thread: ``log`` only puts
the event on a bounded queue and returns, and a full queue drops the event.
Delivery failures are logged locally at debug level and never raised.
"""

import logging
import queue
import threading
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

_STOP = object()


class RemoteLogSink:
    """Fire-and-forget HTTP log emitter."""

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: float = 5.0,
        queue_size: int = 1000,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the sink.

        Args:
            url: Collector endpoint receiving POSTed JSON events.
            token: Optional bearer token sent with every event.
            timeout: HTTP timeout in seconds.
            queue_size: Maximum number of pending events.
            client: Optional preconfigured httpx client (used by tests).
        """
        self.url = url
        self.token = token
        self._client = client or httpx.Client(timeout=timeout)
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._worker: Optional[threading.Thread] = None
        self.dropped = 0

    def set_access_token(self, token: Optional[str]) -> None:
        self.token = token

    def start(self) -> None:
        """Start the delivery thread."""
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(
            target=self._run, name="remote-log-sink", daemon=True
        )
        self._worker.start()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Deliver pending events, stop the thread and close the client."""
        if self._worker is not None and self._worker.is_alive():
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                logger.debug("Remote log queue full on shutdown")
            self._worker.join(timeout)
        self._worker = None
        self._client.close()

    def log(self, stack: str, level: str, package: str, message: str) -> None:
        """Queue an event for delivery. Never blocks, never raises."""
        event = {
            "stack": stack,
            "level": level,
            "package": package,
            "message": message,
        }
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1

    def send(self, event: dict) -> Optional[dict]:
        """Post one event synchronously.

        Returns:
            The collector's JSON reply, or None if delivery failed.
        """
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._client.post(self.url, json=event, headers=headers)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Failed to send log: {e}")
            return None

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                self.send(event)
            except Exception as e:
                # The worker must outlive any single bad delivery
                logger.debug(f"Dropped log event: {e}")
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Block until every queued event has been handled."""
        self._queue.join()


# Logger name fragment -> remote package name
_PACKAGES = (
    ("middleware", "middleware"),
    ("routes", "route"),
    ("config", "config"),
    ("main", "handler"),
)

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}


def package_for(logger_name: str) -> str:
    """Map a Python logger name to a remote log package."""
    for fragment, package in _PACKAGES:
        if fragment in logger_name.split("."):
            return package
    return "utils"


class RemoteLogHandler(logging.Handler):
    """Forward stdlib log records to a RemoteLogSink."""

    def __init__(self, sink: RemoteLogSink, stack: str = "backend", level=logging.NOTSET):
        super().__init__(level)
        self.sink = sink
        self.stack = stack

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _LEVEL_NAMES.get(record.levelno, "info")
            self.sink.log(self.stack, level, package_for(record.name), record.getMessage())
        except Exception:
            self.handleError(record)
