"""A small, chainable interface for watching one URL."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterator

from hawkeye.monitor import Change, Config, DetectionMethod, Monitor

_POLL = 0.05
_END = object()


class Watcher:
    """Watches a URL for changes. Durations are in seconds."""

    def __init__(self, url: str, interval: float) -> None:
        self._url = url
        self._interval = interval
        self._headers: dict[str, str] = {}
        self._ignore: list[str] = []
        self._timeout = 30.0
        self._retries = 3
        self._retry_interval = 10.0
        self._stop_event = threading.Event()
        self._parent: threading.Event | None = None
        self._monitor = Monitor(self._config())

    def _config(self) -> Config:
        return Config(
            url=self._url,
            interval=self._interval,
            timeout=self._timeout,
            headers=self._headers,
            ignore_selectors=self._ignore,
            method=DetectionMethod.HASH,
            retry_count=self._retries,
            retry_interval=self._retry_interval,
            follow_redirects=True,
        )

    def _recreate(self) -> None:
        self._monitor.stop()
        self._monitor = Monitor(self._config())

    def start(self) -> Iterator[Change]:
        """Start watching and return the stream of reported changes."""
        changes = self._monitor.start()
        relay: queue.Queue[object] = queue.Queue()

        def pump() -> None:
            for change in changes:
                relay.put(change)
            relay.put(_END)

        threading.Thread(target=pump, name=f"watch {self._url}", daemon=True).start()
        return self._forward(relay, self._stop_event, self._parent)

    @staticmethod
    def _forward(
        relay: queue.Queue[object],
        own: threading.Event,
        parent: threading.Event | None,
    ) -> Iterator[Change]:
        while not (own.is_set() or (parent is not None and parent.is_set())):
            try:
                item = relay.get(timeout=_POLL)
            except queue.Empty:
                continue
            if item is _END:
                return
            yield item  # type: ignore[misc]

    def stop(self) -> None:
        """Stop watching; the change stream ends."""
        self._stop_event.set()
        self._monitor.stop()

    def with_headers(self, headers: dict[str, str]) -> Watcher:
        """Send these HTTP headers with every request."""
        self._headers = headers
        self._recreate()
        return self

    def with_ignore_selectors(self, selectors: list[str]) -> Watcher:
        """Record CSS selectors to ignore when comparing content."""
        self._ignore = selectors
        self._recreate()
        return self

    def with_timeout(self, timeout: float) -> Watcher:
        """Set the HTTP request timeout."""
        self._timeout = timeout
        self._recreate()
        return self

    def with_retries(self, count: int, interval: float) -> Watcher:
        """Set the number of retries and the pause between them."""
        self._retries = count
        self._retry_interval = interval
        self._recreate()
        return self

    def with_stop_event(self, event: threading.Event) -> Watcher:
        """End change streams when event is set; streams started earlier end now."""
        self._stop_event.set()
        self._stop_event = threading.Event()
        self._parent = event
        return self

    @property
    def url(self) -> str:
        """The URL being watched."""
        return self._url

    def __iter__(self) -> Iterator[Change]:
        try:
            yield from self.start()
        finally:
            self.stop()


def new_watcher_with_stop_event(event: threading.Event, url: str, interval: float) -> Watcher:
    """Create a watcher whose change streams end when event is set."""
    return Watcher(url, interval).with_stop_event(event)