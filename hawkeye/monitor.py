"""Watching a single URL and detecting changes in its content."""

from __future__ import annotations

import dataclasses
import enum
import json
import queue
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import requests

from hawkeye.filters import ContentFilterList, new_timestamp_filter
from hawkeye.httpclient import ClientOptions, HttpClient
from hawkeye.utils import calculate_sha256

CompareFn = Callable[[bytes, bytes], "tuple[bool, str]"]

_CONTEXT = 20


class DetectionMethod(enum.Enum):
    """How two versions of a page are compared."""

    HASH = 0
    LENGTH = 1
    CUSTOM = 2


class MonitorError(Exception):
    """Raised when monitoring a URL fails."""


class URLEmptyError(MonitorError, ValueError):
    """Raised when a monitor is given an empty URL."""

    def __init__(self, message: str = "URL cannot be empty") -> None:
        super().__init__(message)


class InvalidIntervalError(MonitorError, ValueError):
    """Raised when a monitor is given a non-positive interval."""

    def __init__(self, message: str = "interval must be greater than zero") -> None:
        super().__init__(message)


def _now() -> datetime:
    return datetime.now().astimezone()


def _format_timestamp(timestamp: datetime) -> str:
    text = timestamp.isoformat()
    if timestamp.utcoffset() == timedelta(0):
        text = text[: -len("+00:00")] + "Z"
    return text


@dataclass
class Change:
    """The outcome of a check that is worth reporting."""

    url: str
    timestamp: datetime = field(default_factory=_now)
    has_changed: bool = False
    status_code: int = 0
    content_type: str = ""
    error: str = ""
    details: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping; empty optional fields are left out."""
        data: dict[str, Any] = {
            "url": self.url,
            "timestamp": _format_timestamp(self.timestamp),
            "has_changed": self.has_changed,
        }
        if self.status_code:
            data["status_code"] = self.status_code
        if self.content_type:
            data["content_type"] = self.content_type
        if self.error:
            data["error"] = self.error
        if self.details:
            data["details"] = self.details
        return data

    def to_json(self) -> str:
        """Return the change as compact JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


@dataclass
class Config:
    """Monitor settings. Durations are in seconds."""

    url: str
    interval: float = 300.0
    timeout: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)
    ignore_selectors: list[str] = field(default_factory=list)
    method: DetectionMethod = DetectionMethod.HASH
    custom_compare_fn: CompareFn | None = None
    retry_count: int = 3
    retry_interval: float = 10.0
    follow_redirects: bool = True
    include_response_body: bool = False
    normalize_whitespace: bool = False
    content_filters: ContentFilterList = field(default_factory=ContentFilterList)
    ignore_timestamps: bool = False


@dataclass(frozen=True)
class MonitorStatus:
    """A snapshot of a monitor's progress."""

    last_check: datetime | None
    status: str
    check_count: int


def default_config(url: str) -> Config:
    """Return the default configuration for url."""
    return Config(
        url=url,
        interval=300.0,
        timeout=30.0,
        method=DetectionMethod.HASH,
        retry_count=3,
        retry_interval=10.0,
        follow_redirects=True,
        normalize_whitespace=False,
        ignore_timestamps=False,
    )


def new_monitor(url: str, interval: float) -> Monitor:
    """Create a monitor with default settings and the given interval."""
    config = default_config(url)
    config.interval = interval
    return Monitor(config)


class Monitor:
    """Periodically fetches a URL and reports when its content changes."""

    def __init__(self, config: Config) -> None:
        self.config = dataclasses.replace(config)
        self._client = HttpClient(
            ClientOptions(timeout=config.timeout, follow_redirects=config.follow_redirects)
        )
        filters = ContentFilterList(config.content_filters or ())
        if config.ignore_timestamps:
            filters.append(new_timestamp_filter())
        self.filters = filters
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_content: bytes | None = None
        self._last_check: datetime | None = None
        self._status = ""
        self._check_count = 0
        self._first_check = True

    def start(self) -> Iterator[Change]:
        """Start checking in the background and return the reported changes.

        The first check runs at once and never reports a change. The iterator
        ends once the monitor has been stopped.
        """
        if self.config.interval <= 0:
            raise InvalidIntervalError()
        with self._lock:
            if self._thread is not None:
                raise RuntimeError("monitor already started")
            changes: queue.Queue[Change | None] = queue.Queue()
            self._thread = threading.Thread(
                target=self._run,
                args=(changes,),
                name=f"monitor {self.config.url}",
                daemon=True,
            )
            self._thread.start()
        return self._drain(changes)

    @staticmethod
    def _drain(changes: queue.Queue[Change | None]) -> Iterator[Change]:
        while (change := changes.get()) is not None:
            yield change

    def stop(self) -> None:
        """Stop checking; the change iterator ends after the current check."""
        self._stop.set()

    def _run(self, changes: queue.Queue[Change | None]) -> None:
        try:
            self._emit(changes)
            while not self._stop.wait(self.config.interval):
                self._emit(changes)
        finally:
            changes.put(None)

    def _emit(self, changes: queue.Queue[Change | None]) -> None:
        change = self.perform_check()
        if change is not None:
            changes.put(change)

    def perform_check(self) -> Change | None:
        """Fetch the URL once and return a change worth reporting, if any."""
        with self._lock:
            self._check_count += 1
            self._status = "checking"

        attempts = max(self.config.retry_count, 0) + 1
        last_error: MonitorError | None = None
        for attempt in range(attempts):
            if attempt:
                self._stop.wait(self.config.retry_interval)
            try:
                content, change = self.fetch_content()
            except MonitorError as exc:
                last_error = exc
                continue
            break
        else:
            return Change(url=self.config.url, error=str(last_error))

        changed, details = self.detect_change(content)

        with self._lock:
            self._last_check = _now()
            self._status = "idle"
            is_first = self._first_check
            self._first_check = False

        if is_first or not changed:
            return None
        return dataclasses.replace(change, has_changed=True, details=details)

    def fetch_content(self) -> tuple[bytes, Change]:
        """Fetch the URL and return its body with the response details.

        Raises MonitorError on a transport failure or a non-2xx status.
        """
        try:
            response = self._client.get(self.config.url, self.config.headers)
        except requests.RequestException as exc:
            raise MonitorError(str(exc)) from exc
        with response:
            change = Change(
                url=self.config.url,
                status_code=response.status_code,
                content_type=response.headers.get("Content-Type", ""),
            )
            if not 200 <= response.status_code < 300:
                raise MonitorError(f"unexpected status code: {response.status_code}")
            try:
                content = response.content
            except requests.RequestException as exc:
                raise MonitorError(str(exc)) from exc
        return content, change

    def detect_change(self, content: bytes) -> tuple[bool, str]:
        """Compare content with the last stored content.

        Returns whether it changed and a description. The first call only
        stores the content.
        """
        with self._lock:
            if self._last_content is None:
                self._last_content = content
                return False, ""

            current = content
            last = self._last_content
            if self.filters:
                current = self.filters.apply(current)
                last = self.filters.apply(last)
            if self.config.normalize_whitespace:
                current = self.normalize_content(current)
                last = self.normalize_content(last)

            method = self.config.method
            if method is DetectionMethod.HASH:
                if calculate_sha256(current) != calculate_sha256(last):
                    self._last_content = content
                    return True, self.find_difference(last, current)
            elif method is DetectionMethod.LENGTH:
                if len(current) != len(last):
                    self._last_content = content
                    return True, self.find_difference(last, current)
            elif method is DetectionMethod.CUSTOM and self.config.custom_compare_fn is not None:
                changed, details = self.config.custom_compare_fn(last, current)
                if changed:
                    self._last_content = content
                    return True, details
            return False, ""

    def find_difference(self, old_content: bytes, new_content: bytes) -> str:
        """Describe where two contents first differ, with some context."""
        position = next(
            (i for i, (a, b) in enumerate(zip(old_content, new_content)) if a != b),
            None,
        )
        if position is None and len(old_content) == len(new_content):
            return "Content changed but no specific difference found"
        if position is None:
            position = min(len(old_content), len(new_content))

        start = max(position - _CONTEXT, 0)
        old_part = old_content[start : position + _CONTEXT].decode("utf-8", errors="replace")
        new_part = new_content[start : position + _CONTEXT].decode("utf-8", errors="replace")
        return (
            f"Content differs at position {position}\n"
            f"Old: ...{old_part}...\n"
            f"New: ...{new_part}..."
        )

    def normalize_content(self, content: bytes) -> bytes:
        """Unify line endings and, if configured, collapse whitespace."""
        if not content:
            return content
        content = content.replace(b"\r\n", b"\n").replace(b"\r", b"\n")
        if self.config.normalize_whitespace:
            content = b" ".join(content.split())
        return content

    @property
    def status(self) -> MonitorStatus:
        """The time of the last check, the current state and the check count."""
        with self._lock:
            return MonitorStatus(self._last_check, self._status, self._check_count)

    @property
    def url(self) -> str:
        """The URL being monitored."""
        return self.config.url