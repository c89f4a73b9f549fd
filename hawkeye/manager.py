"""Running many monitors together and arranging them in groups."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from hawkeye.monitor import (
    Change,
    Config,
    InvalidIntervalError,
    Monitor,
    MonitorError,
    URLEmptyError,
)

_CLOSED = object()


class MonitorExistsError(MonitorError, ValueError):
    """Raised when a monitor for the URL is already registered."""

    def __init__(self, url: str) -> None:
        super().__init__(f"monitor for URL '{url}' already exists")
        self.url = url


class MonitorNotFoundError(MonitorError, LookupError):
    """Raised when no monitor is registered for the URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"no monitor found for URL '{url}'")
        self.url = url


class GroupExistsError(MonitorError, ValueError):
    """Raised when a group with the name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"group '{name}' already exists")
        self.name = name


class GroupNotFoundError(MonitorError, LookupError):
    """Raised when no group has the name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"group '{name}' does not exist")
        self.name = name


@dataclass
class MonitorGroup:
    """A named set of monitors, keyed by URL."""

    name: str
    description: str = ""
    monitors: dict[str, Monitor] = field(default_factory=dict)


class Manager:
    """Holds monitors by URL and merges their changes into one stream."""

    def __init__(self) -> None:
        self._monitors: dict[str, Monitor] = {}
        self._groups: dict[str, MonitorGroup] = {}
        self._changes: queue.Queue[object] = queue.Queue()
        self._lock = threading.RLock()
        self._stopped = threading.Event()
        self._closed = False

    def _lookup_monitor(self, url: str) -> Monitor:
        try:
            return self._monitors[url]
        except KeyError:
            raise MonitorNotFoundError(url) from None

    def _lookup_group(self, name: str) -> MonitorGroup:
        try:
            return self._groups[name]
        except KeyError:
            raise GroupNotFoundError(name) from None

    def add_monitor(self, monitor: Monitor) -> None:
        """Register a monitor under its URL."""
        with self._lock:
            url = monitor.url
            if not url:
                raise URLEmptyError()
            if url in self._monitors:
                raise MonitorExistsError(url)
            self._monitors[url] = monitor

    def add_monitor_with_config(self, config: Config) -> Monitor:
        """Create a monitor from config, register it and return it."""
        if not config.url:
            raise URLEmptyError()
        if config.interval <= 0:
            raise InvalidIntervalError()
        monitor = Monitor(config)
        self.add_monitor(monitor)
        return monitor

    def create_group(self, name: str, description: str) -> MonitorGroup:
        """Create an empty group and return it."""
        with self._lock:
            if name in self._groups:
                raise GroupExistsError(name)
            group = MonitorGroup(name=name, description=description)
            self._groups[name] = group
            return group

    def add_to_group(self, url: str, group_name: str) -> None:
        """Put the monitor for url into the named group."""
        with self._lock:
            monitor = self._lookup_monitor(url)
            group = self._lookup_group(group_name)
            group.monitors[url] = monitor

    def remove_monitor(self, url: str) -> None:
        """Stop the monitor for url and remove it from the manager and all groups."""
        with self._lock:
            monitor = self._lookup_monitor(url)
            monitor.stop()
            for group in self._groups.values():
                group.monitors.pop(url, None)
            del self._monitors[url]

    def get_monitor(self, url: str) -> Monitor:
        """Return the monitor registered for url."""
        with self._lock:
            return self._lookup_monitor(url)

    def get_group(self, name: str) -> MonitorGroup:
        """Return the named group."""
        with self._lock:
            return self._lookup_group(name)

    def list_monitors(self) -> list[str]:
        """Return the URLs of all registered monitors."""
        with self._lock:
            return list(self._monitors)

    def list_groups(self) -> list[str]:
        """Return the names of all groups."""
        with self._lock:
            return list(self._groups)

    def _launch(self, monitors: Iterable[Monitor]) -> None:
        for monitor in monitors:
            changes = monitor.start()
            threading.Thread(
                target=self._forward,
                args=(changes,),
                name=f"forward {monitor.url}",
                daemon=True,
            ).start()

    def _forward(self, changes: Iterator[Change]) -> None:
        for change in changes:
            if self._stopped.is_set():
                return
            self._changes.put(change)

    def _drain(self) -> Iterator[Change]:
        while True:
            item = self._changes.get()
            if item is _CLOSED:
                # Leave the marker for any other reader of the stream.
                self._changes.put(_CLOSED)
                return
            yield item  # type: ignore[misc]

    def start(self) -> Iterator[Change]:
        """Start every monitor and return the merged stream of changes."""
        with self._lock:
            self._launch(list(self._monitors.values()))
        return self._drain()

    def start_monitor(self, url: str) -> Iterator[Change]:
        """Start the monitor for url and return the merged stream of changes."""
        with self._lock:
            self._launch([self._lookup_monitor(url)])
        return self._drain()

    def start_group(self, group_name: str) -> Iterator[Change]:
        """Start every monitor in the group and return the merged stream."""
        with self._lock:
            group = self._lookup_group(group_name)
            self._launch(list(group.monitors.values()))
        return self._drain()

    def stop(self) -> None:
        """Stop all monitors and end the change stream."""
        self._stopped.set()
        with self._lock:
            for monitor in self._monitors.values():
                monitor.stop()
            if not self._closed:
                self._closed = True
                self._changes.put(_CLOSED)

    def stop_monitor(self, url: str) -> None:
        """Stop the monitor for url."""
        with self._lock:
            self._lookup_monitor(url).stop()

    def stop_group(self, group_name: str) -> None:
        """Stop every monitor in the group."""
        with self._lock:
            for monitor in self._lookup_group(group_name).monitors.values():
                monitor.stop()