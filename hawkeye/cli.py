"""Command-line interface: watch URLs for changes and list saved monitors."""

from __future__ import annotations

import argparse
import contextlib
import json
import platform
import re
import signal
import sys
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, TextIO

from hawkeye import version
from hawkeye.manager import Manager
from hawkeye.monitor import Change, Config, DetectionMethod, MonitorError

MONITORS_FILE = "monitors.json"
_CONFIG_NAMES = (".hawkeye.yaml", ".hawkeye.yml", ".hawkeye.json", ".hawkeye.toml")
_NO_MONITORS = "No monitors found. Use 'hawkeye watch' to add monitors."

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_SEGMENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")


class DurationError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(text: str) -> float:
    """Parse a duration such as "5m", "1h30m" or "250ms" into seconds."""
    original = text
    if not text:
        raise DurationError(f'time: invalid duration "{original}"')
    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise DurationError(f'time: invalid duration "{original}"')

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _SEGMENT.match(text, pos)
        whole, fraction, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not fraction:
            raise DurationError(f'time: invalid duration "{original}"')
        if not unit:
            raise DurationError(f'time: missing unit in duration "{original}"')
        if unit not in _UNITS:
            raise DurationError(f'time: unknown unit "{unit}" in duration "{original}"')
        total += float(f"{whole or '0'}.{fraction or '0'}") * _UNITS[unit]
        pos = match.end()
    return sign * total


def parse_headers(values: Iterable[str], out: TextIO | None = None) -> dict[str, str]:
    """Turn "key:value" strings into a header mapping, warning about bad ones."""
    out = sys.stdout if out is None else out
    headers: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition(":")
        if not sep:
            print(f"Warning: invalid header format: {raw} (expected 'key:value')", file=out)
            continue
        headers[key.strip()] = value.strip()
    return headers


def _rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    moment = moment.replace(microsecond=0)
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        text = text[: -len("+00:00")] + "Z"
    return text


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _flag(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"field {key!r} must be a boolean")
    return value


@dataclass
class MonitorConfig:
    """A monitor as stored in the monitors file."""

    url: str = ""
    interval: str = ""
    group: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    ignore: list[str] = field(default_factory=list)
    created_at: str = ""
    normalize_whitespace: bool = False
    ignore_timestamps: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping; empty optional fields are left out."""
        data: dict[str, Any] = {"url": self.url, "interval": self.interval}
        if self.group:
            data["group"] = self.group
        if self.headers:
            data["headers"] = dict(sorted(self.headers.items()))
        if self.ignore:
            data["ignore"] = list(self.ignore)
        if self.created_at:
            data["created_at"] = self.created_at
        if self.normalize_whitespace:
            data["normalize_whitespace"] = True
        if self.ignore_timestamps:
            data["ignore_timestamps"] = True
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> MonitorConfig:
        """Build a config from a decoded JSON object; raises ValueError on bad fields."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("monitor entry must be a JSON object")
        headers = data.get("headers") or {}
        if not isinstance(headers, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in headers.items()
        ):
            raise ValueError("field 'headers' must map strings to strings")
        ignore = data.get("ignore") or []
        if not isinstance(ignore, list) or not all(isinstance(item, str) for item in ignore):
            raise ValueError("field 'ignore' must be a list of strings")
        return cls(
            url=_string(data, "url"),
            interval=_string(data, "interval"),
            group=_string(data, "group"),
            headers=dict(headers),
            ignore=list(ignore),
            created_at=_string(data, "created_at"),
            normalize_whitespace=_flag(data, "normalize_whitespace"),
            ignore_timestamps=_flag(data, "ignore_timestamps"),
        )


def get_config_dir(config_file: str | Path | None = None) -> Path:
    """Return the directory holding monitor data.

    That is the directory of the config file in use, or ~/.hawkeye, which is
    created if missing.
    """
    if config_file:
        return Path(config_file).parent
    config_dir = Path.home() / ".hawkeye"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def load_monitors(path: str | Path) -> dict[str, MonitorConfig]:
    """Read the monitors file; raises OSError or ValueError."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("monitors file must hold a JSON object")
    return {url: MonitorConfig.from_dict(entry) for url, entry in data.items()}


def save_monitors(
    config_dir: str | Path,
    urls: Iterable[str],
    headers: Mapping[str, str],
    interval: str,
    group: str = "",
    ignore: Iterable[str] = (),
    normalize_whitespace: bool = False,
    ignore_timestamps: bool = False,
) -> Path:
    """Add or update monitors in the monitors file and return its path.

    A corrupted file is replaced rather than merged.
    """
    directory = Path(config_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / MONITORS_FILE

    monitors: dict[str, MonitorConfig] = {}
    if path.exists():
        try:
            monitors = load_monitors(path)
        except ValueError:
            monitors = {}

    created_at = _rfc3339(datetime.now().astimezone())
    for url in urls:
        monitors[url] = MonitorConfig(
            url=url,
            interval=interval,
            group=group,
            headers=dict(headers),
            ignore=list(ignore),
            created_at=created_at,
            normalize_whitespace=normalize_whitespace,
            ignore_timestamps=ignore_timestamps,
        )

    payload = {url: monitors[url].to_dict() for url in sorted(monitors)}
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def format_change(change: Change, output_format: str = "text") -> str:
    """Render a change for output; returns "" for changes not worth reporting."""
    if change.error:
        if output_format == "json":
            return change.to_json() + "\n"
        return f"[ERROR] {change.url}: {change.error}\n"
    if not change.has_changed:
        return ""
    if output_format == "json":
        return change.to_json() + "\n"
    lines = [f"[CHANGED] {change.url} at {_rfc3339(change.timestamp)}"]
    if change.details:
        lines.append(f"  Details: {change.details}")
    if change.content_type:
        lines.append(f"  Content-Type: {change.content_type}")
    if change.status_code > 0:
        lines.append(f"  Status Code: {change.status_code}")
    return "\n".join(lines) + "\n"


def _show_map(values: Mapping[str, str]) -> str:
    return "map[" + " ".join(f"{k}:{v}" for k, v in sorted(values.items())) + "]"


def _show_list(values: Iterable[str]) -> str:
    return "[" + " ".join(values) + "]"


def run_list(
    config_dir: str | Path,
    output_format: str = "text",
    group: str = "",
    out: TextIO | None = None,
) -> None:
    """Print the saved monitors, optionally only those in one group."""
    out = sys.stdout if out is None else out
    path = Path(config_dir) / MONITORS_FILE
    if not path.exists():
        print(_NO_MONITORS, file=out)
        return
    try:
        monitors = load_monitors(path)
    except OSError as exc:
        print(f"Error reading config file: {exc}", file=out)
        return
    except ValueError as exc:
        print(f"Error parsing config file: {exc}", file=out)
        return

    if not monitors:
        print(_NO_MONITORS, file=out)
        return

    print(f"Found {len(monitors)} monitored URLs:\n", file=out)

    for url in sorted(monitors):
        config = monitors[url]
        if group and config.group != group:
            continue
        if output_format == "json":
            print(json.dumps(config.to_dict(), indent=2, ensure_ascii=False), file=out)
            continue
        print(f"URL: {url}", file=out)
        print(f"  Interval: {config.interval}", file=out)
        if config.group:
            print(f"  Group: {config.group}", file=out)
        if config.headers:
            print(f"  Headers: {_show_map(config.headers)}", file=out)
        if config.ignore:
            print(f"  Ignore: {_show_list(config.ignore)}", file=out)
        if config.normalize_whitespace:
            print("  Normalize Whitespace: true", file=out)
        if config.ignore_timestamps:
            print("  Ignore Timestamps: true", file=out)
        if config.created_at:
            print(f"  Added: {config.created_at}", file=out)
        print(file=out)

    if not group:
        counts: dict[str, int] = {}
        for config in monitors.values():
            if config.group:
                counts[config.group] = counts.get(config.group, 0) + 1
        if counts:
            print("Groups:", file=out)
            for name in sorted(counts):
                print(f"  {name}: {counts[name]} URLs", file=out)


def run_version(out: TextIO | None = None) -> None:
    """Print version, build and platform information."""
    out = sys.stdout if out is None else out
    print(f"Hawkeye v{version.VERSION}", file=out)
    print(f"Build Date: {version.BUILD_DATE}", file=out)
    print(f"Git Commit: {version.GIT_COMMIT}", file=out)
    print(f"Python Version: {platform.python_version()}", file=out)
    print(f"OS/Arch: {platform.system().lower()}/{platform.machine().lower()}", file=out)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help="config file (default is $HOME/.hawkeye.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="enable verbose output",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with the watch, list and version commands."""
    common = argparse.ArgumentParser(add_help=False)
    _add_common(common)

    parser = argparse.ArgumentParser(
        prog="hawkeye",
        description=(
            "Hawkeye is a URL monitoring tool that helps you track changes in web "
            "content. Monitor multiple URLs simultaneously and get notified when "
            "content changes."
        ),
        parents=[common],
    )
    commands = parser.add_subparsers(dest="command", metavar="{watch,list,version}")

    watch = commands.add_parser(
        "watch",
        parents=[common],
        help="Monitor URLs for changes",
        description=(
            "Watch one or more URLs for changes and report when content changes. "
            "Example: hawkeye watch https://example.com --interval 5m"
        ),
    )
    watch.add_argument("urls", nargs="*", metavar="URL")
    watch.add_argument("-i", "--interval", default="5m", help="Check interval (e.g., 5m, 1h)")
    watch.add_argument("-t", "--timeout", default="30s", help="Request timeout")
    watch.add_argument("-f", "--format", default="text", help="Output format (text/json)")
    watch.add_argument(
        "-H", "--header", action="append", default=None, help="Custom HTTP headers (key:value)"
    )
    watch.add_argument(
        "-I", "--ignore", action="append", default=None, help="CSS selectors to ignore"
    )
    watch.add_argument("-o", "--output", default="", help="Output file")
    watch.add_argument("-g", "--group", default="", help="Group name for URLs")
    watch.add_argument("-r", "--retries", type=int, default=3, help="Number of retry attempts")
    watch.add_argument("-R", "--retry-interval", default="10s", help="Time between retries")
    watch.add_argument(
        "-n",
        "--normalize",
        action="store_true",
        help="Normalize whitespace to ignore insignificant changes",
    )
    watch.add_argument(
        "-T",
        "--ignore-timestamps",
        action="store_true",
        help="Ignore timestamps when comparing content",
    )
    watch.set_defaults(handler=_cmd_watch, command_parser=watch)

    listing = commands.add_parser(
        "list",
        parents=[common],
        help="List monitored URLs",
        description=(
            "List all URLs currently being monitored. Shows information about "
            "monitoring status, groups, and more."
        ),
    )
    listing.add_argument("-f", "--format", default="text", help="Output format (text/json)")
    listing.add_argument("-g", "--group", default="", help="Filter by group name")
    listing.set_defaults(handler=_cmd_list, command_parser=listing)

    show_version = commands.add_parser(
        "version",
        parents=[common],
        help="Show hawkeye version information",
        description="Display version information, including build date and git commit.",
    )
    show_version.set_defaults(handler=_cmd_version, command_parser=show_version)
    return parser


def _init_config(explicit: str) -> str | None:
    """Locate the config file in use and announce it when it exists."""
    if explicit:
        path = Path(explicit)
    else:
        try:
            home = Path.home()
        except RuntimeError as exc:
            print(exc)
            return None
        path = next((home / name for name in _CONFIG_NAMES if (home / name).is_file()), None)
        if path is None:
            return None
    if path.is_file():
        print("Using config file:", path)
    return str(path)


def _parse_flag(text: str, label: str) -> float | None:
    try:
        return parse_duration(text)
    except DurationError as exc:
        print(f"Invalid {label}: {exc}")
        return None


def _cmd_watch(args: argparse.Namespace, config_file: str | None) -> int:
    if not args.urls:
        print("Error: at least one URL is required")
        args.command_parser.print_help()
        return 1

    interval = _parse_flag(args.interval, "interval")
    if interval is None:
        return 1
    timeout = _parse_flag(args.timeout, "timeout")
    if timeout is None:
        return 1
    retry_interval = _parse_flag(args.retry_interval, "retry interval")
    if retry_interval is None:
        return 1

    headers = parse_headers(args.header or [])
    ignore = list(args.ignore or [])

    manager = Manager()
    for url in args.urls:
        config = Config(
            url=url,
            interval=interval,
            timeout=timeout,
            headers=headers,
            ignore_selectors=ignore,
            method=DetectionMethod.HASH,
            retry_count=args.retries,
            retry_interval=retry_interval,
            follow_redirects=True,
            normalize_whitespace=args.normalize,
            ignore_timestamps=args.ignore_timestamps,
        )
        try:
            manager.add_monitor_with_config(config)
        except MonitorError as exc:
            print(f"Error setting up monitor for {url}: {exc}")
            continue
        print(f"Monitoring {url} every {args.interval}")

    if args.group:
        try:
            manager.create_group(args.group, "Created via CLI")
        except MonitorError as exc:
            print(f"Error creating group '{args.group}': {exc}")
        else:
            for url in args.urls:
                try:
                    manager.add_to_group(url, args.group)
                except MonitorError as exc:
                    print(f"Error adding {url} to group '{args.group}': {exc}")
            print(f"Added URLs to group: {args.group}")

    try:
        save_monitors(
            get_config_dir(config_file),
            args.urls,
            headers,
            args.interval,
            args.group,
            ignore,
            args.normalize,
            args.ignore_timestamps,
        )
    except (OSError, RuntimeError) as exc:
        print(f"Warning: Failed to save monitor configuration: {exc}")

    changes = manager.start()
    print("Monitoring started. Press Ctrl+C to stop.")

    with contextlib.ExitStack() as stack:
        stack.callback(manager.stop)
        sink: TextIO = sys.stdout
        if args.output:
            try:
                sink = stack.enter_context(open(args.output, "w", encoding="utf-8"))
            except OSError as exc:
                print(f"Error creating output file: {exc}")
                return 1
            print(f"Writing output to file: {args.output}")

        for change in changes:
            text = format_change(change, args.format)
            if text:
                sink.write(text)
                sink.flush()
    return 0


def _cmd_list(args: argparse.Namespace, config_file: str | None) -> int:
    try:
        config_dir = get_config_dir(config_file)
    except (OSError, RuntimeError) as exc:
        print(f"Error getting config directory: {exc}")
        return 0
    run_list(config_dir, args.format, args.group)
    return 0


def _cmd_version(args: argparse.Namespace, config_file: str | None) -> int:
    run_version()
    return 0


def _interrupt(signum: int, frame: object) -> None:
    raise KeyboardInterrupt


@contextlib.contextmanager
def _terminate_as_interrupt():
    """Treat SIGTERM like Ctrl+C while a command runs in the main thread."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGTERM, _interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def main(argv: list[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    config_file = _init_config(getattr(args, "config", ""))

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0

    try:
        with _terminate_as_interrupt():
            return handler(args, config_file)
    except KeyboardInterrupt:
        print("\nShutting down...")
        return 0


if __name__ == "__main__":
    sys.exit(main())