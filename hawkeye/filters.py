"""Content filters applied to page bodies before comparison."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

_TEMPLATE = re.compile(rb"\$(?:\$|\{(\w+)\}|(\w+))")


class ContentFilter(ABC):
    """Transforms content before it is compared."""

    @abstractmethod
    def apply(self, content: bytes) -> bytes:
        """Return the filtered content."""

    @abstractmethod
    def description(self) -> str:
        """Return a human-readable description of the filter."""


def _expand(template: bytes, match: re.Match[bytes]) -> bytes:
    """Expand $1, $name and ${name} references; $$ yields a literal $."""

    def substitute(ref: re.Match[bytes]) -> bytes:
        if ref.group(0) == b"$$":
            return b"$"
        raw = ref.group(1) if ref.group(1) is not None else ref.group(2)
        name = raw.decode("ascii")
        key: int | str = int(name) if name.isdigit() else name
        try:
            value = match.group(key)
        except IndexError:
            return b""
        return value or b""

    return _TEMPLATE.sub(substitute, template)


class RegexFilter(ContentFilter):
    """Replaces every match of a regular expression."""

    def __init__(self, pattern: str, replacement: str, description: str) -> None:
        try:
            self.pattern = re.compile(pattern.encode("utf-8"))
        except re.error as exc:
            raise ValueError(f"invalid filter pattern {pattern!r}: {exc}") from exc
        self.replacement = replacement.encode("utf-8")
        self._description = description

    def apply(self, content: bytes) -> bytes:
        replacement = self.replacement
        if b"$" in replacement:
            return self.pattern.sub(lambda m: _expand(replacement, m), content)
        return self.pattern.sub(lambda _m: replacement, content)

    def description(self) -> str:
        return self._description


class ContentFilterList(list[ContentFilter]):
    """Filters applied one after another."""

    def apply(self, content: bytes) -> bytes:
        for content_filter in self:
            content = content_filter.apply(content)
        return content


def new_regex_filter(pattern: str, replacement: str, description: str) -> RegexFilter:
    """Create a regex filter; raises ValueError for an invalid pattern."""
    return RegexFilter(pattern, replacement, description)


def new_timestamp_filter() -> RegexFilter:
    """Create a filter that replaces common timestamp formats with TIMESTAMP."""
    pattern = (
        r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}([+-]\d{2}:?\d{2}|Z))|"
        r"(\d{4}\d{2}\d{2}\d{2}\d{2}[+-]\d{4})|"
        r"(\d{10,13})"
    )
    return new_regex_filter(pattern, "TIMESTAMP", "Ignore timestamps")


def new_date_filter() -> RegexFilter:
    """Create a filter that replaces common date formats with DATE."""
    pattern = r"\d{4}-\d{2}-\d{2}|\d{2}/\d{2}/\d{4}|\d{2}\.\d{2}\.\d{4}"
    return new_regex_filter(pattern, "DATE", "Ignore date strings")


def create_default_filters() -> ContentFilterList:
    """Return the standard timestamp and date filters."""
    return ContentFilterList([new_timestamp_filter(), new_date_filter()])