"""HTTP client configuration and request helpers."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field

import requests

from hawkeye import version


@dataclass
class ClientOptions:
    """Settings for an HttpClient. Timeout is in seconds; zero or less means none."""

    timeout: float = 30.0
    follow_redirects: bool = True
    headers: dict[str, str] = field(default_factory=dict)
    user_agent: str = field(default_factory=version.user_agent)


def default_client_options() -> ClientOptions:
    """Return the default client options."""
    return ClientOptions(
        timeout=30.0,
        follow_redirects=True,
        user_agent=version.user_agent(),
    )


def add_headers(
    request_headers: MutableMapping[str, str],
    headers: Mapping[str, str] | None,
    default_user_agent: str,
) -> MutableMapping[str, str]:
    """Set a User-Agent if none is present, then apply custom headers.

    Header names are matched case-insensitively. The mapping is updated in
    place and returned.
    """

    def _find(name: str) -> str | None:
        lowered = name.lower()
        return next((k for k in request_headers if k.lower() == lowered), None)

    existing = _find("User-Agent")
    if existing is None or not request_headers[existing]:
        if existing is not None:
            del request_headers[existing]
        request_headers["User-Agent"] = default_user_agent

    for key, value in (headers or {}).items():
        old = _find(key)
        if old is not None:
            del request_headers[old]
        request_headers[key] = value
    return request_headers


class HttpClient:
    """A thin HTTP client honouring timeout, redirect and header settings."""

    def __init__(self, options: ClientOptions | None = None) -> None:
        options = options if options is not None else default_client_options()
        self.options = options
        self.timeout: float | None = options.timeout if options.timeout > 0 else None
        self.follow_redirects = options.follow_redirects
        self.user_agent = options.user_agent or version.user_agent()
        self._session = requests.Session()

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> requests.Response:
        """Issue a GET request and return the response."""
        request_headers: dict[str, str] = {}
        merged = {**self.options.headers, **(headers or {})}
        add_headers(request_headers, merged, self.user_agent)
        return self._session.get(
            url,
            headers=request_headers,
            timeout=self.timeout,
            allow_redirects=self.follow_redirects,
        )

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def new_client(options: ClientOptions | None = None) -> HttpClient:
    """Create an HttpClient; None selects the default options."""
    return HttpClient(options)