"""
Request configuration and materialization.

A RequestConfig holds everything needed to build one outbound request:
method, URL, query parameters, headers, cookies, an optional body and the
runtime options. ``to_httpx()`` turns it into an ``httpx.Request``.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any
from urllib.parse import parse_qsl, urlsplit, urlunsplit

import httpx

from ghostman.errors import (
    ConfigurationError,
    InvalidMethodError,
    InvalidURLError,
)
from ghostman.http.body import Body, body_from_dict
from ghostman.http.cookie import Cookie

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "GET"


class Flag(str, Enum):
    """Three-state boolean: a flag that was never set keeps its default."""

    UNSET = "unset"
    ON = "on"
    OFF = "off"

    @classmethod
    def from_bool(cls, value: bool | None) -> "Flag":
        if value is None:
            return cls.UNSET
        return cls.ON if value else cls.OFF

    @property
    def is_set(self) -> bool:
        return self is not Flag.UNSET

    def resolve(self, default: bool) -> bool:
        if self is Flag.UNSET:
            return default
        return self is Flag.ON


OPTION_DEFAULTS = {
    "verbose": False,
    "send_request": True,
    "dump_request": False,
    "dump_response": False,
    "sanitize_query": True,
    "sanitize_headers": True,
    "sanitize_cookies": True,
}


@dataclass
class Options:
    """Runtime options."""

    verbose: Flag = Flag.UNSET
    send_request: Flag = Flag.UNSET
    dump_request: Flag = Flag.UNSET
    dump_response: Flag = Flag.UNSET
    sanitize_query: Flag = Flag.UNSET
    sanitize_headers: Flag = Flag.UNSET
    sanitize_cookies: Flag = Flag.UNSET
    timeout: float | None = None  # seconds

    def enabled(self, name: str) -> bool:
        """Resolved value of a boolean option."""
        return getattr(self, name).resolve(OPTION_DEFAULTS[name])

    def merged(self, overrides: "Options") -> "Options":
        """Copy with every option that ``overrides`` sets applied."""
        changes: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(overrides, f.name)
            if isinstance(value, Flag):
                if value.is_set:
                    changes[f.name] = value
            elif value is not None:
                changes[f.name] = value
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Any) -> "Options":
        if not isinstance(data, dict):
            raise ConfigurationError("options must be an object")
        known = set(OPTION_DEFAULTS) | {"timeout"}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"unknown option(s): {', '.join(sorted(unknown))}")

        options = cls()
        for name in OPTION_DEFAULTS:
            value = data.get(name)
            if value is not None and not isinstance(value, bool):
                raise ConfigurationError(f"option {name!r} must be a boolean")
            setattr(options, name, Flag.from_bool(value))

        timeout = data.get("timeout")
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigurationError(f"timeout must be a positive number, got {timeout!r}")
            options.timeout = float(timeout)
        return options


def validate_url(url: str) -> str:
    """Require an absolute http(s) URL with a host."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError(str(url), "empty")
    url = url.strip()
    try:
        parts = urlsplit(url)
        parts.port  # raises on a non-numeric port
    except ValueError as e:
        raise InvalidURLError(url, str(e)) from e
    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parts.hostname:
        raise InvalidURLError(url, "missing host")
    return url


def split_query(url: str) -> tuple[str, list[tuple[str, str]]]:
    """URL without its query string, and the query as ordered pairs."""
    parts = urlsplit(url)
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    stripped = urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))
    return stripped, pairs


def resolve_method(method: str) -> str:
    resolved = (method or "").strip().upper()
    if not resolved or not resolved.isascii() or not resolved.replace("-", "").isalnum():
        raise InvalidMethodError(method)
    return resolved


def _clean(values: tuple[str, ...] | list[str], sanitize: bool) -> list[str]:
    if not sanitize:
        return list(values)
    return [v.strip() for v in values if v.strip()]


def _encode_headers(pairs: list[tuple[str, str]]) -> list[tuple[bytes, bytes]]:
    """Header names must be ASCII; values go out as UTF-8 bytes."""
    encoded = []
    for key, value in pairs:
        try:
            name = key.encode("ascii")
        except UnicodeEncodeError as e:
            raise ConfigurationError(f"header name {key!r} must be ASCII") from e
        encoded.append((name, value.encode("utf-8")))
    return encoded


REQUEST_FIELDS = {"method", "url", "query_params", "headers", "cookies", "body", "options"}

# Top-level runtime switches, as older request files spell them
FLAT_OPTION_FIELDS = {
    "should_send_request": "send_request",
    "should_dump_request": "dump_request",
    "should_dump_response": "dump_response",
    "should_sanitize_query": "sanitize_query",
    "should_sanitize_headers": "sanitize_headers",
    "should_sanitize_cookies": "sanitize_cookies",
}


@dataclass
class RequestConfig:
    """Everything needed to build one outbound request."""

    url: str
    method: str = DEFAULT_METHOD
    query_params: dict[str, list[str]] = field(default_factory=dict)
    headers: dict[str, list[str]] = field(default_factory=dict)
    cookies: list[Cookie] = field(default_factory=list)
    body: Body | None = None
    options: Options = field(default_factory=Options)

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def new(cls, url: str, method: str = DEFAULT_METHOD, options: Options | None = None) -> "RequestConfig":
        """Validate ``url`` and move its query string into ``query_params``."""
        url = validate_url(url)
        stripped, pairs = split_query(url)
        req = cls(url=stripped, method=method or DEFAULT_METHOD, options=options or Options())
        # URL query is kept as written
        for key, value in pairs:
            req.query_params.setdefault(key, []).append(value)
        return req

    @classmethod
    def from_json(cls, data: bytes | str) -> "RequestConfig":
        """Strictly decode a JSON request file. Unknown fields are errors."""
        try:
            raw = json.loads(data)
        except ValueError as e:
            raise ConfigurationError(f"invalid JSON request: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError("JSON request must be an object")
        unknown = set(raw) - REQUEST_FIELDS - set(FLAT_OPTION_FIELDS)
        if unknown:
            raise ConfigurationError(f"unknown request field(s): {', '.join(sorted(unknown))}")
        if "url" not in raw:
            raise InvalidURLError("", "missing url")

        method = raw.get("method") or DEFAULT_METHOD
        if not isinstance(method, str):
            raise InvalidMethodError(str(method))
        options = Options.from_dict(raw.get("options") or {})
        flat = {FLAT_OPTION_FIELDS[key]: value for key, value in raw.items() if key in FLAT_OPTION_FIELDS}
        options = options.merged(Options.from_dict(flat))
        req = cls.new(raw["url"], method=method, options=options)

        for attr, adder in (("query_params", req.add_query_param), ("headers", req.add_header)):
            mapping = raw.get(attr) or {}
            if not isinstance(mapping, dict) or not all(
                isinstance(v, list) and all(isinstance(i, str) for i in v)
                for v in mapping.values()
            ):
                raise ConfigurationError(f"{attr} must map names to lists of strings")
            for key, values in mapping.items():
                adder(key, *values)

        cookies = raw.get("cookies") or []
        if not isinstance(cookies, list):
            raise ConfigurationError("cookies must be an array")
        for item in cookies:
            req.add_cookie(Cookie.from_dict(item))

        if raw.get("body") is not None:
            req.set_body(body_from_dict(raw["body"]))
        return req

    # =========================================================================
    # Mutation
    # =========================================================================

    def add_query_param(self, key: str, *values: str) -> None:
        sanitize = self.options.enabled("sanitize_query")
        cleaned = _clean(values, sanitize)
        if sanitize and (not key.strip() or not cleaned):
            logger.debug(f"Dropping empty query parameter {key!r}")
            return
        self.query_params.setdefault(key, []).extend(cleaned)

    def add_header(self, key: str, *values: str) -> None:
        sanitize = self.options.enabled("sanitize_headers")
        cleaned = _clean(values, sanitize)
        if sanitize and (not key.strip() or not cleaned):
            logger.debug(f"Dropping empty header {key!r}")
            return
        self.headers.setdefault(key, []).extend(cleaned)

    def add_cookie(self, cookie: Cookie | str, value: str | None = None) -> None:
        """Add a Cookie, or a name and value."""
        if not isinstance(cookie, Cookie):
            cookie = Cookie(name=cookie, value=value if value is not None else "")
        if self.options.enabled("sanitize_cookies") and not self._cookie_ok(cookie):
            logger.debug(f"Dropping empty cookie {cookie.name!r}")
            return
        self.cookies.append(cookie)

    @staticmethod
    def _cookie_ok(cookie: Cookie) -> bool:
        return bool(cookie.name.strip()) and bool(cookie.value.strip())

    def set_body(self, body: Body | None) -> None:
        self.body = body

    @property
    def has_body(self) -> bool:
        return self.body is not None

    # =========================================================================
    # Materialization
    # =========================================================================

    def _query_pairs(self) -> list[tuple[str, str]]:
        # Values were sanitized when added
        _, pairs = split_query(self.url)
        for key, values in self.query_params.items():
            pairs.extend((key, v) for v in values)
        return pairs

    def _header_pairs(self, user_agent: str | None) -> list[tuple[str, str]]:
        sanitize = self.options.enabled("sanitize_headers")
        pairs: list[tuple[str, str]] = []
        for key, values in self.headers.items():
            if self.has_body and key.strip().lower() == "content-type":
                logger.debug("Body present, ignoring user-supplied Content-Type")
                continue
            for value in _clean(values, sanitize):
                pairs.append((key.strip(), value))

        cookies = self.cookies
        if self.options.enabled("sanitize_cookies"):
            cookies = [c for c in cookies if self._cookie_ok(c)]
        if cookies:
            line = "; ".join(c.to_pair() for c in cookies)
            for i, (key, value) in enumerate(pairs):
                if key.lower() == "cookie":
                    pairs[i] = (key, f"{value}; {line}")
                    break
            else:
                pairs.append(("Cookie", line))

        if user_agent and not any(k.lower() == "user-agent" for k, _ in pairs):
            pairs.append(("User-Agent", user_agent))

        # Set last so no user header can replace it
        if self.body is not None:
            pairs.append(("Content-Type", self.body.content_type))
        return pairs

    def to_httpx(self, user_agent: str | None = None) -> httpx.Request:
        """Build the transport request.

        Raises InvalidMethodError, InvalidURLError, or whatever the body
        raises while being read; nothing partial is returned.
        """
        method = resolve_method(self.method)
        url = validate_url(self.url)

        content = None
        if self.body is not None:
            content = self.body.reader().read()

        try:
            target = httpx.URL(url, params=self._query_pairs())
        except httpx.InvalidURL as e:
            raise InvalidURLError(url, str(e)) from e

        extensions = {}
        if self.options.timeout is not None:
            extensions["timeout"] = httpx.Timeout(self.options.timeout).as_dict()

        request = httpx.Request(
            method,
            target,
            headers=_encode_headers(self._header_pairs(user_agent)),
            content=content,
            extensions=extensions,
        )
        logger.debug(f"Materialized {method} {target} ({len(content or b'')} body bytes)")
        return request
