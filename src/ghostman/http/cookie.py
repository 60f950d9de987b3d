"""
HTTP cookie model.

Please, see the MDN Web Docs for the attribute reference:
https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/Set-Cookie

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from enum import Enum
from typing import Any

from ghostman.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SameSite(str, Enum):
    """SameSite policy. DEFAULT means the attribute was not given."""

    DEFAULT = ""
    LAX = "Lax"
    STRICT = "Strict"
    NONE = "None"

    @classmethod
    def from_string(cls, value: str) -> "SameSite":
        """Inverse of ``.value``. Unknown names raise ValueError."""
        return cls(value)

    @classmethod
    def from_attribute(cls, value: str) -> "SameSite":
        """Lenient, case-insensitive lookup used for Set-Cookie lines."""
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        return cls.DEFAULT


def format_expires(value: datetime | None) -> str | None:
    """RFC 1123 in GMT, or None for an absent expiry."""
    if value is None:
        return None
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def parse_expires(value: str | None) -> datetime | None:
    """Inverse of format_expires."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"cookie expiry must be a string or null, got {value!r}")
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid cookie expiry {value!r}: {e}") from e
    if parsed is None:
        raise ConfigurationError(f"invalid cookie expiry {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


COOKIE_FIELDS = (
    "name", "value", "domain", "expires", "http_only", "max_age",
    "partitioned", "path", "same_site", "secure",
)


@dataclass
class Cookie:
    """A single HTTP cookie with its full attribute set.

    Only ``name`` and ``value`` are sent on a request; the other attributes
    are kept so cookies read from Set-Cookie lines or JSON files survive a
    round trip.
    """

    name: str
    value: str
    domain: str = ""
    expires: datetime | None = None
    http_only: bool = False
    max_age: int | None = None  # zero and negative values are meaningful
    partitioned: bool = False
    path: str = ""
    same_site: SameSite = SameSite.DEFAULT
    secure: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.same_site, str) and not isinstance(self.same_site, SameSite):
            self.same_site = SameSite.from_string(self.same_site)
        if self.expires is not None:
            # Wire format has second precision in GMT
            expires = self.expires
            if expires.tzinfo is None:
                expires = expires.replace(tzinfo=timezone.utc)
            self.expires = expires.astimezone(timezone.utc).replace(microsecond=0)

    def to_pair(self) -> str:
        """name=value as sent in a Cookie request header."""
        return f"{self.name}={self.value}"

    def to_dict(self) -> dict[str, Any]:
        """JSON form. Unset attributes are omitted; expiry is always present."""
        data: dict[str, Any] = {"name": self.name, "value": self.value}
        if self.domain:
            data["domain"] = self.domain
        data["expires"] = format_expires(self.expires)
        if self.http_only:
            data["http_only"] = True
        if self.max_age is not None:
            data["max_age"] = self.max_age
        if self.partitioned:
            data["partitioned"] = True
        if self.path:
            data["path"] = self.path
        if self.same_site is not SameSite.DEFAULT:
            data["same_site"] = self.same_site.value
        if self.secure:
            data["secure"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Cookie":
        """Strict inverse of to_dict."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"cookie must be an object, got {type(data).__name__}")
        unknown = set(data) - set(COOKIE_FIELDS)
        if unknown:
            raise ConfigurationError(f"unknown cookie field(s): {', '.join(sorted(unknown))}")
        if not isinstance(data.get("name"), str) or not isinstance(data.get("value", ""), str):
            raise ConfigurationError("cookie name and value must be strings")

        max_age = data.get("max_age")
        if max_age is not None and (isinstance(max_age, bool) or not isinstance(max_age, int)):
            raise ConfigurationError(f"cookie max_age must be an integer, got {max_age!r}")
        for key in ("domain", "path"):
            if not isinstance(data.get(key, ""), str):
                raise ConfigurationError(f"cookie {key} must be a string, got {data[key]!r}")
        for key in ("http_only", "partitioned", "secure"):
            if not isinstance(data.get(key, False), bool):
                raise ConfigurationError(f"cookie {key} must be a boolean, got {data[key]!r}")

        try:
            same_site = SameSite.from_string(data.get("same_site", ""))
        except (TypeError, ValueError):
            raise ConfigurationError(f"unknown same_site value {data.get('same_site')!r}") from None

        return cls(
            name=data["name"],
            value=data.get("value", ""),
            domain=data.get("domain", ""),
            expires=parse_expires(data.get("expires")),
            http_only=data.get("http_only", False),
            max_age=max_age,
            partitioned=data.get("partitioned", False),
            path=data.get("path", ""),
            same_site=same_site,
            secure=data.get("secure", False),
        )

    def to_set_cookie(self) -> str:
        """Set-Cookie header value."""
        parts = [self.to_pair()]
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.expires is not None:
            parts.append(f"Expires={format_expires(self.expires)}")
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.http_only:
            parts.append("HttpOnly")
        if self.secure:
            parts.append("Secure")
        if self.same_site is not SameSite.DEFAULT:
            parts.append(f"SameSite={self.same_site.value}")
        if self.partitioned:
            parts.append("Partitioned")
        return "; ".join(parts)

    @classmethod
    def from_set_cookie(cls, line: str) -> "Cookie | None":
        """Parse a Set-Cookie header value.

        Returns None when the line has no name=value pair. Malformed
        attributes are skipped, as browsers do.
        """
        pair, *attributes = line.split(";")
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            logger.debug(f"Ignoring Set-Cookie without name=value: {line!r}")
            return None

        cookie = cls(name=name, value=value.strip().strip('"'))
        for attribute in attributes:
            key, _, attr_value = attribute.partition("=")
            key = key.strip().lower()
            attr_value = attr_value.strip()

            if key == "domain":
                cookie.domain = attr_value.lstrip(".").lower()
            elif key == "path":
                cookie.path = attr_value
            elif key == "expires":
                try:
                    cookie.expires = parse_expires(attr_value)
                except ConfigurationError:
                    logger.debug(f"Ignoring bad Expires in Set-Cookie: {attr_value!r}")
            elif key == "max-age":
                try:
                    cookie.max_age = int(attr_value)
                except ValueError:
                    logger.debug(f"Ignoring bad Max-Age in Set-Cookie: {attr_value!r}")
            elif key == "httponly":
                cookie.http_only = True
            elif key == "secure":
                cookie.secure = True
            elif key == "samesite":
                cookie.same_site = SameSite.from_attribute(attr_value)
            elif key == "partitioned":
                cookie.partitioned = True
        return cookie


def parse_set_cookie_headers(lines: list[str]) -> list[Cookie]:
    """Cookies from every Set-Cookie value, skipping unparseable ones."""
    cookies = []
    for line in lines:
        cookie = Cookie.from_set_cookie(line)
        if cookie is not None:
            cookies.append(cookie)
    return cookies
