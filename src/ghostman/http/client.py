"""
HTTP client wrapper.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
import ssl
import time
from dataclasses import dataclass, field
from typing import BinaryIO

import httpx

from ghostman.config import ClientConfig
from ghostman.errors import SendError
from ghostman.http.cookie import Cookie, parse_set_cookie_headers

logger = logging.getLogger(__name__)


@dataclass
class Response:
    """HTTP response with its body fully buffered."""
    status_code: int
    status_text: str
    headers: httpx.Headers
    cookies: list[Cookie]
    body: bytes
    elapsed_ms: float
    raw: httpx.Response = field(repr=False)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status_code < 600

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def location(self) -> str | None:
        """Redirect target, which is never followed automatically."""
        return self.headers.get("location")

    @property
    def text(self) -> str:
        return self.raw.text

    def write_body_to(self, stream: BinaryIO) -> int:
        """Write the buffered body to ``stream``."""
        written = stream.write(self.body)
        if written is not None and written != len(self.body):
            raise OSError(f"wrote {written} bytes, expected {len(self.body)}")
        return len(self.body)

    @classmethod
    def from_httpx(cls, response: httpx.Response, elapsed_ms: float = 0.0) -> "Response":
        """Drain ``response`` and rebuild its cookies from Set-Cookie lines."""
        body = response.read()
        return cls(
            status_code=response.status_code,
            status_text=response.reason_phrase,
            headers=response.headers,
            cookies=parse_set_cookie_headers(response.headers.get_list("set-cookie")),
            body=body,
            elapsed_ms=elapsed_ms,
            raw=response,
        )


def create_ssl_context(config: ClientConfig) -> ssl.SSLContext:
    """TLS context bounded by the configured protocol versions."""
    context = httpx.create_ssl_context(verify=config.verify_ssl)
    context.minimum_version = getattr(ssl.TLSVersion, config.tls_min_version)
    context.maximum_version = getattr(ssl.TLSVersion, config.tls_max_version)
    return context


class HTTPClient:
    """Sends materialized requests.

    Redirects are never followed: a 3xx comes back as the response and the
    caller decides what to do with it. Build one per process and pass it to
    whatever sends.
    """

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self._client: httpx.Client | None = None

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.config.timeout, connect=self.config.connect_timeout)

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=self.timeout,
                verify=create_ssl_context(self.config),
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=self.config.max_keepalive_connections,
                    keepalive_expiry=self.config.keepalive_expiry,
                ),
                follow_redirects=False,
                trust_env=True,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def send(self, request: httpx.Request) -> Response:
        """Send ``request`` once and buffer the response.

        Transport failures (DNS, connect, TLS, timeout) raise SendError. A
        non-2xx status is not an error; check ``Response.is_success``.
        """
        # Client.send does not apply the client timeout on its own
        request.extensions.setdefault("timeout", self.timeout.as_dict())

        client = self._get_client()
        logger.debug(f"Sending {request.method} {request.url}")
        start_time = time.time()
        try:
            raw = client.send(request, follow_redirects=False)
        except httpx.TransportError as e:
            logger.debug(f"Send failed: {e!r}")
            raise SendError(request.method, str(request.url), e) from e

        elapsed_ms = (time.time() - start_time) * 1000
        try:
            response = Response.from_httpx(raw, elapsed_ms)
        except httpx.TransportError as e:
            raise SendError(request.method, str(request.url), e) from e
        finally:
            raw.close()

        logger.debug(
            f"{response.status_code} {response.status_text} "
            f"({len(response.body)} bytes, {elapsed_ms:.0f}ms)"
        )
        return response
