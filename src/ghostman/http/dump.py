"""
Safe wire-format dumps of requests and responses.

A message body is a single-read stream. Before a dump inspects it, the body
is buffered into memory and the message is left holding a re-readable copy,
so the request can still be sent and the response can still be consumed.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
from typing import TYPE_CHECKING

import httpx

from ghostman.errors import DumpError
from ghostman.shared import bytes_buffer

if TYPE_CHECKING:
    from ghostman.http.client import Response

logger = logging.getLogger(__name__)

CRLF = b"\r\n"


def buffer_body(message: httpx.Request | httpx.Response) -> bytes:
    """Read the whole body and leave the message re-readable from the start.

    httpx keeps the drained bytes on the message and replays them on every
    later read, so this is the tee-and-restore step for both requests and
    responses. Raises DumpError naming the stage on failure.
    """
    stage = "request" if isinstance(message, httpx.Request) else "response"
    try:
        return message.read()
    except (httpx.StreamError, httpx.TransportError, OSError) as e:
        logger.debug(f"Could not buffer {stage} body: {e}")
        raise DumpError(stage, e) from e


def _write_headers(buf, headers: httpx.Headers) -> None:
    for name, value in headers.raw:
        buf.write(name + b": " + value + CRLF)
    buf.write(CRLF)


def dump_request(request: httpx.Request) -> bytes:
    """Request line, headers, blank line, body."""
    body = buffer_body(request)
    with bytes_buffer() as buf:
        buf.write(request.method.encode("ascii") + b" " + request.url.raw_path + b" HTTP/1.1" + CRLF)
        _write_headers(buf, request.headers)
        buf.write(body)
        return buf.getvalue()


def dump_response(response: "httpx.Response | Response") -> bytes:
    """Status line, headers, blank line, body."""
    raw = getattr(response, "raw", response)
    body = buffer_body(raw)
    with bytes_buffer() as buf:
        status = f"{raw.http_version} {raw.status_code} {raw.reason_phrase}".rstrip()
        buf.write(status.encode("ascii", "replace") + CRLF)
        _write_headers(buf, raw.headers)
        buf.write(body)
        return buf.getvalue()
