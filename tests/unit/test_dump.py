"""
Unit tests for safe request and response dumps.
"""

import httpx
import pytest

from ghostman.errors import DumpError
from ghostman.http.client import Response
from ghostman.http.dump import buffer_body, dump_request, dump_response


def _streaming(chunks: list[bytes]) -> httpx.Request:
    return httpx.Request("POST", "https://example.com/upload?x=1", content=(chunk for chunk in chunks))


class TestDumpRequest:
    """Tests for dump_request()."""

    def test_without_body(self):
        request = httpx.Request("GET", "https://example.com/items?page=2", headers={"Accept": "*/*"})

        dump = dump_request(request)

        assert dump.startswith(b"GET /items?page=2 HTTP/1.1\r\n")
        assert b"Host: example.com\r\n" in dump
        assert b"Accept: */*\r\n" in dump
        assert dump.endswith(b"\r\n\r\n")

    @pytest.mark.parametrize("size", [0, 1, 70_000])
    def test_streamed_body_survives(self, size: int):
        payload = b"x" * size
        chunks = [payload[i:i + 4096] for i in range(0, size, 4096)]
        request = _streaming(chunks)

        dump = dump_request(request)

        assert dump.endswith(b"\r\n\r\n" + payload)
        # The request can still be sent with its full body
        assert request.read() == payload
        assert b"".join(request.stream) == payload

    def test_dump_is_repeatable(self):
        request = _streaming([b"abc", b"def"])

        assert dump_request(request) == dump_request(request)

    def test_consumed_stream(self):
        request = _streaming([b"abc"])
        list(request.stream)

        with pytest.raises(DumpError, match="dumping request safely"):
            dump_request(request)


class TestDumpResponse:
    """Tests for dump_response()."""

    def test_status_headers_body(self):
        response = httpx.Response(
            404,
            headers=[("Content-Type", "text/plain"), ("Set-Cookie", "a=1")],
            content=b"missing",
        )

        dump = dump_response(response)

        assert dump.startswith(b"HTTP/1.1 404 Not Found\r\n")
        assert b"Set-Cookie: a=1\r\n" in dump
        assert dump.endswith(b"\r\n\r\nmissing")
        assert response.content == b"missing"

    def test_accepts_wrapped_response(self):
        raw = httpx.Response(200, content=b"ok")
        response = Response.from_httpx(raw)

        assert dump_response(response).endswith(b"\r\n\r\nok")

    def test_closed_stream(self):
        response = httpx.Response(200, stream=httpx.ByteStream(b"never read"))
        response.close()

        with pytest.raises(DumpError) as exc_info:
            dump_response(response)

        assert exc_info.value.stage == "response"


def test_buffer_body_restores_stream():
    request = _streaming([b"one", b"two"])

    assert buffer_body(request) == b"onetwo"
    assert request.content == b"onetwo"
