"""
Unit tests for request configuration and materialization.
"""

import json

import httpx
import pytest

from ghostman.errors import (
    ConfigurationError,
    InvalidMethodError,
    InvalidURLError,
)
from ghostman.http.body import FormBody, GenericBody, MultipartBody
from ghostman.http.cookie import Cookie
from ghostman.http.request import Flag, Options, RequestConfig, resolve_method, validate_url


class TestFlag:
    """Tests for three-state flags."""

    def test_unset_keeps_default(self):
        assert Flag.UNSET.resolve(True) is True
        assert Flag.UNSET.resolve(False) is False

    def test_set_overrides_default(self):
        assert Flag.ON.resolve(False) is True
        assert Flag.OFF.resolve(True) is False

    def test_from_bool(self):
        assert Flag.from_bool(None) is Flag.UNSET
        assert Flag.from_bool(True) is Flag.ON
        assert Flag.from_bool(False) is Flag.OFF


class TestOptions:
    """Tests for runtime options."""

    def test_defaults(self):
        options = Options()

        assert options.enabled("send_request") is True
        assert options.enabled("sanitize_headers") is True
        assert options.enabled("dump_request") is False

    def test_merge_only_applies_set_fields(self):
        base = Options(dump_request=Flag.ON, timeout=5.0)
        merged = base.merged(Options(send_request=Flag.OFF))

        assert merged.dump_request is Flag.ON
        assert merged.send_request is Flag.OFF
        assert merged.timeout == 5.0

    def test_from_dict(self):
        options = Options.from_dict({"dump_response": True, "sanitize_query": False, "timeout": 2})

        assert options.dump_response is Flag.ON
        assert options.sanitize_query is Flag.OFF
        assert options.verbose is Flag.UNSET
        assert options.timeout == 2.0

    @pytest.mark.parametrize(
        "data",
        [{"colour": True}, {"verbose": "yes"}, {"timeout": 0}, {"timeout": True}],
    )
    def test_from_dict_rejects(self, data: dict):
        with pytest.raises(ConfigurationError):
            Options.from_dict(data)


class TestValidation:
    """Tests for URL and method validation."""

    @pytest.mark.parametrize(
        "url",
        ["", "   ", "example.com/path", "ftp://example.com/", "http://", "http://example.com:port/"],
    )
    def test_invalid_urls(self, url: str):
        with pytest.raises(InvalidURLError):
            validate_url(url)

    def test_valid_url_is_trimmed(self):
        assert validate_url("  https://example.com/a ") == "https://example.com/a"

    def test_method_is_upper_cased(self):
        assert resolve_method(" post ") == "POST"
        assert resolve_method("M-SEARCH") == "M-SEARCH"

    @pytest.mark.parametrize("method", ["", "GET /", "GÉT", "PO$T"])
    def test_invalid_methods(self, method: str):
        with pytest.raises(InvalidMethodError):
            resolve_method(method)


class TestRequestConfig:
    """Tests for building and mutating a RequestConfig."""

    def test_query_is_moved_out_of_url(self):
        req = RequestConfig.new("https://example.com/items?page=2&tag=a&tag=b")

        assert req.url == "https://example.com/items"
        assert req.query_params == {"page": ["2"], "tag": ["a", "b"]}

    def test_blank_url_query_values_kept(self):
        req = RequestConfig.new("https://example.com/x?debug&q=")

        assert req.url == "https://example.com/x"
        assert req.query_params == {"debug": [""], "q": [""]}
        assert req.to_httpx().url.query == b"debug=&q="

    def test_sanitize_drops_empty_values(self):
        req = RequestConfig.new("https://example.com/")
        req.add_header("X-Empty", "  ", "")
        req.add_header("X-Token", " abc ")
        req.add_query_param("q", "")

        assert req.headers == {"X-Token": ["abc"]}
        assert req.query_params == {}

    def test_sanitize_off_keeps_values(self):
        options = Options(sanitize_headers=Flag.OFF, sanitize_query=Flag.OFF)
        req = RequestConfig.new("https://example.com/", options=options)
        req.add_header("X-Token", " abc ")
        req.add_query_param("q", "")

        assert req.headers == {"X-Token": [" abc "]}
        assert req.query_params == {"q": [""]}

    def test_zero_values_with_sanitize(self):
        req = RequestConfig.new("https://example.com/")
        req.add_header("X")
        req.add_query_param("q")

        assert req.headers == {}
        assert req.query_params == {}

    def test_zero_values_without_sanitize(self):
        options = Options(sanitize_headers=Flag.OFF, sanitize_query=Flag.OFF)
        req = RequestConfig.new("https://example.com/", options=options)
        req.add_header("X")
        req.add_query_param("q")

        assert req.headers == {"X": []}
        assert req.query_params == {"q": []}

    def test_sanitize_drops_empty_cookies(self):
        req = RequestConfig.new("https://example.com/")
        req.add_cookie("a", "1")
        req.add_cookie("b", " ")
        req.add_cookie(Cookie("", "x"))

        assert [c.name for c in req.cookies] == ["a"]

    def test_sanitize_off_keeps_cookies(self):
        req = RequestConfig.new("https://example.com/", options=Options(sanitize_cookies=Flag.OFF))
        req.add_cookie("b", "")

        assert [c.name for c in req.cookies] == ["b"]


class TestFromJSON:
    """Tests for decoding JSON request files."""

    def test_form_request(self, form_request_json: dict):
        req = RequestConfig.from_json(json.dumps(form_request_json))
        request = req.to_httpx()

        assert request.method == "POST"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert request.content == b"a=1&a=2"

    def test_full_request(self):
        req = RequestConfig.from_json(json.dumps({
            "method": "put",
            "url": "https://example.com/items?x=1",
            "query_params": {"y": ["2"]},
            "headers": {"Accept": ["application/json"]},
            "cookies": [{"name": "sid", "value": "abc", "expires": None}],
            "body": {"type": "content", "text": "{}"},
            "options": {"dump_request": True},
        }))

        assert req.method == "put"
        assert req.query_params == {"x": ["1"], "y": ["2"]}
        assert req.cookies == [Cookie("sid", "abc")]
        assert req.options.enabled("dump_request")
        assert isinstance(req.body, GenericBody)

    def test_unknown_field(self):
        with pytest.raises(ConfigurationError, match="unknown request field"):
            RequestConfig.from_json('{"url": "https://example.com/", "retries": 3}')

    def test_missing_url(self):
        with pytest.raises(InvalidURLError):
            RequestConfig.from_json('{"method": "GET"}')

    def test_not_json(self):
        with pytest.raises(ConfigurationError):
            RequestConfig.from_json("url: https://example.com/")

    def test_headers_must_be_lists(self):
        with pytest.raises(ConfigurationError):
            RequestConfig.from_json('{"url": "https://example.com/", "headers": {"Accept": "text/html"}}')

    def test_flat_switches(self):
        req = RequestConfig.from_json(json.dumps({
            "url": "https://example.com/",
            "should_send_request": False,
            "should_dump_request": True,
            "should_sanitize_query": False,
        }))

        assert req.options.send_request is Flag.OFF
        assert req.options.dump_request is Flag.ON
        assert req.options.sanitize_query is Flag.OFF
        assert req.options.dump_response is Flag.UNSET

    def test_flat_switch_over_options_block(self):
        req = RequestConfig.from_json(json.dumps({
            "url": "https://example.com/",
            "options": {"dump_response": False},
            "should_dump_response": True,
        }))

        assert req.options.dump_response is Flag.ON

    def test_flat_switch_must_be_bool(self):
        with pytest.raises(ConfigurationError):
            RequestConfig.from_json('{"url": "https://example.com/", "should_send_request": "no"}')

    def test_cookie_with_numeric_expiry(self):
        with pytest.raises(ConfigurationError):
            RequestConfig.from_json(json.dumps({
                "url": "https://example.com/",
                "cookies": [{"name": "sid", "value": "abc", "expires": 123}],
            }))


class TestMaterialization:
    """Tests for RequestConfig.to_httpx()."""

    def test_query_order_is_first_seen(self):
        req = RequestConfig.new("https://example.com/p?a=1&b=2")
        req.add_query_param("a", "3")
        req.add_query_param("c", "4")

        request = req.to_httpx()

        assert request.url.query == b"a=1&a=3&b=2&c=4"

    def test_headers_and_cookies(self):
        req = RequestConfig.new("https://example.com/")
        req.add_header("Accept", "application/json", "text/plain")
        req.add_cookie("a", "1")
        req.add_cookie("b", "2")

        request = req.to_httpx(user_agent="ghostman/test")

        assert request.headers.get_list("accept") == ["application/json", "text/plain"]
        assert request.headers["cookie"] == "a=1; b=2"
        assert request.headers["user-agent"] == "ghostman/test"

    def test_cookies_join_user_cookie_header(self):
        req = RequestConfig.new("https://example.com/")
        req.add_header("Cookie", "theme=dark")
        req.add_cookie("a", "1")

        assert req.to_httpx().headers.get_list("cookie") == ["theme=dark; a=1"]

    def test_non_ascii_header_value(self):
        req = RequestConfig.new("https://example.com/")
        req.add_header("X-Name", "José")

        request = req.to_httpx()

        assert dict(request.headers.raw)[b"X-Name"] == "José".encode("utf-8")

    def test_non_ascii_header_name(self):
        req = RequestConfig.new("https://example.com/")
        req.add_header("X-Näme", "a")

        with pytest.raises(ConfigurationError, match="must be ASCII"):
            req.to_httpx()

    def test_user_agent_not_replaced(self):
        req = RequestConfig.new("https://example.com/")
        req.add_header("User-Agent", "curl/8.0")

        assert req.to_httpx(user_agent="ghostman/test").headers["user-agent"] == "curl/8.0"

    def test_body_content_type_overrides_header(self):
        req = RequestConfig.new("https://example.com/", method="POST")
        req.add_header("Content-Type", "text/plain")
        req.set_body(FormBody.from_mapping({"a": ["1"]}))

        request = req.to_httpx()

        assert request.headers.get_list("content-type") == ["application/x-www-form-urlencoded"]

    def test_content_type_kept_without_body(self):
        req = RequestConfig.new("https://example.com/")
        req.add_header("Content-Type", "text/plain")

        assert req.to_httpx().headers["content-type"] == "text/plain"

    def test_empty_form_is_still_a_body(self):
        req = RequestConfig.new("https://example.com/", method="POST")
        req.set_body(FormBody())

        request = req.to_httpx()

        assert request.content == b""
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"

    def test_idempotent(self):
        req = RequestConfig.new("https://example.com/upload?x=1", method="post")
        req.add_header("Accept", "*/*")
        body = MultipartBody()
        body.add_text_field("name", "bob")
        req.set_body(body)

        first, second = req.to_httpx(), req.to_httpx()

        assert first.method == second.method == "POST"
        assert first.url == second.url
        assert first.headers.raw == second.headers.raw
        assert first.content == second.content

    def test_invalid_method(self):
        req = RequestConfig.new("https://example.com/")
        req.method = "BAD METHOD"

        with pytest.raises(InvalidMethodError):
            req.to_httpx()

    def test_timeout_extension(self):
        req = RequestConfig.new("https://example.com/", options=Options(timeout=5.0))

        timeout = req.to_httpx().extensions["timeout"]

        assert timeout == httpx.Timeout(5.0).as_dict()

    def test_no_timeout_extension_by_default(self):
        assert "timeout" not in RequestConfig.new("https://example.com/").to_httpx().extensions
