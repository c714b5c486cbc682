"""Unit tests for the conversion endpoint request handling."""

import json

import pytest

from getmd.api import ConversionResult
from getmd.exceptions import BotDetectedError, FetchError, ValidationError
from getmd.options import FormattingOptions
from getmd.server import (
    handle_convert_request,
    handle_options,
    method_not_allowed,
    parse_convert_request,
)


class FakeFetcher:
    """Return canned Markdown, or raise, without touching the network."""

    def __init__(self, markdown="# Hello", error=None):
        self.markdown = markdown
        self.error = error
        self.calls = []

    def __call__(self, url, options):
        self.calls.append((url, options))
        if self.error is not None:
            raise self.error
        return ConversionResult(markdown=self.markdown, original_size=100, converted_size=len(self.markdown))


def body(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")


def assert_cors(response):
    assert response.header("Access-Control-Allow-Origin") == "*"
    assert response.header("Access-Control-Allow-Methods") == "POST, OPTIONS"
    assert response.header("Access-Control-Allow-Headers") == "Content-Type"


@pytest.mark.unit
class TestParseConvertRequest:
    def test_config_object(self):
        request = parse_convert_request(
            body({"url": " https://a.io ", "config": {"include_links": True, "cleaning_rules": {"remove_scripts": True}}})
        )
        assert request.url == "https://a.io"
        assert request.options.include_links is True
        assert request.options.cleaning_rules.remove_scripts is True
        assert request.response_format == "markdown"

    def test_flat_options_without_config(self):
        request = parse_convert_request(body({"url": "https://a.io", "include_links": True, "clean_whitespace": True}))
        assert request.options == FormattingOptions(include_links=True, clean_whitespace=True)

    @pytest.mark.parametrize(
        "raw",
        [
            b"not json",
            b"\xff\xfe",
            body(["https://a.io"]),
            body({"config": {}}),
            body({"url": 3}),
            body({"url": "https://a.io", "format": "xml"}),
            body({"url": "https://a.io", "config": {"max_heading_level": 12}}),
        ],
    )
    def test_invalid(self, raw):
        with pytest.raises(ValidationError):
            parse_convert_request(raw)


@pytest.mark.unit
class TestHandleConvertRequest:
    def test_markdown_response(self):
        fetcher = FakeFetcher()
        payload = body({"url": "https://a.io", "config": {"preserve_headings": True}})
        response = handle_convert_request(payload, "", fetcher)
        assert response.status == 200
        assert response.header("Content-Type") == "text/markdown; charset=utf-8"
        assert response.body == b"# Hello"
        assert_cors(response)
        url, options = fetcher.calls[0]
        assert url == "https://a.io"
        assert options.preserve_headings is True

    def test_json_envelope_by_format(self):
        response = handle_convert_request(body({"url": "https://a.io", "format": "json"}), "", FakeFetcher())
        assert response.status == 200
        assert response.header("Content-Type") == "application/json"
        assert json.loads(response.body) == {"markdown": "# Hello", "original_size": 100, "converted_size": 7}

    def test_json_envelope_by_accept(self):
        response = handle_convert_request(body({"url": "https://a.io"}), "application/json", FakeFetcher())
        assert json.loads(response.body)["markdown"] == "# Hello"

    def test_malformed_body(self):
        fetcher = FakeFetcher()
        response = handle_convert_request(b"{", "", fetcher)
        assert response.status == 400
        assert response.body == b"Invalid JSON body"
        assert_cors(response)
        assert fetcher.calls == []

    def test_error_as_json(self):
        response = handle_convert_request(body({"format": "json"}), "", FakeFetcher())
        assert response.status == 400
        assert "url" in json.loads(response.body)["error"]

    def test_invalid_url_is_client_error(self):
        fetcher = FakeFetcher(error=ValidationError("Unsupported URL scheme: ftp"))
        response = handle_convert_request(body({"url": "ftp://a.io"}), "", fetcher)
        assert response.status == 400

    @pytest.mark.parametrize(
        "error", [FetchError("HTTP 404 for https://a.io", status_code=404), BotDetectedError("Bot challenge detected")]
    )
    def test_fetch_failure_is_server_error(self, error):
        response = handle_convert_request(body({"url": "https://a.io"}), "", FakeFetcher(error=error))
        assert response.status == 500
        assert response.body.decode("utf-8").startswith("Conversion failed: ")
        assert_cors(response)

    def test_unexpected_error_is_server_error(self):
        response = handle_convert_request(body({"url": "https://a.io"}), "", FakeFetcher(error=RuntimeError("boom")))
        assert response.status == 500
        assert response.body == b"Conversion failed: boom"


@pytest.mark.unit
class TestOtherMethods:
    def test_preflight(self):
        response = handle_options()
        assert response.status == 204
        assert response.body == b""
        assert_cors(response)

    def test_method_not_allowed(self):
        response = method_not_allowed()
        assert response.status == 405
        assert response.header("Allow") == "POST, OPTIONS"
        assert_cors(response)
