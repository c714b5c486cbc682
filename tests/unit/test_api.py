"""Unit tests for the public conversion API."""

import httpx
import pytest

from getmd import ConversionResult, FormattingOptions, convert, convert_html, convert_url, html_to_markdown, parse_html
from getmd.exceptions import ConversionError, FetchError


@pytest.mark.unit
class TestParseHtml:
    def test_str_and_bytes(self):
        assert parse_html("<p>x</p>").p.get_text() == "x"
        assert parse_html("<p>café</p>".encode("utf-8")).p.get_text() == "café"

    def test_declared_encoding(self):
        tree = parse_html("<p>café</p>".encode("latin-1"), from_encoding="latin-1")
        assert tree.p.get_text() == "café"

    def test_rejects_other_types(self):
        with pytest.raises(ConversionError) as exc_info:
            parse_html(42)  # type: ignore[arg-type]
        assert exc_info.value.conversion_stage == "html_parsing"


@pytest.mark.unit
class TestConvert:
    def test_convert_tree(self):
        tree = parse_html("<h2>Title</h2><p>Body</p>")
        assert convert(tree) == "Title\n\nBody"
        assert convert(tree, FormattingOptions(preserve_headings=True)) == "## Title\n\nBody"

    def test_html_to_markdown(self):
        options = FormattingOptions(include_links=True)
        assert html_to_markdown('<a href="https://a.io">https://a.io</a>', options) == "<https://a.io>"

    def test_convert_element_subtree(self):
        tree = parse_html("<div><p>skip</p><section id='s'><em>kept</em></section></div>")
        assert convert(tree.find(id="s")) == "*kept*"

    def test_sizes_are_utf8_bytes(self):
        html = "<p>été</p>"
        result = convert_html(html)
        assert result.markdown == "été"
        assert result.original_size == len(html.encode("utf-8"))
        assert result.converted_size == 5

    def test_result_envelope(self):
        result = convert_html(b"<p>x</p>")
        assert result.to_dict() == {"markdown": "x", "original_size": 8, "converted_size": 1}

    def test_metadata_is_returned(self):
        html = '<meta property="article:tag" content="a"><p>x</p>'
        result = convert_html(html, FormattingOptions(include_metadata=True))
        assert result.metadata.tags == ["a"]


@pytest.mark.unit
class TestConvertUrl:
    def test_fetch_then_convert(self):
        body = "<h1>Title</h1><p>café</p>".encode("latin-1")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body, headers={"Content-Type": "text/html; charset=latin-1"})

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            result = convert_url("https://example.com", FormattingOptions(preserve_headings=True), client=client)

        assert isinstance(result, ConversionResult)
        assert result.markdown == "# Title\n\ncafé"
        assert result.original_size == len(body)

    def test_failed_fetch_produces_no_result(self):
        from getmd.fetch import FetchOptions

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(FetchError):
                convert_url(
                    "https://example.com",
                    fetch_options=FetchOptions(max_retries=1, backoff_factor=0.0),
                    client=client,
                )
