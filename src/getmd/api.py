"""The major exported API functions for HTML to Markdown conversion."""

#  Copyright (c) 2025 Tom Villani, Ph.D.
# src/getmd/api.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Union

import httpx
from bs4 import BeautifulSoup
from bs4.element import Tag

from getmd.converter import MarkdownConverter
from getmd.exceptions import ConversionError
from getmd.fetch import FetchOptions, fetch_html
from getmd.metadata import DocumentMetadata
from getmd.options import FormattingOptions

logger = logging.getLogger(__name__)

HtmlInput = Union[str, bytes]


@dataclass
class ConversionResult:
    """Converted Markdown together with size statistics.

    Parameters
    ----------
    markdown : str
        The converted text.
    original_size : int
        Size of the raw HTML in bytes.
    converted_size : int
        Size of the Markdown in UTF-8 bytes.
    metadata : DocumentMetadata
        Metadata collected during conversion (empty unless
        ``include_metadata`` was set).

    """

    markdown: str
    original_size: int
    converted_size: int
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON envelope served by the HTTP endpoint."""
        return {
            "markdown": self.markdown,
            "original_size": self.original_size,
            "converted_size": self.converted_size,
        }


def parse_html(html: HtmlInput, from_encoding: str | None = None) -> BeautifulSoup:
    """Parse raw HTML into a document tree.

    Duplicate attributes keep their first value.

    Parameters
    ----------
    html : str or bytes
        Raw HTML. Bytes are decoded by BeautifulSoup, using ``from_encoding``
        when given and sniffing otherwise.
    from_encoding : str, optional
        Declared encoding of byte input (e.g. from a Content-Type header).

    Returns
    -------
    BeautifulSoup
        The parsed document.

    Raises
    ------
    ConversionError
        If the input is not str/bytes or the parser fails.

    """
    if not isinstance(html, (str, bytes)):
        raise ConversionError(
            f"HTML input must be str or bytes, got {type(html).__name__}", conversion_stage="html_parsing"
        )

    kwargs: dict[str, Any] = {"on_duplicate_attribute": "ignore"}
    if isinstance(html, bytes) and from_encoding:
        kwargs["from_encoding"] = from_encoding

    try:
        return BeautifulSoup(html, "html.parser", **kwargs)
    except Exception as e:
        raise ConversionError(
            f"Failed to parse HTML: {e}", conversion_stage="html_parsing", original_error=e
        ) from e


def convert(tree: Tag, options: FormattingOptions | None = None) -> str:
    """Convert a parsed document tree to Markdown.

    The tree is not modified and may be converted again with other options.

    Parameters
    ----------
    tree : Tag
        Parsed document (usually a ``BeautifulSoup`` object) or any element.
    options : FormattingOptions or None, default None
        Formatting options. If None, uses defaults.

    Returns
    -------
    str
        Markdown text.

    """
    return MarkdownConverter(options).convert(tree)


def html_to_markdown(html: HtmlInput, options: FormattingOptions | None = None) -> str:
    """Parse raw HTML and convert it to Markdown.

    Examples
    --------
    >>> html_to_markdown("<h2>Title</h2><p>Body</p>", FormattingOptions(preserve_headings=True))
    '## Title\\n\\nBody'

    """
    return convert(parse_html(html), options)


def convert_html(
    html: HtmlInput, options: FormattingOptions | None = None, encoding: str | None = None
) -> ConversionResult:
    """Convert raw HTML and report size statistics.

    Parameters
    ----------
    html : str or bytes
        Raw HTML.
    options : FormattingOptions or None, default None
        Formatting options. If None, uses defaults.
    encoding : str, optional
        Declared encoding of byte input.

    Returns
    -------
    ConversionResult
        Markdown with ``original_size`` (bytes of raw HTML) and
        ``converted_size`` (UTF-8 bytes of the Markdown).

    """
    tree = parse_html(html, from_encoding=encoding)
    markdown, metadata = MarkdownConverter(options).convert_with_metadata(tree)

    original_size = len(html) if isinstance(html, bytes) else len(html.encode("utf-8"))
    result = ConversionResult(
        markdown=markdown,
        original_size=original_size,
        converted_size=len(markdown.encode("utf-8")),
        metadata=metadata,
    )
    logger.debug(f"Converted {result.original_size} bytes of HTML to {result.converted_size} bytes of Markdown")
    return result


def convert_url(
    url: str,
    options: FormattingOptions | None = None,
    fetch_options: FetchOptions | None = None,
    client: httpx.Client | None = None,
) -> ConversionResult:
    """Fetch a document and convert it.

    Conversion only starts once the whole body has been retrieved; a failed
    fetch produces no output.

    Parameters
    ----------
    url : str
        Absolute http(s) URL.
    options : FormattingOptions or None, default None
        Formatting options. If None, uses defaults.
    fetch_options : FetchOptions or None, default None
        Network settings. If None, uses defaults.
    client : httpx.Client or None, default None
        Client to fetch with; one is created per call when omitted.

    Returns
    -------
    ConversionResult
        Converted document with size statistics.

    Raises
    ------
    ValidationError
        If the URL is invalid.
    FetchError
        If the document cannot be retrieved.

    """
    document = fetch_html(url, fetch_options, client=client)
    logger.info(f"Fetched {url} ({len(document.content)} bytes)")
    return convert_html(document.content, options, encoding=document.encoding)
