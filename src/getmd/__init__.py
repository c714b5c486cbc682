"""getmd - convert HTML documents to clean, configurable Markdown.

getmd walks a parsed HTML tree once and emits Markdown under a set of
formatting options: link rendering, whitespace normalization, heading-level
capping, script/style/comment removal, metadata front matter, pipe tables and
nested lists. Around the conversion engine it ships an httpx-based fetcher
with retries and bot detection, a small HTTP endpoint and a command line
interface.

Examples
--------
Convert an HTML string:

    >>> from getmd import FormattingOptions, html_to_markdown
    >>> html_to_markdown("<p>Visit <a href='https://example.com'>us</a></p>", FormattingOptions(include_links=True))
    'Visit [us](https://example.com)'

Fetch and convert a page, with size statistics:

    >>> from getmd import convert_url
    >>> result = convert_url("https://example.com")  # doctest: +SKIP
    >>> result.converted_size  # doctest: +SKIP

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "getmd requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "0.1.0"

from getmd.api import ConversionResult, convert, convert_html, convert_url, html_to_markdown, parse_html  # noqa: E402
from getmd.converter import MarkdownConverter  # noqa: E402
from getmd.exceptions import (  # noqa: E402
    BotDetectedError,
    ConversionError,
    FetchError,
    GetmdError,
    ResponseTooLargeError,
    ValidationError,
)
from getmd.fetch import FetchOptions  # noqa: E402
from getmd.metadata import DocumentMetadata  # noqa: E402
from getmd.options import CleaningRules, FormattingOptions  # noqa: E402

__all__ = [
    "__version__",
    # API
    "convert",
    "convert_html",
    "convert_url",
    "html_to_markdown",
    "parse_html",
    "ConversionResult",
    "MarkdownConverter",
    "DocumentMetadata",
    # Options
    "FormattingOptions",
    "CleaningRules",
    "FetchOptions",
    # Exceptions
    "GetmdError",
    "ValidationError",
    "FetchError",
    "BotDetectedError",
    "ResponseTooLargeError",
    "ConversionError",
]
