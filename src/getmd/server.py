#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/getmd/server.py
"""HTTP endpoint converting remote documents to Markdown.

A POST carries a JSON body naming the document and the formatting options::

    {"url": "https://example.com", "config": {"include_links": true}, "format": "json"}

The response is the Markdown itself (``text/markdown``) or, when
``format`` is ``"json"`` or the client accepts ``application/json``, an
envelope with the Markdown and size statistics. For compatibility with
older clients, option keys placed next to ``url`` are used when no
``config`` object is given.

Request handling is split from transport: :func:`handle_convert_request`
maps a request body to a :class:`Response` and is used both by the
``http.server`` handler and directly by tests.

Status mapping
--------------
- 200: converted
- 204: CORS preflight (OPTIONS)
- 400: malformed JSON, invalid config or URL
- 405: any method other than POST/OPTIONS
- 413: request body too large
- 500: fetch or conversion failure
"""
from __future__ import annotations

import http.server
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from getmd.api import ConversionResult, convert_url
from getmd.constants import (
    CORS_HEADERS,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    JSON_CONTENT_TYPE,
    MARKDOWN_CONTENT_TYPE,
    MAX_REQUEST_BODY_BYTES,
)
from getmd.exceptions import ConversionError, FetchError, ValidationError
from getmd.fetch import FetchOptions
from getmd.options import FormattingOptions

logger = logging.getLogger(__name__)

# Fetches and converts one URL; injected so the endpoint can be exercised offline
Fetcher = Callable[[str, FormattingOptions], ConversionResult]

ALLOWED_METHODS = "POST, OPTIONS"
RESPONSE_FORMATS = ("markdown", "json")
_LEGACY_OPTION_KEYS = (
    "include_links",
    "clean_whitespace",
    "preserve_headings",
    "include_metadata",
    "max_heading_level",
    "cleaning_rules",
)


@dataclass
class Response:
    """Status, headers and body of an endpoint response."""

    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """Return the first header named ``name`` (case-insensitive)."""
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


@dataclass(frozen=True)
class ConvertRequest:
    """A validated conversion request."""

    url: str
    options: FormattingOptions
    response_format: str = "markdown"


def _with_cors(headers: list[tuple[str, str]]) -> list[tuple[str, str]]:
    return [*CORS_HEADERS, *headers]


def _text_response(status: int, message: str) -> Response:
    return Response(status, _with_cors([("Content-Type", "text/plain; charset=utf-8")]), message.encode("utf-8"))


def _json_response(status: int, payload: dict[str, Any]) -> Response:
    return Response(status, _with_cors([("Content-Type", JSON_CONTENT_TYPE)]), json.dumps(payload).encode("utf-8"))


def _error_response(status: int, message: str, as_json: bool) -> Response:
    if as_json:
        return _json_response(status, {"error": message})
    return _text_response(status, message)


def parse_convert_request(body: bytes) -> ConvertRequest:
    """Decode and validate a conversion request body.

    Parameters
    ----------
    body : bytes
        Raw request body

    Returns
    -------
    ConvertRequest
        The target URL, formatting options and response format

    Raises
    ------
    ValidationError
        If the body is not a JSON object, ``url`` is missing or not a string,
        ``format`` is unknown, or the options are invalid

    """
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("Invalid JSON body", original_error=e) from e

    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    url = payload.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("Request body must include a 'url' string", parameter_name="url", parameter_value=url)

    response_format = payload.get("format", "markdown")
    if response_format not in RESPONSE_FORMATS:
        raise ValidationError(
            f"format must be one of {', '.join(RESPONSE_FORMATS)}",
            parameter_name="format",
            parameter_value=response_format,
        )

    config = payload.get("config")
    if config is None:
        config = {key: payload[key] for key in _LEGACY_OPTION_KEYS if key in payload}

    return ConvertRequest(url=url.strip(), options=FormattingOptions.from_dict(config), response_format=response_format)


def _wants_json(body: bytes, accept: str) -> bool:
    # best effort so that even a rejected request gets errors in the requested shape
    if JSON_CONTENT_TYPE in (accept or "").lower():
        return True
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return False
    return isinstance(payload, dict) and payload.get("format") == "json"


def handle_convert_request(body: bytes, accept: str, fetch: Fetcher) -> Response:
    """Handle a POST conversion request.

    Parameters
    ----------
    body : bytes
        Raw request body
    accept : str
        Value of the request's Accept header (may be empty)
    fetch : Fetcher
        Callable fetching and converting a URL with the given options

    Returns
    -------
    Response
        200 with Markdown or the JSON envelope, 400 for invalid requests,
        500 when the document could not be fetched or converted

    """
    as_json = _wants_json(body, accept)
    try:
        request = parse_convert_request(body)
    except ValidationError as e:
        logger.info(f"Rejected request: {e.message}")
        return _error_response(400, e.message, as_json)

    try:
        result = fetch(request.url, request.options)
    except ValidationError as e:
        logger.info(f"Rejected request for {request.url}: {e.message}")
        return _error_response(400, e.message, as_json)
    except (FetchError, ConversionError) as e:
        logger.warning(f"Conversion failed for {request.url}: {e.message}")
        return _error_response(500, f"Conversion failed: {e.message}", as_json)
    except Exception as e:
        logger.exception(f"Unexpected error converting {request.url}")
        return _error_response(500, f"Conversion failed: {e}", as_json)

    logger.info(f"Converted {request.url}: {result.original_size} -> {result.converted_size} bytes")
    if as_json:
        return _json_response(200, result.to_dict())
    return Response(200, _with_cors([("Content-Type", MARKDOWN_CONTENT_TYPE)]), result.markdown.encode("utf-8"))


def handle_options() -> Response:
    """Answer a CORS preflight request."""
    return Response(204, _with_cors([]))


def method_not_allowed() -> Response:
    response = _text_response(405, "Method Not Allowed")
    response.headers.append(("Allow", ALLOWED_METHODS))
    return response


def default_fetcher(fetch_options: FetchOptions | None = None) -> Fetcher:
    """Return a fetcher that retrieves URLs over the network with ``fetch_options``."""

    def fetch(url: str, options: FormattingOptions) -> ConversionResult:
        return convert_url(url, options, fetch_options=fetch_options)

    return fetch


class ConvertRequestHandler(http.server.BaseHTTPRequestHandler):
    """Request handler serving the conversion endpoint on every path."""

    server_version = "getmd"
    fetcher: Fetcher = staticmethod(default_fetcher())  # type: ignore[assignment]

    def _send(self, response: Response) -> None:
        self.send_response(response.status)
        for name, value in response.headers:
            self.send_header(name, value)
        if response.status != 204:
            self.send_header("Content-Length", str(len(response.body)))
        self.end_headers()
        if self.command != "HEAD" and response.body:
            self.wfile.write(response.body)

    def do_OPTIONS(self) -> None:
        self._send(handle_options())

    def do_POST(self) -> None:
        try:
            content_length = int(self.headers.get("Content-Length", 0))
        except ValueError:
            self._send(_text_response(400, "Invalid Content-Length"))
            return

        if content_length > MAX_REQUEST_BODY_BYTES:
            self._send(_text_response(413, f"Request body exceeds {MAX_REQUEST_BODY_BYTES} bytes"))
            return

        body = self.rfile.read(content_length) if content_length > 0 else b""
        self._send(handle_convert_request(body, self.headers.get("Accept", ""), self.fetcher))

    def _reject(self) -> None:
        self._send(method_not_allowed())

    do_GET = do_PUT = do_DELETE = do_PATCH = do_HEAD = _reject

    def log_message(self, format: str, *args: Any) -> None:
        logger.info(f"{self.address_string()} - {format % args}")


def create_server(
    host: str = DEFAULT_SERVER_HOST,
    port: int = DEFAULT_SERVER_PORT,
    fetch_options: FetchOptions | None = None,
    fetcher: Fetcher | None = None,
) -> http.server.ThreadingHTTPServer:
    """Create a threaded HTTP server for the conversion endpoint.

    Each request is handled on its own thread with its own conversion
    context; nothing is shared between requests.

    Parameters
    ----------
    host : str, default "127.0.0.1"
        Interface to bind
    port : int, default 8787
        Port to bind; 0 picks a free port
    fetch_options : FetchOptions or None, default None
        Network settings for the default fetcher
    fetcher : Fetcher or None, default None
        Replacement for network fetching (used by tests)

    Returns
    -------
    ThreadingHTTPServer
        Bound, not yet serving, server

    """
    bound_fetcher = fetcher or default_fetcher(fetch_options)
    handler = type("BoundConvertRequestHandler", (ConvertRequestHandler,), {"fetcher": staticmethod(bound_fetcher)})
    server = http.server.ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server
