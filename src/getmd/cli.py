#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/getmd/cli.py
"""Command line interface for getmd.

Two subcommands are provided:

``getmd convert SOURCE``
    Convert a URL, an HTML file or standard input (``-``) and write the
    Markdown to stdout or ``--out``.

``getmd serve``
    Run the HTTP conversion endpoint until interrupted.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from getmd import __version__
from getmd.api import ConversionResult, convert_html, convert_url
from getmd.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_NETWORK_TIMEOUT,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    MAX_HEADING_LEVEL,
    MIN_HEADING_LEVEL,
)
from getmd.exceptions import ConversionError, FetchError, ValidationError
from getmd.fetch import FetchOptions
from getmd.logging_utils import configure_logging
from getmd.options import CleaningRules, FormattingOptions
from getmd.server import create_server

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_VALIDATION_ERROR = 3
EXIT_FILE_ERROR = 4
EXIT_PARSING_ERROR = 6
EXIT_FETCH_ERROR = 8

_URL_PREFIXES = ("http://", "https://")


def get_exit_code_for_exception(exception: Exception) -> int:
    """Map an exception to an appropriate CLI exit code.

    Parameters
    ----------
    exception : Exception
        The exception to map to an exit code

    Returns
    -------
    int
        The appropriate exit code for the exception type

    """
    if isinstance(exception, ValidationError):
        return EXIT_VALIDATION_ERROR
    if isinstance(exception, FetchError):
        return EXIT_FETCH_ERROR
    if isinstance(exception, ConversionError):
        return EXIT_PARSING_ERROR
    if isinstance(exception, OSError):
        return EXIT_FILE_ERROR
    return EXIT_ERROR


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(prog="getmd", description="Convert HTML documents to Markdown.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write log output to this file")
    parser.add_argument("--trace", action="store_true", help="Debug logging with timestamps and logger names")

    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert a URL, file or stdin to Markdown")
    convert.add_argument("source", help="URL, path to an HTML file, or '-' for stdin")
    convert.add_argument("-o", "--out", help="Write Markdown to this file instead of stdout")
    convert.add_argument("--format", choices=["markdown", "json"], default="markdown", help="Output format")
    convert.add_argument("--stats", action="store_true", help="Print size statistics to stderr")

    formatting = convert.add_argument_group("formatting")
    formatting.add_argument("--links", action="store_true", help="Render links as [text](href)")
    formatting.add_argument("--clean-whitespace", action="store_true", help="Collapse whitespace and blank lines")
    formatting.add_argument("--headings", action="store_true", help="Render h1-h6 as # headings")
    formatting.add_argument("--metadata", action="store_true", help="Prepend title/author/date/tags front matter")
    formatting.add_argument(
        "--max-heading-level",
        type=int,
        default=MAX_HEADING_LEVEL,
        choices=range(MIN_HEADING_LEVEL, MAX_HEADING_LEVEL + 1),
        metavar="N",
        help="Deepest heading level to keep, 0 drops all headings (default: 6)",
    )

    cleaning = convert.add_argument_group("cleaning")
    cleaning.add_argument("--remove-scripts", action="store_true", help="Drop <script> elements")
    cleaning.add_argument("--remove-styles", action="store_true", help="Drop <style> elements")
    cleaning.add_argument("--remove-comments", action="store_true", help="Drop HTML comments")
    cleaning.add_argument(
        "--preserve-line-breaks", action="store_true", help="Do not collapse blank lines in the output"
    )

    network = convert.add_argument_group("network")
    network.add_argument("--timeout", type=float, default=DEFAULT_NETWORK_TIMEOUT, help="Per-attempt timeout")
    network.add_argument("--retries", type=int, default=DEFAULT_MAX_RETRIES, help="Retries after the first attempt")

    serve = subparsers.add_parser("serve", help="Run the HTTP conversion endpoint")
    serve.add_argument("--host", default=DEFAULT_SERVER_HOST, help="Interface to bind")
    serve.add_argument("--port", type=int, default=DEFAULT_SERVER_PORT, help="Port to bind")
    serve.add_argument("--timeout", type=float, default=DEFAULT_NETWORK_TIMEOUT, help="Per-attempt fetch timeout")
    serve.add_argument("--retries", type=int, default=DEFAULT_MAX_RETRIES, help="Fetch retries")

    return parser


def build_formatting_options(parsed_args: argparse.Namespace) -> FormattingOptions:
    """Translate ``convert`` flags into formatting options."""
    return FormattingOptions(
        include_links=parsed_args.links,
        clean_whitespace=parsed_args.clean_whitespace,
        preserve_headings=parsed_args.headings,
        include_metadata=parsed_args.metadata,
        max_heading_level=parsed_args.max_heading_level,
        cleaning_rules=CleaningRules(
            remove_scripts=parsed_args.remove_scripts,
            remove_styles=parsed_args.remove_styles,
            remove_comments=parsed_args.remove_comments,
            preserve_line_breaks=parsed_args.preserve_line_breaks,
        ),
    )


def build_fetch_options(parsed_args: argparse.Namespace) -> FetchOptions:
    try:
        return FetchOptions(timeout=parsed_args.timeout, max_retries=parsed_args.retries)
    except ValueError as e:
        raise ValidationError(str(e), original_error=e) from e


def _convert_source(source: str, options: FormattingOptions, fetch_options: FetchOptions) -> ConversionResult:
    if source.startswith(_URL_PREFIXES):
        return convert_url(source, options, fetch_options=fetch_options)
    if source == "-":
        return convert_html(sys.stdin.buffer.read(), options)
    return convert_html(Path(source).read_bytes(), options)


def _write_output(text: str, out: str | None) -> None:
    if out:
        Path(out).write_text(text, encoding="utf-8")
        logger.info(f"Wrote {out}")
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")


def handle_convert_command(parsed_args: argparse.Namespace) -> int:
    """Run ``getmd convert``."""
    try:
        options = build_formatting_options(parsed_args)
        fetch_options = build_fetch_options(parsed_args)
        result = _convert_source(parsed_args.source, options, fetch_options)

        if parsed_args.format == "json":
            payload = result.to_dict()
            if options.include_metadata:
                payload["metadata"] = result.metadata.to_dict()
            _write_output(json.dumps(payload, ensure_ascii=False, indent=2), parsed_args.out)
        else:
            _write_output(result.markdown, parsed_args.out)
    except Exception as e:
        exit_code = get_exit_code_for_exception(e)
        if exit_code == EXIT_ERROR:
            logger.exception("Unexpected error during conversion")
        print(f"Error: {e}", file=sys.stderr)
        return exit_code

    if parsed_args.stats:
        print(
            f"original_size={result.original_size} converted_size={result.converted_size}",
            file=sys.stderr,
        )
    return EXIT_SUCCESS


def handle_serve_command(parsed_args: argparse.Namespace) -> int:
    """Run ``getmd serve`` until interrupted."""
    try:
        fetch_options = build_fetch_options(parsed_args)
        httpd = create_server(parsed_args.host, parsed_args.port, fetch_options=fetch_options)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    except OSError as e:
        print(f"Error: Could not start server on {parsed_args.host}:{parsed_args.port}: {e}", file=sys.stderr)
        return EXIT_ERROR

    host, port = httpd.server_address[:2]
    print(f"Serving at http://{host}:{port}/")
    print("Press Ctrl+C to stop")
    with httpd:
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            print("\nShutting down server...")
    return EXIT_SUCCESS


def main(args: Sequence[str] | None = None) -> int:
    """Execute the CLI and return the process exit code."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    log_level = logging.DEBUG if parsed_args.trace else getattr(logging, parsed_args.log_level)
    configure_logging(log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)

    if parsed_args.command == "convert":
        return handle_convert_command(parsed_args)
    return handle_serve_command(parsed_args)
