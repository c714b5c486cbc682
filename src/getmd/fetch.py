"""HTTP retrieval of HTML documents for conversion.

Documents are fetched with ``httpx`` using a streamed GET so that the size
limit is enforced while reading. Failed attempts are retried with
exponential backoff, rotating the User-Agent header between attempts.

Failure handling
----------------
- transport errors (DNS, connect, timeouts, too many redirects) are retried
- non-2xx statuses are retried
- anti-bot challenge pages are retried and reported as ``BotDetectedError``
- oversized bodies raise ``ResponseTooLargeError`` immediately

Functions
---------
- validate_url: Accept absolute http(s) URLs only
- create_http_client: Build the configured httpx client
- detect_bot_challenge: Recognize captcha/interstitial responses
- fetch_html: Fetch a document with retries
"""

#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/getmd/fetch.py

from __future__ import annotations

import logging
import os
import re
import time
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Callable, Mapping
from urllib.parse import urlparse

import httpx

from getmd.constants import (
    ALLOWED_URL_SCHEMES,
    BOT_CHALLENGE_MARKERS,
    BOT_CHALLENGE_STATUSES,
    DEFAULT_ACCEPT_HEADER,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_BACKOFF,
    DEFAULT_MAX_FETCH_SIZE_BYTES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_NETWORK_TIMEOUT,
    DEFAULT_USER_AGENTS,
    ENV_DISABLE_NETWORK,
    ENV_USER_AGENT,
)
from getmd.exceptions import BotDetectedError, FetchError, ResponseTooLargeError, ValidationError
from getmd.options import CloneFrozenMixin

logger = logging.getLogger(__name__)

# Only the head of a body is inspected for challenge markers
_BOT_SCAN_BYTES = 64 * 1024
_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class FetchOptions(CloneFrozenMixin):
    """Network settings for retrieving documents.

    Parameters
    ----------
    timeout : float, default 10.0
        Per-attempt timeout in seconds.
    max_retries : int, default 3
        Retries after the first attempt; 0 disables retrying.
    backoff_factor : float, default 0.5
        Base of the exponential backoff, in seconds.
    max_backoff : float, default 8.0
        Upper bound of a single backoff sleep, in seconds.
    max_size_bytes : int, default 20MB
        Maximum accepted response body size.
    max_redirects : int, default 5
        Maximum redirects followed per attempt.
    user_agents : tuple[str, ...]
        User-Agent strings rotated between attempts.

    """

    timeout: float = field(default=DEFAULT_NETWORK_TIMEOUT, metadata={"help": "Per-attempt timeout in seconds"})
    max_retries: int = field(default=DEFAULT_MAX_RETRIES, metadata={"help": "Retries after the first attempt"})
    backoff_factor: float = field(
        default=DEFAULT_BACKOFF_FACTOR, metadata={"help": "Exponential backoff base in seconds"}
    )
    max_backoff: float = field(default=DEFAULT_MAX_BACKOFF, metadata={"help": "Longest single backoff sleep"})
    max_size_bytes: int = field(
        default=DEFAULT_MAX_FETCH_SIZE_BYTES, metadata={"help": "Maximum response body size in bytes"}
    )
    max_redirects: int = field(default=DEFAULT_MAX_REDIRECTS, metadata={"help": "Maximum redirects per attempt"})
    user_agents: tuple[str, ...] = field(
        default=DEFAULT_USER_AGENTS, metadata={"help": "User-Agent strings rotated between attempts"}
    )

    def __post_init__(self) -> None:
        """Validate numeric limits.

        Raises
        ------
        ValueError
            If a limit is negative or no user agent is configured.

        """
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")
        if self.backoff_factor < 0 or self.max_backoff < 0:
            raise ValueError("backoff_factor and max_backoff must be non-negative")
        if self.max_size_bytes <= 0:
            raise ValueError(f"max_size_bytes must be positive, got {self.max_size_bytes}")
        if self.max_redirects < 0:
            raise ValueError(f"max_redirects must be non-negative, got {self.max_redirects}")
        if not self.user_agents:
            raise ValueError("user_agents must contain at least one entry")


@dataclass
class FetchedDocument:
    """A successfully retrieved document."""

    url: str
    content: bytes
    encoding: str | None = None
    status_code: int = 200


def is_network_disabled() -> bool:
    """Check if network access is globally disabled via environment variable.

    Returns
    -------
    bool
        True if network access should be disabled, False otherwise

    """
    return os.getenv(ENV_DISABLE_NETWORK, "").lower() in ("true", "1", "yes", "on")


def validate_url(url: str) -> None:
    """Validate that ``url`` is an absolute http or https URL.

    Parameters
    ----------
    url : str
        URL to validate

    Raises
    ------
    ValidationError
        If the URL is malformed, uses another scheme or has no host

    """
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("url must be a non-empty string", parameter_name="url", parameter_value=url)

    try:
        parsed = urlparse(url.strip())
    except ValueError as e:
        raise ValidationError(f"Invalid URL format: {url}", parameter_name="url", original_error=e) from e

    if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES:
        raise ValidationError(
            f"Unsupported URL scheme: {parsed.scheme or '(none)'}", parameter_name="url", parameter_value=url
        )
    if not parsed.netloc or not parsed.hostname:
        raise ValidationError("URL missing hostname", parameter_name="url", parameter_value=url)


def user_agent_for_attempt(options: FetchOptions, attempt: int) -> str:
    """Return the User-Agent for a zero-based attempt number.

    ``GETMD_USER_AGENT`` overrides the rotation when set.
    """
    override = os.getenv(ENV_USER_AGENT)
    if override:
        return override
    return options.user_agents[attempt % len(options.user_agents)]


def backoff_delay(options: FetchOptions, attempt: int) -> float:
    """Return the sleep before retrying after the zero-based ``attempt``."""
    return min(options.max_backoff, options.backoff_factor * (2**attempt))


def detect_bot_challenge(status_code: int, headers: Mapping[str, str], body: bytes) -> bool:
    """Return True when a response looks like an anti-bot interstitial.

    A response is treated as a challenge when Cloudflare marks it as
    mitigated, when a challenge-typical status (403/429/503) carries a known
    marker anywhere in its head, or when a successful response has a marker
    in its ``<title>``.

    Parameters
    ----------
    status_code : int
        HTTP status code
    headers : Mapping[str, str]
        Response headers
    body : bytes
        Response body (only the first 64KB are inspected)

    Returns
    -------
    bool
        True if the response is a challenge page

    """
    if headers.get("cf-mitigated", "").lower() == "challenge":
        return True

    text = body[:_BOT_SCAN_BYTES].decode("utf-8", errors="replace").lower()
    if status_code in BOT_CHALLENGE_STATUSES:
        return any(marker in text for marker in BOT_CHALLENGE_MARKERS)

    if 200 <= status_code < 300:
        match = _TITLE_RE.search(text)
        if match:
            title = match.group(1)
            return any(marker in title for marker in BOT_CHALLENGE_MARKERS)
    return False


def create_http_client(options: FetchOptions | None = None) -> httpx.Client:
    """Create the httpx client used for fetching.

    Redirects are followed up to ``options.max_redirects``; every request in
    a redirect chain is checked with :func:`validate_url` through an event
    hook, so a redirect to a non-http(s) URL aborts the fetch.

    Parameters
    ----------
    options : FetchOptions or None, default None
        Network settings. If None, uses defaults.

    Returns
    -------
    httpx.Client
        Configured HTTP client

    """
    options = options or FetchOptions()

    def validate_request_url(request: httpx.Request) -> None:
        validate_url(str(request.url))

    return httpx.Client(
        timeout=options.timeout,
        follow_redirects=True,
        max_redirects=options.max_redirects,
        event_hooks={"request": [validate_request_url]},
        headers={"Accept": DEFAULT_ACCEPT_HEADER},
    )


def _fetch_once(client: httpx.Client, url: str, user_agent: str, options: FetchOptions) -> FetchedDocument:
    try:
        with client.stream("GET", url, headers={"User-Agent": user_agent}) as response:
            chunks = []
            total_size = 0
            for chunk in response.iter_bytes(chunk_size=8192):
                total_size += len(chunk)
                if total_size > options.max_size_bytes:
                    raise ResponseTooLargeError(
                        f"Response too large: exceeded {options.max_size_bytes} bytes during streaming",
                        url=url,
                        status_code=response.status_code,
                    )
                chunks.append(chunk)
            content = b"".join(chunks)
            status_code = response.status_code
            headers = response.headers
            encoding = response.charset_encoding
    except httpx.HTTPError as e:
        raise FetchError(f"HTTP request failed for {url}: {e}", url=url, original_error=e) from e
    except ValidationError as e:
        raise FetchError(f"Redirect rejected for {url}: {e.message}", url=url, original_error=e) from e

    if detect_bot_challenge(status_code, headers, content):
        raise BotDetectedError(f"Bot challenge detected for {url}", url=url, status_code=status_code)
    if not 200 <= status_code < 300:
        raise FetchError(f"HTTP {status_code} for {url}", url=url, status_code=status_code)
    if not content:
        raise FetchError(f"Empty response received from {url}", url=url, status_code=status_code)

    logger.debug(f"Successfully fetched {len(content)} bytes from {url}")
    return FetchedDocument(url=url, content=content, encoding=encoding, status_code=status_code)


def fetch_html(
    url: str,
    options: FetchOptions | None = None,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> FetchedDocument:
    """Fetch an HTML document, retrying with exponential backoff.

    Parameters
    ----------
    url : str
        Absolute http(s) URL
    options : FetchOptions or None, default None
        Network settings. If None, uses defaults.
    client : httpx.Client or None, default None
        Client to use. When None a client is created with
        :func:`create_http_client` and closed afterwards; a supplied client
        is left open.
    sleep : callable, default time.sleep
        Called with the backoff delay between attempts.

    Returns
    -------
    FetchedDocument
        The full response body and its declared encoding.

    Raises
    ------
    ValidationError
        If the URL is not an absolute http(s) URL
    FetchError
        If network access is disabled, the body is too large, or every
        attempt failed (``BotDetectedError`` when the last failure was a
        challenge page)

    """
    validate_url(url)
    options = options or FetchOptions()

    if is_network_disabled():
        raise FetchError(
            f"Network access is globally disabled via {ENV_DISABLE_NETWORK} environment variable", url=url
        )

    total_attempts = options.max_retries + 1
    last_error: FetchError | None = None

    with nullcontext(client) if client is not None else create_http_client(options) as http_client:
        for attempt in range(total_attempts):
            if attempt:
                delay = backoff_delay(options, attempt - 1)
                logger.debug(f"Retrying {url} in {delay:.2f}s (attempt {attempt + 1}/{total_attempts})")
                sleep(delay)

            try:
                return _fetch_once(http_client, url, user_agent_for_attempt(options, attempt), options)
            except ResponseTooLargeError as e:
                e.attempts = attempt + 1
                raise
            except FetchError as e:
                last_error = e
                if isinstance(e, BotDetectedError):
                    logger.warning(f"Attempt {attempt + 1}/{total_attempts} hit a bot challenge: {url}")
                else:
                    logger.warning(f"Attempt {attempt + 1}/{total_attempts} failed: {e.message}")

    assert last_error is not None
    raise type(last_error)(
        f"Failed to fetch {url} after {total_attempts} attempt(s): {last_error.message}",
        url=url,
        status_code=last_error.status_code,
        attempts=total_attempts,
        original_error=last_error,
    ) from last_error
