#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for getmd.

This module centralizes the hardcoded values used across getmd so that the
conversion engine, fetch layer and HTTP endpoint share one source of truth.

Constants are organized by category:
1. Formatting Defaults - FormattingOptions / CleaningRules defaults
2. Markdown Output - markers, indentation and fence sizes
3. Fetching - timeouts, retry policy, user agents, bot detection
4. HTTP Endpoint - content types and CORS headers
"""

from __future__ import annotations

# =============================================================================
# Formatting Defaults
# =============================================================================

DEFAULT_INCLUDE_LINKS = False
DEFAULT_CLEAN_WHITESPACE = False
DEFAULT_PRESERVE_HEADINGS = False
DEFAULT_INCLUDE_METADATA = False
DEFAULT_REMOVE_SCRIPTS = False
DEFAULT_REMOVE_STYLES = False
DEFAULT_REMOVE_COMMENTS = False
DEFAULT_PRESERVE_LINE_BREAKS = False

MIN_HEADING_LEVEL = 0  # 0 disables headings entirely
MAX_HEADING_LEVEL = 6
DEFAULT_MAX_HEADING_LEVEL = MAX_HEADING_LEVEL

# =============================================================================
# Markdown Output
# =============================================================================

UNORDERED_LIST_MARKER = "* "
UNORDERED_LIST_INDENT = 2
ORDERED_LIST_INDENT = 3

MIN_CODE_FENCE_LENGTH = 3
MAX_CODE_FENCE_LENGTH = 10
CODE_LANGUAGE_CLASS_PREFIX = "language-"

FRONT_MATTER_DELIMITER = "---"
HORIZONTAL_RULE = "---"
BLOCKQUOTE_PREFIX = "> "

# Deeper subtrees are flattened to their text to bound recursion
MAX_NESTING_DEPTH = 200

# =============================================================================
# Fetching
# =============================================================================

DEFAULT_NETWORK_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 0.5
DEFAULT_MAX_BACKOFF = 8.0
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_MAX_FETCH_SIZE_BYTES = 20 * 1024 * 1024  # 20MB

ALLOWED_URL_SCHEMES = ("http", "https")

DEFAULT_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36 Edg/124.0.0.0",
)

DEFAULT_ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

# Lower-cased substrings that identify an anti-bot interstitial rather than content
BOT_CHALLENGE_MARKERS: tuple[str, ...] = (
    "captcha",
    "cf-challenge",
    "cf-browser-verification",
    "challenge-platform",
    "just a moment...",
    "attention required! | cloudflare",
    "are you a robot",
    "verify you are human",
    "unusual traffic from your computer network",
)

# Statuses commonly returned together with a challenge page
BOT_CHALLENGE_STATUSES = frozenset({403, 429, 503})

ENV_USER_AGENT = "GETMD_USER_AGENT"
ENV_DISABLE_NETWORK = "GETMD_DISABLE_NETWORK"

# =============================================================================
# HTTP Endpoint
# =============================================================================

MARKDOWN_CONTENT_TYPE = "text/markdown; charset=utf-8"
JSON_CONTENT_TYPE = "application/json"

CORS_HEADERS: tuple[tuple[str, str], ...] = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "POST, OPTIONS"),
    ("Access-Control-Allow-Headers", "Content-Type"),
)

DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 8787
MAX_REQUEST_BODY_BYTES = 1024 * 1024
