"""Pytest configuration and shared fixtures for the getmd test suite."""

import os

import pytest
from bs4 import BeautifulSoup

from getmd.options import CleaningRules, FormattingOptions

# Configure Hypothesis for property-based testing
try:
    from hypothesis import Phase, Verbosity, settings

    settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
    settings.register_profile("dev", max_examples=30)
    settings.register_profile(
        "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
    )
    settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))
except ImportError:
    # Hypothesis not installed, property tests will be skipped
    pass


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep user environment overrides out of the tests."""
    monkeypatch.delenv("GETMD_USER_AGENT", raising=False)
    monkeypatch.delenv("GETMD_DISABLE_NETWORK", raising=False)


@pytest.fixture
def soup():
    """Return a parser helper producing BeautifulSoup trees the way getmd parses them."""

    def _parse(html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "html.parser", on_duplicate_attribute="ignore")

    return _parse


@pytest.fixture
def all_options() -> FormattingOptions:
    """Options with every feature switched on."""
    return FormattingOptions(
        include_links=True,
        clean_whitespace=True,
        preserve_headings=True,
        include_metadata=True,
        cleaning_rules=CleaningRules(remove_scripts=True, remove_styles=True, remove_comments=True),
    )


@pytest.fixture
def article_html() -> str:
    """A small but complete article page."""
    return """<!DOCTYPE html>
<html>
<head>
  <title>Fallback title</title>
  <meta property="og:title" content="Release notes">
  <meta property="article:author" content="Jane Doe">
  <meta property="article:published_time" content="2024-05-01T10:00:00Z">
  <meta property="og:description" content="What changed">
  <meta property="article:tag" content="release">
  <meta property="article:tag" content="python">
  <style>body { color: red; }</style>
  <script>console.log("hi");</script>
</head>
<body>
  <!-- navigation -->
  <article>
    <h1>Version 2.0</h1>
    <p>We shipped <strong>three</strong> features and
       fixed <a href="https://example.com/bugs">many bugs</a>.</p>
    <h2>Features</h2>
    <ul>
      <li>Faster parsing</li>
      <li>Tables
        <ul><li>captions</li></ul>
      </li>
    </ul>
    <pre class="language-python">print("hello")
</pre>
  </article>
</body>
</html>"""
