"""Property-based tests for the conversion engine."""

import pytest
from bs4 import BeautifulSoup

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given  # noqa: E402
from hypothesis import strategies as st  # noqa: E402

from getmd.converter import MarkdownConverter  # noqa: E402
from getmd.options import CleaningRules, FormattingOptions  # noqa: E402

TAGS = [
    "p", "div", "span", "b", "em", "mark", "del", "ins", "code", "pre", "a", "img", "ul", "ol", "li",
    "table", "tr", "td", "th", "caption", "h1", "h3", "h6", "br", "hr", "blockquote", "meta", "title",
    "script", "style", "custom-tag",
]
ATTRIBUTES = [
    "",
    ' href="https://example.com"',
    ' href=""',
    ' src="img.png"',
    ' alt="alt"',
    ' class="language-go x"',
    ' property="article:tag" content="t"',
    ' property="og:title"',
]

text_strategy = st.text(
    alphabet=st.characters(exclude_categories=("Cs",), exclude_characters="<>&\r\ue000"), max_size=12
)


def html_fragments(tags):
    return st.recursive(
        text_strategy | st.sampled_from(["<!-- note -->", "<?pi x?>", "<![CDATA[x]]>", "&amp;", "```"]),
        lambda children: st.builds(
            lambda tag, attrs, inner: f"<{tag}{attrs}>{''.join(inner)}</{tag}>",
            st.sampled_from(tags),
            st.sampled_from(ATTRIBUTES),
            st.lists(children, max_size=4),
        ),
        max_leaves=25,
    )


fragment = html_fragments(TAGS)
# without <pre> every line of the output is subject to blank-line collapsing
fragment_without_pre = html_fragments([tag for tag in TAGS if tag != "pre"])

options_strategy = st.builds(
    FormattingOptions,
    include_links=st.booleans(),
    clean_whitespace=st.booleans(),
    preserve_headings=st.booleans(),
    include_metadata=st.booleans(),
    max_heading_level=st.integers(min_value=0, max_value=6),
    cleaning_rules=st.builds(
        CleaningRules,
        remove_scripts=st.booleans(),
        remove_styles=st.booleans(),
        remove_comments=st.booleans(),
        preserve_line_breaks=st.booleans(),
    ),
)


@pytest.mark.unit
@given(html=fragment, options=options_strategy)
def test_conversion_is_total(html, options):
    tree = BeautifulSoup(html, "html.parser")
    before = str(tree)
    result = MarkdownConverter(options).convert(tree)
    assert isinstance(result, str)
    assert result == result.strip()
    assert str(tree) == before
    assert "\ue000" not in result


@pytest.mark.unit
@given(html=fragment_without_pre, options=options_strategy)
def test_cleaned_output_has_no_double_blank_lines(html, options):
    options = options.create_updated(
        clean_whitespace=True, cleaning_rules=options.cleaning_rules.create_updated(preserve_line_breaks=False)
    )
    result = MarkdownConverter(options).convert(BeautifulSoup(html, "html.parser"))
    assert "\n\n\n" not in result


@pytest.mark.unit
@given(text=st.text(alphabet="abcXYZ019 *_~=#-[]()`.,!", max_size=40))
def test_marker_characters_are_literal(text):
    result = MarkdownConverter().convert(BeautifulSoup(f"<p>{text}</p>", "html.parser"))
    assert result == text.strip()
