#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/getmd/converter.py
"""HTML to Markdown conversion engine.

This module walks a parsed BeautifulSoup tree once, depth first, and emits
Markdown into a per-call :class:`ConversionContext`. Behavior is driven by
:class:`~getmd.options.FormattingOptions`: link rendering, whitespace
normalization, heading-level capping, script/style/comment removal,
metadata extraction into front matter, pipe tables sized to their content and
nested-list indentation.

Element handling is table driven. ``ELEMENT_RULES`` maps a tag name to one of
three rule kinds:

- :class:`InlineRule` wraps the element's content in symmetric markers
  (``**bold**``, ``*em*``, ``==mark==``, ...)
- :class:`BlockRule` surrounds the content with blank lines
- :class:`SpecialRule` names a converter method for elements with their own
  logic (headings, links, lists, tables, code, ...)

Tags without an entry are transparent: their children are converted and the
element itself leaves no trace.

The converter never modifies the tree, and every conversion owns its
context, so one tree may be converted concurrently with different options.

Examples
--------
    >>> from bs4 import BeautifulSoup
    >>> from getmd.options import FormattingOptions
    >>> soup = BeautifulSoup('<p>Hello <a href="https://x.com">there</a></p>', "html.parser")
    >>> MarkdownConverter(FormattingOptions(include_links=True)).convert(soup)
    'Hello [there](https://x.com)'
"""

from __future__ import annotations

import logging
import re
import secrets
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Union

from bs4.element import Comment, NavigableString, PreformattedString, ProcessingInstruction, Tag

from getmd.constants import (
    BLOCKQUOTE_PREFIX,
    CODE_LANGUAGE_CLASS_PREFIX,
    HORIZONTAL_RULE,
    MAX_CODE_FENCE_LENGTH,
    MAX_NESTING_DEPTH,
    MIN_CODE_FENCE_LENGTH,
    ORDERED_LIST_INDENT,
    UNORDERED_LIST_INDENT,
    UNORDERED_LIST_MARKER,
)
from getmd.metadata import DocumentMetadata, format_front_matter
from getmd.options import FormattingOptions

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_LINE_BREAK_RE = re.compile(r"\s*\n\s*")
_BACKTICK_RUN_RE = re.compile(r"`+")


# =============================================================================
# Element rules
# =============================================================================


@dataclass(frozen=True)
class InlineRule:
    """Wrap element content between ``open`` and ``close`` markers."""

    open: str
    close: str


@dataclass(frozen=True)
class BlockRule:
    """Force a blank line before and after the element's content."""


@dataclass(frozen=True)
class SpecialRule:
    """Delegate to the converter method named ``handler``."""

    handler: str


ElementRule = Union[InlineRule, BlockRule, SpecialRule]

_BLOCK = BlockRule()

ELEMENT_RULES: Mapping[str, ElementRule] = MappingProxyType(
    {
        # inline emphasis
        "strong": InlineRule("**", "**"),
        "b": InlineRule("**", "**"),
        "em": InlineRule("*", "*"),
        "i": InlineRule("*", "*"),
        "mark": InlineRule("==", "=="),
        "del": InlineRule("~~", "~~"),
        "s": InlineRule("~~", "~~"),
        "strike": InlineRule("~~", "~~"),
        "ins": InlineRule("__", "__"),
        # generic blocks
        "p": _BLOCK,
        "div": _BLOCK,
        "article": _BLOCK,
        "section": _BLOCK,
        "main": _BLOCK,
        "header": _BLOCK,
        "footer": _BLOCK,
        "aside": _BLOCK,
        "nav": _BLOCK,
        "figure": _BLOCK,
        "figcaption": _BLOCK,
        # elements with their own handling
        **{f"h{level}": SpecialRule("_handle_heading") for level in range(1, 7)},
        "a": SpecialRule("_handle_link"),
        "img": SpecialRule("_handle_image"),
        "meta": SpecialRule("_handle_meta"),
        "title": SpecialRule("_handle_title"),
        "pre": SpecialRule("_handle_preformatted"),
        "code": SpecialRule("_handle_code"),
        "ul": SpecialRule("_handle_list"),
        "ol": SpecialRule("_handle_list"),
        "table": SpecialRule("_handle_table"),
        "tr": SpecialRule("_handle_table_row"),
        "td": SpecialRule("_handle_table_cell"),
        "th": SpecialRule("_handle_table_cell"),
        "caption": SpecialRule("_handle_table_caption"),
        "br": SpecialRule("_handle_line_break"),
        "hr": SpecialRule("_handle_horizontal_rule"),
        "blockquote": SpecialRule("_handle_blockquote"),
    }
)


# =============================================================================
# Conversion state
# =============================================================================


class _Buffer:
    """Append-only text buffer that remembers its last two characters.

    ``pending_space`` records collapsed whitespace that should become a single
    separator space if more inline content follows. ``leading_space`` records
    whitespace seen before anything was written, so an enclosing buffer can
    restore the separator in front of a wrapped element.
    """

    __slots__ = ("parts", "tail", "pending_space", "leading_space")

    def __init__(self) -> None:
        self.parts: list[str] = []
        self.tail = ""
        self.pending_space = False
        self.leading_space = False

    def append(self, text: str) -> None:
        if not text:
            return
        self.parts.append(text)
        self.tail = (self.tail + text)[-2:]

    def is_empty(self) -> bool:
        return not self.parts

    def getvalue(self) -> str:
        return "".join(self.parts)


@dataclass
class ListState:
    """An open ``<ul>``/``<ol>``; ``counter`` is the number of the last emitted item."""

    ordered: bool
    counter: int = 0


@dataclass
class TableState:
    """Rows collected while inside a ``<table>``."""

    rows: list[list[str]] = field(default_factory=list)
    current_row: list[str] = field(default_factory=list)
    caption: str = ""


class ConversionContext:
    """Mutable state for a single conversion call.

    Output goes to a stack of buffers. The bottom buffer is the document
    output; link text, list items, table cells, code blocks and blockquotes
    are rendered into pushed side buffers (see :meth:`capture`) and written
    back once post-processed.

    Every line of a fenced code block starts with ``code_marker``, a token
    unique to this conversion. Wrapping elements may prefix those lines
    (list indentation, ``> ``) but the finalizer still knows which lines are
    code, leaves them untouched and removes the marker.

    Parameters
    ----------
    options : FormattingOptions
        Options for this conversion.

    """

    def __init__(self, options: FormattingOptions):
        self.options = options
        self.indent_level = 0
        self.list_stack: list[ListState] = []
        self.table_state: TableState | None = None
        self.in_code_block = False
        self.in_preformatted = False
        self.metadata = DocumentMetadata()
        self.depth = 0
        self.code_marker = f"\ue000{secrets.token_hex(8)}\ue000"
        self._buffers: list[_Buffer] = [_Buffer()]

    @property
    def output(self) -> _Buffer:
        return self._buffers[0]

    @property
    def current(self) -> _Buffer:
        return self._buffers[-1]

    @contextmanager
    def capture(self) -> Iterator[_Buffer]:
        """Redirect writes into a fresh side buffer for the duration of the block."""
        buffer = _Buffer()
        self._buffers.append(buffer)
        try:
            yield buffer
        finally:
            self._buffers.pop()

    def write(self, text: str) -> None:
        """Append inline text, materializing a pending separator space first."""
        if not text:
            return
        buffer = self.current
        if buffer.pending_space:
            buffer.pending_space = False
            if buffer.tail and not buffer.tail[-1].isspace() and not text[0].isspace():
                buffer.append(" ")
        buffer.append(text)

    def request_space(self) -> None:
        """Note collapsed whitespace at the current position."""
        buffer = self.current
        if buffer.is_empty():
            buffer.leading_space = True
        else:
            buffer.pending_space = True

    def line_break(self) -> None:
        buffer = self.current
        buffer.pending_space = False
        buffer.append("\n")

    def ensure_newline(self) -> None:
        """End the current line unless already at the start of one."""
        buffer = self.current
        buffer.pending_space = False
        if buffer.is_empty() or buffer.tail.endswith("\n"):
            return
        buffer.append("\n")

    def ensure_blank_line(self) -> None:
        """Start a new block; never produces more than one blank line."""
        buffer = self.current
        buffer.pending_space = False
        if buffer.is_empty() or buffer.tail == "\n\n":
            return
        buffer.append("\n" if buffer.tail.endswith("\n") else "\n\n")


# =============================================================================
# Helpers
# =============================================================================


def _get_attr(node: Tag, name: str) -> str | None:
    """Return an attribute as a string; multi-valued attributes are space joined."""
    value = node.attrs.get(name)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def extract_code_language(node: Tag) -> str:
    """Return the ``language-xxx`` class suffix of a ``<pre>`` (or its direct ``<code>``).

    Parameters
    ----------
    node : Tag
        The ``<pre>`` element.

    Returns
    -------
    str
        Language name, or ``""`` when no ``language-`` class is present.

    """
    candidates = [node]
    code_child = node.find("code", recursive=False)
    if isinstance(code_child, Tag):
        candidates.append(code_child)

    for candidate in candidates:
        for token in (_get_attr(candidate, "class") or "").split():
            if token.startswith(CODE_LANGUAGE_CLASS_PREFIX) and len(token) > len(CODE_LANGUAGE_CLASS_PREFIX):
                return token[len(CODE_LANGUAGE_CLASS_PREFIX) :]
    return ""


def _longest_backtick_run(text: str) -> int:
    return max((len(run) for run in _BACKTICK_RUN_RE.findall(text)), default=0)


def get_code_fence(code_content: str) -> str:
    """Return a backtick fence longer than any backtick run inside the code.

    Parameters
    ----------
    code_content : str
        Code content to analyze.

    Returns
    -------
    str
        Fence string, ``'```'`` unless the code contains three or more
        consecutive backticks.

    """
    fence_length = max(MIN_CODE_FENCE_LENGTH, _longest_backtick_run(code_content) + 1)
    fence_length = min(fence_length, MAX_CODE_FENCE_LENGTH)

    return "`" * fence_length


def format_inline_code(content: str) -> str:
    """Wrap ``content`` in a backtick string it does not contain.

    Code with a backtick gets a longer delimiter, padded with spaces when the
    code starts or ends with a backtick.

    Examples
    --------
    >>> format_inline_code("x = 1")
    '`x = 1`'
    >>> format_inline_code("a`b")
    '``a`b``'

    """
    run = _longest_backtick_run(content)
    if not run:
        return f"`{content}`"
    delimiter = "`" * (run + 1)
    if content.startswith("`") or content.endswith("`"):
        content = f" {content} "
    return f"{delimiter}{content}{delimiter}"


def render_table(rows: list[list[str]], caption: str = "") -> str:
    """Render collected rows as a pipe table sized to its content.

    The first row is the header. The column count is the length of the
    first row; each column is as wide as its longest cell across all rows.
    Longer rows are truncated and shorter rows padded with empty cells.

    Parameters
    ----------
    rows : list[list[str]]
        Trimmed cell strings, one list per row.
    caption : str, optional
        Caption rendered in italics above the table.

    Returns
    -------
    str
        The table without a trailing newline, or ``""`` when there are no rows.

    Examples
    --------
    >>> print(render_table([["a", "bb"], ["ccc", "d"]]))
    | a   | bb |
    | --- | -- |
    | ccc | d  |

    """
    if not rows or not rows[0]:
        return ""

    column_count = len(rows[0])
    widths = [1] * column_count
    for row in rows:
        for index, cell in enumerate(row[:column_count]):
            widths[index] = max(widths[index], len(cell))

    def format_row(cells: list[str]) -> str:
        padded = [(cells[i] if i < len(cells) else "").ljust(widths[i]) for i in range(column_count)]
        return "| " + " | ".join(padded) + " |"

    lines = []
    if caption:
        lines.append(f"*{caption}*")
    lines.append(format_row(rows[0]))
    lines.append("| " + " | ".join("-" * width for width in widths) + " |")
    lines.extend(format_row(row) for row in rows[1:])
    return "\n".join(lines)


def collapse_blank_lines(text: str, code_marker: str | None = None) -> str:
    """Collapse runs of blank lines to one and strip trailing spaces, outside code.

    Only blank-line runs are touched. This departs on purpose from widening
    every whitespace run that spans a line break into a blank line: a single
    line break (from ``<br>``, a list item or a table row) is kept as is, so
    lists and tables keep their shape.

    Parameters
    ----------
    text : str
        Markdown text.
    code_marker : str or None, default None
        Token starting every fenced code line (see
        :attr:`ConversionContext.code_marker`). Lines containing it are
        copied unchanged.

    Returns
    -------
    str
        Text in which no two consecutive lines are blank, except inside
        fenced code blocks which are left untouched.

    """
    result: list[str] = []
    previous_blank = False

    for line in text.split("\n"):
        if code_marker and code_marker in line:
            result.append(line)
            previous_blank = False
            continue

        line = line.rstrip()
        if not line:
            if not previous_blank:
                result.append("")
            previous_blank = True
            continue

        previous_blank = False
        result.append(line)

    return "\n".join(result)


def strip_code_markers(text: str, code_marker: str) -> str:
    """Remove ``code_marker`` from every line, keeping whatever prefixed it.

    A blank code line only keeps its prefix without trailing spaces, so a
    blank line in quoted code becomes ``>``.
    """
    if code_marker not in text:
        return text

    lines = []
    for line in text.split("\n"):
        prefix, found, rest = line.partition(code_marker)
        if found:
            line = prefix + rest.replace(code_marker, "") if rest else prefix.rstrip()
        lines.append(line)
    return "\n".join(lines)


# =============================================================================
# Converter
# =============================================================================


class MarkdownConverter:
    """Single-pass HTML tree to Markdown converter.

    Parameters
    ----------
    options : FormattingOptions or None, default None
        Formatting options. If None, uses default settings.

    """

    def __init__(self, options: FormattingOptions | None = None):
        self.options = options or FormattingOptions()

    def convert(self, tree: Tag) -> str:
        """Convert a parsed document tree to Markdown."""
        markdown, _ = self.convert_with_metadata(tree)
        return markdown

    def convert_with_metadata(self, tree: Tag) -> tuple[str, DocumentMetadata]:
        """Convert a tree, also returning the metadata collected on the way."""
        ctx = ConversionContext(self.options)
        self.process_node(tree, ctx)
        return self.finalize(ctx), ctx.metadata

    def finalize(self, ctx: ConversionContext) -> str:
        """Trim the output, collapse blank lines if requested and prepend front matter."""
        body = ctx.output.getvalue().strip()
        if self.options.clean_whitespace and not self.options.cleaning_rules.preserve_line_breaks:
            body = collapse_blank_lines(body, ctx.code_marker)
        body = strip_code_markers(body, ctx.code_marker)

        header = format_front_matter(ctx.metadata) if self.options.include_metadata else ""
        return (header + body).strip()

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def process_node(self, node: Any, ctx: ConversionContext) -> None:
        """Convert one node and its subtree into ``ctx``."""
        if self._should_skip(node):
            return

        if isinstance(node, Tag):
            if ctx.depth >= MAX_NESTING_DEPTH:
                logger.debug(f"Nesting depth {MAX_NESTING_DEPTH} exceeded at <{node.name}>, flattening to text")
                self._flatten_text(node, ctx)
                return
            ctx.depth += 1
            rule = ELEMENT_RULES.get(node.name)
            if rule is None:
                self.process_children(node, ctx)
            elif isinstance(rule, InlineRule):
                self._handle_inline(node, ctx, rule)
            elif isinstance(rule, BlockRule):
                self._handle_block(node, ctx)
            else:
                getattr(self, rule.handler)(node, ctx)
            ctx.depth -= 1
        elif isinstance(node, NavigableString) and not isinstance(node, PreformattedString):
            self._handle_text(str(node), ctx)
        # comments, processing instructions, doctypes, declarations and CDATA carry no content

    def process_children(self, node: Tag, ctx: ConversionContext) -> None:
        for child in node.children:
            self.process_node(child, ctx)

    def _should_skip(self, node: Any) -> bool:
        rules = self.options.cleaning_rules
        if not rules.any_active:
            return False
        if isinstance(node, Comment):
            return rules.remove_comments
        if isinstance(node, ProcessingInstruction):
            return True
        if isinstance(node, Tag):
            if node.name == "script":
                return rules.remove_scripts
            if node.name == "style":
                return rules.remove_styles
        return False

    def _flatten_text(self, node: Tag, ctx: ConversionContext) -> None:
        # iterative walk for subtrees nested past MAX_NESTING_DEPTH
        for descendant in node.descendants:
            if isinstance(descendant, PreformattedString):
                continue
            if isinstance(descendant, NavigableString) and not any(
                self._should_skip(parent) for parent in descendant.parents
            ):
                self._handle_text(str(descendant), ctx)

    # -------------------------------------------------------------------------
    # Text
    # -------------------------------------------------------------------------

    def _handle_text(self, text: str, ctx: ConversionContext) -> None:
        if ctx.in_code_block:
            ctx.write(text)
            return
        if not text.strip():
            # whitespace-only text between elements only separates inline content
            ctx.request_space()
            return
        if not self.options.clean_whitespace:
            ctx.write(text)
            return

        collapsed = _WHITESPACE_RE.sub(" ", text)
        stripped = collapsed.strip(" ")
        if collapsed.startswith(" "):
            ctx.request_space()
        ctx.write(stripped)
        if collapsed.endswith(" "):
            ctx.request_space()

    # -------------------------------------------------------------------------
    # Generic rules
    # -------------------------------------------------------------------------

    def _handle_inline(self, node: Tag, ctx: ConversionContext, rule: InlineRule) -> None:
        if ctx.in_preformatted:
            self.process_children(node, ctx)
            return

        with ctx.capture() as buffer:
            self.process_children(node, ctx)
        content = buffer.getvalue()

        if buffer.leading_space:
            ctx.request_space()
        if content.strip():
            ctx.write(f"{rule.open}{content}{rule.close}")
        else:
            ctx.write(content)
        if buffer.pending_space:
            ctx.request_space()

    def _handle_block(self, node: Tag, ctx: ConversionContext) -> None:
        ctx.ensure_blank_line()
        self.process_children(node, ctx)
        ctx.ensure_blank_line()

    # -------------------------------------------------------------------------
    # Headings, links, images, metadata
    # -------------------------------------------------------------------------

    def _handle_heading(self, node: Tag, ctx: ConversionContext) -> None:
        if not self.options.preserve_headings:
            self._handle_block(node, ctx)
            return

        level = int(node.name[1])
        if level > self.options.max_heading_level:
            return

        with ctx.capture() as buffer:
            self.process_children(node, ctx)
        content = " ".join(buffer.getvalue().split())
        if not content:
            return

        ctx.ensure_blank_line()
        ctx.write(f"{'#' * level} {content}")
        ctx.ensure_blank_line()

    def _handle_link(self, node: Tag, ctx: ConversionContext) -> None:
        """Render ``[text](href)``, or ``<href>`` when the text is the URL itself.

        Only the link text is emitted when links are disabled, inside ``pre``,
        or when ``href`` is missing. An empty or blank ``href`` is treated as
        missing too, since ``[text]()`` points nowhere.
        """
        href = (_get_attr(node, "href") or "").strip()
        if not self.options.include_links or not href or ctx.in_preformatted:
            self.process_children(node, ctx)
            return

        with ctx.capture() as buffer:
            self.process_children(node, ctx)
        text = buffer.getvalue().strip()

        if buffer.leading_space:
            ctx.request_space()
        if text and text != href:
            ctx.write(f"[{text}]({href})")
        else:
            ctx.write(f"<{href}>")
        if buffer.pending_space:
            ctx.request_space()

    def _handle_image(self, node: Tag, ctx: ConversionContext) -> None:
        src = _get_attr(node, "src")
        if not src:
            return
        alt = _get_attr(node, "alt") or ""

        ctx.ensure_newline()
        ctx.write(f"![{alt}]({src})")
        ctx.ensure_newline()

    def _handle_meta(self, node: Tag, ctx: ConversionContext) -> None:
        if not self.options.include_metadata:
            return
        prop = _get_attr(node, "property")
        content = _get_attr(node, "content")
        if prop and content is not None:
            ctx.metadata.apply_property(prop, content)

    def _handle_title(self, node: Tag, ctx: ConversionContext) -> None:
        # the title only leaves the body when it feeds the front matter
        if self.options.include_metadata:
            ctx.metadata.apply_document_title(node.get_text())
        else:
            self.process_children(node, ctx)

    # -------------------------------------------------------------------------
    # Code
    # -------------------------------------------------------------------------

    def _handle_preformatted(self, node: Tag, ctx: ConversionContext) -> None:
        language = extract_code_language(node)

        was_code, was_pre = ctx.in_code_block, ctx.in_preformatted
        ctx.in_code_block = ctx.in_preformatted = True
        with ctx.capture() as buffer:
            self.process_children(node, ctx)
        ctx.in_code_block, ctx.in_preformatted = was_code, was_pre

        code = buffer.getvalue()
        # a newline right after <pre> is not part of the content
        if code.startswith("\r\n"):
            code = code[2:]
        elif code.startswith("\n"):
            code = code[1:]
        code = code.rstrip()

        fence = get_code_fence(code)
        ctx.ensure_blank_line()
        if code:
            marked = "\n".join(f"{ctx.code_marker}{line}" for line in code.split("\n"))
            ctx.write(f"{fence}{language}\n{marked}\n{fence}")
        else:
            ctx.write(f"{fence}{language}\n{fence}")
        ctx.ensure_blank_line()

    def _handle_code(self, node: Tag, ctx: ConversionContext) -> None:
        was_code = ctx.in_code_block
        ctx.in_code_block = True

        if ctx.in_preformatted:
            self.process_children(node, ctx)
        else:
            with ctx.capture() as buffer:
                self.process_children(node, ctx)
            content = buffer.getvalue()
            if content:
                ctx.write(format_inline_code(content))

        ctx.in_code_block = was_code

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    def _handle_list(self, node: Tag, ctx: ConversionContext) -> None:
        ordered = node.name == "ol"
        step = ORDERED_LIST_INDENT if ordered else UNORDERED_LIST_INDENT

        if ctx.list_stack:
            ctx.ensure_newline()
        else:
            ctx.ensure_blank_line()

        outer_indent = ctx.indent_level
        state = ListState(ordered=ordered)
        ctx.list_stack.append(state)
        ctx.indent_level += step

        for item in node.children:
            if not isinstance(item, Tag) or item.name != "li":
                continue

            with ctx.capture() as buffer:
                self.process_children(item, ctx)
            content = buffer.getvalue().strip()
            if not content:
                continue

            state.counter += 1
            marker = f"{state.counter}. " if ordered else UNORDERED_LIST_MARKER
            # later lines (paragraphs, nested lists, code) line up under the item text
            continuation = " " * max(step, len(marker))
            first, *rest = content.split("\n")
            lines = [first] + [f"{continuation}{line}" if line else line for line in rest]
            ctx.write(marker + "\n".join(lines))
            ctx.ensure_newline()

        ctx.list_stack.pop()
        ctx.indent_level = outer_indent
        ctx.ensure_newline()

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def _handle_table(self, node: Tag, ctx: ConversionContext) -> None:
        enclosing = ctx.table_state
        table = ctx.table_state = TableState()

        # text between rows and cells lands in a discarded buffer
        with ctx.capture():
            self.process_children(node, ctx)
        if table.current_row:
            table.rows.append(table.current_row)
        ctx.table_state = enclosing

        rendered = render_table(table.rows, table.caption)
        if not rendered:
            return

        ctx.ensure_blank_line()
        ctx.write(rendered)
        ctx.ensure_blank_line()

    def _handle_table_row(self, node: Tag, ctx: ConversionContext) -> None:
        table = ctx.table_state
        if table is None:
            self.process_children(node, ctx)
            return

        table.current_row = []
        self.process_children(node, ctx)
        if table.current_row:
            table.rows.append(table.current_row)
        table.current_row = []

    def _handle_table_cell(self, node: Tag, ctx: ConversionContext) -> None:
        table = ctx.table_state
        if table is None:
            self.process_children(node, ctx)
            return

        with ctx.capture() as buffer:
            self.process_children(node, ctx)
        # cells are single lines, so code inside them needs no protection
        cell = _LINE_BREAK_RE.sub(" ", buffer.getvalue().replace(ctx.code_marker, "").strip())
        table.current_row.append(cell.replace("|", "\\|"))

    def _handle_table_caption(self, node: Tag, ctx: ConversionContext) -> None:
        table = ctx.table_state
        if table is None:
            self._handle_block(node, ctx)
            return

        with ctx.capture() as buffer:
            self.process_children(node, ctx)
        table.caption = " ".join(buffer.getvalue().split())

    # -------------------------------------------------------------------------
    # Breaks, rules, quotes
    # -------------------------------------------------------------------------

    def _handle_line_break(self, node: Tag, ctx: ConversionContext) -> None:
        ctx.line_break()

    def _handle_horizontal_rule(self, node: Tag, ctx: ConversionContext) -> None:
        ctx.ensure_blank_line()
        ctx.write(HORIZONTAL_RULE)
        ctx.ensure_blank_line()

    def _handle_blockquote(self, node: Tag, ctx: ConversionContext) -> None:
        with ctx.capture() as buffer:
            self.process_children(node, ctx)
        content = buffer.getvalue().strip()
        if not content:
            return

        quoted = "\n".join(f"{BLOCKQUOTE_PREFIX}{line}" if line.strip() else ">" for line in content.split("\n"))
        ctx.ensure_blank_line()
        ctx.write(quoted)
        ctx.ensure_blank_line()
