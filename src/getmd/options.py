#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/getmd/options.py
"""Formatting options for the HTML to Markdown conversion engine.

Options are immutable frozen dataclasses validated in ``__post_init__``. The
HTTP endpoint builds them from the ``config`` object of a JSON request via
:meth:`FormattingOptions.from_dict`, which converts validation failures into
:class:`~getmd.exceptions.ValidationError`.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from getmd.constants import (
    DEFAULT_CLEAN_WHITESPACE,
    DEFAULT_INCLUDE_LINKS,
    DEFAULT_INCLUDE_METADATA,
    DEFAULT_MAX_HEADING_LEVEL,
    DEFAULT_PRESERVE_HEADINGS,
    DEFAULT_PRESERVE_LINE_BREAKS,
    DEFAULT_REMOVE_COMMENTS,
    DEFAULT_REMOVE_SCRIPTS,
    DEFAULT_REMOVE_STYLES,
    MAX_HEADING_LEVEL,
    MIN_HEADING_LEVEL,
)
from getmd.exceptions import ValidationError


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities."""

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


def _require_bool(owner: str, name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ValueError(f"{owner}.{name} must be a boolean, got {type(value).__name__}")


@dataclass(frozen=True)
class CleaningRules(CloneFrozenMixin):
    """Content-cleaning rules applied while walking the document tree.

    Parameters
    ----------
    remove_scripts : bool, default False
        Skip ``<script>`` elements and their contents.
    remove_styles : bool, default False
        Skip ``<style>`` elements and their contents.
    remove_comments : bool, default False
        Skip comment nodes.
    preserve_line_breaks : bool, default False
        Keep line breaks exactly as emitted instead of collapsing blank-line
        runs during finalization.

    Notes
    -----
    Skipping only takes effect when at least one rule is set; processing
    instructions are dropped whenever any rule is active.

    """

    remove_scripts: bool = field(
        default=DEFAULT_REMOVE_SCRIPTS,
        metadata={"help": "Drop <script> elements and their contents"},
    )
    remove_styles: bool = field(
        default=DEFAULT_REMOVE_STYLES,
        metadata={"help": "Drop <style> elements and their contents"},
    )
    remove_comments: bool = field(
        default=DEFAULT_REMOVE_COMMENTS,
        metadata={"help": "Drop HTML comments"},
    )
    preserve_line_breaks: bool = field(
        default=DEFAULT_PRESERVE_LINE_BREAKS,
        metadata={"help": "Keep emitted line breaks instead of collapsing blank-line runs"},
    )

    def __post_init__(self) -> None:
        """Validate field types.

        Raises
        ------
        ValueError
            If any flag is not a boolean.

        """
        for f in fields(self):
            _require_bool("cleaning_rules", f.name, getattr(self, f.name))

    @property
    def any_active(self) -> bool:
        """Return True when at least one cleaning rule is set."""
        return self.remove_scripts or self.remove_styles or self.remove_comments or self.preserve_line_breaks


@dataclass(frozen=True)
class FormattingOptions(CloneFrozenMixin):
    """Configuration controlling HTML to Markdown conversion.

    Parameters
    ----------
    include_links : bool, default False
        Render ``<a href>`` elements as Markdown links (or autolinks). When
        False only the link text is kept.
    clean_whitespace : bool, default False
        Collapse whitespace runs in text to single spaces and collapse
        runs of blank lines in the final output.
    preserve_headings : bool, default False
        Render ``<h1>``-``<h6>`` as ``#`` headings. When False heading text is
        kept as a plain paragraph.
    include_metadata : bool, default False
        Extract Open Graph / article metadata and prepend it as front matter.
    max_heading_level : int, default 6
        Deepest heading level emitted when ``preserve_headings`` is set.
        Deeper headings are dropped entirely; 0 drops every heading.
    cleaning_rules : CleaningRules
        Content-cleaning rules (script/style/comment removal, line breaks).

    Examples
    --------
    >>> opts = FormattingOptions(include_links=True, preserve_headings=True, max_heading_level=2)
    >>> opts.create_updated(include_links=False).include_links
    False

    """

    include_links: bool = field(
        default=DEFAULT_INCLUDE_LINKS,
        metadata={"help": "Render links as [text](href) / <href> instead of plain text"},
    )
    clean_whitespace: bool = field(
        default=DEFAULT_CLEAN_WHITESPACE,
        metadata={"help": "Collapse whitespace in text and blank-line runs in output"},
    )
    preserve_headings: bool = field(
        default=DEFAULT_PRESERVE_HEADINGS,
        metadata={"help": "Render h1-h6 as # headings"},
    )
    include_metadata: bool = field(
        default=DEFAULT_INCLUDE_METADATA,
        metadata={"help": "Prepend title/author/date/description/tags front matter"},
    )
    max_heading_level: int = field(
        default=DEFAULT_MAX_HEADING_LEVEL,
        metadata={"help": "Deepest heading level to emit (0 disables headings)", "type": int},
    )
    cleaning_rules: CleaningRules = field(
        default_factory=CleaningRules,
        metadata={"help": "Content-cleaning rules"},
    )

    def __post_init__(self) -> None:
        """Validate field types and the heading level range.

        Raises
        ------
        ValueError
            If a flag is not a boolean or ``max_heading_level`` is outside 0..6.

        """
        for name in ("include_links", "clean_whitespace", "preserve_headings", "include_metadata"):
            _require_bool("options", name, getattr(self, name))

        # bool is a subclass of int
        if isinstance(self.max_heading_level, bool) or not isinstance(self.max_heading_level, int):
            raise ValueError(
                f"max_heading_level must be an integer, got {type(self.max_heading_level).__name__}"
            )
        if not MIN_HEADING_LEVEL <= self.max_heading_level <= MAX_HEADING_LEVEL:
            raise ValueError(
                f"max_heading_level must be between {MIN_HEADING_LEVEL} and {MAX_HEADING_LEVEL}, "
                f"got {self.max_heading_level}"
            )

        if not isinstance(self.cleaning_rules, CleaningRules):
            raise ValueError(
                f"cleaning_rules must be a CleaningRules instance, got {type(self.cleaning_rules).__name__}"
            )

    @classmethod
    def from_dict(cls, config: Mapping[str, Any] | None) -> FormattingOptions:
        """Build options from the ``config`` object of a conversion request.

        Missing keys take their defaults and unknown keys are ignored. A
        ``max_heading_level`` of ``None`` means "unset" and resolves to 6.

        Parameters
        ----------
        config : Mapping[str, Any] or None
            Decoded JSON object. ``None`` yields default options.

        Returns
        -------
        FormattingOptions
            Validated options.

        Raises
        ------
        ValidationError
            If ``config`` is not an object or any value is invalid.

        """
        if config is None:
            return cls()
        if not isinstance(config, Mapping):
            raise ValidationError(
                "config must be a JSON object", parameter_name="config", parameter_value=config
            )

        rules_config = config.get("cleaning_rules")
        if rules_config is None:
            rules_config = {}
        elif not isinstance(rules_config, Mapping):
            raise ValidationError(
                "cleaning_rules must be a JSON object",
                parameter_name="cleaning_rules",
                parameter_value=rules_config,
            )

        rule_names = {f.name for f in fields(CleaningRules)}
        option_names = {f.name for f in fields(cls)} - {"cleaning_rules"}

        try:
            rules = CleaningRules(**{k: v for k, v in rules_config.items() if k in rule_names})
            kwargs = {k: v for k, v in config.items() if k in option_names}
            if kwargs.get("max_heading_level", DEFAULT_MAX_HEADING_LEVEL) is None:
                kwargs["max_heading_level"] = DEFAULT_MAX_HEADING_LEVEL
            return cls(cleaning_rules=rules, **kwargs)
        except ValueError as e:
            raise ValidationError(f"Invalid config: {e}", parameter_name="config", original_error=e) from e

    def to_dict(self) -> dict[str, Any]:
        """Return the options as a JSON-compatible dictionary."""
        return {
            "include_links": self.include_links,
            "clean_whitespace": self.clean_whitespace,
            "preserve_headings": self.preserve_headings,
            "include_metadata": self.include_metadata,
            "max_heading_level": self.max_heading_level,
            "cleaning_rules": {
                "remove_scripts": self.cleaning_rules.remove_scripts,
                "remove_styles": self.cleaning_rules.remove_styles,
                "remove_comments": self.cleaning_rules.remove_comments,
                "preserve_line_breaks": self.cleaning_rules.preserve_line_breaks,
            },
        }
