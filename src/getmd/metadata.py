#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/getmd/metadata

"""Document metadata collected during conversion and its front matter form.

Metadata comes from Open Graph / article ``<meta property=... content=...>``
tags (and the ``<title>`` element as a fallback title). It is rendered as a
small header: an H1 title line followed by a ``---`` delimited block of
``Key: value`` lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from getmd.constants import FRONT_MATTER_DELIMITER

# Meta property -> DocumentMetadata attribute (each occurrence overwrites)
SINGLE_VALUE_PROPERTIES = {
    "og:title": "title",
    "og:description": "description",
    "article:author": "author",
    "article:published_time": "date",
}

TAG_PROPERTY = "article:tag"


@dataclass
class DocumentMetadata:
    """Metadata accumulated while walking a document.

    Parameters
    ----------
    title : str, optional
        Page title (``og:title``, falling back to ``<title>``).
    author : str, optional
        Article author (``article:author``).
    date : str, optional
        Publication timestamp (``article:published_time``), kept verbatim.
    description : str, optional
        Summary (``og:description``).
    tags : list[str]
        ``article:tag`` values in encounter order, duplicates kept.

    """

    title: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    # set once og:title has been seen so that <title> never overrides it
    _has_og_title: bool = field(default=False, repr=False, compare=False)

    def apply_property(self, prop: str, content: str) -> None:
        """Record one ``<meta property content>`` pair; unknown properties are ignored."""
        prop = prop.strip().lower()
        if prop == TAG_PROPERTY:
            self.tags.append(content)
            return

        attr = SINGLE_VALUE_PROPERTIES.get(prop)
        if attr is None:
            return
        setattr(self, attr, content)
        if attr == "title":
            self._has_og_title = True

    def apply_document_title(self, title: str) -> None:
        """Use the ``<title>`` element text unless ``og:title`` already supplied one."""
        title = " ".join(title.split())
        if title and not self._has_og_title:
            self.title = title

    def is_empty(self) -> bool:
        """Return True when no field carries a value."""
        return not (self.title or self.author or self.date or self.description or self.tags)

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.title,
            "author": self.author,
            "date": self.date,
            "description": self.description,
            "tags": list(self.tags),
        }


def format_front_matter(metadata: DocumentMetadata) -> str:
    """Render metadata as the header prepended to converted output.

    Parameters
    ----------
    metadata : DocumentMetadata
        Collected metadata.

    Returns
    -------
    str
        Header text ending in a blank line, or ``""`` when nothing was found.

    Examples
    --------
    >>> print(format_front_matter(DocumentMetadata(title="T", author="A", tags=["x", "y"])), end="")
    # T
    <BLANKLINE>
    ---
    Author: A
    Tags: x, y
    ---
    <BLANKLINE>

    """
    parts: list[str] = []
    if metadata.title:
        parts.append(f"# {metadata.title}\n\n")

    lines = []
    if metadata.author:
        lines.append(f"Author: {metadata.author}")
    if metadata.date:
        lines.append(f"Date: {metadata.date}")
    if metadata.description:
        lines.append(f"Description: {metadata.description}")
    if metadata.tags:
        lines.append(f"Tags: {', '.join(metadata.tags)}")

    if lines:
        parts.append("\n".join([FRONT_MATTER_DELIMITER, *lines, FRONT_MATTER_DELIMITER]) + "\n\n")

    return "".join(parts)
