"""Unit tests for metadata accumulation and front matter rendering."""

import pytest

from getmd.metadata import DocumentMetadata, format_front_matter


@pytest.mark.unit
class TestDocumentMetadata:
    def test_recognized_properties(self):
        metadata = DocumentMetadata()
        metadata.apply_property("og:title", "T")
        metadata.apply_property("og:description", "D")
        metadata.apply_property("article:author", "A")
        metadata.apply_property("article:published_time", "2024-01-01")
        metadata.apply_property("og:image", "ignored.png")
        assert metadata.to_dict() == {
            "title": "T",
            "author": "A",
            "date": "2024-01-01",
            "description": "D",
            "tags": [],
        }

    def test_property_names_are_case_insensitive(self):
        metadata = DocumentMetadata()
        metadata.apply_property(" OG:Title ", "T")
        assert metadata.title == "T"

    def test_tags_keep_order_and_duplicates(self):
        metadata = DocumentMetadata()
        for tag in ("b", "a", "b"):
            metadata.apply_property("article:tag", tag)
        assert metadata.tags == ["b", "a", "b"]

    def test_document_title_never_overrides_og_title(self):
        metadata = DocumentMetadata()
        metadata.apply_document_title("  Page\n title ")
        assert metadata.title == "Page title"
        metadata.apply_property("og:title", "OG")
        metadata.apply_document_title("Other")
        assert metadata.title == "OG"

    def test_is_empty(self):
        assert DocumentMetadata().is_empty()
        assert not DocumentMetadata(tags=["x"]).is_empty()


@pytest.mark.unit
class TestFrontMatter:
    def test_all_fields(self):
        metadata = DocumentMetadata(
            title="T", author="A", date="2024", description="D", tags=["x", "y"]
        )
        assert format_front_matter(metadata) == (
            "# T\n\n---\nAuthor: A\nDate: 2024\nDescription: D\nTags: x, y\n---\n\n"
        )

    def test_title_only(self):
        assert format_front_matter(DocumentMetadata(title="T")) == "# T\n\n"

    def test_block_without_title(self):
        assert format_front_matter(DocumentMetadata(date="2024")) == "---\nDate: 2024\n---\n\n"

    def test_nothing_present(self):
        assert format_front_matter(DocumentMetadata()) == ""
