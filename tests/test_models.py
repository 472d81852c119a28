"""Tests for data models."""

from __future__ import annotations

import pytest

from sfdocs.models import (
    CATEGORY_LABELS,
    ChunkRecord,
    DocCategory,
    DocType,
    DocumentMetadata,
)


class TestDocCategory:
    """Tests for the category enumeration."""

    def test_values(self) -> None:
        assert {category.value for category in DocCategory} == {
            "core_platform",
            "apis",
            "dev_tools",
            "clouds",
            "security",
            "integration",
            "best_practices",
            "release_notes",
        }

    def test_every_category_has_label(self) -> None:
        for category in DocCategory:
            assert category.label == CATEGORY_LABELS[category]

    def test_lookup_by_value(self) -> None:
        assert DocCategory("apis") is DocCategory.APIS
        assert DocCategory.APIS == "apis"

    def test_unknown_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            DocCategory("marketing")


class TestDocumentMetadata:
    """Tests for DocumentMetadata."""

    def test_defaults(self) -> None:
        doc = DocumentMetadata(
            file_name="apexcode.pdf",
            file_path="/docs/apexcode.pdf",
            category=DocCategory.CORE_PLATFORM,
            title="Apexcode",
        )
        assert doc.priority == 5
        assert doc.doc_type is DocType.DEVELOPER_GUIDE
        assert doc.keywords == []
        assert doc.id is None

    def test_string_enums_coerced(self) -> None:
        doc = DocumentMetadata(
            file_name="api_rest.pdf",
            file_path="/docs/api_rest.pdf",
            category="apis",
            doc_type="api_reference",
            title="Api Rest",
        )
        assert doc.category is DocCategory.APIS
        assert doc.doc_type is DocType.API_REFERENCE

    @pytest.mark.parametrize("priority", [0, 11])
    def test_priority_out_of_range(self, priority: int) -> None:
        with pytest.raises(ValueError, match="priority"):
            DocumentMetadata(
                file_name="a.pdf",
                file_path="/a.pdf",
                category=DocCategory.APIS,
                title="A",
                priority=priority,
            )

    def test_keywords_not_shared(self) -> None:
        first = DocumentMetadata(file_name="a.pdf", file_path="/a.pdf", category="apis", title="A")
        second = DocumentMetadata(file_name="b.pdf", file_path="/b.pdf", category="apis", title="B")
        first.keywords.append("rest")
        assert second.keywords == []


class TestChunkRecord:
    """Tests for ChunkRecord."""

    def test_content_lower(self) -> None:
        chunk = ChunkRecord(index=0, content="Batch Apex JOBS")
        assert chunk.content_lower == "batch apex jobs"

    def test_optional_fields(self) -> None:
        chunk = ChunkRecord(index=3, content="text")
        assert chunk.section_title is None
        assert chunk.page_number is None
