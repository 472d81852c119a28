"""Tests for query expansion."""

from __future__ import annotations

from sfdocs.index.expansion import MAX_EXPANDED_TERMS, expand_query


class TestExpandQuery:
    """Tests for expand_query."""

    def test_lwc_expansion(self) -> None:
        expansion = expand_query("lwc")
        assert expansion.expanded_terms == [
            "lwc",
            "lightning web component",
            "web component",
            "lightning-",
            "@wire",
            "@api",
            "component",
            "aura",
        ]
        assert expansion.detected_concepts == ["lwc"]
        assert expansion.confidence == "medium"
        assert expansion.suggested_category == "core_platform"

    def test_reasoning(self) -> None:
        expansion = expand_query("lwc")
        assert expansion.reasoning == (
            "Detected concepts: lwc. Suggested category: core_platform. "
            "Medium confidence - multiple possible areas detected"
        )

    def test_unrecognized_query(self) -> None:
        expansion = expand_query("hello world")
        assert expansion.expanded_terms == ["hello", "world"]
        assert expansion.detected_concepts == []
        assert expansion.confidence == "low"
        assert expansion.suggested_category is None
        assert expansion.reasoning == "Low confidence - broad search recommended"

    def test_short_words_dropped(self) -> None:
        expansion = expand_query("go to it now")
        assert expansion.expanded_terms == ["now"]

    def test_context_words_limited(self) -> None:
        expansion = expand_query("hello", context="one two three four five six seven")
        assert expansion.expanded_terms == ["hello", "one", "two", "three", "four", "five"]

    def test_deduplicated_case_insensitively(self) -> None:
        expansion = expand_query("Apex apex APEX trigger")
        lowered = [term.lower() for term in expansion.expanded_terms]
        assert len(lowered) == len(set(lowered))

    def test_capped(self) -> None:
        query = " ".join(f"word{i}" for i in range(40))
        expansion = expand_query(query)
        assert len(expansion.expanded_terms) == MAX_EXPANDED_TERMS
        assert expansion.expanded_terms[0] == "word0"

    def test_high_confidence_reasoning(self) -> None:
        expansion = expand_query("batch apex queueable")
        assert expansion.confidence == "high"
        assert "High confidence match" in expansion.reasoning
        assert "queueable" in expansion.expanded_terms
