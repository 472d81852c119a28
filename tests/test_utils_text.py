"""Tests for text cleanup and chunking helpers."""

from __future__ import annotations

from sfdocs.utils.text import (
    OVERLAP_MARKER,
    CodeBlock,
    Section,
    add_overlap,
    chunk_section,
    chunk_text,
    clean_pdf_text,
    extract_code_blocks,
    split_long_paragraph,
    split_sections,
    strip_overlap,
)


def _words(count: int) -> str:
    return " ".join(f"w{i:04d}" for i in range(count))


class TestCleanPdfText:
    """Tests for clean_pdf_text."""

    def test_removes_page_number_lines(self) -> None:
        result = clean_pdf_text("Body text\n12\nMore body")
        assert "12" not in result
        assert result.startswith("Body text")
        assert result.endswith("More body")

    def test_collapses_inline_whitespace(self) -> None:
        assert clean_pdf_text("a   b\t\tc") == "a b c"

    def test_joins_hyphenated_line_breaks(self) -> None:
        assert clean_pdf_text("inte-\ngration") == "integration"

    def test_removes_running_headers(self) -> None:
        text = "Salesforce Apex Developer Guide\nBody\n© 2024 Salesforce, Inc. All rights reserved."
        assert clean_pdf_text(text) == "Body"

    def test_normalizes_line_endings_and_blank_runs(self) -> None:
        assert clean_pdf_text("one\r\n\r\n\r\n\r\ntwo") == "one\n\ntwo"

    def test_empty(self) -> None:
        assert clean_pdf_text("   \n\n ") == ""


class TestSplitSections:
    """Tests for split_sections."""

    def test_no_headings_single_section(self) -> None:
        text = "plain body " * 10
        sections = split_sections(text)
        assert sections == [Section(title=None, content=text.strip())]

    def test_uppercase_heading(self) -> None:
        body = "this section explains how triggers fire before and after dml."
        sections = split_sections(f"INTRODUCTION TO APEX\n{body}")
        assert len(sections) == 1
        assert sections[0].title == "INTRODUCTION TO APEX"
        assert sections[0].content == body

    def test_markdown_heading(self) -> None:
        body = "queueable jobs can be chained and accept non-primitive member types."
        sections = split_sections(f"## Queueable Apex\n{body}")
        assert sections[0].title == "Queueable Apex"

    def test_text_before_first_heading_is_untitled(self) -> None:
        preface = "a preface that runs long enough to be kept as its own section."
        body = "the body of the first titled section is also long enough to keep."
        sections = split_sections(f"{preface}\nFIRST SECTION\n{body}")
        assert [s.title for s in sections] == [None, "FIRST SECTION"]

    def test_short_sections_dropped(self) -> None:
        body = "the only section with enough text to survive the length filter."
        sections = split_sections(f"TINY SECTION\nshort\nBIG SECTION\n{body}")
        assert [s.title for s in sections] == ["BIG SECTION"]

    def test_all_short_falls_back_to_whole_text(self) -> None:
        text = "HEADING ONE\nshort"
        sections = split_sections(text)
        assert sections == [Section(title=None, content=text)]

    def test_heading_does_not_span_lines(self) -> None:
        body = "lowercase body text that is comfortably longer than fifty characters."
        sections = split_sections(f"ABC\nDEF\n{body}")
        assert all(section.title is None for section in sections)


class TestSplitLongParagraph:
    """Tests for split_long_paragraph."""

    def test_splits_on_sentence_ends(self) -> None:
        pieces = split_long_paragraph("First sentence. Second sentence! Third?", max_chars=20)
        assert pieces == ["First sentence.", "Second sentence!", "Third?"]

    def test_keeps_trailing_text_without_punctuation(self) -> None:
        pieces = split_long_paragraph("One. Two without end", max_chars=10)
        assert " ".join(pieces) == "One. Two without end"
        assert all(len(piece) <= 10 for piece in pieces)

    def test_hard_cuts_oversized_tokens(self) -> None:
        pieces = split_long_paragraph("x" * 25, max_chars=10)
        assert pieces == ["x" * 10, "x" * 10, "x" * 5]


class TestAddOverlap:
    """Tests for add_overlap and strip_overlap."""

    def test_single_piece_unchanged(self) -> None:
        assert add_overlap(["only"], 50) == ["only"]

    def test_overlap_smaller_than_marker_disabled(self) -> None:
        pieces = ["alpha beta gamma", "delta epsilon"]
        assert add_overlap(pieces, len(OVERLAP_MARKER)) == pieces

    def test_prefix_is_word_aligned_tail(self) -> None:
        pieces = ["alpha beta gamma delta", "epsilon zeta"]
        result = add_overlap(pieces, 20)
        assert result[0] == pieces[0]
        prefix, body = result[1].split(OVERLAP_MARKER)
        assert body == "epsilon zeta"
        assert pieces[0].endswith(" " + prefix)

    def test_strip_overlap(self) -> None:
        assert strip_overlap(f"gamma delta{OVERLAP_MARKER}epsilon") == "epsilon"
        assert strip_overlap("no marker here") == "no marker here"


class TestChunkSection:
    """Tests for chunk_section."""

    def test_short_text_single_chunk(self) -> None:
        assert chunk_section("short text", max_chars=100) == ["short text"]

    def test_packs_whole_paragraphs(self) -> None:
        paragraphs = [f"paragraph {i} " + "body " * 10 for i in range(6)]
        paragraphs = [p.strip() for p in paragraphs]
        chunks = chunk_section("\n\n".join(paragraphs), max_chars=150, overlap=0)
        assert len(chunks) > 1
        for paragraph in paragraphs:
            assert any(paragraph in chunk for chunk in chunks)
        assert all(len(chunk) <= 150 for chunk in chunks)


class TestChunkText:
    """Tests for chunk_text."""

    def test_empty_input_yields_nothing(self) -> None:
        assert list(chunk_text("")) == []
        assert list(chunk_text("  \n ")) == []

    def test_short_document_single_chunk(self) -> None:
        text = "a short manual page that fits comfortably into one chunk of text."
        chunks = list(chunk_text(text, max_chars=1500, overlap=150))
        assert len(chunks) == 1
        assert chunks[0].content == text
        assert chunks[0].index == 0
        assert chunks[0].section_title is None

    def test_size_bound(self) -> None:
        paragraphs = [
            _words(15) + ".",
            _words(80),
            "y" * 450,
            "Sentence one here. " * 12,
            _words(5),
        ]
        text = "\n\n".join(paragraphs)
        chunks = list(chunk_text(text, max_chars=200, overlap=40))
        assert len(chunks) > 1
        assert all(len(chunk.content) <= 240 for chunk in chunks)
        assert all(chunk.content.strip() for chunk in chunks)

    def test_every_word_covered(self) -> None:
        text = "\n\n".join(_words(40) for _ in range(5)) + "\n\n" + "tail words without a full stop"
        chunks = list(chunk_text(text, max_chars=120, overlap=30))
        for word in text.split():
            assert any(word in chunk.content for chunk in chunks)

    def test_indices_are_consecutive_across_sections(self) -> None:
        body = "\n\n".join(_words(30) for _ in range(3))
        text = f"FIRST SECTION\n{body}\nSECOND SECTION\n{body}"
        chunks = list(chunk_text(text, max_chars=200, overlap=40))
        assert [chunk.index for chunk in chunks] == list(range(len(chunks)))
        assert {chunk.section_title for chunk in chunks} == {"FIRST SECTION", "SECOND SECTION"}

    def test_overlap_between_consecutive_chunks(self) -> None:
        max_chars = 100
        text = ("Queueable jobs run in order. " * 20)[: 2 * max_chars + 1]
        chunks = list(chunk_text(text, max_chars=max_chars, overlap=30))
        assert len(chunks) >= 2
        for previous, current in zip(chunks, chunks[1:]):
            assert OVERLAP_MARKER in current.content
            prefix = current.content.split(OVERLAP_MARKER)[0]
            assert previous.content.endswith(prefix)

    def test_custom_splitter(self) -> None:
        def splitter(text: str) -> list[Section]:
            return [Section(title="Custom", content=text)]

        chunks = list(chunk_text("body text", splitter=splitter))
        assert chunks[0].section_title == "Custom"


class TestExtractCodeBlocks:
    """Tests for extract_code_blocks."""

    def test_fenced_block_with_language(self) -> None:
        text = "Example:\n```apex\nSystem.debug('hello');\n```\nDone."
        assert extract_code_blocks(text) == [CodeBlock(code="System.debug('hello');", language="apex")]

    def test_indented_block(self) -> None:
        text = "Example:\n    Account a = new Account();\n    insert a;\nDone."
        blocks = extract_code_blocks(text)
        assert blocks == [CodeBlock(code="Account a = new Account();\ninsert a;")]

    def test_single_indented_line_ignored(self) -> None:
        assert extract_code_blocks("Text\n    just one line\nmore") == []
