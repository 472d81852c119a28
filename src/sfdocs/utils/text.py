"""Text helpers: PDF text cleanup and section-aware chunking."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

from sfdocs.models import ChunkRecord

OVERLAP_MARKER = " [...] "
MIN_SECTION_CHARS = 50

# Markdown headings or a whole line of capitals (at least 7 characters).
_HEADING_RE = re.compile(r"^(?:#{1,3}[ \t]+(.+)|([A-Z][A-Z \t]{5,}[A-Z]))$", re.MULTILINE)
_PARAGRAPH_RE = re.compile(r"\n[ \t]*\n\s*")
_SENTENCE_RE = re.compile(r"[^.!?]*(?:[.!?]+|$)")

_PAGE_NUMBER_RE = re.compile(r"^\d+[ \t]*$", re.MULTILINE)
_INLINE_WS_RE = re.compile(r"[ \t]+")
_TRAILING_WS_RE = re.compile(r" +\n")
_HEADER_FOOTER_RES = (
    re.compile(r"^Salesforce.*?Guide[ \t]*$", re.MULTILINE),
    re.compile(r"^©[ \t]*\d{4}[ \t]*Salesforce.*$", re.MULTILINE),
)
_HYPHEN_BREAK_RE = re.compile(r"(\w)-\n(\w)")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

_FENCED_CODE_RE = re.compile(r"```(\w*)\n([\s\S]*?)```")


@dataclass(slots=True)
class Section:
    title: Optional[str]
    content: str


@dataclass(slots=True)
class CodeBlock:
    code: str
    language: Optional[str] = None


SectionSplitter = Callable[[str], List[Section]]


def clean_pdf_text(text: str) -> str:
    """Remove extraction artifacts (page numbers, running headers, broken words)."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _PAGE_NUMBER_RE.sub("", text)
    text = _INLINE_WS_RE.sub(" ", text)
    text = _TRAILING_WS_RE.sub("\n", text)
    for pattern in _HEADER_FOOTER_RES:
        text = pattern.sub("", text)
    text = _HYPHEN_BREAK_RE.sub(r"\1\2", text)
    text = _EXCESS_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


def split_sections(text: str) -> List[Section]:
    """Split text on heading lines, each heading naming the section that follows it.

    Sections of 50 characters or fewer are dropped. When nothing survives the
    whole text is returned as a single untitled section.
    """
    sections: List[Section] = []
    last_index = 0
    last_title: Optional[str] = None

    for match in _HEADING_RE.finditer(text):
        if match.start() > last_index:
            _append_section(sections, last_title, text[last_index : match.start()])
        last_title = (match.group(1) or match.group(2)).strip()
        last_index = match.end()

    if last_index < len(text):
        _append_section(sections, last_title, text[last_index:])

    if not sections and text.strip():
        sections.append(Section(title=None, content=text.strip()))
    return sections


def _append_section(sections: List[Section], title: Optional[str], raw: str) -> None:
    content = raw.strip()
    if len(content) > MIN_SECTION_CHARS:
        sections.append(Section(title=title, content=content))


def chunk_text(
    text: str,
    *,
    max_chars: int = 1500,
    overlap: int = 150,
    splitter: SectionSplitter = split_sections,
) -> Iterator[ChunkRecord]:
    """Split document text into bounded, overlapping chunks.

    Chunk indices run across the whole document; each chunk keeps the title
    of the section it was cut from.
    """
    if not text or not text.strip():
        return

    index = 0
    for section in splitter(text):
        for content in chunk_section(section.content, max_chars=max_chars, overlap=overlap):
            yield ChunkRecord(index=index, content=content, section_title=section.title)
            index += 1


def chunk_section(text: str, *, max_chars: int = 1500, overlap: int = 150) -> List[str]:
    """Pack paragraphs of one section into chunks of at most ``max_chars``."""
    if len(text) <= max_chars:
        return [text]

    pieces: List[str] = []
    current = ""
    for paragraph in _PARAGRAPH_RE.split(text):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if len(candidate) <= max_chars:
            current = candidate
            continue

        if current:
            pieces.append(current)
        if len(paragraph) > max_chars:
            parts = split_long_paragraph(paragraph, max_chars=max_chars)
            current = parts.pop() if parts else ""
            pieces.extend(parts)
        else:
            current = paragraph

    if current:
        pieces.append(current)

    return add_overlap(pieces, overlap)


def split_long_paragraph(paragraph: str, *, max_chars: int = 1500) -> List[str]:
    """Split a paragraph on sentence ends, falling back to word boundaries."""
    sentences = [s for s in _SENTENCE_RE.findall(paragraph) if s]
    pieces: List[str] = []
    current = ""

    for sentence in sentences:
        if len(current) + len(sentence) <= max_chars:
            current += sentence
            continue

        if current.strip():
            pieces.append(current.strip())
        if len(sentence) > max_chars:
            parts = _split_words(sentence, max_chars)
            current = parts.pop() if parts else ""
            pieces.extend(parts)
        else:
            current = sentence

    if current.strip():
        pieces.append(current.strip())
    return pieces


def _split_words(sentence: str, max_chars: int) -> List[str]:
    pieces: List[str] = []
    current = ""
    for word in sentence.split():
        # Nothing else to break on: cut oversized tokens (URLs, hashes) hard.
        while len(word) > max_chars:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(word[:max_chars])
            word = word[max_chars:]
        if not word:
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_chars:
            current = candidate
        else:
            pieces.append(current)
            current = word
    if current:
        pieces.append(current)
    return pieces


def add_overlap(pieces: List[str], overlap: int) -> List[str]:
    """Prefix every piece after the first with the word-aligned tail of its predecessor."""
    tail_size = overlap - len(OVERLAP_MARKER)
    if len(pieces) <= 1 or tail_size <= 0:
        return list(pieces)

    overlapped = [pieces[0]]
    for previous, piece in zip(pieces, pieces[1:]):
        tail = previous[-tail_size:]
        boundary = tail.find(" ")
        if 0 <= boundary < len(tail) - 1:
            piece = tail[boundary + 1 :] + OVERLAP_MARKER + piece
        overlapped.append(piece)
    return overlapped


def strip_overlap(content: str) -> str:
    """Return the chunk body without an injected overlap prefix."""
    head, marker, body = content.partition(OVERLAP_MARKER)
    return body if marker else head


def extract_code_blocks(text: str) -> List[CodeBlock]:
    """Collect fenced and indented code blocks from a chunk of text."""
    blocks = [
        CodeBlock(code=match.group(2).strip(), language=match.group(1) or None)
        for match in _FENCED_CODE_RE.finditer(text)
    ]

    current: List[str] = []
    for line in text.split("\n") + [""]:
        if line.startswith("    ") or line.startswith("\t"):
            current.append(line[4:] if line.startswith("    ") else line[1:])
            continue
        if len(current) > 1:
            blocks.append(CodeBlock(code="\n".join(current).strip()))
        current = []
    return blocks
