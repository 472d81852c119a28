"""Core sfdocs data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional

Confidence = Literal["high", "medium", "low"]


class DocCategory(str, Enum):
    CORE_PLATFORM = "core_platform"
    APIS = "apis"
    DEV_TOOLS = "dev_tools"
    CLOUDS = "clouds"
    SECURITY = "security"
    INTEGRATION = "integration"
    BEST_PRACTICES = "best_practices"
    RELEASE_NOTES = "release_notes"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


class DocType(str, Enum):
    DEVELOPER_GUIDE = "developer_guide"
    API_REFERENCE = "api_reference"
    CHEATSHEET = "cheatsheet"
    IMPLEMENTATION_GUIDE = "implementation_guide"
    RELEASE_NOTES = "release_notes"
    WORKBOOK = "workbook"


CATEGORY_LABELS = {
    DocCategory.CORE_PLATFORM: "Core Platform (Apex, LWC, Visualforce, SOQL)",
    DocCategory.APIS: "APIs (REST, SOAP, Metadata, Bulk, Tooling)",
    DocCategory.DEV_TOOLS: "Development Tools (SFDX, VS Code, Packaging)",
    DocCategory.CLOUDS: "Clouds & Products (Sales, Service, Experience)",
    DocCategory.SECURITY: "Security & Identity",
    DocCategory.INTEGRATION: "Integration Patterns",
    DocCategory.BEST_PRACTICES: "Best Practices & Limits",
    DocCategory.RELEASE_NOTES: "Release Notes",
}


@dataclass(slots=True)
class DocumentMetadata:
    """Metadata row describing one indexed PDF manual."""

    file_name: str
    file_path: str
    category: DocCategory
    title: str
    subcategory: Optional[str] = None
    doc_type: DocType = DocType.DEVELOPER_GUIDE
    description: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    api_version: Optional[str] = None
    last_updated: Optional[str] = None
    page_count: int = 0
    size_bytes: int = 0
    priority: int = 5
    id: Optional[int] = None

    def __post_init__(self) -> None:
        self.category = DocCategory(self.category)
        self.doc_type = DocType(self.doc_type)
        if not 1 <= self.priority <= 10:
            raise ValueError(f"priority must be between 1 and 10, got {self.priority}")


@dataclass(slots=True)
class ChunkRecord:
    """Chunk of document text ready to be persisted."""

    index: int
    content: str
    section_title: Optional[str] = None
    page_number: Optional[int] = None

    @property
    def content_lower(self) -> str:
        return self.content.lower()


@dataclass(slots=True)
class DetectedIntent:
    """Outcome of keyword-pattern intent detection for a query."""

    confidence: Confidence
    category: Optional[str] = None
    subcategory: Optional[str] = None
    matched_patterns: List[str] = field(default_factory=list)
    total_weight: int = 0


@dataclass(slots=True)
class IntentSummary:
    """Intent attached to results when an automatic topic filter was used."""

    category: Optional[str]
    subcategory: Optional[str]
    confidence: Confidence
    description: str


@dataclass(slots=True)
class QueryExpansion:
    expanded_terms: List[str]
    detected_concepts: List[str]
    confidence: Confidence
    reasoning: str
    suggested_category: Optional[str] = None


@dataclass(slots=True)
class DocumentSummary:
    """Lightweight listing entry used to browse the corpus."""

    id: int
    file_name: str
    title: str
    description: str
    category: str
    subcategory: str
    keywords: List[str]


@dataclass(slots=True)
class CategoryCount:
    category: str
    count: int
    subcategories: List[tuple[str, int]] = field(default_factory=list)
