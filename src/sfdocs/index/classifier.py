"""Filename-based classification of source manuals.

Rules are tried in order and the first pattern that matches the file name wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Pattern, Sequence

from sfdocs.models import DocCategory, DocType


@dataclass(frozen=True, slots=True)
class DocumentClassification:
    category: DocCategory
    subcategory: str
    doc_type: DocType
    priority: int
    keywords: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DocumentRule:
    pattern: Pattern[str]
    classification: DocumentClassification


def _rule(
    pattern: str,
    category: DocCategory,
    subcategory: str,
    doc_type: DocType,
    priority: int,
    keywords: List[str],
) -> DocumentRule:
    return DocumentRule(
        pattern=re.compile(pattern, re.IGNORECASE),
        classification=DocumentClassification(category, subcategory, doc_type, priority, keywords),
    )


_CORE = DocCategory.CORE_PLATFORM
_APIS = DocCategory.APIS
_TOOLS = DocCategory.DEV_TOOLS
_CLOUDS = DocCategory.CLOUDS
_GUIDE = DocType.DEVELOPER_GUIDE
_API_REF = DocType.API_REFERENCE

DEFAULT_RULES: Sequence[DocumentRule] = (
    _rule(r"apex", _CORE, "apex", _GUIDE, 9, ["apex", "class", "trigger", "dml"]),
    _rule(r"lwc|lightning", _CORE, "lightning", _GUIDE, 9, ["lwc", "lightning", "component", "aura"]),
    _rule(r"visualforce|pages_dev", _CORE, "visualforce", _GUIDE, 7, ["visualforce", "page", "controller"]),
    _rule(r"soql|sosl|query", _CORE, "soql_sosl", _GUIDE, 9, ["soql", "sosl", "query", "search"]),
    _rule(r"formula|validation", _CORE, "formulas", _GUIDE, 7, ["formula", "validation"]),
    _rule(r"api_rest|rest_api", _APIS, "rest_api", _API_REF, 10, ["rest", "api", "http", "endpoint"]),
    _rule(r"bulk", _APIS, "bulk_api", _API_REF, 8, ["bulk", "api", "data loading"]),
    _rule(r"meta", _APIS, "metadata_api", _API_REF, 9, ["metadata", "deploy", "retrieve"]),
    _rule(r"tooling", _APIS, "tooling_api", _API_REF, 8, ["tooling", "api", "development"]),
    _rule(r"streaming|platform_events|change_data", _APIS, "streaming_api", _API_REF, 8, ["streaming", "events", "cdc"]),
    _rule(r"^api\.|sforce_api|soap", _APIS, "soap_api", _API_REF, 7, ["soap", "api", "wsdl"]),
    _rule(r"chatter", _APIS, "chatter_api", _API_REF, 6, ["chatter", "social", "feed"]),
    _rule(r"analytics|bi_dev", _APIS, "analytics_api", _API_REF, 7, ["analytics", "tableau", "reports"]),
    _rule(r"sfdx|sf_cli", _TOOLS, "sfdx_cli", _GUIDE, 9, ["sfdx", "cli", "scratch org", "deploy"]),
    _rule(r"pkg|package|isv", _TOOLS, "packaging", _GUIDE, 8, ["package", "2gp", "1gp", "managed"]),
    _rule(r"devops|migration", _TOOLS, "devops", _GUIDE, 7, ["devops", "ci/cd", "pipeline"]),
    _rule(r"mobile|sdk", _TOOLS, "mobile_sdk", _GUIDE, 6, ["mobile", "sdk", "ios", "android"]),
    _rule(r"sales_|cpq", _CLOUDS, "sales_cloud", _GUIDE, 7, ["sales", "opportunity", "cpq", "quote"]),
    _rule(
        r"service_|case|chat|voice|field_service|knowledge",
        _CLOUDS, "service_cloud", _GUIDE, 7, ["service", "case", "knowledge", "chat"],
    ),
    _rule(r"communities|experience|exp_cloud", _CLOUDS, "experience_cloud", _GUIDE, 7, ["community", "experience", "portal", "site"]),
    _rule(r"marketing|buddymedia|radian", _CLOUDS, "marketing_cloud", _GUIDE, 5, ["marketing", "campaign", "email"]),
    _rule(
        r"health|fsc|insurance|automotive|edu_cloud|nonprofit|life_sciences|media|retail|mfg",
        _CLOUDS, "industry_clouds", _GUIDE, 6, ["industry", "vertical"],
    ),
    _rule(
        r"security|identity|secure_coding|restriction|access",
        DocCategory.SECURITY, "security", DocType.IMPLEMENTATION_GUIDE, 8,
        ["security", "authentication", "authorization", "sharing"],
    ),
    _rule(
        r"integration|canvas|federated|connect",
        DocCategory.INTEGRATION, "integration", _GUIDE, 7, ["integration", "external", "connect"],
    ),
    _rule(
        r"limits|large_data|bp|best_practice",
        DocCategory.BEST_PRACTICES, "limits", _GUIDE, 8, ["limits", "governor", "performance"],
    ),
    _rule(
        r"cheatsheet|static_sf",
        DocCategory.BEST_PRACTICES, "cheatsheets", DocType.CHEATSHEET, 8, ["cheatsheet", "quick reference"],
    ),
    _rule(
        r"workbook",
        DocCategory.BEST_PRACTICES, "workbooks", DocType.WORKBOOK, 7, ["workbook", "tutorial", "hands-on"],
    ),
    _rule(
        r"release",
        DocCategory.RELEASE_NOTES, "release_notes", DocType.RELEASE_NOTES, 6,
        ["release", "new feature", "what's new"],
    ),
    _rule(r"object|data|field", _CORE, "data_model", _GUIDE, 8, ["object", "field", "relationship", "data model"]),
)

DEFAULT_CLASSIFICATION = DocumentClassification(
    category=DocCategory.CORE_PLATFORM,
    subcategory="general",
    doc_type=DocType.DEVELOPER_GUIDE,
    priority=5,
)


def classify_document(
    file_name: str, rules: Sequence[DocumentRule] = DEFAULT_RULES
) -> DocumentClassification:
    for rule in rules:
        if rule.pattern.search(file_name):
            return rule.classification
    return DEFAULT_CLASSIFICATION
