"""Keyword-pattern intent detection for documentation queries.

Each pattern maps a set of trigger phrases to a (category, subcategory) scope
with a weight. A query accumulates ``weight * matched phrases`` per scope; the
heaviest scope wins and the total weight over every matched pattern decides
how confident the detection is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from sfdocs.models import Confidence, DetectedIntent

HIGH_CONFIDENCE_WEIGHT = 15
MEDIUM_CONFIDENCE_WEIGHT = 7


@dataclass(frozen=True, slots=True)
class IntentPattern:
    keywords: Tuple[str, ...]
    category: str
    subcategory: str
    weight: int


def _p(keywords: Sequence[str], category: str, subcategory: str, weight: int) -> IntentPattern:
    return IntentPattern(tuple(keywords), category, subcategory, weight)


INTENT_PATTERNS: Tuple[IntentPattern, ...] = (
    # Apex
    _p(["apex", "trigger", "class", "soql in apex"], "core_platform", "apex", 10),
    _p(["batch apex", "queueable", "schedulable", "future method"], "core_platform", "apex", 12),
    _p(["apex test", "test class", "testmethod", "test.starttest"], "core_platform", "apex", 10),
    _p(["apex governor", "limits", "governor limits"], "core_platform", "apex", 10),
    # Lightning Web Components and Aura
    _p(["lwc", "lightning web component", "web component"], "core_platform", "lightning", 10),
    _p(["@wire", "@api", "@track", "lightning-"], "core_platform", "lightning", 10),
    _p(["lwc lifecycle", "connectedcallback", "renderedcallback"], "core_platform", "lightning", 12),
    _p(["aura", "aura component", "lightning component", "component bundle"], "core_platform", "lightning", 8),
    # Visualforce
    _p(["visualforce", "apex:page", "apex:form", "vf page"], "core_platform", "visualforce", 10),
    # SOQL / SOSL
    _p(["soql", "select from", "where clause", "relationship query"], "core_platform", "soql_sosl", 10),
    _p(["sosl", "find", "search query"], "core_platform", "soql_sosl", 10),
    # Formulas
    _p(["formula", "formula field", "validation rule", "workflow rule"], "core_platform", "formulas", 8),
    # REST
    _p(["rest api", "restful", "/services/data/", "sobject"], "apis", "rest_api", 10),
    _p(["composite api", "composite request", "batch request"], "apis", "rest_api", 12),
    # SOAP
    _p(["soap api", "enterprise wsdl", "partner wsdl"], "apis", "soap_api", 10),
    # Metadata
    _p(["metadata api", "deploy", "retrieve", "package.xml"], "apis", "metadata_api", 10),
    # Bulk
    _p(["bulk api", "bulk 2.0", "bulk data", "data loader"], "apis", "bulk_api", 10),
    # Streaming
    _p(
        ["streaming api", "pushtopic", "platform event", "cdc", "change data capture"],
        "apis", "streaming_api", 10,
    ),
    # Tooling
    _p(["tooling api", "execute anonymous", "debug log", "apextestrun"], "apis", "tooling_api", 10),
    # Chatter / Connect and Analytics
    _p(["chatter api", "connect api", "feed item"], "apis", "specialized_apis", 8),
    _p(["analytics api", "reports api", "dashboard api", "wave"], "apis", "specialized_apis", 8),
    # Salesforce CLI
    _p(["sfdx", "sf cli", "salesforce cli", "dx"], "dev_tools", "sfdx_cli", 10),
    _p(["scratch org", "dev hub", "source push", "source pull"], "dev_tools", "sfdx_cli", 10),
    # Packaging
    _p(["package", "unlocked package", "2gp", "managed package"], "dev_tools", "packaging", 10),
    _p(["isvforce", "appexchange", "security review"], "dev_tools", "packaging", 8),
    # DevOps
    _p(["devops", "ci/cd", "deployment", "git", "version control"], "dev_tools", "devops", 8),
    # Mobile
    _p(["mobile sdk", "salesforce mobile", "mobile app"], "dev_tools", "mobile_sdk", 8),
    # Security
    _p(["security", "permission", "sharing", "fls", "field level security"], "security", "security", 10),
    _p(["oauth", "connected app", "jwt", "authentication"], "security", "security", 10),
    _p(["encryption", "shield", "platform encryption"], "security", "security", 10),
    # Integration
    _p(["integration", "callout", "external service", "http"], "integration", "integration", 8),
    _p(["mulesoft", "anypoint", "heroku"], "integration", "integration", 8),
    _p(["external object", "odata", "salesforce connect"], "integration", "integration", 8),
    # Clouds
    _p(["sales cloud", "opportunity", "lead", "account", "contact"], "clouds", "sales_cloud", 6),
    _p(["service cloud", "case", "knowledge", "omni-channel"], "clouds", "service_cloud", 6),
    _p(["experience cloud", "community", "site", "portal"], "clouds", "experience_cloud", 8),
    _p(["marketing cloud", "journey builder", "email studio"], "clouds", "marketing_cloud", 8),
    _p(["crm analytics", "tableau crm", "einstein analytics"], "clouds", "analytics_cloud", 8),
    # Best practices
    _p(["best practice", "pattern", "anti-pattern", "design pattern"], "best_practices", "best_practices", 6),
    _p(["performance", "optimization", "bulkification"], "best_practices", "best_practices", 6),
    # Release notes
    _p(["release notes", "new feature", "summer", "winter", "spring"], "release_notes", "release_notes", 8),
)

CATEGORY_DESCRIPTIONS: Dict[str, str] = {
    "core_platform": "Core Platform Development",
    "apis": "API Reference",
    "dev_tools": "Development Tools",
    "clouds": "Cloud Products",
    "security": "Security & Permissions",
    "integration": "Integration Patterns",
    "best_practices": "Best Practices",
    "release_notes": "Release Notes",
}

SUBCATEGORY_DESCRIPTIONS: Dict[str, str] = {
    "apex": "Apex Development",
    "lightning": "Lightning (LWC/Aura)",
    "visualforce": "Visualforce",
    "soql_sosl": "SOQL/SOSL Queries",
    "formulas": "Formulas",
    "rest_api": "REST API",
    "soap_api": "SOAP API",
    "metadata_api": "Metadata API",
    "bulk_api": "Bulk API",
    "streaming_api": "Streaming API",
    "tooling_api": "Tooling API",
    "specialized_apis": "Specialized APIs",
    "sfdx_cli": "Salesforce CLI",
    "packaging": "Packaging",
    "devops": "DevOps",
    "mobile_sdk": "Mobile SDK",
    "security": "Security",
    "integration": "Integration",
    "sales_cloud": "Sales Cloud",
    "service_cloud": "Service Cloud",
    "experience_cloud": "Experience Cloud",
    "marketing_cloud": "Marketing Cloud",
    "analytics_cloud": "CRM Analytics",
    "best_practices": "Best Practices",
    "release_notes": "Release Notes",
}


def confidence_for(total_weight: int) -> Confidence:
    if total_weight >= HIGH_CONFIDENCE_WEIGHT:
        return "high"
    if total_weight >= MEDIUM_CONFIDENCE_WEIGHT:
        return "medium"
    return "low"


def detect_intent(
    query: str, patterns: Sequence[IntentPattern] = INTENT_PATTERNS
) -> DetectedIntent:
    """Map a free-text query to the documentation scope it most likely targets."""
    query_lower = query.lower()
    scores: Dict[Tuple[str, str], int] = {}
    matched: List[str] = []
    total_weight = 0

    for pattern in patterns:
        hits = [keyword for keyword in pattern.keywords if keyword.lower() in query_lower]
        if not hits:
            continue
        key = (pattern.category, pattern.subcategory)
        gained = pattern.weight * len(hits)
        scores[key] = scores.get(key, 0) + gained
        total_weight += gained
        matched.extend(hits)

    best: Tuple[str, str] | None = None
    best_weight = 0
    # Dicts keep insertion order, so the first declared scope wins a tie.
    for key, weight in scores.items():
        if best is None or weight > best_weight:
            best, best_weight = key, weight

    return DetectedIntent(
        confidence=confidence_for(total_weight),
        category=best[0] if best else None,
        subcategory=best[1] if best else None,
        matched_patterns=list(dict.fromkeys(matched)),
        total_weight=total_weight,
    )


def describe_intent(intent: DetectedIntent) -> str:
    """Human-readable label for a detected intent."""
    if not intent.category:
        return "General Salesforce documentation search"

    category_label = CATEGORY_DESCRIPTIONS.get(intent.category, intent.category)
    subcategory_label = (
        SUBCATEGORY_DESCRIPTIONS.get(intent.subcategory, intent.subcategory)
        if intent.subcategory
        else ""
    )
    if subcategory_label and subcategory_label != category_label:
        return f"{category_label} - {subcategory_label}"
    return category_label
