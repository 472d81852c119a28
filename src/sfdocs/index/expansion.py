"""Query expansion into technical search terms."""

from __future__ import annotations

from typing import Dict, List, Optional

from sfdocs.index.intent import detect_intent
from sfdocs.models import DetectedIntent, QueryExpansion

MAX_EXPANDED_TERMS = 20
MAX_CONTEXT_TERMS = 5
MIN_TERM_LENGTH = 3

SYNONYMS: Dict[str, List[str]] = {
    "lwc": ["lightning web component", "web component", "lightning-"],
    "apex": ["salesforce apex", "apex class", "apex trigger"],
    "trigger": ["apex trigger", "before trigger", "after trigger"],
    "soql": ["salesforce query", "select from", "query"],
    "rest api": ["restful api", "rest endpoint", "/services/data/"],
    "bulk api": ["bulk 2.0", "bulk data load", "data loader api"],
    "permission": ["permission set", "profile", "sharing rules"],
    "deploy": ["deployment", "change set", "metadata deploy"],
    "test": ["test class", "unit test", "apex test", "testmethod"],
    "callout": ["http callout", "external callout", "web service"],
    "authentication": ["oauth", "login", "sso", "connected app"],
    "governor limits": ["limits", "dml limits", "soql limits"],
}

CATEGORY_TERMS: Dict[str, List[str]] = {
    "apex": ["trigger", "class", "test", "governor limits", "batch", "future"],
    "lightning": ["lwc", "@wire", "@api", "component", "aura", "lightning-"],
    "visualforce": ["apex:page", "controller", "extension", "apex:form"],
    "soql_sosl": ["SELECT", "FROM", "WHERE", "relationship", "aggregate"],
    "rest_api": ["endpoint", "sobject", "composite", "JSON", "HTTP"],
    "bulk_api": ["job", "batch", "CSV", "data load"],
    "metadata_api": ["package.xml", "deploy", "retrieve", "manifest"],
    "streaming_api": ["PushTopic", "CDC", "Platform Event", "subscribe"],
    "tooling_api": ["ApexTestRun", "debug", "execute anonymous"],
    "sfdx_cli": ["sf", "scratch org", "source push", "dev hub"],
    "security": ["permission set", "sharing", "FLS", "profile", "oauth"],
    "integration": ["callout", "HTTP", "external service", "named credential"],
}


def expand_query(query: str, context: Optional[str] = None) -> QueryExpansion:
    """Derive a recall-oriented term list for a query.

    Combines the trigger phrases the intent detector matched, their synonyms,
    the query's own words, a few context words and the vocabulary of the
    detected subcategory. Terms are deduplicated case-insensitively and capped
    at twenty.
    """
    intent = detect_intent(query)
    concepts = list(intent.matched_patterns)

    terms: List[str] = list(concepts)
    for concept in concepts:
        terms.extend(SYNONYMS.get(concept.lower(), []))

    terms.extend(word for word in query.split() if len(word) >= MIN_TERM_LENGTH)

    if context:
        context_words = [word for word in context.split() if len(word) >= MIN_TERM_LENGTH]
        terms.extend(context_words[:MAX_CONTEXT_TERMS])

    if intent.subcategory:
        terms.extend(CATEGORY_TERMS.get(intent.subcategory, []))

    return QueryExpansion(
        expanded_terms=_dedupe(terms)[:MAX_EXPANDED_TERMS],
        detected_concepts=concepts,
        confidence=intent.confidence,
        reasoning=_build_reasoning(intent, concepts),
        suggested_category=intent.category,
    )


def _dedupe(terms: List[str]) -> List[str]:
    seen: set[str] = set()
    unique: List[str] = []
    for term in terms:
        key = term.lower()
        if key not in seen:
            seen.add(key)
            unique.append(term)
    return unique


def _build_reasoning(intent: DetectedIntent, concepts: List[str]) -> str:
    parts: List[str] = []
    if concepts:
        parts.append(f"Detected concepts: {', '.join(concepts[:5])}")
    if intent.category:
        parts.append(f"Suggested category: {intent.category}")

    if intent.confidence == "high":
        parts.append("High confidence match - specific documentation area identified")
    elif intent.confidence == "medium":
        parts.append("Medium confidence - multiple possible areas detected")
    else:
        parts.append("Low confidence - broad search recommended")
    return ". ".join(parts)
