"""Keyword heuristics that narrow a natural-language query to one document type."""

import re
from typing import Optional

from .models import DocumentType, QueryIntent

# English plus the French terms the browser UI ships with
INTENT_KEYWORDS: dict[QueryIntent, frozenset[str]] = {
    QueryIntent.TABS: frozenset({"tab", "onglet", "ouvert", "open", "current"}),
    QueryIntent.HISTORY: frozenset(
        {
            "visited",
            "visité",
            "read",
            "yesterday",
            "hier",
            "week",
            "semaine",
            "ago",
            "passé",
            "history",
            "historique",
            "lu",
        }
    ),
    QueryIntent.BOOKMARKS: frozenset(
        {"bookmark", "favori", "favorite", "saved", "enregistré", "sauvé"}
    ),
}

_INTENT_TYPES = {
    QueryIntent.TABS: DocumentType.TAB,
    QueryIntent.HISTORY: DocumentType.HISTORY,
    QueryIntent.BOOKMARKS: DocumentType.BOOKMARK,
}

_WORD = re.compile(r"\w+")


def classify(query: str) -> set[QueryIntent]:
    """Detect which document types a query is about.

    A keyword matches when a word of the query starts with it, so "tabs"
    and "bookmarked" count but "solution" does not match "lu".
    Falls back to {TOPIC} when nothing matches.
    """
    words = _WORD.findall(query.lower())
    intents = {
        intent
        for intent, keywords in INTENT_KEYWORDS.items()
        if any(word.startswith(keyword) for word in words for keyword in keywords)
    }
    return intents or {QueryIntent.TOPIC}


def type_filter_for(intents: set[QueryIntent]) -> Optional[list[DocumentType]]:
    """Single-type filter when exactly one type intent was detected, else None."""
    typed = [intent for intent in intents if intent in _INTENT_TYPES]
    if len(typed) != 1:
        return None
    return [_INTENT_TYPES[typed[0]]]
