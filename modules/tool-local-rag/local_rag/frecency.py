"""Frequency/recency scoring for visited URLs.

score = visit_weight * visit_count * exp(-DECAY_CONSTANT * days_since_visit)

With DECAY_CONSTANT = 0.1 the score halves roughly every 7 days.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Optional

from .models import Candidate, DocumentType, as_utc, utcnow

TYPED_URL_WEIGHT = 100.0
BOOKMARK_WEIGHT = 75.0
CLICKED_LINK_WEIGHT = 50.0

DECAY_CONSTANT = 0.1


class VisitType(Enum):
    TYPED_URL = TYPED_URL_WEIGHT
    BOOKMARK = BOOKMARK_WEIGHT
    CLICKED_LINK = CLICKED_LINK_WEIGHT

    @property
    def weight(self) -> float:
        return self.value


def days_since(when: datetime, now: Optional[datetime] = None) -> float:
    """Fractional days elapsed since when."""
    now = as_utc(now) if now is not None else utcnow()
    return (now - as_utc(when)).total_seconds() / 86400


def calculate_score(
    visit_count: int,
    last_visit: datetime,
    typed_count: Optional[int] = None,
    visit_type: VisitType = VisitType.CLICKED_LINK,
    now: Optional[datetime] = None,
) -> float:
    """Frecency score for a URL.

    Args:
        visit_count: Total number of visits
        last_visit: Most recent visit
        typed_count: Visits typed directly into the address bar. When given,
            the weight is the typed/clicked blend and visit_type is ignored.
        visit_type: Representative visit type when typed_count is not known
        now: Reference time (default: current UTC time)

    Returns:
        Score, higher = more frequent and more recent
    """
    recency = math.exp(-DECAY_CONSTANT * days_since(last_visit, now))

    if typed_count is None:
        weight = visit_type.weight
    else:
        typed = typed_count / visit_count if visit_count > 0 else 0.0
        weight = typed * TYPED_URL_WEIGHT + (1.0 - typed) * CLICKED_LINK_WEIGHT

    return weight * visit_count * recency


def candidate_score(candidate: Candidate, now: Optional[datetime] = None) -> float:
    """Frecency of a raw history or bookmark entry.

    Entries never visited, or without a visit time, score 0. Bookmarks
    without typed counts use the bookmark weight.
    """
    if candidate.visit_count <= 0 or candidate.visited_at is None:
        return 0.0

    visit_type = (
        VisitType.BOOKMARK
        if candidate.kind == DocumentType.BOOKMARK
        else VisitType.CLICKED_LINK
    )
    return calculate_score(
        candidate.visit_count,
        candidate.visited_at,
        typed_count=candidate.typed_count,
        visit_type=visit_type,
        now=now,
    )


def is_fresh(
    last_visit: datetime, threshold_days: float = 1, now: Optional[datetime] = None
) -> bool:
    return days_since(last_visit, now) < threshold_days


def category_for_score(score: float) -> str:
    if score >= 1000:
        return "Very Frequent"
    if score >= 500:
        return "Frequent"
    if score >= 100:
        return "Regular"
    if score >= 10:
        return "Occasional"
    return "Rare"
