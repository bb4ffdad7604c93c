"""Synchronous keystroke search: tiered string matching plus a recency bonus.

Runs over raw entries, never touches the vector index or the network, and
never raises for ordinary input.

Match tiers (first match wins, no summation):
  90 domain prefix     80 domain substring   70 fuzzy domain
  50 path substring    40 fuzzy full URL     30 title substring
  20 fuzzy title        0 no match
"""

from datetime import datetime
from typing import Iterable, Optional
from urllib.parse import urlsplit

from .models import Candidate, DocumentType, RankedCandidate, as_utc, utcnow


SECONDS_PER_DAY = 86400


def fuzzy_subsequence_match(pattern: str, text: str) -> bool:
    """True if every character of pattern appears in text, in order.

    "lnk" matches "linkedin.com"; "xyz" does not.
    """
    remaining = iter(text)
    return all(char in remaining for char in pattern)


def match_score(query: str, domain: str, path: str, full_url: str, title: str) -> int:
    if domain.startswith(query):
        return 90
    if query in domain:
        return 80
    if fuzzy_subsequence_match(query, domain):
        return 70
    if query in path:
        return 50
    if fuzzy_subsequence_match(query, full_url):
        return 40
    if query in title:
        return 30
    if fuzzy_subsequence_match(query, title):
        return 20
    return 0


def frecency_bonus(visited_at: datetime, now: Optional[datetime] = None) -> int:
    """Recency bonus by whole days since the visit."""
    now = as_utc(now) if now is not None else utcnow()
    elapsed = (now - as_utc(visited_at)).total_seconds()
    days = int(elapsed // SECONDS_PER_DAY)

    if days == 0:
        return 10  # today
    if days == 1:
        return 8  # yesterday
    if 2 <= days <= 6:
        return 5  # this week
    if 7 <= days <= 30:
        return 2  # this month
    return 0


def _url_parts(url: str) -> tuple[str, str, str]:
    try:
        parts = urlsplit(url)
        domain = parts.hostname or ""
        path = parts.path
    except ValueError:
        domain, path = "", ""
    return domain.lower(), path.lower(), url.lower()


class HybridLexicalRanker:
    """Scores raw history/tab/bookmark entries against a typed query.

    Design decisions:
    - History entries get match score + frecency bonus; tabs and bookmarks
      get the match score alone
    - Entries with match score 0 are dropped whatever their recency
    - History entries sharing host and title are reported once
    - Optional cap on how many history entries are scanned
    """

    def __init__(self, history_scan_limit: Optional[int] = None):
        self.history_scan_limit = history_scan_limit

    def rank(
        self,
        query: str,
        candidates: Iterable[Candidate],
        now: Optional[datetime] = None,
    ) -> list[RankedCandidate]:
        query = query.strip().lower()
        if not query:
            return []

        now = now or utcnow()
        seen_history: set[str] = set()
        history_scanned = 0
        ranked: list[RankedCandidate] = []

        for candidate in candidates:
            is_history = candidate.kind == DocumentType.HISTORY
            if is_history:
                if (
                    self.history_scan_limit is not None
                    and history_scanned >= self.history_scan_limit
                ):
                    continue
                history_scanned += 1

            domain, path, full_url = _url_parts(candidate.url)
            score = match_score(query, domain, path, full_url, candidate.title.lower())
            if score == 0:
                continue

            bonus = 0
            if is_history:
                dedupe_key = f"{domain}||{candidate.title}"
                if dedupe_key in seen_history:
                    continue
                seen_history.add(dedupe_key)
                if candidate.visited_at is not None:
                    bonus = frecency_bonus(candidate.visited_at, now)

            ranked.append(
                RankedCandidate(candidate=candidate, match_score=score, frecency_bonus=bonus)
            )

        # list.sort is stable: ties keep discovery order
        ranked.sort(key=lambda r: r.score, reverse=True)
        return ranked


def rank(
    query: str,
    candidates: Iterable[Candidate],
    now: Optional[datetime] = None,
) -> list[RankedCandidate]:
    return HybridLexicalRanker().rank(query, candidates, now=now)
