from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from ..schemas import ScoredResult
from .snippets import clean_query

# (exclusive lower bound on stars, points), checked top-down
POPULARITY_BANDS: Sequence[Tuple[int, float]] = (
    (1000, 5.0),
    (500, 4.0),
    (100, 3.0),
    (50, 2.0),
    (10, 1.0),
)

# (exclusive upper bound on age in days, points), checked top-down
RECENCY_BANDS: Sequence[Tuple[int, float]] = (
    (30, 3.0),
    (90, 2.0),
    (365, 1.0),
)

CONTENT_MATCH_MAX = 5.0
MAX_SCORE = 15.0


def popularity_score(stars: int) -> float:
    for threshold, points in POPULARITY_BANDS:
        if stars > threshold:
            return points
    return 0.0


def parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def recency_score(last_updated: str, now: Optional[datetime] = None) -> float:
    updated = parse_timestamp(last_updated)
    if updated is None:
        return 0.0
    now = now or datetime.now(timezone.utc)
    # timedelta.days is already floored
    days = (now - updated).days
    for limit, points in RECENCY_BANDS:
        if days < limit:
            return points
    return 0.0


def content_match_score(snippet: str, query: str) -> float:
    terms: List[str] = clean_query(query).split()
    snippet_lower = snippet.lower()
    matching = [term for term in terms if term in snippet_lower]
    if len(matching) == len(terms):
        return CONTENT_MATCH_MAX
    return CONTENT_MATCH_MAX * len(matching) / len(terms)


def code_quality_score(snippet: str) -> float:
    score = 0.0
    if "docstring" in snippet.lower() or '"""' in snippet:
        score += 1.0
    if snippet.count("#") > 2:  # comments
        score += 1.0
    return score


def compute_score(result: ScoredResult, query: str, now: Optional[datetime] = None) -> float:
    return (
        popularity_score(result.stars)
        + recency_score(result.last_updated, now)
        + content_match_score(result.code_snippet, query)
        + code_quality_score(result.code_snippet)
    )
