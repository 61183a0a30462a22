from typing import Dict, List

from models.trends import ScamTrend
from services.trend_catalog import TrendCatalog


TACTIC_PHRASES: Dict[str, List[str]] = {
    "urgency creation": ["urgent", "immediately", "right now", "expires", "limited time"],
    "fear tactics": ["arrest", "legal action", "suspended", "fraud", "investigation"],
    "official impersonation": ["government", "irs", "fbi", "police", "court"],
    "emotional manipulation": ["emergency", "accident", "hospital", "help me", "please"],
}

KEYWORD_POINTS = 2
TACTIC_POINTS = 1
MIN_MATCH_SCORE = 2


def tactic_matches(lowered_text: str, tactic: str) -> bool:
    phrases = TACTIC_PHRASES.get(tactic.lower(), [])
    return any(phrase in lowered_text for phrase in phrases)


def match_score(text: str, trend: ScamTrend) -> int:
    lowered = (text or "").lower()
    score = 0
    for keyword in trend.keywords:
        if keyword.lower() in lowered:
            score += KEYWORD_POINTS
    for tactic in trend.tactics:
        if tactic_matches(lowered, tactic):
            score += TACTIC_POINTS
    return score


class TrendMatcher:
    def __init__(self, catalog: TrendCatalog):
        self._catalog = catalog

    def match(self, text: str) -> List[ScamTrend]:
        """
        Qualifying trends ranked by reported case volume, not by match
        strength: the most widely reported campaign is surfaced first.
        """
        if not text:
            return []
        matches = [t for t in self._catalog.list_trends() if match_score(text, t) >= MIN_MATCH_SCORE]
        matches.sort(key=lambda t: t.reported_cases, reverse=True)
        return matches
