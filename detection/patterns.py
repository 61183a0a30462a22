import re
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from models.signals import PatternMatch


# Each category is one alternation; regex alternations over literals stay linear in text length.
DEFAULT_PATTERNS: Dict[str, List[str]] = {
    "urgent_action": ["urgent", "immediately", "expires?", "act now", "limited time", "deadline"],
    "authority_impersonation": ["government", "irs", "fbi", "police", "court", "official", "department"],
    "fear_tactics": ["arrest", "legal action", "suspended", "investigation", "warrant", "criminal"],
    "financial_request": ["payment", "money", "credit card", "bank account", "wire transfer", "gift card"],
    "verification_request": ["verify", "confirm", "update", "provide", "social security", "ssn", "password"],
    "contact_pressure": ["call now", "click here", "reply immediately", "dont delay", "contact us"],
    "tech_support": ["virus", "malware", "infected", "security alert", "microsoft", "apple", "tech support"],
    "prize_lottery": ["won", "winner", "lottery", "prize", "congratulations", "claim", "reward"],
}


def _compile(terms: Iterable[str]) -> Pattern:
    return re.compile(r"\b(?:" + "|".join(terms) + r")\b", re.IGNORECASE)


class PatternRegistry:
    def __init__(self, patterns: Optional[Dict[str, List[str]]] = None):
        source = patterns if patterns is not None else DEFAULT_PATTERNS
        self._patterns: Tuple[Tuple[str, Pattern], ...] = tuple(
            (name, _compile(terms)) for name, terms in source.items()
        )

    def __len__(self) -> int:
        return len(self._patterns)

    def match_category(self, category: str, text: str) -> PatternMatch:
        for name, pattern in self._patterns:
            if name == category:
                return PatternMatch(category=name, matches=tuple(pattern.findall(text or "")))
        raise KeyError(category)

    def match(self, text: str) -> List[PatternMatch]:
        """Raw (uncapped) match counts for every category that hit at least once."""
        if not text:
            return []
        results = []
        for name, pattern in self._patterns:
            found = pattern.findall(text)
            if found:
                results.append(PatternMatch(category=name, matches=tuple(found)))
        return results

    def counts(self, text: str) -> Dict[str, int]:
        return {m.category: m.count for m in self.match(text)}
