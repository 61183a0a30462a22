import re
from typing import Dict, List, Pattern, Tuple

from models.signals import SignalSet


PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
URL_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)
DOLLAR_PATTERN = re.compile(r"\$\d+")
UPPERCASE_PATTERN = re.compile(r"[A-Z]")
TERMINAL_PUNCTUATION = re.compile(r"[.!?]\Z")

URGENCY_TERMS = ["urgent", "immediately", "expires", "deadline", "act now", "limited time"]
FEAR_TERMS = [
    "arrest",
    "legal action",
    "suspended",
    "investigation",
    "warrant",
    "criminal",
    "fraud",
    "penalty",
]
IMPERSONATION_TERMS = [
    "government",
    "irs",
    "fbi",
    "police",
    "court",
    "official",
    "department",
    "agency",
    "microsoft",
    "apple",
    "amazon",
    "google",
    "bank",
    "paypal",
]
FINANCIAL_TERMS = [
    "payment",
    "money",
    "credit card",
    "bank account",
    "wire transfer",
    "gift card",
    "bitcoin",
]
COMMON_MISSPELLINGS = ["recieve", "seperate", "occured", "definately"]

OPTIMAL_LENGTH = 150
NEUTRAL_GRAMMAR = 0.5


def _term_patterns(terms: List[str]) -> List[Pattern]:
    return [re.compile(r"\b" + re.escape(term) + r"\b", re.IGNORECASE) for term in terms]


_CATEGORIES: Dict[str, Tuple[List[str], List[Pattern]]] = {
    "urgency": (URGENCY_TERMS, _term_patterns(URGENCY_TERMS)),
    "fear_language": (FEAR_TERMS, _term_patterns(FEAR_TERMS)),
    "impersonation": (IMPERSONATION_TERMS, _term_patterns(IMPERSONATION_TERMS)),
    "financial_request": (FINANCIAL_TERMS, _term_patterns(FINANCIAL_TERMS)),
}


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _category_hits(text: str, category: str) -> int:
    _, patterns = _CATEGORIES[category]
    return sum(len(p.findall(text)) for p in patterns)


def _category_score(text: str, category: str, extra_hits: int = 0) -> float:
    terms, _ = _CATEGORIES[category]
    hits = _category_hits(text, category) + extra_hits
    return _clamp(hits / len(terms))


def grammar_quality(text: str) -> float:
    if not text:
        return NEUTRAL_GRAMMAR
    score = 1.0
    if not TERMINAL_PUNCTUATION.search(text):
        score -= 0.2
    if text.count("!") > 2:
        score -= 0.3
    lowered = text.lower()
    for word in COMMON_MISSPELLINGS:
        if word in lowered:
            score -= 0.2
    return _clamp(score)


def length_normalization(length: int) -> float:
    if length <= 0:
        return 0.0
    return _clamp(1 - abs(length - OPTIMAL_LENGTH) / OPTIMAL_LENGTH)


def capitalization_ratio(text: str) -> float:
    if not text:
        return 0.0
    ratio = len(UPPERCASE_PATTERN.findall(text)) / len(text)
    if ratio > 0.3:
        return 1.0
    if ratio > 0.2:
        return 0.7
    return _clamp(ratio * 2)


def extract_signals(text: str) -> SignalSet:
    """
    Turn raw text into a SignalSet.

    Pure and total: any string (including "") yields a bounded vector. Keyword
    categories score as hits / category size capped at 1.0.
    """
    text = text or ""
    if not text:
        return SignalSet(grammar_quality=NEUTRAL_GRAMMAR)

    return SignalSet(
        urgency=_category_score(text, "urgency"),
        fear_language=_category_score(text, "fear_language"),
        impersonation=_category_score(text, "impersonation"),
        financial_request=_category_score(
            text,
            "financial_request",
            extra_hits=len(DOLLAR_PATTERN.findall(text)),
        ),
        grammar_quality=grammar_quality(text),
        length_normalization=length_normalization(len(text)),
        capitalization_ratio=capitalization_ratio(text),
        phone_numbers=len(PHONE_PATTERN.findall(text)),
        email_addresses=len(EMAIL_PATTERN.findall(text)),
        urls=len(URL_PATTERN.findall(text)),
        char_count=len(text),
    )
