from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class SignalSet:
    urgency: float = 0.0
    fear_language: float = 0.0
    impersonation: float = 0.0
    financial_request: float = 0.0
    grammar_quality: float = 0.0
    length_normalization: float = 0.0
    capitalization_ratio: float = 0.0

    phone_numbers: int = 0
    email_addresses: int = 0
    urls: int = 0

    char_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.char_count == 0

    def features(self) -> Dict[str, float]:
        return {
            "urgency": self.urgency,
            "fear_language": self.fear_language,
            "impersonation": self.impersonation,
            "financial_request": self.financial_request,
            "grammar_quality": self.grammar_quality,
            "length_normalization": self.length_normalization,
            "capitalization_ratio": self.capitalization_ratio,
        }

    def counts(self) -> Dict[str, int]:
        return {
            "phone_numbers": self.phone_numbers,
            "email_addresses": self.email_addresses,
            "urls": self.urls,
        }

    def to_payload(self) -> Dict[str, float]:
        payload: Dict[str, float] = dict(self.features())
        payload.update(self.counts())
        return payload


@dataclass(frozen=True)
class PatternMatch:
    category: str
    matches: Tuple[str, ...] = ()

    @property
    def count(self) -> int:
        return len(self.matches)


@dataclass(frozen=True)
class Factor:
    key: str
    label: str
    weight: float
    contribution: float


@dataclass(frozen=True)
class Prediction:
    is_scam: bool
    risk_score: float
    confidence: float
    patterns: List[str] = field(default_factory=list)
    factors: List[Factor] = field(default_factory=list)
    fired_features: int = 0
    weights_version: int = 0

    @property
    def label(self) -> str:
        return "scam" if self.is_scam else "legitimate"

    def factor_labels(self) -> List[str]:
        return [f.label for f in self.factors]
