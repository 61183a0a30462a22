from typing import Dict, List, Mapping, Optional, Tuple

from detection.patterns import PatternRegistry
from detection.signals import extract_signals
from models.signals import Factor, PatternMatch, Prediction, SignalSet
from models.training import ModelWeights


PATTERN_PREFIX = "pattern_"

DEFAULT_WEIGHTS: Dict[str, float] = {
    "urgency": 0.25,
    "fear_language": 0.30,
    "impersonation": 0.35,
    "financial_request": 0.40,
    # Good grammar pulls the score down; poor grammar lets the rest dominate.
    "grammar_quality": -0.20,
    "pattern_urgent_action": 0.15,
    "pattern_authority_impersonation": 0.25,
    "pattern_fear_tactics": 0.30,
    "pattern_financial_request": 0.35,
    "pattern_verification_request": 0.20,
    "pattern_contact_pressure": 0.15,
    "pattern_tech_support": 0.25,
    "pattern_prize_lottery": 0.30,
}

SCAM_THRESHOLD = 50.0
CONFIDENCE_FLOOR = 0.5
CONFIDENCE_CEILING = 0.95
TOP_FACTORS = 5


def default_weights() -> ModelWeights:
    return ModelWeights(values=dict(DEFAULT_WEIGHTS))


def factor_label(key: str) -> str:
    name = key[len(PATTERN_PREFIX):] if key.startswith(PATTERN_PREFIX) else key
    return name.replace("_", " ").capitalize()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class ScoringModel:
    """
    Weighted linear scorer over signals and pattern counts.

    Only features that fire (non-zero value and non-zero weight) enter the
    normalization, so totalWeight never includes silent features.
    """

    def __init__(self, registry: Optional[PatternRegistry] = None):
        self.registry = registry or PatternRegistry()

    def predict(self, text: str, weights: Mapping[str, float], weights_version: int = 0) -> Prediction:
        if not text:
            return Prediction(
                is_scam=False,
                risk_score=0.0,
                confidence=CONFIDENCE_FLOOR,
                weights_version=weights_version,
            )
        signals = extract_signals(text)
        matches = self.registry.match(text)
        return self.predict_from(signals, matches, weights, weights_version)

    def predict_from(
        self,
        signals: SignalSet,
        matches: List[PatternMatch],
        weights: Mapping[str, float],
        weights_version: int = 0,
    ) -> Prediction:
        fired: List[Tuple[str, float, float]] = []
        for key, value in signals.features().items():
            weight = weights.get(key, 0.0)
            if weight != 0 and value != 0:
                fired.append((key, weight, value * weight))

        patterns: List[str] = []
        for match in matches:
            if match.count <= 0:
                continue
            patterns.append(match.category)
            key = PATTERN_PREFIX + match.category
            weight = weights.get(key, 0.0)
            if weight != 0:
                fired.append((key, weight, match.count * weight))

        if not fired:
            return Prediction(
                is_scam=False,
                risk_score=0.0,
                confidence=CONFIDENCE_FLOOR,
                patterns=patterns,
                weights_version=weights_version,
            )

        total_score = sum(contribution for _, _, contribution in fired)
        total_weight = sum(abs(weight) for _, weight, _ in fired)
        normalized = total_score / total_weight if total_weight > 0 else 0.0

        risk_score = _clamp((normalized + 1) * 50, 0.0, 100.0)
        confidence = _clamp(
            CONFIDENCE_FLOOR + abs(normalized) * 0.8 + len(fired) * 0.05,
            CONFIDENCE_FLOOR,
            CONFIDENCE_CEILING,
        )

        ranked = sorted(fired, key=lambda item: abs(item[2]), reverse=True)[:TOP_FACTORS]
        factors = [
            Factor(key=key, label=factor_label(key), weight=weight, contribution=contribution)
            for key, weight, contribution in ranked
        ]

        return Prediction(
            is_scam=risk_score > SCAM_THRESHOLD,
            risk_score=risk_score,
            confidence=confidence,
            patterns=patterns,
            factors=factors,
            fired_features=len(fired),
            weights_version=weights_version,
        )
