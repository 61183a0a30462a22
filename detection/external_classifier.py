import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a careful consumer protection reviewer for seniors. Analyze the content for scam "
    "patterns. Start at 0 points and add points for urgent or threatening language, requests for "
    "gift cards, crypto or wire transfers, requests for personal information, pressure or secrecy, "
    "spoofed branding, threats of arrest or legal action, and suspicious contact methods. "
    "Clamp the score to 0-100. Respond ONLY with JSON: "
    '{"scam_score": <number 0-100>, "top_signals": ["<signal>", ...]}'
)


@dataclass(frozen=True)
class ExternalAssessment:
    score: float
    signals: List[str] = field(default_factory=list)
    provider: str = ""


def _coerce_score(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if score != score:
        return None
    return max(0.0, min(100.0, score))


def _coerce_signals(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    return [str(value).strip()] if str(value).strip() else []


def build_user_prompt(text: str, channel: Optional[str] = None, locale: Optional[str] = None) -> str:
    lines = [f'Analyze this content for scam patterns:\n\nContent: "{text}"']
    if channel:
        lines.append(f"Communication channel: {channel}")
    if locale:
        lines.append(f"User locale: {locale}")
    return "\n".join(lines)


class ExternalClassifier:
    """
    LLM-backed second opinion. Providers are tried in order; the first
    well-formed answer wins. Any failure yields None.
    """

    def __init__(self, providers: Sequence):
        self._providers = [p for p in providers if p is not None and getattr(p, "api_key", "")]

    @property
    def available(self) -> bool:
        return bool(self._providers)

    def classify(
        self,
        text: str,
        channel: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> Optional[ExternalAssessment]:
        if not text or not self._providers:
            return None
        user = build_user_prompt(text, channel, locale)
        for provider in self._providers:
            obj = provider.complete_json(SYSTEM_PROMPT, user)
            if not obj:
                continue
            score = _coerce_score(obj.get("scam_score"))
            if score is None:
                logger.warning("Malformed external classifier payload from %s", getattr(provider, "name", "?"))
                continue
            return ExternalAssessment(
                score=score,
                signals=_coerce_signals(obj.get("top_signals")),
                provider=getattr(provider, "name", ""),
            )
        return None
