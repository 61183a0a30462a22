import logging
import math
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import List, Optional

from detection.external_classifier import ExternalAssessment, ExternalClassifier
from detection.signals import extract_signals
from detection.scoring_model import SCAM_THRESHOLD
from models.api import ScoreContext
from models.signals import Prediction, SignalSet
from models.trends import ScamTrend
from services.training_store import TrainingStore
from services.trend_matcher import TrendMatcher
from services.weight_adapter import WeightAdapter

logger = logging.getLogger(__name__)


EXTERNAL_PRIORITIES = {"high", "critical"}
LOCAL_SHARE = 0.3
EXTERNAL_SHARE = 0.7
MAX_SIGNALS = 5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def blend_scores(local_score: float, external_score: float) -> int:
    return round_half_up(local_score * LOCAL_SHARE + external_score * EXTERNAL_SHARE)


def merge_signals(
    local: List[str],
    external: List[str],
    trend: Optional[ScamTrend] = None,
    limit: int = MAX_SIGNALS,
) -> List[str]:
    ordered = ([trend.title] if trend else []) + list(local) + list(external)
    merged: List[str] = []
    seen = set()
    for signal in ordered:
        key = signal.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        merged.append(signal.strip())
        if len(merged) >= limit:
            break
    return merged


@dataclass(frozen=True)
class ScoreResult:
    risk_score: float
    confidence: float
    label: str
    source: str
    local: Prediction
    signals: SignalSet
    external: Optional[ExternalAssessment] = None
    top_signals: List[str] = field(default_factory=list)
    matched_trends: List[ScamTrend] = field(default_factory=list)

    @property
    def is_scam(self) -> bool:
        return self.label == "scam"


class BlendingController:
    def __init__(
        self,
        adapter: WeightAdapter,
        matcher: TrendMatcher,
        external: Optional[ExternalClassifier] = None,
        training_store: Optional[TrainingStore] = None,
        *,
        external_timeout_seconds: float = 10.0,
        auto_label_enabled: bool = True,
        auto_label_min_confidence: float = 0.6,
        max_workers: int = 4,
    ):
        self._adapter = adapter
        self._matcher = matcher
        self._external = external
        self._training_store = training_store
        self._external_timeout_seconds = max(0.1, float(external_timeout_seconds))
        self._auto_label_enabled = bool(auto_label_enabled)
        self._auto_label_min_confidence = float(auto_label_min_confidence)
        self._executor = ThreadPoolExecutor(max_workers=max(1, int(max_workers)))

    def _should_attempt_external(self, context: ScoreContext) -> bool:
        return bool(
            self._external
            and self._external.available
            and context.priority in EXTERNAL_PRIORITIES
        )

    def score(self, text: str, context: Optional[ScoreContext] = None) -> ScoreResult:
        context = context or ScoreContext()
        text = text or ""

        future = None
        if text and self._should_attempt_external(context):
            future = self._executor.submit(self._external.classify, text, context.channel, context.locale)

        local = self._adapter.predict(text)
        signals = extract_signals(text)
        matched = self._matcher.match(text)

        external = None
        if future is not None:
            try:
                external = future.result(timeout=self._external_timeout_seconds)
            except FutureTimeout:
                future.cancel()
                logger.warning("External classifier timed out after %ss", self._external_timeout_seconds)
            except Exception as exc:
                logger.warning("External classifier failed: %s", exc)
            if external is None:
                logger.info("External classifier unavailable; using local score")

        if external is not None:
            risk_score = float(blend_scores(local.risk_score, external.score))
            source = "blended"
        else:
            risk_score = local.risk_score
            source = "local"

        top_signals = merge_signals(
            local.factor_labels(),
            external.signals if external else [],
            matched[0] if matched else None,
        )

        self._maybe_auto_label(text, local)

        return ScoreResult(
            risk_score=risk_score,
            confidence=local.confidence,
            label="scam" if risk_score > SCAM_THRESHOLD else "legitimate",
            source=source,
            local=local,
            signals=signals,
            external=external,
            top_signals=top_signals,
            matched_trends=matched,
        )

    def _maybe_auto_label(self, text: str, prediction: Prediction) -> None:
        # Self-labels reach the adapter without human review.
        if not self._auto_label_enabled or self._training_store is None or not text:
            return
        if prediction.confidence <= self._auto_label_min_confidence:
            return
        self._training_store.add_example(text, prediction.label, prediction.confidence, source="auto")

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
