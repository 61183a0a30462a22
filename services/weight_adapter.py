import logging
import threading
import time
from typing import Dict, Iterable, List, Optional, Tuple

from detection.scoring_model import ScoringModel, default_weights
from models.signals import Prediction
from models.training import ModelWeights, TrainingExample

logger = logging.getLogger(__name__)


class WeightAdapter:
    """
    Sole owner and writer of the model weight vector.

    Scoring reads go through `snapshot()`; `adapt()` is the only mutation path.
    """

    def __init__(
        self,
        model: ScoringModel,
        weights: Optional[ModelWeights] = None,
        *,
        step: float = 0.01,
        weight_limit: float = 0.0,
    ):
        self._model = model
        self._weights = weights or default_weights()
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._step = float(step)
        # 0 disables the clamp and keeps the historical unbounded drift.
        self._weight_limit = max(0.0, float(weight_limit))

    @property
    def model(self) -> ScoringModel:
        return self._model

    def snapshot(self) -> Tuple[Dict[str, float], int]:
        with self._lock:
            return self._weights.snapshot(), self._weights.version

    def current(self) -> ModelWeights:
        with self._lock:
            return ModelWeights(
                values=self._weights.snapshot(),
                version=self._weights.version,
                updated_at=self._weights.updated_at,
            )

    def predict(self, text: str) -> Prediction:
        values, version = self.snapshot()
        return self._model.predict(text, values, version)

    def _bounded(self, value: float) -> float:
        if self._weight_limit <= 0:
            return value
        return max(-self._weight_limit, min(self._weight_limit, value))

    def adapt(self, examples: Iterable[TrainingExample]) -> int:
        """
        One perceptron-style pass: every misclassified example nudges the
        weights of its top factors toward the true label. Predictions inside
        the pass see the weights as already nudged by earlier examples.

        Returns the number of misclassified examples.
        """
        with self._write_lock:
            working, version = self.snapshot()
            mistakes = 0
            for example in examples:
                prediction = self._model.predict(example.text, working, version)
                if prediction.is_scam == example.is_scam:
                    continue
                mistakes += 1
                delta = self._step if example.is_scam else -self._step
                for factor in prediction.factors:
                    working[factor.key] = self._bounded(working.get(factor.key, 0.0) + delta)

            with self._lock:
                if mistakes:
                    self._weights.values = working
                    self._weights.version += 1
                self._weights.updated_at = time.time()
                logger.info(
                    "Weight adaptation pass mistakes=%s version=%s",
                    mistakes,
                    self._weights.version,
                )
            return mistakes

    def accuracy(self, examples: List[TrainingExample]) -> float:
        if not examples:
            return 0.0
        values, version = self.snapshot()
        correct = 0
        for example in examples:
            if self._model.predict(example.text, values, version).is_scam == example.is_scam:
                correct += 1
        return correct / len(examples)
