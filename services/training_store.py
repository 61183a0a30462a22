import logging
import threading
import time
import uuid
from typing import List, Optional

from detection.signals import extract_signals
from models.training import Label, TrainingExample
from services.weight_adapter import WeightAdapter

logger = logging.getLogger(__name__)


SEED_EXAMPLES = [
    (
        "train_001",
        "URGENT: Your Social Security benefits will be suspended immediately unless you call "
        "1-800-555-0123 to verify your account information.",
        "scam",
        0.95,
    ),
    (
        "train_002",
        "Congratulations! You have won $500,000 in the Microsoft Lottery. To claim your prize, "
        "please provide your bank account details.",
        "scam",
        0.98,
    ),
    (
        "train_003",
        "Your monthly bank statement is ready for review. Please log into your account through "
        "our secure website.",
        "legitimate",
        0.85,
    ),
]


def seed_examples() -> List[TrainingExample]:
    return [
        TrainingExample(
            id=example_id,
            text=text,
            signals=extract_signals(text),
            label=label,
            confidence=confidence,
            verified=True,
            source="seed",
        )
        for example_id, text, label, confidence in SEED_EXAMPLES
    ]


class TrainingStore:
    """Append-only labeled examples; triggers the weight adapter in batches."""

    def __init__(
        self,
        adapter: WeightAdapter,
        *,
        batch_size: int = 10,
        window: int = 50,
        examples: Optional[List[TrainingExample]] = None,
    ):
        self._adapter = adapter
        self._examples: List[TrainingExample] = list(examples if examples is not None else seed_examples())
        self._lock = threading.Lock()
        self._batch_size = max(1, int(batch_size))
        self._window = max(1, int(window))
        self._last_adapted_at: Optional[float] = None

    def add_example(
        self,
        text: str,
        label: Label,
        confidence: float = 0.8,
        source: str = "feedback",
    ) -> TrainingExample:
        example = TrainingExample(
            id=f"train_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}",
            text=text or "",
            signals=extract_signals(text or ""),
            label=label,
            confidence=float(confidence),
            source=source,
        )
        with self._lock:
            self._examples.append(example)
            if self._unverified_count_unlocked() >= self._batch_size:
                self._adapt_unlocked()
        return example

    def _unverified_count_unlocked(self) -> int:
        return sum(1 for e in self._examples if not e.verified)

    def _adapt_unlocked(self) -> None:
        recent = self._examples[-self._window:]
        logger.info("Adapting weights on %s recent examples", len(recent))
        self._adapter.adapt(recent)
        for example in self._examples:
            example.verified = True
        self._last_adapted_at = time.time()

    def unverified_count(self) -> int:
        with self._lock:
            return self._unverified_count_unlocked()

    def list_examples(self) -> List[TrainingExample]:
        with self._lock:
            return list(self._examples)

    def verified_examples(self) -> List[TrainingExample]:
        with self._lock:
            return [e for e in self._examples if e.verified]

    def accuracy(self) -> float:
        return self._adapter.accuracy(self.verified_examples())

    @property
    def last_adapted_at(self) -> Optional[float]:
        return self._last_adapted_at
