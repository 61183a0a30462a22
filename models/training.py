import time
from dataclasses import dataclass, field
from typing import Dict, Literal, Optional

from models.signals import SignalSet

Label = Literal["scam", "legitimate"]


@dataclass
class TrainingExample:
    id: str
    text: str
    signals: SignalSet
    label: Label
    confidence: float
    timestamp: float = field(default_factory=time.time)
    verified: bool = False
    # "feedback" for caller submissions, "auto" for high-confidence self-labels.
    source: str = "feedback"

    @property
    def is_scam(self) -> bool:
        return self.label == "scam"


@dataclass
class ModelWeights:
    """
    Versioned weight vector.

    Readers take a `snapshot()` and never see the live dict; every mutation goes
    through the weight adapter and bumps `version`.
    """

    values: Dict[str, float]
    version: int = 1
    updated_at: Optional[float] = None

    def snapshot(self) -> Dict[str, float]:
        return dict(self.values)

    def to_payload(self) -> Dict[str, object]:
        return {
            "version": self.version,
            "updatedAt": self.updated_at,
            "weights": dict(self.values),
        }
