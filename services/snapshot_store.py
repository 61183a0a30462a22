import json
import logging
import os
import tempfile
from typing import Dict, List, Optional

from models.training import ModelWeights
from models.trends import ScamTrend

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    JSON file holding the weight vector and trend state.

    Read once at startup, written behind afterwards. An empty path disables it.
    """

    def __init__(self, path: str):
        self._path = path

    @property
    def enabled(self) -> bool:
        return bool(self._path)

    def _read(self) -> Dict:
        if not self.enabled or not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable snapshot %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def load_weights(self) -> Optional[ModelWeights]:
        payload = self._read().get("weights")
        if not isinstance(payload, dict) or not isinstance(payload.get("weights"), dict):
            return None
        return ModelWeights(
            values={str(k): float(v) for k, v in payload["weights"].items()},
            version=int(payload.get("version") or 1),
            updated_at=payload.get("updatedAt"),
        )

    def load_trends(self) -> Optional[List[ScamTrend]]:
        payload = self._read().get("trends")
        if not isinstance(payload, list) or not payload:
            return None
        try:
            return [ScamTrend.from_payload(item) for item in payload]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed trend snapshot: %s", exc)
            return None

    def save(self, weights: ModelWeights, trends: List[ScamTrend]) -> bool:
        if not self.enabled:
            return False
        data = {
            "weights": weights.to_payload(),
            "trends": [t.to_payload() for t in trends],
        }
        directory = os.path.dirname(os.path.abspath(self._path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            logger.warning("Snapshot write to %s failed: %s", self._path, exc)
            return False
        return True
