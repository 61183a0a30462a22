import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict

import requests

from models.trends import TrendAlert

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Fire-and-forget sink for new trend alerts.

    With no webhook configured alerts are only logged; otherwise each alert is
    POSTed on a worker thread with exponential backoff between attempts.
    """

    def __init__(
        self,
        *,
        webhook_url: str,
        timeout_seconds: int,
        max_attempts: int,
        backoff_base_seconds: int,
        max_workers: int,
    ):
        self._webhook_url = webhook_url
        self._timeout_seconds = max(1, int(timeout_seconds))
        self._max_attempts = max(1, int(max_attempts))
        self._backoff_base_seconds = max(0, int(backoff_base_seconds))
        self._executor = ThreadPoolExecutor(max_workers=max(1, int(max_workers)))

    def build_payload(self, alert: TrendAlert) -> Dict[str, object]:
        return {"type": "trend_alert", "alert": alert.to_payload()}

    def deliver(self, alert: TrendAlert) -> None:
        logger.info("Trend alert %s severity=%s trend=%s", alert.id, alert.severity, alert.trend_id)
        if not self._webhook_url:
            return
        self._executor.submit(self._send_with_retry, alert.id, self.build_payload(alert))

    def _send_with_retry(self, alert_id: str, payload: Dict) -> bool:
        last_error = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                resp = requests.post(
                    self._webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                    timeout=self._timeout_seconds,
                )
                status = int(resp.status_code)
                if 200 <= status < 300:
                    logger.info("Alert %s delivered status=%s", alert_id, status)
                    return True
                last_error = f"non-2xx:{status}"
            except requests.RequestException as exc:
                last_error = str(exc)

            if attempt < self._max_attempts:
                time.sleep(min(30, self._backoff_base_seconds * (2 ** (attempt - 1))))

        logger.warning("Alert %s delivery failed after %s attempts: %s", alert_id, self._max_attempts, last_error)
        return False

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
