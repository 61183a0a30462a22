import logging
import threading
import time
import uuid
from typing import Callable, List, Optional

from models.trends import ScamTrend, TrendAlert
from services.trend_catalog import TrendCatalog

logger = logging.getLogger(__name__)


RECENT_UPDATE_SECONDS = 60 * 60
ACTIVE_WINDOW_SECONDS = 24 * 60 * 60

ALERT_TYPE_BY_CHANGE = {
    "case_increase": "escalation",
    "new_tactic": "tactic_change",
    "geographic_spread": "geographic_spread",
}


class AlertGenerator:
    def __init__(
        self,
        catalog: TrendCatalog,
        deliver: Optional[Callable[[TrendAlert], None]] = None,
        *,
        max_alerts: int = 50,
        active_window_seconds: int = ACTIVE_WINDOW_SECONDS,
    ):
        self._catalog = catalog
        self._deliver = deliver
        self._alerts: List[TrendAlert] = []
        self._lock = threading.Lock()
        self._max_alerts = max(1, int(max_alerts))
        self._active_window_seconds = max(1, int(active_window_seconds))

    def should_alert(self, trend: ScamTrend, now: float) -> bool:
        return trend.risk_level == "critical" and (now - trend.last_updated) < RECENT_UPDATE_SECONDS

    def create_alert(self, trend: ScamTrend, now: float) -> TrendAlert:
        critical = trend.risk_level == "critical"
        change = self._catalog.last_change(trend.id)
        return TrendAlert(
            id=f"alert_{int(now * 1000)}_{uuid.uuid4().hex[:9]}",
            trend_id=trend.id,
            alert_type=ALERT_TYPE_BY_CHANGE.get(change, "escalation"),
            severity="critical" if critical else "warning",
            title=f"Rising Activity: {trend.title}",
            message=(
                f"Increased reports of {trend.title.lower()}. "
                f"Stay vigilant for: {', '.join(trend.keywords[:3])}."
            ),
            action_required=critical,
            timestamp=now,
        )

    def generate(self, now: Optional[float] = None) -> List[TrendAlert]:
        now = now if now is not None else time.time()
        created: List[TrendAlert] = []
        for trend in self._catalog.list_trends():
            if not self.should_alert(trend, now):
                continue
            # Re-check membership so an alert never points at a trend the catalog lacks.
            if trend.id not in self._catalog:
                continue
            created.append(self.create_alert(trend, now))

        if created:
            with self._lock:
                for alert in created:
                    self._alerts.insert(0, alert)
                del self._alerts[self._max_alerts:]

        for alert in created:
            if self._deliver is None:
                continue
            try:
                self._deliver(alert)
            except Exception as exc:
                logger.warning("Alert sink failed for %s: %s", alert.id, exc)
        return created

    def all_alerts(self) -> List[TrendAlert]:
        with self._lock:
            return list(self._alerts)

    def active_alerts(self, now: Optional[float] = None) -> List[TrendAlert]:
        now = now if now is not None else time.time()
        cutoff = now - self._active_window_seconds
        with self._lock:
            return [a for a in self._alerts if a.timestamp > cutoff]
