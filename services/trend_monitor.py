import logging
import queue
import threading
import time
from typing import Callable, List, Optional

from models.trends import TrendAlert, TrendUpdate
from services.alert_generator import AlertGenerator
from services.trend_catalog import TrendCatalog

logger = logging.getLogger(__name__)


class TrendEventFeed:
    """In-process queue of trend update events; producers never block the monitor."""

    def __init__(self):
        self._queue: "queue.Queue[TrendUpdate]" = queue.Queue()

    def publish(self, update: TrendUpdate) -> None:
        self._queue.put(update)

    def drain(self) -> List[TrendUpdate]:
        updates = []
        while True:
            try:
                updates.append(self._queue.get_nowait())
            except queue.Empty:
                return updates

    def pending(self) -> int:
        return self._queue.qsize()


class TrendMonitor:
    """
    Background scheduler tick: apply queued trend events, generate alerts, and
    periodically hand state to the snapshot writer.
    """

    def __init__(
        self,
        catalog: TrendCatalog,
        alerts: AlertGenerator,
        feed: TrendEventFeed,
        *,
        interval_seconds: int = 30,
        snapshot: Optional[Callable[[], None]] = None,
        snapshot_interval_seconds: int = 300,
    ):
        self._catalog = catalog
        self._alerts = alerts
        self._feed = feed
        self._interval_seconds = max(1, int(interval_seconds))
        self._snapshot = snapshot
        self._snapshot_interval_seconds = max(1, int(snapshot_interval_seconds))
        self._last_snapshot_at = time.time()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._tick_lock = threading.Lock()

    def tick(self, now: Optional[float] = None) -> List[TrendAlert]:
        now = now if now is not None else time.time()
        with self._tick_lock:
            updates = self._feed.drain()
            if updates:
                applied = self._catalog.apply_updates(updates, now=now)
                logger.info("Applied %s of %s trend updates", applied, len(updates))
            created = self._alerts.generate(now=now)
            if self._snapshot and (now - self._last_snapshot_at) >= self._snapshot_interval_seconds:
                self._last_snapshot_at = now
                self._snapshot()
            return created

    def _run(self) -> None:
        while not self._stop.wait(self._interval_seconds):
            try:
                self.tick()
            except Exception:
                logger.exception("Trend monitor tick failed")

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="trend-monitor", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())
