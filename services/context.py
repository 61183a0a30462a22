import logging
from dataclasses import dataclass
from typing import Optional

from config import Settings
from detection.external_classifier import ExternalClassifier
from detection.llm_clients import GeminiClient, OpenAIClient
from detection.patterns import PatternRegistry
from detection.scoring_model import ScoringModel
from services.alert_generator import AlertGenerator
from services.blending import BlendingController
from services.notification_service import NotificationService
from services.snapshot_store import SnapshotStore
from services.training_store import TrainingStore
from services.trend_catalog import TrendCatalog
from services.trend_matcher import TrendMatcher
from services.trend_monitor import TrendEventFeed, TrendMonitor
from services.weight_adapter import WeightAdapter

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a request handler needs, built once per process."""

    settings: Settings
    registry: PatternRegistry
    adapter: WeightAdapter
    training_store: TrainingStore
    catalog: TrendCatalog
    matcher: TrendMatcher
    alerts: AlertGenerator
    notifications: NotificationService
    feed: TrendEventFeed
    monitor: TrendMonitor
    blender: BlendingController
    snapshots: SnapshotStore

    def save_snapshot(self) -> bool:
        return self.snapshots.save(self.adapter.current(), self.catalog.list_trends())

    def shutdown(self) -> None:
        self.monitor.stop()
        self.save_snapshot()
        self.blender.shutdown()
        self.notifications.shutdown()


def build_external_classifier(settings: Settings) -> ExternalClassifier:
    providers = []
    if settings.openai_api_key:
        providers.append(
            OpenAIClient(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                timeout_seconds=settings.external_timeout_seconds,
            )
        )
    if settings.gemini_api_key:
        providers.append(
            GeminiClient(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                timeout_seconds=settings.external_timeout_seconds,
            )
        )
    return ExternalClassifier(providers)


def build_context(settings: Settings, external: Optional[ExternalClassifier] = None) -> AppContext:
    snapshots = SnapshotStore(settings.snapshot_path)
    registry = PatternRegistry()
    adapter = WeightAdapter(
        ScoringModel(registry),
        snapshots.load_weights(),
        step=settings.weight_step,
        weight_limit=settings.weight_limit,
    )
    training_store = TrainingStore(
        adapter,
        batch_size=settings.training_batch_size,
        window=settings.training_window,
    )
    catalog = TrendCatalog(snapshots.load_trends())
    matcher = TrendMatcher(catalog)
    notifications = NotificationService(
        webhook_url=settings.notify_webhook_url,
        timeout_seconds=settings.notify_timeout_seconds,
        max_attempts=settings.notify_max_attempts,
        backoff_base_seconds=settings.notify_backoff_base_seconds,
        max_workers=settings.notify_max_workers,
    )
    alerts = AlertGenerator(
        catalog,
        notifications.deliver,
        max_alerts=settings.max_alerts,
        active_window_seconds=settings.alert_window_seconds,
    )
    if external is None:
        external = build_external_classifier(settings)
    blender = BlendingController(
        adapter,
        matcher,
        external,
        training_store,
        external_timeout_seconds=settings.external_timeout_seconds,
        auto_label_enabled=settings.auto_label_enabled,
        auto_label_min_confidence=settings.auto_label_min_confidence,
        max_workers=settings.external_max_workers,
    )
    feed = TrendEventFeed()

    def _snapshot() -> None:
        snapshots.save(adapter.current(), catalog.list_trends())

    monitor = TrendMonitor(
        catalog,
        alerts,
        feed,
        interval_seconds=settings.trend_refresh_seconds,
        snapshot=_snapshot if snapshots.enabled else None,
        snapshot_interval_seconds=settings.snapshot_interval_seconds,
    )
    logger.info(
        "Scoring context ready: weights v%s, %s trends, external=%s",
        adapter.current().version,
        len(catalog.list_trends()),
        external.available,
    )
    return AppContext(
        settings=settings,
        registry=registry,
        adapter=adapter,
        training_store=training_store,
        catalog=catalog,
        matcher=matcher,
        alerts=alerts,
        notifications=notifications,
        feed=feed,
        monitor=monitor,
        blender=blender,
        snapshots=snapshots,
    )
