import os
from dataclasses import dataclass


def load_dotenv(path: str = ".env") -> None:
    """
    Minimal .env loader (no external dependency).

    - Only sets variables that are not already present in os.environ.
    - Supports KEY=VALUE, optional quotes, and ignores blank lines/comments.
    """
    if not os.path.exists(path):
        return
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError:
        # A broken local .env must never stop the service from starting.
        return
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.lower().startswith("export "):
            line = line[7:].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not key or key in os.environ:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ[key] = value


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    api_key: str

    openai_api_key: str
    openai_model: str
    gemini_api_key: str
    gemini_model: str
    external_timeout_seconds: int
    external_max_workers: int

    training_batch_size: int
    training_window: int
    weight_step: float
    weight_limit: float

    auto_label_enabled: bool
    auto_label_min_confidence: float

    trend_refresh_seconds: int
    enable_trend_monitor: bool
    max_alerts: int
    alert_window_seconds: int

    notify_webhook_url: str
    notify_timeout_seconds: int
    notify_max_attempts: int
    notify_backoff_base_seconds: int
    notify_max_workers: int

    snapshot_path: str
    snapshot_interval_seconds: int

    @staticmethod
    def from_env() -> "Settings":
        load_dotenv()
        return Settings(
            api_key=os.getenv("SCAM_SCORE_API_KEY") or os.getenv("API_KEY") or "",
            openai_api_key=os.getenv("OPENAI_API_KEY") or "",
            openai_model=os.getenv("OPENAI_MODEL") or "gpt-4o-mini",
            gemini_api_key=os.getenv("GEMINI_API_KEY") or "",
            gemini_model=os.getenv("GEMINI_MODEL") or "gemini-1.5-flash",
            external_timeout_seconds=_env_int("EXTERNAL_TIMEOUT_SECONDS", 10),
            external_max_workers=_env_int("EXTERNAL_MAX_WORKERS", 4),
            training_batch_size=_env_int("TRAINING_BATCH_SIZE", 10),
            training_window=_env_int("TRAINING_WINDOW", 50),
            weight_step=_env_float("WEIGHT_STEP", 0.01),
            weight_limit=_env_float("MODEL_WEIGHT_LIMIT", 0.0),
            auto_label_enabled=_env_bool("AUTO_LABEL_ENABLED", True),
            auto_label_min_confidence=_env_float("AUTO_LABEL_MIN_CONFIDENCE", 0.6),
            trend_refresh_seconds=_env_int("TREND_REFRESH_SECONDS", 30),
            enable_trend_monitor=_env_bool("ENABLE_TREND_MONITOR", True),
            max_alerts=_env_int("MAX_ALERTS", 50),
            alert_window_seconds=_env_int("ALERT_WINDOW_SECONDS", 24 * 60 * 60),
            notify_webhook_url=os.getenv("ALERT_WEBHOOK_URL") or "",
            notify_timeout_seconds=_env_int("ALERT_WEBHOOK_TIMEOUT_SECONDS", 5),
            notify_max_attempts=_env_int("ALERT_WEBHOOK_MAX_ATTEMPTS", 3),
            notify_backoff_base_seconds=_env_int("ALERT_WEBHOOK_BACKOFF_BASE_SECONDS", 1),
            notify_max_workers=_env_int("ALERT_WEBHOOK_MAX_WORKERS", 2),
            snapshot_path=os.getenv("STATE_SNAPSHOT_PATH") or "",
            snapshot_interval_seconds=_env_int("STATE_SNAPSHOT_INTERVAL_SECONDS", 300),
        )
