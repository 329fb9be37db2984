"""Activity Log Viewer backend configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_path(name: str) -> Path | None:
    value = (os.getenv(name) or "").strip()
    if not value:
        return None
    return Path(value).expanduser()


# Log file loaded at startup (optional; can also be loaded through the API)
LOG_FILE = _env_path("ALV_LOG_FILE")

# Live tail
LIVE_TAIL_ENABLED = _env_bool("ALV_LIVE_TAIL_ENABLED", True)
LIVE_TAIL_MODE = os.getenv("ALV_LIVE_TAIL_MODE", "interval").strip().lower()
LIVE_TAIL_INTERVAL_SECONDS = max(1, _env_int("ALV_LIVE_TAIL_INTERVAL_SECONDS", 30))
LIVE_TAIL_MAX_FAILURES = max(1, _env_int("ALV_LIVE_TAIL_MAX_FAILURES", 3))

# Observability
OTEL_ENABLED = _env_bool("ALV_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("ALV_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("ALV_OTEL_SERVICE_NAME", "activity-viewer-backend")
PROM_PORT = _env_int("ALV_PROM_PORT", 0)

# Server settings
HOST = os.getenv("ALV_HOST", "localhost")
PORT = _env_int("ALV_PORT", 3000)

# CORS
FRONTEND_ORIGIN = os.getenv("ALV_FRONTEND_ORIGIN", "http://localhost:5173")
