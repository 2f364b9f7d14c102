"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float_env(name: str, default: float) -> float:
    """Parse float from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{DB_DIR / 'cbt.db'}")
if DATABASE_URL.startswith("sqlite:///") and ":memory:" not in DATABASE_URL:
    DB_DIR.mkdir(parents=True, exist_ok=True)

# HTTP service
HOST = os.environ.get("CBT_HOST", "127.0.0.1")
PORT = _parse_int_env("CBT_PORT", 8000)
LEARNER_HEADER = "X-Learner-Id"

# Client transport
API_BASE_URL = os.environ.get("CBT_API_BASE_URL", f"http://{HOST}:{PORT}")
HTTP_TIMEOUT_SECONDS = _parse_float_env("CBT_HTTP_TIMEOUT_SECONDS", 30.0)

# Session engine
TICK_INTERVAL_SECONDS = _parse_float_env("CBT_TICK_INTERVAL_SECONDS", 1.0)
MAX_SUBMIT_ATTEMPTS = _parse_int_env("CBT_MAX_SUBMIT_ATTEMPTS", 3)

# Assessment defaults (applied when importing definitions)
DEFAULT_PASSING_SCORE = _parse_int_env("DEFAULT_PASSING_SCORE", 70)
DEFAULT_MAX_ATTEMPTS = _parse_int_env("DEFAULT_MAX_ATTEMPTS", 1)
