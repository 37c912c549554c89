import os
import logging
from urllib.parse import urlparse
from dotenv import load_dotenv

# Load variables from .env file
load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Trailing windows used by the trend series and the practice analytics
TREND_WINDOW_DAYS = _int_env("TREND_WINDOW_DAYS", 7)
SESSION_WINDOW_DAYS = _int_env("SESSION_WINDOW_DAYS", 7)

# Safety alerts are only sent when a webhook is configured
SAFETY_ALERT_WEBHOOK = os.getenv("SAFETY_ALERT_WEBHOOK")
SAFETY_ALERT_TIMEOUT = _float_env("SAFETY_ALERT_TIMEOUT", 10.0)

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = _int_env("API_PORT", 8000)


def setup_logging(level: str = None):
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def validate_config():
    """Validate the environment-backed settings. Returns a list of problems."""
    errors = []

    if TREND_WINDOW_DAYS <= 0:
        errors.append("TREND_WINDOW_DAYS must be a positive number of days.")
    if SESSION_WINDOW_DAYS <= 0:
        errors.append("SESSION_WINDOW_DAYS must be a positive number of days.")

    if SAFETY_ALERT_WEBHOOK:
        parsed = urlparse(SAFETY_ALERT_WEBHOOK)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append("SAFETY_ALERT_WEBHOOK must be an http(s) URL.")

    if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"LOG_LEVEL '{LOG_LEVEL}' is not a valid logging level.")

    return errors
