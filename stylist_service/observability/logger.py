"""
Request Logger (v1.5.0)
Structured JSON-lines log of generation requests.

The log file lives under ``Settings.log_dir`` (AURA_LOG_DIR, default: ./logs) and is opened on
first use, so importing this module never touches the filesystem.
"""
import json
import logging
import threading
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

from stylist_service.config.settings import get_settings

REQUEST_LOGGER_NAME = "aura.requests"

request_logger = logging.getLogger(REQUEST_LOGGER_NAME)
request_logger.setLevel(logging.INFO)
# Prevent propagation to root logger
request_logger.propagate = False

_setup_lock = threading.Lock()
_handler: Optional[logging.Handler] = None


def _ensure_handler():
    global _handler

    with _setup_lock:
        if _handler is not None:
            return

        logs_dir = Path(get_settings().log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        _handler = logging.FileHandler(logs_dir / "requests.log", encoding="utf-8")
        _handler.setFormatter(logging.Formatter("%(message)s"))
        request_logger.addHandler(_handler)


def reset_request_logger():
    """Detach the file handler (for testing)."""
    global _handler

    with _setup_lock:
        if _handler is not None:
            request_logger.removeHandler(_handler)
            _handler.close()
            _handler = None


def log_request(
    call_id: str,
    kind: str,
    provider_used: str,
    latency_ms: int,
    status: str,
    occasion: Optional[str] = None,
    outfits: int = 0,
    failures: int = 0,
    error: Optional[str] = None
):
    """
    Log a structured request entry.

    Args:
        call_id: Unique request identifier
        kind: Generation kind (outfits/weekly/seasonal/recommendations/...)
        provider_used: LLM provider (openai/gemini)
        latency_ms: Request latency in milliseconds
        status: success, partial or fail
        occasion: Requested occasion, when there is one
        outfits: Number of outfits returned
        failures: Number of failed occasions (batch endpoints)
        error: Error kind if failed
    """
    if not is_logging_enabled():
        return

    _ensure_handler()

    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "call_id": call_id,
        "kind": kind,
        "occasion": occasion,
        "provider": provider_used,
        "latency_ms": latency_ms,
        "status": status,
        "outfits": outfits,
        "failures": failures,
    }

    if error:
        entry["error"] = error

    request_logger.info(json.dumps(entry))


def is_logging_enabled() -> bool:
    """Check if request logging is enabled."""
    return get_settings().logging_enabled
