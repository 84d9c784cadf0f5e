"""
Central logging configuration for the icon catalog service.

- JSON logs when LOG_JSON=1 (log aggregators), plain lines otherwise.
- LOG_LEVEL from env (default INFO).
- The CoinMarketCap API key is masked in every rendered message.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from config.settings import clean_api_key

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")
_MASK = "***"


def _json_default(obj: Any):
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    return str(obj)


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line: ts (UTC, ms), level, logger, message.
    Request and refresh fields ride along as extra={"extra": {...}} and are
    merged in without shadowing the base keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = record.__dict__.get("extra")
        if isinstance(fields, dict):
            payload.update(
                (k, v) for k, v in fields.items() if v is not None and k not in payload
            )
        if record.exc_info and record.exc_info[0]:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_default)


class SecretMaskFilter(logging.Filter):
    """Replaces known secrets in the rendered message before any formatter sees it."""

    def __init__(self, secrets: Iterable[Optional[str]]) -> None:
        super().__init__()
        self.secrets = tuple(s for s in secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, _MASK)
        if masked != message:
            record.msg, record.args = masked, None
        return True


def _use_json() -> bool:
    return os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes")


def configure_logging(level_name: Optional[str] = None) -> None:
    """Configure root logger once per process (safe to call again on reload)."""
    name = (level_name or os.getenv("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(SecretMaskFilter([clean_api_key(os.getenv("COINMARKETCAP_API_KEY"))]))
    if _use_json():
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root.addHandler(handler)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
