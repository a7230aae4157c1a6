import json
import logging
from decimal import Decimal
from typing import Any

from trucksales.core.config import settings

logger = logging.getLogger("trucksales")


def setup_observability(level: str | None = None) -> None:
    logger.setLevel(level or settings.log_level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def log_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    logger.log(level, json.dumps({"event": event, **fields}, default=_json_default))
