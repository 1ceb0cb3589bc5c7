from __future__ import annotations

import logging
import os
from typing import IO, Optional

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DEFAULT_DATEFMT = "%H:%M:%S"
_LEVEL_ENV_VAR = "CAPSULE_LOG_LEVEL"
_DEBUG_FLAG = "CAPSULE_DEBUG"
PACKAGE_LOGGER = "capsule"


def _coerce_level(value: Optional[str], fallback: int) -> int:
    if not value:
        return fallback
    text = value.strip()
    if not text:
        return fallback
    if text.isdigit():
        return int(text)
    candidate = getattr(logging, text.upper(), None)
    if isinstance(candidate, int):
        return candidate
    return fallback


def _env_truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_env_level() -> Optional[int]:
    value = os.getenv(_LEVEL_ENV_VAR)
    if value:
        return _coerce_level(value, logging.INFO)
    if _env_truthy(os.getenv(_DEBUG_FLAG)):
        return logging.DEBUG
    return None


def configure_logging(
    level: int | str = logging.WARNING, stream: Optional[IO[str]] = None
) -> int:
    """
    Send the client's log records to ``stream`` (stderr by default).

    Only the ``capsule`` logger is touched; the root logger and any handlers
    the application installed stay as they are. Calling it again replaces the
    handler installed by the previous call.

    Environment overrides:
      - CAPSULE_LOG_LEVEL: explicit log level
      - CAPSULE_DEBUG: truthy -> DEBUG

    Returns the level applied to the ``capsule`` logger.
    """
    fallback = _coerce_level(level, logging.WARNING) if isinstance(level, str) else int(level)
    env_level = _resolve_env_level()
    effective = env_level if env_level is not None else fallback

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_capsule_owned", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT, datefmt=_DEFAULT_DATEFMT))
    handler._capsule_owned = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(effective)
    return effective


def apply_debug_preference(debug_enabled: bool) -> Optional[int]:
    """
    Lower the ``capsule`` logger to DEBUG when the client runs in debug mode.

    An explicit environment level wins. Returns the level that was applied, or
    ``None`` when the logger was left alone.
    """
    env_level = _resolve_env_level()
    if env_level is not None:
        level = env_level
    elif debug_enabled:
        level = logging.DEBUG
    else:
        return None
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    return level
