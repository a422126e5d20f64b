"""Package-wide logging for ``transaction_extraction``.

Extractor modules log ``component:event key=value`` lines through
``get_logger("transaction_extraction.<module>")`` and stay silent until the
CLI calls :func:`configure_logging` once at startup. The level comes from
``TRANSACTION_EXTRACTION_LOG_LEVEL`` (a level name or number), default INFO.
"""

from __future__ import annotations

import logging
import os
import sys

_ROOT = "transaction_extraction"
_LEVEL_ENV_VAR = "TRANSACTION_EXTRACTION_LOG_LEVEL"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def level_from_env() -> int:
    raw = (os.getenv(_LEVEL_ENV_VAR) or "").strip().upper()
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelNamesMapping().get(raw)
    return logging.INFO if level is None else level


def configure_logging() -> None:
    """Send package logs to stderr at the env-selected level; later calls are no-ops."""

    global _configured
    if _configured:
        return

    root = logging.getLogger(_ROOT)
    for h in [h for h in root.handlers if isinstance(h, logging.NullHandler)]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.setLevel(level_from_env())
    root.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(_ROOT)
    if not _configured and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "level_from_env"]
