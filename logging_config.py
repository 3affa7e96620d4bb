# logging_config.py
"""
Application logging setup.

configure_logging() is called once from main.py at start-up. Modules log via
logging.getLogger(__name__); everything under the application's packages
ends up on one stream handler.
"""
import logging
import os
import sys
import threading
from typing import Any, Optional

_LOGGER_NAMES = ("database", "main", "models", "routers", "services", "utils")
_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_lock = threading.Lock()
_configured = False


def _resolve_level(level: Optional[Any]) -> int:
     if level is None:
          level = os.getenv("LOG_LEVEL", "INFO")
     if isinstance(level, int):
          return level
     resolved = logging.getLevelName(str(level).upper())
     return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
     level: Optional[Any] = None,
     stream: Any = None,
     handler: Optional[logging.Handler] = None,
) -> None:
     """Configure the application loggers (idempotent)."""
     global _configured
     with _lock:
          if _configured:
               return
          _configured = True

     h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
     h.setFormatter(logging.Formatter(_FORMAT))

     resolved = _resolve_level(level)
     for name in _LOGGER_NAMES:
          logger = logging.getLogger(name)
          logger.setLevel(resolved)
          logger.propagate = False
          logger.addHandler(h)


def reset_logging() -> None:
     """Undo configure_logging(). Used by tests."""
     global _configured
     with _lock:
          _configured = False
     for name in _LOGGER_NAMES:
          logger = logging.getLogger(name)
          logger.handlers.clear()
          logger.setLevel(logging.NOTSET)
          logger.propagate = True
