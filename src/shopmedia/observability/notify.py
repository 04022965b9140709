"""User-facing notification port.

The pipeline never talks to a toast or alert widget directly.  Components
receive a :class:`NotificationPort` and call ``notify(level, message)``;
the host application decides how to render it.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from shopmedia.models import NotifyLevel

from .logger import get_logger

_LOG_LEVELS: dict[NotifyLevel, int] = {
    NotifyLevel.INFO: logging.INFO,
    NotifyLevel.SUCCESS: logging.INFO,
    NotifyLevel.WARNING: logging.WARNING,
    NotifyLevel.ERROR: logging.ERROR,
}


@runtime_checkable
class NotificationPort(Protocol):
    """Anything that can show a short message to the operator."""

    def notify(self, level: NotifyLevel, message: str) -> None:
        ...


class NoopNotifier:
    """Discards every notification."""

    __slots__ = ()

    def notify(self, level: NotifyLevel, message: str) -> None:
        pass


class LoggingNotifier:
    """Writes notifications to the ``shopmedia.notify`` logger.

    Used when no UI layer is attached (scripts, tests, headless runs).
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or get_logger("shopmedia.notify")

    def notify(self, level: NotifyLevel, message: str) -> None:
        self._log.log(
            _LOG_LEVELS.get(level, logging.INFO),
            message,
            extra={"extra_fields": {"op": "notify", "notify_level": level.value}},
        )
