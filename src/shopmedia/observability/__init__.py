"""Observability: structured logging, metrics hooks and user notifications."""

from __future__ import annotations

from .logger import StructuredFormatter, get_logger
from .metrics import MetricsHook, NoopMetricsHook, resolve_metrics
from .notify import LoggingNotifier, NoopNotifier, NotificationPort

__all__ = [
    "LoggingNotifier",
    "MetricsHook",
    "NoopMetricsHook",
    "NoopNotifier",
    "NotificationPort",
    "StructuredFormatter",
    "get_logger",
    "resolve_metrics",
]
