"""
Observability module - Logging, Metrics, and Tracing.
"""

from novluma.observability.logging import get_logger, log_context, setup_logging
from novluma.observability.metrics import metrics
from novluma.observability.tracing import setup_tracing

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
    "metrics",
    "setup_tracing",
]
