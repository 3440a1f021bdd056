# Monitor module - build reconciliation engine
from .engine import BuildMonitor, merge_fetched
from .errors import ClassifiedError, classify_error

__all__ = ["BuildMonitor", "ClassifiedError", "classify_error", "merge_fetched"]
