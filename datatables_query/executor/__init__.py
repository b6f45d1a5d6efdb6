"""Request execution and pagination."""

from .executor import QueryExecutor
from .paged import PagedResult, compute_pages_count
from .diagnostics import LogHook, default_log_hook

__all__ = [
    "LogHook",
    "PagedResult",
    "QueryExecutor",
    "compute_pages_count",
    "default_log_hook",
]
