"""Thread registry and reconciliation."""

from .backfill import BackfillReconciler, BackfillResult
from .live import EventOutcome, LiveEventReconciler
from .models import Thread, ThreadKey, ThreadSnapshot, ThreadStatus
from .parser import ThreadParser
from .query import ThreadListing, ThreadQueryService, format_time_ago, render_thread_list
from .registry import ThreadRegistry

__all__ = [
    "BackfillReconciler",
    "BackfillResult",
    "EventOutcome",
    "LiveEventReconciler",
    "Thread",
    "ThreadKey",
    "ThreadListing",
    "ThreadParser",
    "ThreadQueryService",
    "ThreadRegistry",
    "ThreadSnapshot",
    "ThreadStatus",
    "format_time_ago",
    "render_thread_list",
]
