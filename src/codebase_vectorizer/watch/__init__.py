"""Debounced change queue driving incremental re-indexing"""

from .change_queue import ChangeQueue, PendingEntry, CONTENT_EDIT_EVENTS

__all__ = ["ChangeQueue", "PendingEntry", "CONTENT_EDIT_EVENTS"]
