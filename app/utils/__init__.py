"""Utility functions for the invoice dashboard."""

from .activity import log_activity
from .page_cache import PageCache, revalidate_path, stage_revalidation

__all__ = [
    "log_activity",
    "PageCache",
    "revalidate_path",
    "stage_revalidation",
]
