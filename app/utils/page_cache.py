"""Cache of rendered pages that stays coherent across worker processes.

Each cached path has a version token stored in the ``setting`` table.
Mutations replace the token inside their own transaction
(:func:`stage_revalidation`), so every worker sharing the database sees the
new token on its next read and ignores entries rendered under the old one.
Entries live in a bounded, per-process LRU.
"""

from __future__ import annotations

import threading
import uuid
from collections import OrderedDict
from typing import Hashable, Optional, Tuple

from flask import current_app

from app.models import Setting, db

DEFAULT_MAX_ENTRIES = 128


def _normalise_path(path: str) -> str:
    return path.rstrip("/") or "/"


def _version_setting_name(path: str) -> str:
    return f"PAGE_VERSION:{_normalise_path(path)}"


class PageCache:
    """Rendered page bodies keyed by ``(path, params)``."""

    def __init__(self, app=None, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._pages: "OrderedDict[Tuple[str, Hashable], Tuple[str, str]]" = (
            OrderedDict()
        )
        self._lock = threading.Lock()
        self.enabled = True
        self.max_entries = max_entries
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self.enabled = app.config.get("PAGE_CACHE_ENABLED", True)
        self.max_entries = app.config.get(
            "PAGE_CACHE_MAX_ENTRIES", self.max_entries
        )
        app.extensions["page_cache"] = self

    # ------------------------------------------------------------------
    def get(self, path: str, params: Hashable, version: str) -> Optional[str]:
        """Return the body cached under ``version``, or ``None``."""
        if not self.enabled:
            return None
        key = (_normalise_path(path), params)
        with self._lock:
            entry = self._pages.get(key)
            if entry is None:
                return None
            if entry[0] != version:
                del self._pages[key]
                return None
            self._pages.move_to_end(key)
            return entry[1]

    # ------------------------------------------------------------------
    def set(self, path: str, params: Hashable, version: str, body: str) -> None:
        if not self.enabled or self.max_entries <= 0:
            return
        key = (_normalise_path(path), params)
        with self._lock:
            self._pages[key] = (version, body)
            self._pages.move_to_end(key)
            while len(self._pages) > self.max_entries:
                self._pages.popitem(last=False)

    # ------------------------------------------------------------------
    def invalidate(self, path: str) -> int:
        """Drop every local entry rendered for ``path``; return the count."""
        path = _normalise_path(path)
        with self._lock:
            stale = [key for key in self._pages if key[0] == path]
            for key in stale:
                del self._pages[key]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pages)


# ----------------------------------------------------------------------
def get_page_cache() -> PageCache:
    app = current_app._get_current_object()
    cache = app.extensions.get("page_cache")
    if cache is None:
        cache = PageCache(app)
    return cache


def current_version(path: str) -> str:
    """Return the shared version token of ``path`` ("0" before any change)."""
    setting = Setting.query.filter_by(name=_version_setting_name(path)).first()
    if setting is None or not setting.value:
        return "0"
    return setting.value


def stage_revalidation(path: str) -> None:
    """Replace the version token of ``path`` in the current transaction.

    Takes effect for every worker once the caller commits.
    """
    name = _version_setting_name(path)
    setting = Setting.query.filter_by(name=name).first()
    if setting is None:
        setting = Setting(name=name)
        db.session.add(setting)
    setting.value = uuid.uuid4().hex


def revalidate_path(path: str) -> None:
    """Drop this worker's cached renderings of ``path`` after a commit."""
    dropped = get_page_cache().invalidate(path)
    current_app.logger.info("Revalidated %s (%d cached pages)", path, dropped)
