"""Helpers for the paginated, searchable invoice listing."""

from __future__ import annotations

from typing import Dict, NamedTuple, Tuple

from flask import request

PAGINATION_SIZES: Tuple[int, ...] = (10, 25, 50, 100)
MAX_SEARCH_LENGTH = 100


class ListingParams(NamedTuple):
    """Normalised listing arguments; also the listing's cache key."""

    search: str
    page: int
    per_page: int


def get_per_page(param: str = "per_page", default: int = 10) -> int:
    """Return a validated per-page value from the query string.

    Parameters
    ----------
    param:
        Query string parameter containing the requested page size.
    default:
        Fallback value used when the parameter is missing or invalid.

    Returns
    -------
    int
        A value from :data:`PAGINATION_SIZES`.
    """

    value = request.args.get(param, type=int)
    if value in PAGINATION_SIZES:
        return value
    if default in PAGINATION_SIZES:
        return default
    return PAGINATION_SIZES[0]


def get_listing_params() -> ListingParams:
    """Read ``query``, ``page`` and ``per_page``, ignoring anything else.

    The search is stripped, whitespace-collapsed and truncated; the page is
    at least 1.
    """
    search = " ".join(request.args.get("query", "").split())[:MAX_SEARCH_LENGTH]
    page = request.args.get("page", 1, type=int) or 1
    return ListingParams(search, max(page, 1), get_per_page())


def build_pagination_args(params: ListingParams) -> Dict[str, str]:
    """Query arguments for page links that keep the current search."""
    args = {"per_page": str(params.per_page)}
    if params.search:
        args["query"] = params.search
    return args
