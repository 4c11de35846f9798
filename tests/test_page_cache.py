import logging
import os

from app import LISTING_PATH, create_app, db
from app.utils.page_cache import (
    PageCache,
    current_version,
    get_page_cache,
    revalidate_path,
    stage_revalidation,
)
from app.utils.pagination import ListingParams

FIRST = ListingParams("", 1, 10)
SECOND = ListingParams("", 2, 10)


def test_cache_is_registered_on_app(app):
    assert isinstance(app.extensions["page_cache"], PageCache)
    assert get_page_cache() is app.extensions["page_cache"]


def test_invalidate_drops_every_variant_of_path():
    cache = PageCache()
    cache.set("/dashboard/invoices", FIRST, "v1", "a")
    cache.set("/dashboard/invoices", ListingParams("lee", 2, 10), "v1", "b")
    cache.set("/dashboard/invoices/", SECOND, "v1", "c")
    cache.set("/dashboard/customers", FIRST, "v1", "d")
    assert cache.invalidate("/dashboard/invoices") == 3
    assert cache.get("/dashboard/customers", FIRST, "v1") == "d"
    assert len(cache) == 1


def test_invalidate_unknown_path_is_noop():
    cache = PageCache()
    cache.set("/dashboard", FIRST, "v1", "a")
    assert cache.invalidate("/dashboard/invoices") == 0
    assert cache.get("/dashboard", FIRST, "v1") == "a"


def test_entry_from_older_version_is_a_miss():
    cache = PageCache()
    cache.set(LISTING_PATH, FIRST, "v1", "old")
    assert cache.get(LISTING_PATH, FIRST, "v2") is None
    assert len(cache) == 0


def test_least_recently_used_entry_is_evicted():
    cache = PageCache(max_entries=2)
    cache.set(LISTING_PATH, FIRST, "v1", "a")
    cache.set(LISTING_PATH, SECOND, "v1", "b")
    assert cache.get(LISTING_PATH, FIRST, "v1") == "a"
    cache.set(LISTING_PATH, ListingParams("", 3, 10), "v1", "c")
    assert len(cache) == 2
    assert cache.get(LISTING_PATH, SECOND, "v1") is None
    assert cache.get(LISTING_PATH, FIRST, "v1") == "a"


def test_max_entries_is_read_from_config(app):
    app.config["PAGE_CACHE_MAX_ENTRIES"] = 3
    assert PageCache(app).max_entries == 3


def test_disabled_cache_never_hits(app):
    app.config["PAGE_CACHE_ENABLED"] = False
    cache = PageCache(app)
    cache.set(LISTING_PATH, FIRST, "v1", "a")
    assert cache.get(LISTING_PATH, FIRST, "v1") is None
    assert len(cache) == 0


def test_revalidate_path_logs(app, caplog):
    get_page_cache().set(LISTING_PATH, FIRST, "v1", "a")
    with caplog.at_level(logging.INFO):
        revalidate_path(LISTING_PATH)
    assert get_page_cache().get(LISTING_PATH, FIRST, "v1") is None
    assert f"Revalidated {LISTING_PATH} (1 cached pages)" in caplog.text


def test_version_changes_only_on_commit(app):
    assert current_version(LISTING_PATH) == "0"
    stage_revalidation(LISTING_PATH)
    db.session.rollback()
    assert current_version(LISTING_PATH) == "0"

    stage_revalidation(LISTING_PATH)
    db.session.commit()
    first = current_version(LISTING_PATH)
    assert first != "0"

    stage_revalidation(LISTING_PATH)
    db.session.commit()
    assert current_version(LISTING_PATH) not in ("0", first)


def test_unrelated_query_arguments_share_one_entry(app, client, customers):
    for n in range(50):
        response = client.get(f"{LISTING_PATH}?junk{n}={n}&page=1&per_page=10")
        assert response.status_code == 200
    assert len(get_page_cache()) == 1


def test_listing_follows_changes_made_by_another_worker(
    app, client, customers, tmp_path
):
    cwd = os.getcwd()
    os.chdir(tmp_path)
    try:
        other = create_app(["--demo"])
    finally:
        os.chdir(cwd)
    other.config.update({"TESTING": True, "WTF_CSRF_ENABLED": False})
    other_client = other.test_client()

    before = other_client.get(LISTING_PATH).get_data(as_text=True)
    assert "$42.00" not in before
    assert len(other.extensions["page_cache"]) == 1

    response = client.post(
        "/dashboard/invoices/create",
        data={"customer_id": customers["lee"], "amount": "42", "status": "paid"},
    )
    assert response.status_code == 302

    after = other_client.get(LISTING_PATH).get_data(as_text=True)
    assert "$42.00" in after
