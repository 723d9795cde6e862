import json

import pytest
import redis

from campus_library.services import category_service
from campus_library.utils.constants import CATEGORIES_CACHE_KEY
from campus_library.utils.errors import BadRequestError, ConflictError


def test_categories_are_cached_sorted(db_session, cache, make_category):
    make_category("Physics")
    make_category("Algebra")

    categories = category_service.find_all_categories(db_session, cache)

    assert [c["name"] for c in categories] == ["Algebra", "Physics"]
    assert json.loads(cache.get(CATEGORIES_CACHE_KEY)) == categories
    assert 0 < cache.ttl(CATEGORIES_CACHE_KEY) <= 3600


def test_cached_list_is_served_without_database(db_session, cache):
    cache.set(CATEGORIES_CACHE_KEY, json.dumps([{"id": "1", "name": "From cache"}]))

    categories = category_service.find_all_categories(db_session, cache)

    assert categories == [{"id": "1", "name": "From cache"}]


def test_writes_invalidate_cache(db_session, cache, make_category):
    category_service.find_all_categories(db_session, cache)
    assert cache.exists(CATEGORIES_CACHE_KEY)

    category = category_service.create_category(db_session, cache, "Chemistry")
    assert not cache.exists(CATEGORIES_CACHE_KEY)

    category_service.find_all_categories(db_session, cache)
    category_service.update_category(db_session, cache, category.category_id, name="Organic Chemistry")
    assert not cache.exists(CATEGORIES_CACHE_KEY)

    category_service.find_all_categories(db_session, cache)
    category_service.delete_category(db_session, cache, category.category_id)
    assert not cache.exists(CATEGORIES_CACHE_KEY)
    assert category_service.find_all_categories(db_session, cache) == []


def test_duplicate_name_rejected(db_session, cache, make_category):
    make_category("History")
    with pytest.raises(ConflictError):
        category_service.create_category(db_session, cache, "History")


def test_category_in_use_cannot_be_deleted(db_session, cache, make_category, make_book):
    category = make_category("Fiction")
    make_book(category=category)

    with pytest.raises(BadRequestError):
        category_service.delete_category(db_session, cache, category.category_id)


def test_works_without_cache(db_session, make_category):
    make_category("Art")
    assert [c["name"] for c in category_service.find_all_categories(db_session, None)] == ["Art"]


class BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("redis is down")

    def set(self, key, value, ex=None):
        raise redis.ConnectionError("redis is down")

    def delete(self, key):
        raise redis.ConnectionError("redis is down")


def test_cache_outage_falls_back_to_database(db_session, make_category):
    make_category("Music")
    broken = BrokenRedis()

    assert [c["name"] for c in category_service.find_all_categories(db_session, broken)] == ["Music"]
    category_service.create_category(db_session, broken, "Drama")
