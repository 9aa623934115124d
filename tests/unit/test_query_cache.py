"""Unit tests for the query cache."""

import threading

import pytest

from fokushub.services.query_cache import QueryCache


class TestQueryCache:
    """Tests for QueryCache."""

    def test_fetch_loads_once(self):
        """Test a cached key is not loaded again."""
        cache = QueryCache()
        calls = []

        def loader():
            calls.append(1)
            return ["a"]

        assert cache.fetch(("/api/admin/settings",), loader) == ["a"]
        assert cache.fetch(("/api/admin/settings",), loader) == ["a"]
        assert len(calls) == 1

    def test_loader_error_caches_nothing(self):
        """Test a failing loader leaves the key uncached."""
        cache = QueryCache()

        def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            cache.fetch(("k",), failing)

        assert not cache.has(("k",))

    def test_refetch_reloads(self):
        """Test refetch replaces cached data."""
        cache = QueryCache()
        cache.set_query_data(("k",), 1)

        assert cache.refetch(("k",), lambda: 2) == 2
        assert cache.get_query_data(("k",)) == 2

    def test_invalidate_by_prefix(self):
        """Test invalidation drops every key under the prefix."""
        cache = QueryCache()
        cache.set_query_data(("/api/questionnaire/questions", 1), [])
        cache.set_query_data(("/api/questionnaire/questions", 2), [])
        cache.set_query_data(("/api/questionnaire/categories",), [])

        dropped = cache.invalidate(("/api/questionnaire/questions",))

        assert dropped == 2
        assert cache.has(("/api/questionnaire/categories",))
        assert not cache.has(("/api/questionnaire/questions", 1))

    def test_list_keys_are_normalized(self):
        """Test keys given as lists address the same entry as tuples."""
        cache = QueryCache()
        cache.set_query_data(["/api/auth/me"], {"id": 1})

        assert cache.get_query_data(("/api/auth/me",)) == {"id": 1}

    def test_get_query_data_default(self):
        """Test a missing key yields the default."""
        assert QueryCache().get_query_data(("missing",), default=[]) == []

    def test_clear(self):
        """Test clear empties the cache."""
        cache = QueryCache()
        cache.set_query_data(("k",), 1)

        cache.clear()

        assert not cache.has(("k",))

    def test_concurrent_writes_and_invalidation(self):
        """Test worker threads can share one cache."""
        cache = QueryCache()
        errors = []

        def writer(worker):
            try:
                for i in range(500):
                    cache.set_query_data(("/api/questionnaire/questions", worker, i), i)
                    cache.invalidate(("/api/questionnaire/questions", worker))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(worker,)) for worker in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(cache) == 0
