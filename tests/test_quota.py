"""Tests for the daily quota limiter and its stores."""

from __future__ import annotations

import datetime
import json

import pytest

from retro_vision.errors import QuotaExceeded
from retro_vision.quota import DAILY_MAX, STORAGE_KEY, JsonFileStore, MemoryStore, QuotaLimiter


class TestQuotaLimiter:
    def test_fresh_install_has_full_quota(self, quota):
        assert quota.remaining() == DAILY_MAX == 10
        assert quota.is_limit_reached() is False

    def test_increment_counts_down(self, quota):
        assert quota.increment() == 9
        assert quota.used() == 1

    def test_limit_reached_after_daily_max(self, quota):
        for _ in range(10):
            quota.increment()
        assert quota.remaining() == 0
        assert quota.is_limit_reached() is True

    def test_ensure_available_raises_when_used_up(self, quota):
        quota.ensure_available()
        for _ in range(10):
            quota.increment()
        with pytest.raises(QuotaExceeded, match="DAILY LIMIT REACHED"):
            quota.ensure_available("DAILY LIMIT REACHED (10/10)")

    def test_resets_on_new_day(self, quota, clock):
        for _ in range(10):
            quota.increment()
        clock.day = clock.day + datetime.timedelta(days=1)
        assert quota.remaining() == 10
        assert quota.used() == 0

    def test_read_on_new_day_persists_reset(self, clock):
        store = MemoryStore({STORAGE_KEY: json.dumps({"count": 7, "lastResetDate": "2025-01-30"})})
        QuotaLimiter(store, today=clock).remaining()
        assert json.loads(store.get(STORAGE_KEY)) == {"count": 0, "lastResetDate": "2025-01-31"}

    def test_stored_shape(self, clock):
        store = MemoryStore()
        QuotaLimiter(store, today=clock).increment()
        assert json.loads(store.get(STORAGE_KEY)) == {"count": 1, "lastResetDate": "2025-01-31"}

    def test_corrupt_record_counts_as_fresh(self, clock):
        store = MemoryStore({STORAGE_KEY: "{not json"})
        limiter = QuotaLimiter(store, today=clock)
        assert limiter.remaining() == 10

    def test_failing_store_is_tolerated(self, clock):
        class BrokenStore:
            def get(self, key):
                raise OSError("disk gone")

            def set(self, key, value):
                raise OSError("disk gone")

        limiter = QuotaLimiter(BrokenStore(), today=clock)
        assert limiter.remaining() == 10
        assert limiter.increment() == 9

    def test_custom_daily_max(self, clock):
        limiter = QuotaLimiter(MemoryStore(), daily_max=2, today=clock)
        limiter.increment()
        limiter.increment()
        assert limiter.is_limit_reached() is True


class TestJsonFileStore:
    def test_round_trip_and_persistence(self, tmp_path, clock):
        path = tmp_path / "nested" / "state.json"
        QuotaLimiter(JsonFileStore(path), today=clock).increment()

        reopened = QuotaLimiter(JsonFileStore(path), today=clock)
        assert reopened.used() == 1
        assert STORAGE_KEY in json.loads(path.read_text())

    def test_keeps_other_keys(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"other": "x"}))
        store = JsonFileStore(path)
        store.set("k", "v")
        assert json.loads(path.read_text()) == {"other": "x", "k": "v"}

    def test_missing_file(self, tmp_path):
        assert JsonFileStore(tmp_path / "none.json").get("k") is None
