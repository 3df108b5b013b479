"""Tests for TransactionalFeedStore."""

from __future__ import annotations

import weakref
from datetime import datetime, timedelta, timezone

import pytest

from feedstore.core.models import EmptyCache, FoundCache, Success
from feedstore.shared.errors import DomainError, ErrorCode, StoreClosedError
from feedstore.storage.backends import StorageLocation
from feedstore.storage.schema import FEED_DATA_MODEL
from feedstore.storage.transactional_store import TransactionalFeedStore
from helpers import feed_store_contract as contract
from helpers.factories import make_image


@pytest.fixture(params=["ephemeral", "file"])
def store(request, make_store, store_path):
    """A fresh store on an ephemeral or a file location."""
    location = StorageLocation.ephemeral() if request.param == "ephemeral" else store_path
    return make_store(location)


class TestTransactionalFeedStoreContract:
    """The transactional store satisfies the feed store contract."""

    def test_retrieve_delivers_empty_on_empty_cache(self, store):
        contract.assert_retrieve_delivers_empty_on_empty_cache(store)

    def test_retrieve_has_no_side_effects_on_empty_cache(self, store):
        contract.assert_retrieve_has_no_side_effects_on_empty_cache(store)

    def test_retrieve_delivers_found_values_on_non_empty_cache(self, store, feed, timestamp):
        contract.assert_retrieve_delivers_found_values_on_non_empty_cache(store, feed, timestamp)

    def test_retrieve_has_no_side_effects_on_non_empty_cache(self, store, feed, timestamp):
        contract.assert_retrieve_has_no_side_effects_on_non_empty_cache(store, feed, timestamp)

    def test_insert_delivers_no_error_on_empty_cache(self, store, feed, timestamp):
        contract.assert_insert_delivers_no_error_on_empty_cache(store, feed, timestamp)

    def test_insert_delivers_no_error_on_non_empty_cache(self, store, feed, timestamp):
        contract.assert_insert_delivers_no_error_on_non_empty_cache(store, feed, timestamp)

    def test_insert_overrides_previously_inserted_cache_values(
        self, store, feed, timestamp, other_feed, later_timestamp
    ):
        contract.assert_insert_overrides_previously_inserted_cache_values(
            store, feed, timestamp, other_feed, later_timestamp
        )

    def test_insert_stores_empty_feed(self, store, timestamp):
        contract.assert_insert_stores_empty_feed(store, timestamp)

    def test_delete_delivers_no_error_on_empty_cache(self, store):
        contract.assert_delete_delivers_no_error_on_empty_cache(store)

    def test_delete_has_no_side_effects_on_empty_cache(self, store):
        contract.assert_delete_has_no_side_effects_on_empty_cache(store)

    def test_delete_delivers_no_error_on_non_empty_cache(self, store, feed, timestamp):
        contract.assert_delete_delivers_no_error_on_non_empty_cache(store, feed, timestamp)

    def test_delete_empties_previously_inserted_cache(self, store, feed, timestamp):
        contract.assert_delete_empties_previously_inserted_cache(store, feed, timestamp)

    def test_side_effects_run_serially(self, store, feed, timestamp):
        contract.assert_side_effects_run_serially(store, feed, timestamp)

    def test_completion_runs_off_the_calling_thread(self, store):
        contract.assert_completion_runs_off_the_calling_thread(store)


class TestTransactionalFeedStoreBehaviour:
    """Store specifics beyond the shared contract."""

    def test_example_scenario(self, make_store):
        """Insert A,B at T1, replace with C at T2, then delete."""
        store = make_store(":memory:")
        a, b, c = make_image(), make_image(), make_image()
        t1 = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
        t2 = t1 + timedelta(hours=1)

        assert contract.insert(store, [a, b], t1) == Success()
        assert contract.retrieve(store) == FoundCache(feed=(a, b), timestamp=t1)

        assert contract.insert(store, [c], t2) == Success()
        assert contract.retrieve(store) == FoundCache(feed=(c,), timestamp=t2)

        assert contract.delete(store) == Success()
        assert contract.retrieve(store) == EmptyCache()

    def test_preserves_order_of_many_images(self, make_store, timestamp):
        store = make_store(":memory:")
        feed = [make_image() for _ in range(25)]

        contract.insert(store, feed, timestamp)

        assert contract.retrieve(store).feed == tuple(feed)

    def test_preserves_absent_optional_fields(self, make_store, timestamp):
        store = make_store(":memory:")
        feed = [make_image(description=None, location=None), make_image(description=None)]

        contract.insert(store, feed, timestamp)

        assert contract.retrieve(store) == FoundCache(feed=tuple(feed), timestamp=timestamp)

    def test_preserves_naive_timestamp(self, make_store, feed):
        store = make_store(":memory:")
        naive = datetime(2023, 12, 31, 23, 59, 59, 999999)

        contract.insert(store, feed, naive)

        assert contract.retrieve(store).timestamp == naive

    def test_insert_replaces_instead_of_accumulating(self, make_store, feed, timestamp):
        store = make_store(":memory:")

        for _ in range(3):
            contract.insert(store, feed, timestamp)

        assert contract.retrieve(store).feed == tuple(feed)

    def test_invalid_timestamp_raises_synchronously(self, make_store, feed):
        store = make_store(":memory:")

        with pytest.raises(DomainError) as exc_info:
            store.insert(feed, "yesterday")  # type: ignore[arg-type]

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert contract.retrieve(store) == EmptyCache()

    def test_accepts_resolved_model(self, make_store):
        store = make_store(":memory:", model=FEED_DATA_MODEL)

        assert store.model is FEED_DATA_MODEL

    def test_statistics_track_transactions(self, make_store, feed, timestamp):
        store = make_store(":memory:")

        contract.insert(store, feed, timestamp)
        contract.retrieve(store)

        stats = store.get_stats()
        assert stats["transactions"]["successful_commits"] == 2
        assert stats["queue"]["completed"] == 2


class TestTransactionalFeedStoreLifecycle:
    """Closing the store."""

    def test_close_drains_pending_operations(self, store_path, feed, timestamp):
        store = TransactionalFeedStore(store_path)
        futures = [store.insert(feed, timestamp), store.retrieve()]

        store.close()

        assert futures[0].result(timeout=0) == Success()
        assert futures[1].result(timeout=0) == FoundCache(feed=tuple(feed), timestamp=timestamp)

    def test_operations_after_close_raise(self, store_path):
        store = TransactionalFeedStore(store_path)
        store.close()

        with pytest.raises(StoreClosedError):
            store.retrieve()
        assert store.is_closed

    def test_close_is_idempotent(self):
        store = TransactionalFeedStore(":memory:")

        store.close()
        store.close()

    def test_unreferenced_store_releases_its_worker(self, store_path, feed, timestamp):
        # Given: a store that was used but never closed
        store = TransactionalFeedStore(store_path)
        contract.insert(store, feed, timestamp)
        worker = store._queue._worker
        store_ref = weakref.ref(store)

        # When
        del store

        # Then
        assert contract.wait_until_collected(store_ref)
        worker.join(timeout=contract.TIMEOUT)
        assert not worker.is_alive()
        with TransactionalFeedStore(store_path) as reopened:
            assert contract.retrieve(reopened) == FoundCache(feed=tuple(feed), timestamp=timestamp)

    def test_context_manager_closes_store(self, store_path):
        with TransactionalFeedStore(store_path) as store:
            assert contract.retrieve(store) == EmptyCache()

        assert store.is_closed

    def test_ephemeral_store_is_discarded_on_close(self, feed, timestamp):
        with TransactionalFeedStore(":memory:") as store:
            contract.insert(store, feed, timestamp)

        with TransactionalFeedStore(":memory:") as reopened:
            assert contract.retrieve(reopened) == EmptyCache()
