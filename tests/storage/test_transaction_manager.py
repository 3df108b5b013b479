"""Tests for TransactionManager."""

from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from feedstore.storage.backends import SQLiteBackend, StorageLocation
from feedstore.storage.schema import FEED_DATA_MODEL, CachedFeedRecord
from feedstore.storage.transaction import TransactionError, TransactionManager


@pytest.fixture
def session():
    engine = SQLiteBackend().create_engine(StorageLocation.ephemeral())
    FEED_DATA_MODEL.metadata.create_all(engine)
    session = Session(engine)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def manager() -> TransactionManager:
    return TransactionManager()


def count_feeds(session: Session) -> int:
    return session.scalar(select(func.count()).select_from(CachedFeedRecord))


class TestTransactionScope:
    """transaction_scope commit and rollback behaviour."""

    def test_commits_on_success(self, manager, session):
        with manager.transaction_scope(session, "insert") as tx_session:
            tx_session.add(CachedFeedRecord(timestamp=datetime(2024, 1, 1)))

        session.rollback()
        assert count_feeds(session) == 1
        stats = manager.get_stats()
        assert stats["total_transactions"] == 1
        assert stats["successful_commits"] == 1
        assert stats["rollbacks"] == 0
        assert stats["active_transactions"] == 0

    def test_rolls_back_and_reraises_on_error(self, manager, session):
        with pytest.raises(RuntimeError, match="boom"):
            with manager.transaction_scope(session, "insert") as tx_session:
                tx_session.add(CachedFeedRecord(timestamp=datetime(2024, 1, 1)))
                tx_session.flush()
                raise RuntimeError("boom")

        assert count_feeds(session) == 0
        assert manager.get_stats()["rollbacks"] == 1
        assert not manager.is_active()

    def test_failing_commit_is_rolled_back(self, manager, session, mocker):
        mocker.patch.object(session, "commit", side_effect=RuntimeError("commit failed"))

        with pytest.raises(RuntimeError, match="commit failed"):
            with manager.transaction_scope(session):
                pass

        stats = manager.get_stats()
        assert stats["successful_commits"] == 0
        assert stats["rollbacks"] == 1

    def test_scopes_can_run_back_to_back(self, manager, session):
        for _ in range(3):
            with manager.transaction_scope(session):
                count_feeds(session)

        assert manager.get_stats()["successful_commits"] == 3


class TestExplicitTransactions:
    """begin/commit/rollback used directly."""

    def test_begin_while_active_raises(self, manager, session):
        manager.begin(session)

        with pytest.raises(TransactionError, match="still active"):
            manager.begin(session)

        manager.rollback()

    def test_commit_without_transaction_raises(self, manager):
        with pytest.raises(TransactionError, match="No active transaction"):
            manager.commit()

    def test_rollback_without_transaction_is_noop(self, manager, caplog):
        manager.rollback()

        assert manager.get_stats()["rollbacks"] == 0
        assert "No active transaction to rollback" in caplog.text

    def test_reset_stats(self, manager, session):
        with manager.transaction_scope(session):
            pass

        manager.reset_stats()

        assert manager.get_stats()["total_transactions"] == 0
