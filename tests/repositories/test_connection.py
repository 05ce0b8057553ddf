"""
Database Connection Tests
Lifecycle and index creation without a live server.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from salescoach.repositories.connection import DatabaseManager, db_manager, get_database

COLLECTIONS = (
    "activities",
    "prescriptions",
    "behavior_scores",
    "outcomes",
    "coaching_signals",
    "competitor_signals",
)


@pytest.fixture
def fake_db():
    db = MagicMock()
    for name in COLLECTIONS:
        getattr(db, name).create_index = AsyncMock()
    manager = DatabaseManager()
    manager._database = db
    yield db
    manager._database = None


class TestDatabaseManager:

    def test_singleton_pattern(self):
        assert DatabaseManager() is DatabaseManager()
        assert DatabaseManager() is db_manager

    async def test_database_requires_connect(self):
        manager = DatabaseManager()
        await manager.disconnect()

        with pytest.raises(RuntimeError):
            _ = manager.database

    async def test_ping_without_client(self):
        manager = DatabaseManager()
        await manager.disconnect()

        assert await manager.ping() is False

    async def test_get_database(self, fake_db):
        assert await get_database() is fake_db

    async def test_outcome_key_index_is_unique(self, fake_db):
        await db_manager.create_indexes()

        call = fake_db.outcomes.create_index.call_args
        assert call.kwargs["unique"] is True
        assert call.kwargs["name"] == "idx_outcome_key_unique"
        assert [field for field, _ in call.args[0]] == [
            "owner_id", "period_type", "period_start", "period_end", "account_id",
        ]

    async def test_every_collection_is_indexed(self, fake_db):
        await db_manager.create_indexes()

        for name in COLLECTIONS:
            assert getattr(fake_db, name).create_index.await_count >= 1
