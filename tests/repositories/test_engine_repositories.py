"""
Engine Repository Tests
Repositories run against an in-memory stand-in for a Motor collection.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from salescoach.models.activity import BehaviorCategory
from salescoach.models.outcome import OutcomeResult
from salescoach.models.period import PeriodType
from salescoach.repositories import (
    AccountRepository,
    ActivityRepository,
    BehaviorScoreRepository,
    CoachingSignalRepository,
    CompetitorSignalRepository,
    OutcomeRepository,
)
from factories import WINDOW_END, make_score


pytestmark = pytest.mark.asyncio


class InMemoryCollection:
    """Enough of AsyncIOMotorCollection for equality filters."""

    def __init__(self):
        self.docs = []

    @staticmethod
    def _matches(doc, filter_dict):
        return all(doc.get(k) == v for k, v in filter_dict.items())

    async def insert_one(self, doc):
        doc = {**doc, "_id": ObjectId()}
        self.docs.append(doc)
        return MagicMock(inserted_id=doc["_id"])

    async def insert_many(self, docs):
        ids = [(await self.insert_one(d)).inserted_id for d in docs]
        return MagicMock(inserted_ids=ids)

    async def delete_many(self, filter_dict):
        before = len(self.docs)
        self.docs = [d for d in self.docs if not self._matches(d, filter_dict)]
        return MagicMock(deleted_count=before - len(self.docs))

    async def find_one(self, filter_dict):
        return next((dict(d) for d in self.docs if self._matches(d, filter_dict)), None)

    async def count_documents(self, filter_dict):
        return sum(1 for d in self.docs if self._matches(d, filter_dict))


def database_with(collection):
    database = MagicMock()
    database.__getitem__.return_value = collection
    return database


def cursor_returning(docs):
    cursor = MagicMock()
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.fixture
def outcome(window) -> OutcomeResult:
    return OutcomeResult(
        owner_id="user-1",
        hir_score=55,
        conversion_rate=10,
        field_growth_rate=4.5,
        prescription_index=30,
        period_type=PeriodType.MONTHLY,
        period_start=window.start,
        period_end=window.end,
    )


class TestOutcomeRepository:

    async def test_replace_is_idempotent(self, outcome):
        collection = InMemoryCollection()
        repo = OutcomeRepository(database_with(collection))

        await repo.replace(outcome)
        await repo.replace(outcome)

        assert await repo.count() == 1
        stored = await repo.find_by_key(outcome)
        assert stored.hir_score == 55
        assert stored.account_id is None

    async def test_replace_keeps_other_accounts(self, outcome):
        collection = InMemoryCollection()
        repo = OutcomeRepository(database_with(collection))

        await repo.replace(outcome)
        await repo.replace(outcome.model_copy(update={"id": None, "account_id": "acc-1"}))

        assert await repo.count() == 2

    async def test_aggregate_query_filters_null_account(self, window):
        collection = MagicMock()
        collection.find.return_value = cursor_returning([])
        repo = OutcomeRepository(database_with(collection))

        await repo.get_for_owner("user-1", window)

        query = collection.find.call_args.args[0]
        assert query["account_id"] is None
        assert query["period_start"] == {"$gte": window.start}


class TestBaseRepository:

    async def test_find_by_id_with_malformed_id(self):
        collection = MagicMock()
        collection.find_one = AsyncMock()
        repo = ActivityRepository(database_with(collection))

        assert await repo.find_by_id("not-an-object-id") is None
        collection.find_one.assert_not_called()

    async def test_find_many_maps_documents(self, window):
        oid = ObjectId()
        collection = MagicMock()
        collection.find.return_value = cursor_returning([{
            "_id": oid,
            "owner_id": "user-1",
            "account_id": "acc-1",
            "activity_type": "visit",
            "behavior": "visit",
            "performed_at": WINDOW_END,
            "legacy_field": "ignored",
        }])
        repo = ActivityRepository(database_with(collection))

        activities = await repo.get_for_owner("user-1", window, account_id="acc-1")

        assert activities[0].id == str(oid)
        assert activities[0].behavior == BehaviorCategory.VISIT
        query = collection.find.call_args.args[0]
        assert query["performed_at"] == {"$gte": window.start, "$lte": window.end}
        assert query["account_id"] == "acc-1"


class TestBehaviorScoreRepository:

    async def test_replace_for_window(self, window):
        collection = InMemoryCollection()
        repo = BehaviorScoreRepository(database_with(collection))
        scores = [make_score(BehaviorCategory.VISIT, 60, window), make_score(BehaviorCategory.CONTACT, 40, window)]

        await repo.replace_for_window("user-1", window, scores)
        await repo.replace_for_window("user-1", window, [make_score(BehaviorCategory.VISIT, 70, window)])

        assert await repo.count() == 1
        assert collection.docs[0]["quality_score"] == 70


class TestSignalRepositories:

    async def test_resolve_unknown_signal(self):
        collection = MagicMock()
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))
        repo = CoachingSignalRepository(database_with(collection))

        assert await repo.resolve(str(ObjectId())) is False

    async def test_resolve_sets_fields(self):
        collection = MagicMock()
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))
        repo = CoachingSignalRepository(database_with(collection))
        signal_id = str(ObjectId())

        assert await repo.resolve(signal_id) is True
        update = collection.update_one.call_args.args[1]["$set"]
        assert update["is_resolved"] is True
        assert update["resolved_at"] is not None

    async def test_competitor_signals_without_accounts(self, window):
        collection = MagicMock()
        repo = CompetitorSignalRepository(database_with(collection))

        assert await repo.get_for_accounts([], window) == []
        collection.find.assert_not_called()


async def test_get_many_skips_malformed_ids():
    oid = ObjectId()
    collection = MagicMock()
    collection.find.return_value = cursor_returning([{"_id": oid, "name": "City Hospital"}])
    repo = AccountRepository(database_with(collection))

    accounts = await repo.get_many([str(oid), "acc-legacy"])

    assert [a.name for a in accounts] == ["City Hospital"]
    assert collection.find.call_args.args[0] == {"_id": {"$in": [oid]}}
