"""
Signal Repositories
Coaching signals (insert-only, resolvable) and competitor sightings.
"""
from typing import List, Sequence
from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
import datetime as dt

from .base import BaseRepository
from ..models.coaching_signal import CoachingSignal, CompetitorSignal
from ..models.period import PeriodWindow
from ..utils.observability import logger


class CoachingSignalRepository(BaseRepository[CoachingSignal]):

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "coaching_signals", CoachingSignal)

    async def get_open(self, owner_id: str, limit: int = 100) -> List[CoachingSignal]:
        return await self.find_many(
            {"owner_id": owner_id, "is_resolved": False},
            limit=limit,
            sort=[("created_at", -1)]
        )

    async def resolve(self, signal_id: str) -> bool:
        """
        Mark a signal resolved.

        Returns:
            True if a signal was updated, False if no such signal exists
        """
        if not ObjectId.is_valid(signal_id):
            return False

        now = dt.datetime.now(dt.UTC)
        result = await self.collection.update_one(
            {"_id": ObjectId(signal_id)},
            {"$set": {"is_resolved": True, "resolved_at": now, "updated_at": now}}
        )

        if result.matched_count > 0:
            logger.info(f"Resolved coaching signal {signal_id}", extra={"signal_id": signal_id})
            return True

        return False


class CompetitorSignalRepository(BaseRepository[CompetitorSignal]):

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "competitor_signals", CompetitorSignal)

    async def get_for_accounts(
        self,
        account_ids: Sequence[str],
        window: PeriodWindow
    ) -> List[CompetitorSignal]:
        if not account_ids:
            return []
        return await self.find_in_window("detected_at", window, {"account_id": {"$in": list(account_ids)}})
