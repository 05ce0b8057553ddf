"""
Behavior Score Repository
Derived per-category scores, replaced wholesale on recomputation.
"""
from typing import List
from motor.motor_asyncio import AsyncIOMotorDatabase

from .base import BaseRepository
from ..models.behavior_score import BehaviorScoreResult
from ..models.period import PeriodWindow
from ..utils.observability import logger


class BehaviorScoreRepository(BaseRepository[BehaviorScoreResult]):

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "behavior_scores", BehaviorScoreResult)

    async def get_for_owner(self, owner_id: str, window: PeriodWindow) -> List[BehaviorScoreResult]:
        """Scores whose period lies entirely inside the window."""
        return await self.find_many(
            {
                "owner_id": owner_id,
                "period_start": {"$gte": window.start},
                "period_end": {"$lte": window.end},
            },
            sort=[("period_start", 1)]
        )

    async def replace_for_window(
        self,
        owner_id: str,
        window: PeriodWindow,
        scores: List[BehaviorScoreResult]
    ) -> List[BehaviorScoreResult]:
        """
        Delete-then-insert the scores of exactly this window.
        Not safe against a concurrent writer for the same owner and window.
        """
        removed, saved = await self.replace_where(
            {"owner_id": owner_id, "period_start": window.start, "period_end": window.end},
            scores,
        )

        logger.debug(
            f"Replaced behavior scores for {owner_id}",
            extra={"owner_id": owner_id, "removed": removed, "inserted": len(saved)}
        )
        return saved
