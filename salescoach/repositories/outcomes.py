"""
Outcome Repository
One row per (owner, period type, window, account); recomputation replaces it.
"""
from typing import Dict, Any, List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from .base import BaseRepository
from ..models.outcome import OutcomeResult
from ..models.period import PeriodWindow
from ..utils.observability import logger


def outcome_key(outcome: OutcomeResult) -> Dict[str, Any]:
    return {
        "owner_id": outcome.owner_id,
        "period_type": outcome.period_type.value,
        "period_start": outcome.period_start,
        "period_end": outcome.period_end,
        "account_id": outcome.account_id,
    }


class OutcomeRepository(BaseRepository[OutcomeResult]):

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "outcomes", OutcomeResult)

    async def get_for_owner(
        self,
        owner_id: str,
        window: PeriodWindow,
        aggregate_only: bool = True
    ) -> List[OutcomeResult]:
        query: Dict[str, Any] = {
            "owner_id": owner_id,
            "period_start": {"$gte": window.start},
            "period_end": {"$lte": window.end},
        }
        if aggregate_only:
            query["account_id"] = None

        return await self.find_many(query, sort=[("period_start", 1)])

    async def find_by_key(self, outcome: OutcomeResult) -> Optional[OutcomeResult]:
        return await self.find_one(outcome_key(outcome))

    async def replace(self, outcome: OutcomeResult) -> OutcomeResult:
        """
        Delete any row with the same key, then insert this one.

        Running it twice for the same key leaves a single row. Two writers
        racing on one key are stopped by the unique outcome index.
        """
        removed, saved = await self.replace_where(outcome_key(outcome), [outcome])

        logger.debug(
            f"Replaced outcome for {outcome.owner_id}",
            extra={"owner_id": outcome.owner_id, "removed": removed, "period_type": outcome.period_type.value}
        )
        return saved[0]
