"""
Activity Repository
Window-scoped reads over logged field activities.
"""
from typing import Dict, Any, List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from .base import BaseRepository
from ..models.activity import ActivityRecord
from ..models.period import PeriodWindow


class ActivityRepository(BaseRepository[ActivityRecord]):

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "activities", ActivityRecord)

    async def get_for_owner(
        self,
        owner_id: str,
        window: PeriodWindow,
        account_id: Optional[str] = None
    ) -> List[ActivityRecord]:
        """
        Activities performed by an owner inside the window, oldest first.

        Args:
            owner_id: Salesperson identifier
            window: Inclusive performed_at range
            account_id: Restrict to one account when given
        """
        query: Dict[str, Any] = {"owner_id": owner_id}
        if account_id:
            query["account_id"] = account_id

        return await self.find_in_window("performed_at", window, query)
