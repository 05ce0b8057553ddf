"""
Prescription and Account Repositories
"""
from typing import Dict, Any, List, Optional, Sequence
from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId

from .base import BaseRepository
from ..models.period import PeriodWindow
from ..models.prescription import AccountRecord, PrescriptionRecord


class PrescriptionRepository(BaseRepository[PrescriptionRecord]):

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "prescriptions", PrescriptionRecord)

    async def get_in_window(
        self,
        window: PeriodWindow,
        account_id: Optional[str] = None
    ) -> List[PrescriptionRecord]:
        query: Dict[str, Any] = {}
        if account_id:
            query["account_id"] = account_id

        return await self.find_in_window("prescription_date", window, query)


class AccountRepository(BaseRepository[AccountRecord]):

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "accounts", AccountRecord)

    async def get_many(self, account_ids: Sequence[str]) -> List[AccountRecord]:
        """Accounts for the given ids; unknown or malformed ids are skipped."""
        object_ids = [ObjectId(a) for a in account_ids if ObjectId.is_valid(a)]
        if not object_ids:
            return []
        return await self.find_many({"_id": {"$in": object_ids}})
