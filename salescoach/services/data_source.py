"""
Engine Data Source

The read boundary between the engine services and storage. Services depend
on the `EngineDataSource` protocol; `MongoDataSource` implements it over the
motor repositories with every read bounded by a timeout.
"""
import asyncio
from typing import Awaitable, List, Optional, Protocol, Sequence, TypeVar

from pymongo.errors import PyMongoError

from salescoach.config import get_settings
from salescoach.errors import DownstreamFailure
from salescoach.models.activity import ActivityRecord
from salescoach.models.behavior_score import BehaviorScoreResult
from salescoach.models.coaching_signal import CompetitorSignal
from salescoach.models.outcome import OutcomeResult
from salescoach.models.period import PeriodWindow
from salescoach.models.prescription import AccountRecord, PrescriptionRecord
from salescoach.repositories import (
    AccountRepository,
    ActivityRepository,
    BehaviorScoreRepository,
    CompetitorSignalRepository,
    OutcomeRepository,
    PrescriptionRepository,
)
from salescoach.utils.metrics import metrics
from salescoach.utils.observability import logger

R = TypeVar("R")


async def guarded_read(
    operation: str,
    awaitable: Awaitable[R],
    timeout: Optional[float] = None,
) -> R:
    """
    Await a storage call, converting timeouts and driver errors.

    Raises:
        DownstreamFailure: tagged with `operation`
    """
    timeout = timeout if timeout is not None else get_settings().storage_read_timeout_seconds
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        metrics.downstream_failures.inc(operation=operation)
        logger.warning(f"Storage read timed out: {operation}", extra={"operation": operation, "timeout": timeout})
        raise DownstreamFailure(operation, cause=e, message=f"timed out after {timeout}s") from e
    except PyMongoError as e:
        metrics.downstream_failures.inc(operation=operation)
        logger.bind(operation=operation).error(f"Storage read failed: {operation}: {e}")
        raise DownstreamFailure(operation, cause=e) from e


class EngineDataSource(Protocol):
    """
    Read access the scoring services need.

    Implement this to run the engine over another store; tests use an
    in-memory fake.
    """

    async def get_activities(
        self, owner_id: str, window: PeriodWindow, account_id: Optional[str] = None
    ) -> List[ActivityRecord]:
        ...

    async def get_prescriptions(
        self, window: PeriodWindow, account_id: Optional[str] = None
    ) -> List[PrescriptionRecord]:
        ...

    async def get_behavior_scores(self, owner_id: str, window: PeriodWindow) -> List[BehaviorScoreResult]:
        ...

    async def get_outcomes(self, owner_id: str, window: PeriodWindow) -> List[OutcomeResult]:
        """Aggregate outcomes (no account) whose period lies inside the window."""
        ...

    async def get_competitor_signals(
        self, account_ids: Sequence[str], window: PeriodWindow
    ) -> List[CompetitorSignal]:
        ...

    async def get_accounts(self, account_ids: Sequence[str]) -> List[AccountRecord]:
        ...


class MongoDataSource:
    """EngineDataSource over the motor repositories."""

    def __init__(
        self,
        activities: ActivityRepository,
        prescriptions: PrescriptionRepository,
        behavior_scores: BehaviorScoreRepository,
        outcomes: OutcomeRepository,
        competitor_signals: CompetitorSignalRepository,
        accounts: AccountRepository,
        timeout: Optional[float] = None,
    ):
        self._activities = activities
        self._prescriptions = prescriptions
        self._behavior_scores = behavior_scores
        self._outcomes = outcomes
        self._competitor_signals = competitor_signals
        self._accounts = accounts
        self._timeout = timeout

    @classmethod
    def from_database(cls, database, timeout: Optional[float] = None) -> "MongoDataSource":
        return cls(
            activities=ActivityRepository(database),
            prescriptions=PrescriptionRepository(database),
            behavior_scores=BehaviorScoreRepository(database),
            outcomes=OutcomeRepository(database),
            competitor_signals=CompetitorSignalRepository(database),
            accounts=AccountRepository(database),
            timeout=timeout,
        )

    async def get_activities(self, owner_id, window, account_id=None):
        return await guarded_read(
            "get_activities",
            self._activities.get_for_owner(owner_id, window, account_id),
            self._timeout,
        )

    async def get_prescriptions(self, window, account_id=None):
        return await guarded_read(
            "get_prescriptions",
            self._prescriptions.get_in_window(window, account_id),
            self._timeout,
        )

    async def get_behavior_scores(self, owner_id, window):
        return await guarded_read(
            "get_behavior_scores",
            self._behavior_scores.get_for_owner(owner_id, window),
            self._timeout,
        )

    async def get_outcomes(self, owner_id, window):
        return await guarded_read(
            "get_outcomes",
            self._outcomes.get_for_owner(owner_id, window),
            self._timeout,
        )

    async def get_competitor_signals(self, account_ids, window):
        return await guarded_read(
            "get_competitor_signals",
            self._competitor_signals.get_for_accounts(account_ids, window),
            self._timeout,
        )

    async def get_accounts(self, account_ids):
        return await guarded_read(
            "get_accounts",
            self._accounts.get_many(account_ids),
            self._timeout,
        )
