"""Record factories and an in-memory data source shared by the test suite."""
import datetime as dt
from typing import List, Optional, Sequence

from salescoach.errors import DownstreamFailure
from salescoach.models.activity import ActivityRecord, ActivityType, BehaviorCategory
from salescoach.models.behavior_score import BehaviorScoreResult
from salescoach.models.coaching_signal import CompetitorSignal
from salescoach.models.outcome import OutcomeResult
from salescoach.models.period import PeriodWindow
from salescoach.models.prescription import AccountRecord, PrescriptionRecord

WINDOW_END = dt.datetime(2024, 6, 30, tzinfo=dt.UTC)


def make_activity(
    behavior: BehaviorCategory = BehaviorCategory.VISIT,
    activity_type: ActivityType = ActivityType.VISIT,
    performed_at: Optional[dt.datetime] = None,
    account_id: str = "acc-1",
    owner_id: str = "user-1",
    quality_score: float = 50,
    quantity_score: float = 50,
    **kwargs,
) -> ActivityRecord:
    return ActivityRecord(
        owner_id=owner_id,
        account_id=account_id,
        activity_type=activity_type,
        behavior=behavior,
        quality_score=quality_score,
        quantity_score=quantity_score,
        performed_at=performed_at or WINDOW_END - dt.timedelta(days=1),
        **kwargs,
    )


def make_prescription(
    quantity: float = 10,
    price: float = 0,
    prescription_date: Optional[dt.datetime] = None,
    account_id: str = "acc-1",
    **kwargs,
) -> PrescriptionRecord:
    return PrescriptionRecord(
        account_id=account_id,
        product_name="Product A",
        quantity=quantity,
        price=price,
        prescription_date=prescription_date or WINDOW_END - dt.timedelta(days=1),
        **kwargs,
    )


def make_score(
    behavior: BehaviorCategory,
    quality: int,
    window: PeriodWindow,
    owner_id: str = "user-1",
) -> BehaviorScoreResult:
    return BehaviorScoreResult(
        owner_id=owner_id,
        behavior=behavior,
        quality_score=quality,
        period_start=window.start,
        period_end=window.end,
    )


class FakeDataSource:
    """
    In-memory EngineDataSource.

    Filters by window the way the Mongo repositories do. Set `fail_on` to a
    method name to make that read raise DownstreamFailure.
    """

    def __init__(
        self,
        activities: Sequence[ActivityRecord] = (),
        prescriptions: Sequence[PrescriptionRecord] = (),
        behavior_scores: Sequence[BehaviorScoreResult] = (),
        outcomes: Sequence[OutcomeResult] = (),
        competitor_signals: Sequence[CompetitorSignal] = (),
        accounts: Sequence[AccountRecord] = (),
        fail_on: Sequence[str] = (),
    ):
        self.activities = list(activities)
        self.prescriptions = list(prescriptions)
        self.behavior_scores = list(behavior_scores)
        self.outcomes = list(outcomes)
        self.competitor_signals = list(competitor_signals)
        self.accounts = list(accounts)
        self.fail_on = set(fail_on)
        self.calls: List[str] = []

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise DownstreamFailure(operation, message="simulated outage")

    async def get_activities(self, owner_id, window, account_id=None):
        self._check("get_activities")
        return [
            a for a in self.activities
            if a.owner_id == owner_id
            and window.contains(a.performed_at)
            and (account_id is None or a.account_id == account_id)
        ]

    async def get_prescriptions(self, window, account_id=None):
        self._check("get_prescriptions")
        return [
            p for p in self.prescriptions
            if window.contains(p.prescription_date)
            and (account_id is None or p.account_id == account_id)
        ]

    async def get_behavior_scores(self, owner_id, window):
        self._check("get_behavior_scores")
        return [
            s for s in self.behavior_scores
            if s.owner_id == owner_id and s.period_start >= window.start and s.period_end <= window.end
        ]

    async def get_outcomes(self, owner_id, window):
        self._check("get_outcomes")
        return [
            o for o in self.outcomes
            if o.owner_id == owner_id and o.account_id is None
            and o.period_start >= window.start and o.period_end <= window.end
        ]

    async def get_competitor_signals(self, account_ids, window):
        self._check("get_competitor_signals")
        return [
            s for s in self.competitor_signals
            if s.account_id in account_ids and window.contains(s.detected_at)
        ]

    async def get_accounts(self, account_ids):
        self._check("get_accounts")
        return [a for a in self.accounts if a.id in account_ids]
