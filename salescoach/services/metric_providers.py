"""
Opaque Metric Providers

HIR, RTR and PHR are computed outside this engine. Services consume them
through `OutcomeMetricsProvider`; the default provider derives HIR from the
stored behavior scores and reports RTR and PHR as 0.
"""
from typing import Optional, Protocol

from salescoach.analytics.behavior_scores import latest_quality_by_category
from salescoach.analytics.scoring_math import clamp, mean, round_half_up
from salescoach.models.period import PeriodWindow
from salescoach.services.data_source import EngineDataSource


class OutcomeMetricsProvider(Protocol):
    """Source of the opaque 0-100 relationship metrics."""

    async def calculate_hir(self, owner_id: str, window: PeriodWindow, account_id: Optional[str] = None) -> int:
        ...

    async def calculate_rtr(self, owner_id: str, window: PeriodWindow, account_id: Optional[str] = None) -> int:
        ...

    async def calculate_phr(self, owner_id: str, window: PeriodWindow, account_id: Optional[str] = None) -> int:
        ...


class BehaviorScoreMetricsProvider:
    """
    Default provider.

    HIR is the rounded mean of the most recent quality score of each
    behavior category in the window (0 with no scores).
    """

    def __init__(self, data_source: EngineDataSource):
        self._data_source = data_source

    async def calculate_hir(self, owner_id: str, window: PeriodWindow, account_id: Optional[str] = None) -> int:
        scores = await self._data_source.get_behavior_scores(owner_id, window)
        latest = latest_quality_by_category(scores)
        if not latest:
            return 0
        return int(clamp(round_half_up(mean(list(latest.values())))))

    async def calculate_rtr(self, owner_id: str, window: PeriodWindow, account_id: Optional[str] = None) -> int:
        return 0

    async def calculate_phr(self, owner_id: str, window: PeriodWindow, account_id: Optional[str] = None) -> int:
        return 0
