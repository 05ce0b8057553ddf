"""
Team Rollup Service

Team KPIs for a manager view: average behavior score and HIR over the
members, each against the previous window, plus a goal forecast.

Members are computed concurrently. A member whose reads fail is logged and
left out of the averages; the rollup itself never fails for one member.
"""
import asyncio
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from salescoach.analytics.scoring_math import mean, round_half_up
from salescoach.config import get_settings
from salescoach.errors import DownstreamFailure, ValidationError
from salescoach.models.activity import BEHAVIOR_CATEGORIES
from salescoach.models.behavior_score import BehaviorScoreResult
from salescoach.models.period import PeriodWindow
from salescoach.services.data_source import EngineDataSource
from salescoach.services.metric_providers import BehaviorScoreMetricsProvider, OutcomeMetricsProvider
from salescoach.services.outcome_service import tagged
from salescoach.utils.observability import logger


class KPIValue(BaseModel):
    current: int = 0
    previous: int = 0
    change: int = 0


class TeamKPIs(BaseModel):
    behavior_score: KPIValue = Field(default_factory=KPIValue)
    avg_hir: KPIValue = Field(default_factory=KPIValue)
    goal_forecast: KPIValue = Field(default_factory=KPIValue)
    member_count: int = 0
    failed_members: List[str] = Field(default_factory=list)


@dataclass(frozen=True)
class MemberKPIs:
    behavior_score: int
    previous_behavior_score: int
    hir: int
    previous_hir: int


@dataclass(frozen=True)
class SubjectResult:
    """Outcome of one member's computation: either `value` or `error` is set."""
    subject_id: str
    value: Optional[MemberKPIs] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def team_behavior_score(scores: Sequence[BehaviorScoreResult]) -> int:
    """Mean over all 8 categories of each category's average quality (absent categories count as 0)."""
    total = 0.0
    for category in BEHAVIOR_CATEGORIES:
        total += mean([s.quality_score for s in scores if s.behavior == category])
    return round_half_up(total / len(BEHAVIOR_CATEGORIES))


def change_pct(current: float, previous: float) -> int:
    if previous > 0:
        return round_half_up((current - previous) / previous * 100)
    return 0


def goal_forecast(avg_hir: float, target_hir: int) -> int:
    if target_hir <= 0:
        return 0
    return min(100, round_half_up(avg_hir / target_hir * 100))


def fold_team_kpis(results: Sequence[SubjectResult], target_hir: int) -> TeamKPIs:
    ok = [r.value for r in results if r.ok and r.value is not None]
    failed = [r.subject_id for r in results if not r.ok]
    if not ok:
        return TeamKPIs(failed_members=failed)

    behavior = mean([m.behavior_score for m in ok])
    previous_behavior = mean([m.previous_behavior_score for m in ok])
    hir = mean([m.hir for m in ok])
    previous_hir = mean([m.previous_hir for m in ok])

    forecast = goal_forecast(hir, target_hir)
    previous_forecast = goal_forecast(previous_hir, target_hir)

    return TeamKPIs(
        behavior_score=KPIValue(
            current=round_half_up(behavior),
            previous=round_half_up(previous_behavior),
            change=change_pct(behavior, previous_behavior),
        ),
        avg_hir=KPIValue(
            current=round_half_up(hir),
            previous=round_half_up(previous_hir),
            change=change_pct(hir, previous_hir),
        ),
        goal_forecast=KPIValue(
            current=forecast,
            previous=previous_forecast,
            change=change_pct(forecast, previous_forecast),
        ),
        member_count=len(ok),
        failed_members=failed,
    )


class TeamRollupService:

    def __init__(
        self,
        data_source: EngineDataSource,
        provider: Optional[OutcomeMetricsProvider] = None,
        target_hir: Optional[int] = None,
    ):
        self._data_source = data_source
        self._provider = provider or BehaviorScoreMetricsProvider(data_source)
        self._target_hir = target_hir or get_settings().team_target_hir

    async def _member_kpis(self, owner_id: str, window: PeriodWindow, previous: PeriodWindow) -> MemberKPIs:
        current_scores = await tagged("team_behavior_score", self._data_source.get_behavior_scores(owner_id, window))
        previous_scores = await tagged("team_behavior_score", self._data_source.get_behavior_scores(owner_id, previous))
        hir = await tagged("team_hir", self._provider.calculate_hir(owner_id, window))
        previous_hir = await tagged("team_hir", self._provider.calculate_hir(owner_id, previous))
        return MemberKPIs(
            behavior_score=team_behavior_score(current_scores),
            previous_behavior_score=team_behavior_score(previous_scores),
            hir=int(hir),
            previous_hir=int(previous_hir),
        )

    async def _subject(self, owner_id: str, window: PeriodWindow, previous: PeriodWindow) -> SubjectResult:
        try:
            return SubjectResult(owner_id, value=await self._member_kpis(owner_id, window, previous))
        except (DownstreamFailure, ValidationError) as e:
            logger.bind(owner_id=owner_id, error_type=type(e).__name__).warning(
                f"Skipping team member {owner_id}: {e}"
            )
            return SubjectResult(owner_id, error=str(e))

    async def get_team_kpis(self, owner_ids: Iterable[str], window: Optional[PeriodWindow] = None) -> TeamKPIs:
        """
        Team KPIs over `window` (default: trailing configured days) versus
        the equal-length window before it.
        """
        members: Tuple[str, ...] = tuple(o for o in owner_ids if o)
        if not members:
            return TeamKPIs()

        window = window or PeriodWindow.last_days(get_settings().default_window_days)
        previous = window.previous()

        results = await asyncio.gather(*(self._subject(o, window, previous) for o in members))
        kpis = fold_team_kpis(results, self._target_hir)

        logger.info(
            f"Team KPIs computed for {kpis.member_count}/{len(members)} members",
            extra={"failed_members": kpis.failed_members, "avg_hir": kpis.avg_hir.current}
        )
        return kpis
