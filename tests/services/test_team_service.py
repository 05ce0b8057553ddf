"""
Team Rollup Tests
"""
from salescoach.errors import DownstreamFailure
from salescoach.models.activity import BehaviorCategory
from salescoach.services.team_service import (
    MemberKPIs,
    SubjectResult,
    TeamRollupService,
    change_pct,
    fold_team_kpis,
    goal_forecast,
    team_behavior_score,
)
from factories import FakeDataSource, make_score


class FlakyProvider:
    """HIR provider that is down for one member."""

    def __init__(self, down_for: str, hir: int = 70):
        self.down_for = down_for
        self.hir = hir

    async def calculate_hir(self, owner_id, window, account_id=None):
        if owner_id == self.down_for:
            raise DownstreamFailure("get_behavior_scores", message="simulated outage")
        return self.hir


class TestPureRollup:

    def test_team_behavior_score_counts_absent_categories_as_zero(self, window):
        assert team_behavior_score([make_score(BehaviorCategory.VISIT, 80, window)]) == 10

    def test_change_pct_without_baseline(self):
        assert change_pct(40, 0) == 0
        assert change_pct(60, 50) == 20

    def test_goal_forecast_is_capped(self):
        assert goal_forecast(91, 70) == 100
        assert goal_forecast(35, 70) == 50
        assert goal_forecast(35, 0) == 0

    def test_fold_skips_failed_members(self):
        results = [
            SubjectResult("user-1", value=MemberKPIs(60, 50, 70, 56)),
            SubjectResult("user-2", error="storage unavailable"),
        ]

        kpis = fold_team_kpis(results, target_hir=70)

        assert kpis.member_count == 1
        assert kpis.failed_members == ["user-2"]
        assert (kpis.behavior_score.current, kpis.behavior_score.previous, kpis.behavior_score.change) == (60, 50, 20)
        assert (kpis.avg_hir.current, kpis.avg_hir.change) == (70, 25)
        assert (kpis.goal_forecast.current, kpis.goal_forecast.previous) == (100, 80)

    def test_fold_with_no_survivors(self):
        kpis = fold_team_kpis([SubjectResult("user-1", error="x")], target_hir=70)
        assert kpis.member_count == 0
        assert kpis.avg_hir.current == 0


class TestTeamRollupService:

    async def test_no_members(self, window):
        kpis = await TeamRollupService(FakeDataSource()).get_team_kpis([], window)
        assert kpis.member_count == 0

    async def test_one_member_down(self, window):
        source = FakeDataSource(behavior_scores=[
            make_score(BehaviorCategory.VISIT, 80, window, owner_id="user-1"),
            make_score(BehaviorCategory.VISIT, 40, window, owner_id="user-2"),
        ])
        service = TeamRollupService(source, provider=FlakyProvider(down_for="user-2"), target_hir=70)

        kpis = await service.get_team_kpis(["user-1", "user-2"], window)

        assert kpis.member_count == 1
        assert kpis.failed_members == ["user-2"]
        assert kpis.behavior_score.current == 10
        assert kpis.avg_hir.current == 70
        assert kpis.goal_forecast.current == 100

    async def test_default_provider(self, window):
        source = FakeDataSource(behavior_scores=[
            make_score(BehaviorCategory.VISIT, 80, window, owner_id="user-1"),
            make_score(BehaviorCategory.VISIT, 40, window, owner_id="user-2"),
        ])

        kpis = await TeamRollupService(source, target_hir=60).get_team_kpis(["user-1", "user-2", ""], window)

        assert kpis.member_count == 2
        assert kpis.avg_hir.current == 60
        assert kpis.goal_forecast.current == 100
