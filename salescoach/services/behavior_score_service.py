"""
Behavior Score Service

Fetches a window of activities, scores every behavior category and
replaces the stored scores for that window.
"""
from typing import List, Optional

from salescoach.analytics.behavior_scores import DiversitySource, calculate_behavior_scores, category_slice
from salescoach.config import ScoringConfig, get_scoring_config
from salescoach.errors import require_owner
from salescoach.models.behavior_score import BehaviorScoreResult
from salescoach.models.period import PeriodWindow
from salescoach.repositories.behavior_scores import BehaviorScoreRepository
from salescoach.services.data_source import EngineDataSource, guarded_read
from salescoach.services.outcome_service import tagged
from salescoach.utils.metrics import metrics
from salescoach.utils.observability import log_metric_computation, logger


class BehaviorScoreService:

    def __init__(
        self,
        data_source: EngineDataSource,
        repository: Optional[BehaviorScoreRepository] = None,
        config: Optional[ScoringConfig] = None,
        diversity_source: DiversitySource = category_slice,
    ):
        self._data_source = data_source
        self._repository = repository
        self._config = config or get_scoring_config()
        self._diversity_source = diversity_source

    async def calculate(self, owner_id: str, window: PeriodWindow) -> List[BehaviorScoreResult]:
        """Score the window without persisting anything."""
        owner_id = require_owner(owner_id)

        with metrics.time_computation("behavior_scores") as timer:
            activities = await tagged("behavior_scores", self._data_source.get_activities(owner_id, window))
            scores = calculate_behavior_scores(
                activities,
                window,
                owner_id=owner_id,
                config=self._config,
                diversity_source=self._diversity_source,
            )

        log_metric_computation(
            "behavior_scores",
            owner_id,
            len(activities),
            duration_ms=timer.elapsed_ms,
            window=window.key,
        )
        return scores

    async def calculate_and_save(self, owner_id: str, window: PeriodWindow) -> List[BehaviorScoreResult]:
        """
        Score the window and replace any stored scores for it.

        Raises:
            UnauthorizedError: owner_id missing
            DownstreamFailure: storage read or write failed
        """
        if self._repository is None:
            raise RuntimeError("BehaviorScoreService was built without a repository")

        scores = await self.calculate(owner_id, window)
        saved = await guarded_read(
            "save_behavior_scores",
            self._repository.replace_for_window(owner_id, window, scores),
        )

        logger.info(
            f"Saved {len(saved)} behavior scores for {owner_id}",
            extra={"owner_id": owner_id, "window": window.key}
        )
        return saved
