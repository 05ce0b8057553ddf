"""
Correlation Service

Loads an owner's behavior scores and outcomes for a window and ranks the
behaviors that move each outcome.
"""
from typing import Optional

from salescoach.analytics.correlation import analyze_correlation
from salescoach.config import get_settings
from salescoach.errors import require_owner
from salescoach.models.outcome import CorrelationAnalysis, OutcomeType
from salescoach.models.period import PeriodWindow
from salescoach.services.data_source import EngineDataSource
from salescoach.services.outcome_service import tagged
from salescoach.utils.metrics import metrics
from salescoach.utils.observability import logger


class CorrelationService:
    """Runs the correlation engine over an owner's stored scores and outcomes."""

    def __init__(self, data_source: EngineDataSource, top_n: Optional[int] = None):
        self._data_source = data_source
        self._top_n = top_n or get_settings().correlation_top_n

    async def analyze(self, owner_id: str, window: PeriodWindow) -> CorrelationAnalysis:
        owner_id = require_owner(owner_id)

        with metrics.time_computation("correlation"):
            scores = await tagged("correlation", self._data_source.get_behavior_scores(owner_id, window))
            outcomes = await tagged("correlation", self._data_source.get_outcomes(owner_id, window))
            analysis = analyze_correlation(scores, outcomes, self._top_n)

        logger.info(
            f"Correlation analysis for {owner_id}: {len(analysis.correlations)} pairs",
            extra={
                "owner_id": owner_id,
                "behavior_scores": len(scores),
                "outcomes": len(outcomes),
                "top_conversion": [b.value for b in analysis.top_for(OutcomeType.CONVERSION_RATE)],
            }
        )
        return analysis
