"""
Services Layer
Async orchestration of the scoring engine over the storage boundary.
"""
from typing import Optional

from salescoach.repositories import (
    BehaviorScoreRepository,
    CoachingSignalRepository,
    CompetitorSignalRepository,
    OutcomeRepository,
    db_manager,
)
from salescoach.services.behavior_score_service import BehaviorScoreService
from salescoach.services.coaching_service import CoachingService, DetectorFailure, SignalRunReport
from salescoach.services.correlation_service import CorrelationService
from salescoach.services.data_source import EngineDataSource, MongoDataSource, guarded_read
from salescoach.services.metric_providers import BehaviorScoreMetricsProvider, OutcomeMetricsProvider
from salescoach.services.outcome_service import OutcomeService
from salescoach.services.team_service import SubjectResult, TeamKPIs, TeamRollupService

_data_source: Optional[MongoDataSource] = None
_coaching_service: Optional[CoachingService] = None
_outcome_service: Optional[OutcomeService] = None


def get_data_source() -> MongoDataSource:
    """Get or create the Mongo-backed data source. Requires a connected db_manager."""
    global _data_source
    if _data_source is None:
        _data_source = MongoDataSource.from_database(db_manager.database)
    return _data_source


def get_outcome_service() -> OutcomeService:
    global _outcome_service
    if _outcome_service is None:
        _outcome_service = OutcomeService(get_data_source(), OutcomeRepository(db_manager.database))
    return _outcome_service


def get_coaching_service() -> CoachingService:
    global _coaching_service
    if _coaching_service is None:
        _coaching_service = CoachingService(
            get_data_source(),
            CoachingSignalRepository(db_manager.database),
            competitor_repository=CompetitorSignalRepository(db_manager.database),
        )
    return _coaching_service


def get_behavior_score_service() -> BehaviorScoreService:
    return BehaviorScoreService(get_data_source(), BehaviorScoreRepository(db_manager.database))


__all__ = [
    "BehaviorScoreService",
    "CoachingService",
    "DetectorFailure",
    "SignalRunReport",
    "CorrelationService",
    "EngineDataSource",
    "MongoDataSource",
    "guarded_read",
    "BehaviorScoreMetricsProvider",
    "OutcomeMetricsProvider",
    "OutcomeService",
    "SubjectResult",
    "TeamKPIs",
    "TeamRollupService",
    "get_data_source",
    "get_outcome_service",
    "get_coaching_service",
    "get_behavior_score_service",
]
