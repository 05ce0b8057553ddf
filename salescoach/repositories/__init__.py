"""
Repositories Layer
Data persistence and query operations for the scoring engine.
"""
from .connection import db_manager, get_database, DatabaseManager
from .base import BaseRepository
from .activities import ActivityRepository
from .prescriptions import PrescriptionRepository, AccountRepository
from .behavior_scores import BehaviorScoreRepository
from .outcomes import OutcomeRepository
from .signals import CoachingSignalRepository, CompetitorSignalRepository

__all__ = [
    "db_manager",
    "get_database",
    "DatabaseManager",
    "BaseRepository",
    "ActivityRepository",
    "PrescriptionRepository",
    "AccountRepository",
    "BehaviorScoreRepository",
    "OutcomeRepository",
    "CoachingSignalRepository",
    "CompetitorSignalRepository",
]
