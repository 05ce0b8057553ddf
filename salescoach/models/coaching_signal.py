import datetime as dt
from enum import StrEnum
from typing import Optional
from pydantic import Field
from salescoach.models.activity import BehaviorCategory
from salescoach.models.base import MongoBaseModel


class SignalType(StrEnum):
    BEHAVIOR_LACK = "behavior_lack"
    RELATIONSHIP_DECLINE = "relationship_decline"
    COMPETITOR_ACTIVITY = "competitor_activity"
    CONVERSION_LACK = "conversion_lack"
    INTEREST_DROP = "interest_drop"
    WEAK_BEHAVIOR = "weak_behavior"


class SignalPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CoachingSignal(MongoBaseModel):
    """
    A prioritized, human-actionable alert produced by a rule detector.
    Created fresh on each run; resolution is tracked by whoever stores it.
    """
    signal_type: SignalType
    priority: SignalPriority
    message: str
    recommended_action: str
    owner_id: Optional[str] = None
    account_id: Optional[str] = None
    contact_id: Optional[str] = None
    behavior: Optional[BehaviorCategory] = None
    is_resolved: bool = False
    resolved_at: Optional[dt.datetime] = None

    def resolve(self):
        self.is_resolved = True
        self.resolved_at = dt.datetime.now(dt.UTC)
        self.updated_at = self.resolved_at


class CompetitorSignal(MongoBaseModel):
    """A competitor sighting at an account, supplied by field reports or note scanning."""
    account_id: str
    contact_id: Optional[str] = None
    competitor_name: str
    signal_type: str = "mention"
    description: Optional[str] = None
    detected_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))
