import datetime as dt
from enum import StrEnum
from typing import List, Optional
from pydantic import Field
from salescoach.models.base import MongoBaseModel, Score


class ActivityType(StrEnum):
    VISIT = "visit"
    CALL = "call"
    MESSAGE = "message"
    PRESENTATION = "presentation"
    FOLLOW_UP = "follow_up"


class BehaviorCategory(StrEnum):
    """The eight fixed labels classifying the intent of a sales activity."""
    APPROACH = "approach"
    CONTACT = "contact"
    VISIT = "visit"
    PRESENTATION = "presentation"
    QUESTION = "question"
    NEED_CREATION = "need_creation"
    DEMONSTRATION = "demonstration"
    FOLLOW_UP = "follow_up"


# Single source of truth for "all categories", in display order
BEHAVIOR_CATEGORIES: tuple[BehaviorCategory, ...] = tuple(BehaviorCategory)

BEHAVIOR_LABELS: dict[BehaviorCategory, str] = {
    BehaviorCategory.APPROACH: "Approach",
    BehaviorCategory.CONTACT: "Contact",
    BehaviorCategory.VISIT: "Face-to-face visit",
    BehaviorCategory.PRESENTATION: "Presentation",
    BehaviorCategory.QUESTION: "Questioning",
    BehaviorCategory.NEED_CREATION: "Need creation",
    BehaviorCategory.DEMONSTRATION: "Demonstration",
    BehaviorCategory.FOLLOW_UP: "Follow-up",
}


class ActivityOutcome(StrEnum):
    WON = "won"
    ONGOING = "ongoing"
    LOST = "lost"
    NONE = "none"


class ActivityRecord(MongoBaseModel):
    """
    A single field-sales touchpoint logged by a salesperson.
    Immutable once aggregated into a period's behavior score.
    """
    owner_id: str = Field(..., description="Salesperson who performed the activity")
    account_id: str
    contact_id: Optional[str] = None
    activity_type: ActivityType
    behavior: BehaviorCategory
    note: str = ""
    quality_score: Score = 0
    quantity_score: Score = 0
    duration_minutes: int = Field(default=0, ge=0)
    performed_at: dt.datetime
    outcome: ActivityOutcome = ActivityOutcome.NONE
    sentiment_score: Optional[Score] = None
    tags: List[str] = Field(default_factory=list)
    next_action_date: Optional[dt.datetime] = None
    # Time spent entering the record in the form, used by HIR providers
    dwell_time_seconds: Optional[int] = Field(default=None, ge=0)
