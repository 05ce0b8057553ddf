import datetime as dt
from typing import Annotated, Optional
from pydantic import Field
from salescoach.models.activity import BehaviorCategory
from salescoach.models.base import MongoBaseModel

IntScore = Annotated[int, Field(ge=0, le=100)]


class BehaviorScoreResult(MongoBaseModel):
    """
    Intensity, diversity and quality of one behavior category over a window.
    Derived data: always replaced on recomputation, never mutated in place.
    """
    owner_id: Optional[str] = None
    behavior: BehaviorCategory
    intensity_score: IntScore = 0
    diversity_score: IntScore = 0
    quality_score: IntScore = 0
    period_start: dt.datetime
    period_end: dt.datetime
