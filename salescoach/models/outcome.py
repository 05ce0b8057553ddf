import datetime as dt
from enum import StrEnum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from salescoach.models.activity import BehaviorCategory
from salescoach.models.base import MongoBaseModel
from salescoach.models.period import PeriodType


class OutcomeType(StrEnum):
    HIR = "hir"
    CONVERSION_RATE = "conversion_rate"
    FIELD_GROWTH_RATE = "field_growth_rate"
    PRESCRIPTION_INDEX = "prescription_index"


OUTCOME_TYPES: tuple[OutcomeType, ...] = tuple(OutcomeType)


class OutcomeResult(MongoBaseModel):
    """
    The four outcome metrics for one owner and window.
    `account_id=None` means the aggregate across all of the owner's accounts.
    """
    owner_id: str
    account_id: Optional[str] = None
    hir_score: int = Field(default=0, ge=0, le=100)
    conversion_rate: int = Field(default=0, ge=-100, le=100)
    field_growth_rate: float = 0.0
    prescription_index: int = Field(default=0, ge=0, le=100)
    period_type: PeriodType
    period_start: dt.datetime
    period_end: dt.datetime

    def value_for(self, outcome_type: OutcomeType) -> float:
        if outcome_type == OutcomeType.HIR:
            return self.hir_score
        if outcome_type == OutcomeType.CONVERSION_RATE:
            return self.conversion_rate
        if outcome_type == OutcomeType.FIELD_GROWTH_RATE:
            return self.field_growth_rate
        return self.prescription_index


class CorrelationRecord(BaseModel):
    """Pearson correlation between one behavior's quality and one outcome."""
    behavior: BehaviorCategory
    outcome_type: OutcomeType
    correlation: float = Field(ge=-1.0, le=1.0)
    weight: float = Field(ge=0.0, le=1.0)


class CorrelationAnalysis(BaseModel):
    correlations: List[CorrelationRecord] = Field(default_factory=list)
    top_behaviors: Dict[OutcomeType, List[BehaviorCategory]] = Field(
        default_factory=lambda: {outcome: [] for outcome in OutcomeType}
    )

    def top_for(self, outcome_type: OutcomeType) -> List[BehaviorCategory]:
        return self.top_behaviors.get(outcome_type, [])
