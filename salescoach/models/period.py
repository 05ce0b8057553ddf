import datetime as dt
import math
from enum import StrEnum
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from salescoach.errors import ValidationError


class PeriodType(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class ComparisonMode(StrEnum):
    """How the comparison window for a growth metric is chosen."""
    PREVIOUS_PERIOD = "previous_period"
    PREVIOUS_MONTH = "previous_month"
    PREVIOUS_YEAR = "previous_year"
    CUSTOM = "custom"


def _shift_months(value: dt.datetime, months: int) -> dt.datetime:
    """Move a timestamp by whole months, clamping the day to the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    # Last day of the target month
    next_month = dt.date(year + (month // 12), month % 12 + 1, 1)
    last_day = (next_month - dt.timedelta(days=1)).day
    return value.replace(year=year, month=month, day=min(value.day, last_day))


class PeriodWindow(BaseModel):
    """
    A closed (start, end) interval over which records are aggregated.

    Construction rejects windows that end before they start. Bounds without
    a timezone are read as UTC.
    """
    model_config = ConfigDict(frozen=True)

    start: dt.datetime
    end: dt.datetime

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, value: dt.datetime) -> dt.datetime:
        # Stored timestamps come back tz-aware
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "PeriodWindow":
        if self.end < self.start:
            raise ValidationError(
                f"Window end {self.end.isoformat()} is before start {self.start.isoformat()}"
            )
        return self

    @classmethod
    def of(cls, start: dt.datetime, end: dt.datetime) -> "PeriodWindow":
        return cls(start=start, end=end)

    @classmethod
    def last_days(cls, days: int, end: Optional[dt.datetime] = None) -> "PeriodWindow":
        """Window of `days` days ending at `end` (default: now, UTC)."""
        end = end or dt.datetime.now(dt.UTC)
        return cls(start=end - dt.timedelta(days=days), end=end)

    @property
    def duration(self) -> dt.timedelta:
        return self.end - self.start

    @property
    def days(self) -> int:
        """Length in whole days, rounded up."""
        return math.ceil(self.duration.total_seconds() / 86400)

    @property
    def key(self) -> str:
        """Stable grouping key used to align series by window."""
        return f"{self.start.isoformat()}_{self.end.isoformat()}"

    def contains(self, moment: dt.datetime) -> bool:
        return self.start <= moment <= self.end

    def previous(self, gap: dt.timedelta = dt.timedelta(0)) -> "PeriodWindow":
        """
        The equal-length window immediately preceding this one.

        With a `gap`, the previous window ends `gap` before this one starts,
        so records sitting exactly on the boundary are not counted twice.
        """
        end = self.start - gap
        return PeriodWindow(start=end - self.duration, end=end)

    def shifted_months(self, months: int) -> "PeriodWindow":
        start = _shift_months(self.start, months)
        return PeriodWindow(start=start, end=start + self.duration)

    def shifted_years(self, years: int) -> "PeriodWindow":
        return self.shifted_months(years * 12)

    def comparison(
        self,
        mode: ComparisonMode = ComparisonMode.PREVIOUS_PERIOD,
        custom: Optional["PeriodWindow"] = None,
    ) -> "PeriodWindow":
        """Resolve the comparison window for a growth metric."""
        if mode == ComparisonMode.CUSTOM:
            if custom is None:
                raise ValidationError("Custom comparison requires a comparison window")
            return custom
        if mode == ComparisonMode.PREVIOUS_MONTH:
            return self.shifted_months(-1)
        if mode == ComparisonMode.PREVIOUS_YEAR:
            return self.shifted_years(-1)
        return self.previous()
