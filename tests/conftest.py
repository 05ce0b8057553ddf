import pytest
import datetime as dt

from salescoach.models.period import PeriodWindow
from salescoach.utils.metrics import metrics
from factories import WINDOW_END


@pytest.fixture
def window() -> PeriodWindow:
    """A 30-day window ending mid-2024."""
    return PeriodWindow(start=WINDOW_END - dt.timedelta(days=30), end=WINDOW_END)


@pytest.fixture
def week_window() -> PeriodWindow:
    return PeriodWindow(start=WINDOW_END - dt.timedelta(days=7), end=WINDOW_END)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Each test starts from empty metrics."""
    metrics.reset()
    yield
