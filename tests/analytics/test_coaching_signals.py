"""
Coaching Signal Detector Tests
"""
import datetime as dt
import pytest

from salescoach.analytics.coaching_signals import (
    behavior_lack_threshold,
    detect_behavior_lack,
    detect_competitor_activity,
    detect_conversion_lack,
    detect_interest_drop,
    detect_relationship_decline,
    detect_weak_behavior,
)
from salescoach.models.activity import BehaviorCategory
from salescoach.models.coaching_signal import CompetitorSignal, SignalPriority, SignalType
from salescoach.models.period import PeriodWindow
from factories import WINDOW_END, make_activity, make_score


class TestBehaviorLack:

    @pytest.mark.parametrize("days,expected", [(1, 1), (7, 1), (8, 3), (30, 3), (31, 5), (90, 5)])
    def test_threshold_by_window_length(self, days, expected):
        assert behavior_lack_threshold(days) == expected

    def test_flags_every_category_below_threshold(self, week_window):
        signals = detect_behavior_lack([make_activity(behavior=BehaviorCategory.VISIT)], week_window, "user-1")

        assert len(signals) == 7
        assert BehaviorCategory.VISIT not in {s.behavior for s in signals}
        assert all(s.priority == SignalPriority.MEDIUM for s in signals)
        assert all(s.signal_type == SignalType.BEHAVIOR_LACK for s in signals)
        assert "(0, expected 1)" in signals[0].message

    def test_nothing_when_every_category_meets_threshold(self, week_window):
        activities = [make_activity(behavior=c) for c in BehaviorCategory]
        assert detect_behavior_lack(activities, week_window) == []


class TestRelationshipDecline:

    def test_flags_accounts_that_halved(self):
        current = [
            make_activity(account_id="acc-1"),
            make_activity(account_id="acc-2"),
            make_activity(account_id="acc-2"),
            make_activity(account_id="acc-3"),
        ]
        previous = [make_activity(account_id="acc-1") for _ in range(4)]
        previous += [make_activity(account_id="acc-2") for _ in range(3)]

        signals = detect_relationship_decline(current, previous, "user-1")

        assert [s.account_id for s in signals] == ["acc-1"]
        assert signals[0].priority == SignalPriority.HIGH
        assert "75%" in signals[0].message

    def test_no_previous_activity_means_no_signal(self):
        assert detect_relationship_decline([make_activity()], []) == []


class TestCompetitorActivity:

    def test_one_signal_per_account_with_distinct_names(self, window):
        inside = WINDOW_END - dt.timedelta(days=2)
        sightings = [
            CompetitorSignal(account_id="acc-1", competitor_name="Rival", detected_at=inside),
            CompetitorSignal(account_id="acc-1", competitor_name="Other", detected_at=inside),
            CompetitorSignal(account_id="acc-1", competitor_name="Rival", detected_at=inside),
            CompetitorSignal(account_id="acc-3", competitor_name="Untouched", detected_at=inside),
            CompetitorSignal(
                account_id="acc-2",
                competitor_name="Stale",
                detected_at=window.start - dt.timedelta(days=1),
            ),
        ]
        activities = [make_activity(account_id="acc-1"), make_activity(account_id="acc-2")]

        signals = detect_competitor_activity(activities, sightings, window)

        assert len(signals) == 1
        assert signals[0].account_id == "acc-1"
        assert signals[0].priority == SignalPriority.HIGH
        assert signals[0].message.endswith("Rival, Other")

    def test_no_activities(self, window):
        sightings = [CompetitorSignal(account_id="acc-1", competitor_name="Rival", detected_at=WINDOW_END)]
        assert detect_competitor_activity([], sightings, window) == []

    def test_window_without_timezone(self):
        naive = PeriodWindow(start=dt.datetime(2024, 6, 1), end=dt.datetime(2024, 6, 30))
        sightings = [CompetitorSignal(account_id="acc-1", competitor_name="Rival", detected_at=WINDOW_END)]

        signals = detect_competitor_activity([make_activity(account_id="acc-1")], sightings, naive)

        assert [s.account_id for s in signals] == ["acc-1"]


class TestConversionLack:

    def test_flags_top_behaviors_performed_less_than_twice(self):
        activities = [make_activity(behavior=BehaviorCategory.CONTACT) for _ in range(5)]
        activities.append(make_activity(behavior=BehaviorCategory.APPROACH))
        top = [BehaviorCategory.VISIT, BehaviorCategory.CONTACT, BehaviorCategory.APPROACH]

        signals = detect_conversion_lack(activities, top, "user-1")

        assert len(signals) == 2
        assert [s.behavior for s in signals] == [BehaviorCategory.VISIT, BehaviorCategory.APPROACH]
        assert all(s.priority == SignalPriority.HIGH for s in signals)

    def test_no_top_behaviors(self):
        assert detect_conversion_lack([make_activity()], []) == []


class TestInterestDrop:

    def test_low_or_falling_quality(self):
        current = [
            make_activity(account_id="acc-1", quality_score=25),
            make_activity(account_id="acc-2", quality_score=60),
            make_activity(account_id="acc-3", quality_score=80),
            make_activity(account_id="acc-4", quality_score=65),
        ]
        previous = [
            make_activity(account_id="acc-2", quality_score=90),
            make_activity(account_id="acc-4", quality_score=90),
        ]

        signals = detect_interest_drop(current, previous)

        assert [s.account_id for s in signals] == ["acc-1", "acc-2"]
        assert all(s.priority == SignalPriority.MEDIUM for s in signals)

    def test_new_account_compares_against_100(self):
        signals = detect_interest_drop([make_activity(account_id="acc-9", quality_score=60)], [])
        assert [s.account_id for s in signals] == ["acc-9"]


class TestWeakBehavior:

    def test_flags_category_below_half_the_average(self, window):
        scores = [
            make_score(BehaviorCategory.VISIT, 80, window),
            make_score(BehaviorCategory.CONTACT, 80, window),
            make_score(BehaviorCategory.APPROACH, 20, window),
        ]

        signals = detect_weak_behavior(scores, "user-1")

        assert [s.behavior for s in signals] == [BehaviorCategory.APPROACH]
        assert signals[0].priority == SignalPriority.LOW
        assert "overall 60" in signals[0].message

    def test_all_zero_scores(self, window):
        scores = [make_score(c, 0, window) for c in BehaviorCategory]
        assert detect_weak_behavior(scores) == []

    def test_no_scores(self):
        assert detect_weak_behavior([]) == []
