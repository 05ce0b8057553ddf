"""
Coaching Service

Fetches what each detector needs, runs the six detectors independently and
reports per-detector failures next to the signals that did get produced.

Usage:
    service = CoachingService(data_source, repository)

    report = await service.generate_signals("user-1", window)
    for failure in report.failures:
        ...  # detector name + reason

    saved = await service.generate_and_save("user-1", window)
"""
import datetime as dt
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from salescoach.analytics.coaching_actions import generate_coaching_action
from salescoach.analytics.coaching_signals import (
    detect_behavior_lack,
    detect_competitor_activity,
    detect_conversion_lack,
    detect_interest_drop,
    detect_relationship_decline,
    detect_weak_behavior,
    touched_accounts,
)
from salescoach.analytics.competitor_detection import competitor_signal_from_activity
from salescoach.analytics.correlation import analyze_correlation
from salescoach.analytics.next_best_action import NextBestAction, recommend_next_actions
from salescoach.config import get_settings
from salescoach.errors import DownstreamFailure, NotFoundError, require_owner
from salescoach.models.coaching_signal import CoachingSignal, CompetitorSignal, SignalType
from salescoach.models.outcome import OutcomeType
from salescoach.models.period import PeriodWindow
from salescoach.repositories.signals import CoachingSignalRepository, CompetitorSignalRepository
from salescoach.services.data_source import EngineDataSource, guarded_read
from salescoach.services.outcome_service import tagged
from salescoach.utils.metrics import Timer, metrics
from salescoach.utils.observability import log_business_event, log_detector_run, logger

# The previous window stops just short of the current one
PREVIOUS_WINDOW_GAP = dt.timedelta(milliseconds=1)


@dataclass(frozen=True)
class DetectorFailure:
    detector: str
    reason: str


@dataclass
class SignalRunReport:
    """Signals from every detector that completed, plus the ones that did not."""
    signals: List[CoachingSignal] = field(default_factory=list)
    failures: List[DetectorFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_detectors(self) -> List[str]:
        return [f.detector for f in self.failures]


Detector = Callable[[str, PeriodWindow], Awaitable[List[CoachingSignal]]]


class CoachingService:

    def __init__(
        self,
        data_source: EngineDataSource,
        repository: Optional[CoachingSignalRepository] = None,
        top_n: Optional[int] = None,
        competitor_repository: Optional[CompetitorSignalRepository] = None,
    ):
        self._data_source = data_source
        self._repository = repository
        self._competitor_repository = competitor_repository
        self._top_n = top_n or get_settings().correlation_top_n

    @property
    def detectors(self) -> Dict[str, Detector]:
        """Detector name -> coroutine, in run order."""
        return {
            SignalType.BEHAVIOR_LACK.value: self._behavior_lack,
            SignalType.RELATIONSHIP_DECLINE.value: self._relationship_decline,
            SignalType.COMPETITOR_ACTIVITY.value: self._competitor_activity,
            SignalType.CONVERSION_LACK.value: self._conversion_lack,
            SignalType.INTEREST_DROP.value: self._interest_drop,
            SignalType.WEAK_BEHAVIOR.value: self._weak_behavior,
        }

    # ============================================
    # DETECTOR READS
    # ============================================

    async def _behavior_lack(self, owner_id: str, window: PeriodWindow) -> List[CoachingSignal]:
        activities = await self._data_source.get_activities(owner_id, window)
        return detect_behavior_lack(activities, window, owner_id)

    async def _relationship_decline(self, owner_id: str, window: PeriodWindow) -> List[CoachingSignal]:
        current = await self._data_source.get_activities(owner_id, window)
        previous = await self._data_source.get_activities(owner_id, window.previous(PREVIOUS_WINDOW_GAP))
        return detect_relationship_decline(current, previous, owner_id)

    async def _competitor_activity(self, owner_id: str, window: PeriodWindow) -> List[CoachingSignal]:
        activities = await self._data_source.get_activities(owner_id, window)
        accounts = touched_accounts(activities)
        if not accounts:
            return []
        sightings = await self._data_source.get_competitor_signals(accounts, window)
        return detect_competitor_activity(activities, sightings, window, owner_id)

    async def _conversion_lack(self, owner_id: str, window: PeriodWindow) -> List[CoachingSignal]:
        scores = await self._data_source.get_behavior_scores(owner_id, window)
        outcomes = await self._data_source.get_outcomes(owner_id, window)
        top = analyze_correlation(scores, outcomes, self._top_n).top_for(OutcomeType.CONVERSION_RATE)
        if not top:
            return []
        activities = await self._data_source.get_activities(owner_id, window)
        return detect_conversion_lack(activities, top, owner_id)

    async def _interest_drop(self, owner_id: str, window: PeriodWindow) -> List[CoachingSignal]:
        current = await self._data_source.get_activities(owner_id, window)
        previous = await self._data_source.get_activities(owner_id, window.previous(PREVIOUS_WINDOW_GAP))
        return detect_interest_drop(current, previous, owner_id)

    async def _weak_behavior(self, owner_id: str, window: PeriodWindow) -> List[CoachingSignal]:
        scores = await self._data_source.get_behavior_scores(owner_id, window)
        return detect_weak_behavior(scores, owner_id)

    # ============================================
    # OPERATIONS
    # ============================================

    async def generate_signals(self, owner_id: str, window: PeriodWindow) -> SignalRunReport:
        """
        Run all six detectors. A failing detector is reported, not raised,
        and never stops the others.

        Raises:
            UnauthorizedError: owner_id missing
        """
        owner_id = require_owner(owner_id)
        report = SignalRunReport()

        for name, detector in self.detectors.items():
            with Timer(metrics.computation_duration, metric=f"detector:{name}"):
                try:
                    signals = await tagged(name, detector(owner_id, window))
                except DownstreamFailure as e:
                    metrics.detector_runs.inc(detector=name, status="failed")
                    log_detector_run(name, owner_id, 0, success=False, error=str(e))
                    report.failures.append(DetectorFailure(detector=e.operation, reason=str(e)))
                    continue

            metrics.detector_runs.inc(detector=name, status="ok")
            log_detector_run(name, owner_id, len(signals))
            report.signals.extend(signals)

        for signal in report.signals:
            metrics.signals_emitted.inc(signal_type=signal.signal_type.value)

        logger.info(
            f"Generated {len(report.signals)} coaching signals for {owner_id}",
            extra={"owner_id": owner_id, "failed_detectors": report.failed_detectors}
        )
        return report

    async def _account_names(self, signals: List[CoachingSignal], report: SignalRunReport) -> Dict[str, str]:
        account_ids = list(dict.fromkeys(s.account_id for s in signals if s.account_id))
        if not account_ids:
            return {}
        try:
            accounts = await tagged("account_names", self._data_source.get_accounts(account_ids))
        except DownstreamFailure as e:
            logger.bind(operation=e.operation).warning(f"Account names unavailable, using generic actions: {e}")
            report.failures.append(DetectorFailure(detector=e.operation, reason=str(e)))
            return {}
        return {a.id: a.name for a in accounts if a.id}

    async def generate_and_save(self, owner_id: str, window: PeriodWindow) -> SignalRunReport:
        """
        Generate, personalize and insert the signals.
        Every run inserts fresh rows; earlier signals are left untouched.

        Raises:
            UnauthorizedError: owner_id missing
            DownstreamFailure: the insert itself failed
        """
        if self._repository is None:
            raise RuntimeError("CoachingService was built without a repository")

        report = await self.generate_signals(owner_id, window)
        names = await self._account_names(report.signals, report)

        for signal in report.signals:
            signal.recommended_action = generate_coaching_action(
                signal.signal_type,
                behavior=signal.behavior,
                account_name=names.get(signal.account_id) if signal.account_id else None,
            )

        saved = await guarded_read("save_coaching_signals", self._repository.bulk_create(report.signals))
        report.signals = saved

        log_business_event(
            "coaching_signals_saved",
            owner_id,
            count=len(saved),
            window=window.key,
            failed_detectors=report.failed_detectors,
        )
        return report

    async def resolve_signal(self, signal_id: str) -> CoachingSignal:
        """
        Mark a stored signal resolved.

        Raises:
            NotFoundError: no signal with this id
        """
        if self._repository is None:
            raise RuntimeError("CoachingService was built without a repository")

        signal = await guarded_read("find_coaching_signal", self._repository.find_by_id(signal_id))
        if signal is None:
            raise NotFoundError(f"Coaching signal {signal_id} not found")

        updated = await guarded_read("resolve_coaching_signal", self._repository.resolve(signal_id))
        if not updated:
            raise NotFoundError(f"Coaching signal {signal_id} not found")

        signal.resolve()
        log_business_event(
            "coaching_signal_resolved",
            signal.owner_id or "",
            signal_id=signal_id,
            signal_type=signal.signal_type.value,
        )
        return signal

    async def recommend_next_actions(
        self,
        owner_id: str,
        window: PeriodWindow,
        limit: Optional[int] = None,
    ) -> List[NextBestAction]:
        """Per touched account, the conversion-driving behavior performed least."""
        owner_id = require_owner(owner_id)
        limit = limit or get_settings().next_best_action_limit

        scores = await tagged("next_best_action", self._data_source.get_behavior_scores(owner_id, window))
        outcomes = await tagged("next_best_action", self._data_source.get_outcomes(owner_id, window))
        top = analyze_correlation(scores, outcomes, self._top_n).top_for(OutcomeType.CONVERSION_RATE)
        if not top:
            logger.debug(f"No conversion correlation for {owner_id}, nothing to recommend")
            return []

        activities = await tagged("next_best_action", self._data_source.get_activities(owner_id, window))
        accounts = await tagged("next_best_action", self._data_source.get_accounts(touched_accounts(activities)))
        return recommend_next_actions(accounts, activities, top, limit)

    async def scan_competitor_notes(self, owner_id: str, window: PeriodWindow) -> List[CompetitorSignal]:
        """
        Detect competitor sightings in the owner's activity notes.
        Detections are stored when a competitor repository is configured.
        """
        owner_id = require_owner(owner_id)
        names = get_settings().competitor_names

        activities = await tagged("competitor_scan", self._data_source.get_activities(owner_id, window))
        detected = [
            signal for signal in (competitor_signal_from_activity(a, names) for a in activities)
            if signal is not None
        ]

        if detected and self._competitor_repository is not None:
            detected = await guarded_read(
                "save_competitor_signals",
                self._competitor_repository.bulk_create(detected),
            )

        logger.info(
            f"Competitor scan found {len(detected)} signals in {len(activities)} notes",
            extra={"owner_id": owner_id, "window": window.key}
        )
        return detected
