"""
Outcome Service

Async orchestration of the outcome metrics: fetches current and comparison
windows through the data source, runs the pure calculators, and persists
the per-window OutcomeResult.

Every storage failure surfaces as DownstreamFailure tagged with the metric
being computed.
"""
from typing import Awaitable, Optional, TypeVar

from salescoach.analytics.consistency import calculate_bcr
from salescoach.analytics.outcomes import (
    calculate_conversion_rate,
    calculate_field_growth_rate,
    calculate_prescription_index,
)
from salescoach.config import ScoringConfig, get_scoring_config, get_settings
from salescoach.errors import DownstreamFailure, require_owner
from salescoach.models.outcome import OutcomeResult
from salescoach.models.period import ComparisonMode, PeriodType, PeriodWindow
from salescoach.repositories.outcomes import OutcomeRepository
from salescoach.services.data_source import EngineDataSource, guarded_read
from salescoach.services.metric_providers import BehaviorScoreMetricsProvider, OutcomeMetricsProvider
from salescoach.utils.metrics import metrics
from salescoach.utils.observability import log_business_event, log_metric_computation, logger

R = TypeVar("R")


async def tagged(metric: str, awaitable: Awaitable[R]) -> R:
    """Await, re-attributing any DownstreamFailure to `metric`."""
    try:
        return await awaitable
    except DownstreamFailure as e:
        raise e.retag(metric) from e


class OutcomeService:
    """
    Computes conversion rate, field growth, prescription index, BCR and
    (through the injected provider) HIR for one owner and window.
    """

    def __init__(
        self,
        data_source: EngineDataSource,
        repository: Optional[OutcomeRepository] = None,
        provider: Optional[OutcomeMetricsProvider] = None,
        config: Optional[ScoringConfig] = None,
    ):
        self._data_source = data_source
        self._repository = repository
        self._provider = provider or BehaviorScoreMetricsProvider(data_source)
        self._config = config or get_scoring_config()

    async def calculate_conversion_rate(
        self,
        owner_id: str,
        window: PeriodWindow,
        account_id: Optional[str] = None,
    ) -> int:
        owner_id = require_owner(owner_id)

        with metrics.time_computation("conversion_rate") as timer:
            activities = await tagged("conversion_rate", self._data_source.get_activities(owner_id, window, account_id))
            current = await tagged("conversion_rate", self._data_source.get_prescriptions(window, account_id))
            previous = await tagged(
                "conversion_rate",
                self._data_source.get_prescriptions(window.previous(), account_id),
            )
            rate = calculate_conversion_rate(current, previous, activities, self._config)

        log_metric_computation(
            "conversion_rate", owner_id, rate,
            duration_ms=timer.elapsed_ms, account_id=account_id,
            activities=len(activities), prescriptions=len(current),
        )
        return rate

    async def calculate_field_growth(
        self,
        owner_id: str,
        window: PeriodWindow,
        comparison: ComparisonMode = ComparisonMode.PREVIOUS_PERIOD,
        custom_window: Optional[PeriodWindow] = None,
        account_id: Optional[str] = None,
    ) -> float:
        """
        Field growth against the chosen comparison window.

        Raises:
            ValidationError: custom comparison without a custom window
        """
        owner_id = require_owner(owner_id)
        comparison_window = window.comparison(comparison, custom_window)

        with metrics.time_computation("field_growth_rate") as timer:
            current = await tagged("field_growth_rate", self._data_source.get_prescriptions(window, account_id))
            previous = await tagged(
                "field_growth_rate",
                self._data_source.get_prescriptions(comparison_window, account_id),
            )
            rate = calculate_field_growth_rate(current, previous, self._config)

        log_metric_computation(
            "field_growth_rate", owner_id, rate,
            duration_ms=timer.elapsed_ms, account_id=account_id, comparison=comparison.value,
        )
        return rate

    async def calculate_prescription_index(
        self,
        owner_id: str,
        window: PeriodWindow,
        account_id: Optional[str] = None,
    ) -> int:
        owner_id = require_owner(owner_id)

        with metrics.time_computation("prescription_index") as timer:
            current = await tagged("prescription_index", self._data_source.get_prescriptions(window, account_id))
            if not current:
                index = 0
            else:
                previous = await tagged(
                    "prescription_index",
                    self._data_source.get_prescriptions(window.previous(), account_id),
                )
                account_ids = list(dict.fromkeys(p.account_id for p in current))
                accounts = await tagged("prescription_index", self._data_source.get_accounts(account_ids))
                account_types = {a.id: a.account_type for a in accounts if a.id}
                index = calculate_prescription_index(current, previous, account_types, self._config)

        log_metric_computation(
            "prescription_index", owner_id, index,
            duration_ms=timer.elapsed_ms, account_id=account_id, prescriptions=len(current),
        )
        return index

    async def calculate_bcr(self, owner_id: str, window: Optional[PeriodWindow] = None) -> int:
        """BCR over `window`, defaulting to the configured trailing days ending now."""
        owner_id = require_owner(owner_id)
        window = window or PeriodWindow.last_days(get_settings().default_bcr_window_days)

        with metrics.time_computation("bcr") as timer:
            activities = await tagged("bcr", self._data_source.get_activities(owner_id, window))
            scores = []
            if activities:
                scores = await tagged("bcr", self._data_source.get_behavior_scores(owner_id, window))
            bcr = calculate_bcr(activities, scores, window)

        log_metric_computation("bcr", owner_id, bcr, duration_ms=timer.elapsed_ms, activities=len(activities))
        return bcr

    async def calculate_hir(
        self,
        owner_id: str,
        window: PeriodWindow,
        account_id: Optional[str] = None,
    ) -> int:
        owner_id = require_owner(owner_id)
        hir = await tagged("hir", self._provider.calculate_hir(owner_id, window, account_id))
        return int(hir)

    async def calculate_outcome(
        self,
        owner_id: str,
        window: PeriodWindow,
        period_type: PeriodType,
        account_id: Optional[str] = None,
    ) -> OutcomeResult:
        """All four outcome metrics for one window, unsaved."""
        owner_id = require_owner(owner_id)

        hir = await self.calculate_hir(owner_id, window, account_id)
        conversion = await self.calculate_conversion_rate(owner_id, window, account_id)
        growth = await self.calculate_field_growth(
            owner_id, window, ComparisonMode.PREVIOUS_MONTH, account_id=account_id
        )
        index = await self.calculate_prescription_index(owner_id, window, account_id)

        return OutcomeResult(
            owner_id=owner_id,
            account_id=account_id,
            hir_score=hir,
            conversion_rate=conversion,
            field_growth_rate=growth,
            prescription_index=index,
            period_type=period_type,
            period_start=window.start,
            period_end=window.end,
        )

    async def calculate_and_save_outcome(
        self,
        owner_id: str,
        window: PeriodWindow,
        period_type: PeriodType,
        account_id: Optional[str] = None,
    ) -> OutcomeResult:
        """
        Compute and persist the outcome for one key.

        Re-running with unchanged inputs leaves exactly one stored row with
        the same metric values.

        Raises:
            UnauthorizedError: owner_id missing
            DownstreamFailure: tagged with the metric whose read failed
        """
        if self._repository is None:
            raise RuntimeError("OutcomeService was built without a repository")

        outcome = await self.calculate_outcome(owner_id, window, period_type, account_id)
        saved = await guarded_read("save_outcome", self._repository.replace(outcome))

        log_business_event(
            "outcome_saved",
            saved.owner_id,
            account_id=account_id,
            period_type=period_type.value,
            window=window.key,
            hir_score=saved.hir_score,
            conversion_rate=saved.conversion_rate,
            field_growth_rate=saved.field_growth_rate,
            prescription_index=saved.prescription_index,
        )
        logger.debug(f"Outcome persisted for {saved.owner_id}", extra={"outcome_id": saved.id})
        return saved
