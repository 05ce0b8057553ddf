"""
Behavior-Outcome Correlation Engine

Aligns behavior quality and outcome values by window, then measures the
Pearson correlation for every (behavior, outcome) pair.
"""
import math
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from salescoach.models.activity import BEHAVIOR_CATEGORIES, BehaviorCategory
from salescoach.models.behavior_score import BehaviorScoreResult
from salescoach.models.outcome import (
    OUTCOME_TYPES,
    CorrelationAnalysis,
    CorrelationRecord,
    OutcomeResult,
    OutcomeType,
)

WindowKey = Tuple[str, str]


def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """
    Pearson's r for two equal-length series.

    Returns 0 for mismatched or empty input and when either series is
    constant. The result is clamped to [-1, 1] to absorb float error.
    """
    n = len(xs)
    if n == 0 or n != len(ys):
        return 0.0

    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_x2 = sum(x * x for x in xs)
    sum_y2 = sum(y * y for y in ys)

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x ** 2) * (n * sum_y2 - sum_y ** 2)
    if variance_product <= 0:
        return 0.0

    r = numerator / math.sqrt(variance_product)
    return max(-1.0, min(1.0, r))


def _window_key(start, end) -> WindowKey:
    return (start.isoformat(), end.isoformat())


def analyze_correlation(
    behavior_scores: Sequence[BehaviorScoreResult],
    outcomes: Sequence[OutcomeResult],
    top_n: int = 3,
) -> CorrelationAnalysis:
    """
    Correlate behavior quality with each outcome metric.

    Only aggregate outcomes (no account) take part. Pairs with fewer than
    two aligned windows are left out. Top behaviors per outcome are ranked
    by weight, ties keeping category order.
    """
    if not behavior_scores or not outcomes:
        return CorrelationAnalysis()

    scores_by_window: Dict[WindowKey, Dict[BehaviorCategory, BehaviorScoreResult]] = defaultdict(dict)
    for score in behavior_scores:
        scores_by_window[_window_key(score.period_start, score.period_end)][score.behavior] = score

    outcomes_by_window: Dict[WindowKey, OutcomeResult] = {}
    for outcome in outcomes:
        if outcome.account_id is not None:
            continue
        outcomes_by_window[_window_key(outcome.period_start, outcome.period_end)] = outcome

    common = [key for key in scores_by_window if key in outcomes_by_window]
    if not common:
        return CorrelationAnalysis()

    correlations: List[CorrelationRecord] = []
    for behavior in BEHAVIOR_CATEGORIES:
        for outcome_type in OUTCOME_TYPES:
            xs: List[float] = []
            ys: List[float] = []
            for key in common:
                score = scores_by_window[key].get(behavior)
                if score is None:
                    continue
                xs.append(score.quality_score)
                ys.append(outcomes_by_window[key].value_for(outcome_type))

            if len(xs) < 2:
                continue

            r = pearson_correlation(xs, ys)
            correlations.append(CorrelationRecord(
                behavior=behavior,
                outcome_type=outcome_type,
                correlation=r,
                weight=abs(r),
            ))

    return CorrelationAnalysis(
        correlations=correlations,
        top_behaviors={
            outcome_type: top_behaviors(correlations, outcome_type, top_n)
            for outcome_type in OUTCOME_TYPES
        },
    )


def top_behaviors(
    correlations: Sequence[CorrelationRecord],
    outcome_type: OutcomeType,
    top_n: int = 3,
) -> List[BehaviorCategory]:
    matching = [c for c in correlations if c.outcome_type == outcome_type]
    # sorted() is stable, so equal weights keep category order
    ranked = sorted(matching, key=lambda c: c.weight, reverse=True)
    return [c.behavior for c in ranked[:top_n]]
