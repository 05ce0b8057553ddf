"""
Outcome Metric Calculators

Pure period-over-period formulas. Callers fetch the current and comparison
window records; these functions only combine them.
"""
import math
from typing import Mapping, Optional, Sequence

from salescoach.analytics.scoring_math import clamp, growth_pct, round_half_up, round_to
from salescoach.config import ScoringConfig
from salescoach.models.activity import ActivityRecord
from salescoach.models.prescription import AccountType, PrescriptionRecord


def total_quantity(prescriptions: Sequence[PrescriptionRecord]) -> float:
    return sum(p.quantity for p in prescriptions)


def total_revenue(prescriptions: Sequence[PrescriptionRecord]) -> float:
    return sum(p.price for p in prescriptions)


def activity_conversion_ratio(
    activities: Sequence[ActivityRecord],
    prescriptions: Sequence[PrescriptionRecord],
) -> float:
    """Percentage of activities referenced by at least one prescription."""
    if not activities:
        return 0.0
    linked_ids = {p.related_activity_id for p in prescriptions if p.related_activity_id}
    converted = sum(1 for a in activities if a.id is not None and a.id in linked_ids)
    return converted / len(activities) * 100


def calculate_conversion_rate(
    current_prescriptions: Sequence[PrescriptionRecord],
    previous_prescriptions: Sequence[PrescriptionRecord],
    current_activities: Sequence[ActivityRecord],
    config: Optional[ScoringConfig] = None,
) -> int:
    """
    Behavior-to-outcome conversion, in [-100, 100].

    70% prescribed-quantity growth against the previous window plus 30% of
    the share of current activities that led to a prescription.
    """
    if not current_prescriptions and not current_activities:
        return 0

    config = config or ScoringConfig()
    quantity_growth = growth_pct(total_quantity(current_prescriptions), total_quantity(previous_prescriptions))
    link_ratio = activity_conversion_ratio(current_activities, current_prescriptions)

    rate = quantity_growth * config.conversion_growth_weight + link_ratio * config.conversion_link_weight
    return round_half_up(clamp(rate, -100, 100))


def calculate_field_growth_rate(
    current_prescriptions: Sequence[PrescriptionRecord],
    comparison_prescriptions: Sequence[PrescriptionRecord],
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Field growth: 60% quantity growth plus 40% revenue growth.
    Unbounded so large swings stay visible; rounded to 2 decimals.
    """
    if not current_prescriptions:
        return 0.0

    config = config or ScoringConfig()
    quantity_growth = growth_pct(total_quantity(current_prescriptions), total_quantity(comparison_prescriptions))
    revenue_growth = growth_pct(total_revenue(current_prescriptions), total_revenue(comparison_prescriptions))

    rate = quantity_growth * config.field_quantity_weight + revenue_growth * config.field_revenue_weight
    return round_to(rate, 2)


def account_type_weight(account_type: Optional[str], config: Optional[ScoringConfig] = None) -> float:
    config = config or ScoringConfig()
    if account_type is None:
        return config.default_account_weight
    return config.account_type_weights.get(str(account_type), config.default_account_weight)


def price_weight(price: float) -> float:
    """Higher-priced products weigh more, on a log scale."""
    if price > 0:
        return math.log10(price + 1) / 10
    return 1.0


def calculate_prescription_index(
    current_prescriptions: Sequence[PrescriptionRecord],
    previous_prescriptions: Sequence[PrescriptionRecord],
    account_types: Optional[Mapping[str, AccountType]] = None,
    config: Optional[ScoringConfig] = None,
) -> int:
    """
    Prescription-based performance index, in [0, 100].

    Weighted quantity (account type x price weight) normalized against a
    ceiling of avg quantity * multiplier * count, blended 70/30 with
    quantity growth shifted by +50 into the 0-100 range.
    """
    if not current_prescriptions:
        return 0

    config = config or ScoringConfig()
    account_types = account_types or {}

    weighted_quantity = 0.0
    for prescription in current_prescriptions:
        weight = account_type_weight(account_types.get(prescription.account_id), config)
        weighted_quantity += prescription.quantity * weight * price_weight(prescription.price)

    current_total = total_quantity(current_prescriptions)
    growth = growth_pct(current_total, total_quantity(previous_prescriptions))

    count = len(current_prescriptions)
    ceiling = (current_total / count) * config.prescription_ceiling_multiplier * count
    normalized_quantity = min(100.0, weighted_quantity / ceiling * 100) if ceiling > 0 else 0.0
    normalized_growth = clamp(growth + config.growth_offset)

    index = (
        normalized_quantity * config.prescription_quantity_weight
        + normalized_growth * config.prescription_growth_weight
    )
    return round_half_up(clamp(index))
