"""
Coaching Actions

Recommended next steps attached to each coaching signal, worded from the
signal type plus the behavior or account it concerns.
"""
from typing import Optional

from salescoach.models.activity import BEHAVIOR_LABELS, BehaviorCategory
from salescoach.models.coaching_signal import SignalType

DEFAULT_ACTION = "Review your activity pattern to find what to improve."


def generate_coaching_action(
    signal_type: SignalType | str,
    behavior: Optional[BehaviorCategory] = None,
    account_name: Optional[str] = None,
) -> str:
    """
    Personalized recommended action for a signal.
    Falls back to generic wording when the behavior or account is unknown.
    """
    label = BEHAVIOR_LABELS[behavior] if behavior else ""

    if signal_type == SignalType.BEHAVIOR_LACK:
        if behavior:
            return f"{label} activity was low last period. Add more {label.lower()} work at your key accounts."
        return "Some behaviors are under-performed. Increase your activity frequency."

    if signal_type == SignalType.RELATIONSHIP_DECLINE:
        if account_name:
            return f"The relationship with {account_name} is weakening. Contact them more often and review the relationship."
        return "An account relationship is weakening. Review it and increase contact frequency."

    if signal_type == SignalType.COMPETITOR_ACTIVITY:
        if account_name:
            return f"Competitor activity detected at {account_name}. Prepare a response and strengthen the relationship."
        return "Competitor activity detected. Prepare a response and strengthen the relationship."

    if signal_type == SignalType.CONVERSION_LACK:
        if behavior:
            return (
                f"{label} matters most for conversion. Prioritize {label.lower()} work "
                f"that uncovers customer needs."
            )
        return "Behaviors that drive conversion are lacking. Check the correlation analysis and prioritize them."

    if signal_type == SignalType.INTEREST_DROP:
        if account_name:
            return f"Interest at {account_name} dropped sharply. Adjust your approach and re-qualify their needs."
        return "An account's interest dropped sharply. Review the relationship and adjust your approach."

    if signal_type == SignalType.WEAK_BEHAVIOR:
        if behavior:
            return f"{label} quality is below your average. Get training or coaching on {label.lower()}."
        return "One behavior's quality is below your average. Get training or coaching on it."

    return DEFAULT_ACTION
