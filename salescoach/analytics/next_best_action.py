"""
Next Best Action

For each account, recommend the conversion-driving behavior that has been
performed least there recently.
"""
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from salescoach.models.activity import BEHAVIOR_LABELS, ActivityRecord, BehaviorCategory
from salescoach.models.prescription import AccountRecord

PRIORITY_STEP = 20
UNTOUCHED_BONUS = 20


class NextBestAction(BaseModel):
    account_id: str
    account_name: str
    recommended_behavior: BehaviorCategory
    reason: str
    priority: int = Field(ge=0, le=100)


def _least_performed(
    activities: Sequence[ActivityRecord],
    top_behaviors: Sequence[BehaviorCategory],
) -> tuple[Optional[BehaviorCategory], int]:
    counts: Dict[BehaviorCategory, int] = {behavior: 0 for behavior in top_behaviors}
    for activity in activities:
        if activity.behavior in counts:
            counts[activity.behavior] += 1

    chosen, lowest = None, None
    # Ties keep the higher-ranked behavior
    for behavior in top_behaviors:
        if lowest is None or counts[behavior] < lowest:
            chosen, lowest = behavior, counts[behavior]
    return chosen, lowest or 0


def recommend_next_actions(
    accounts: Sequence[AccountRecord],
    activities: Sequence[ActivityRecord],
    top_conversion_behaviors: Sequence[BehaviorCategory],
    limit: int = 5,
) -> List[NextBestAction]:
    if not top_conversion_behaviors:
        return []

    ranked = list(top_conversion_behaviors)
    recommendations = []
    for account in accounts:
        account_activities = [a for a in activities if a.account_id == account.id]
        behavior, count = _least_performed(account_activities, ranked)
        if behavior is None:
            continue

        priority = (len(ranked) - ranked.index(behavior)) * PRIORITY_STEP
        if count == 0:
            priority += UNTOUCHED_BONUS

        label = BEHAVIOR_LABELS[behavior]
        recommendations.append(NextBestAction(
            account_id=account.id or "",
            account_name=account.name,
            recommended_behavior=behavior,
            reason=f"{label} drives conversion, but recent activity at {account.name} is low ({count}).",
            priority=min(priority, 100),
        ))

    recommendations.sort(key=lambda r: r.priority, reverse=True)
    return recommendations[:limit]
