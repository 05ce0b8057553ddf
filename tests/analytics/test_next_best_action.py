from salescoach.analytics.next_best_action import recommend_next_actions
from salescoach.models.activity import BehaviorCategory
from salescoach.models.prescription import AccountRecord
from factories import make_activity

TOP = [BehaviorCategory.VISIT, BehaviorCategory.CONTACT, BehaviorCategory.APPROACH]


def accounts():
    return [
        AccountRecord(_id="acc-1", name="North Clinic"),
        AccountRecord(_id="acc-2", name="City Hospital"),
    ]


def test_untouched_account_ranks_first():
    activities = [
        make_activity(account_id="acc-1", behavior=BehaviorCategory.VISIT),
        make_activity(account_id="acc-1", behavior=BehaviorCategory.VISIT),
        make_activity(account_id="acc-1", behavior=BehaviorCategory.CONTACT),
        make_activity(account_id="acc-1", behavior=BehaviorCategory.APPROACH),
    ]

    actions = recommend_next_actions(accounts(), activities, TOP)

    assert [(a.account_id, a.recommended_behavior, a.priority) for a in actions] == [
        ("acc-2", BehaviorCategory.VISIT, 80),
        ("acc-1", BehaviorCategory.CONTACT, 40),
    ]
    assert "City Hospital" in actions[0].reason


def test_limit():
    assert len(recommend_next_actions(accounts(), [], TOP, limit=1)) == 1


def test_priority_is_capped():
    top = list(BehaviorCategory)[:5]
    actions = recommend_next_actions(accounts()[:1], [], top)
    assert actions[0].priority == 100


def test_no_conversion_drivers():
    assert recommend_next_actions(accounts(), [], []) == []
