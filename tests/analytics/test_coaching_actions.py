import pytest

from salescoach.analytics.coaching_actions import DEFAULT_ACTION, generate_coaching_action
from salescoach.models.activity import BehaviorCategory
from salescoach.models.coaching_signal import SignalType


def test_behavior_specific_text():
    text = generate_coaching_action(SignalType.WEAK_BEHAVIOR, behavior=BehaviorCategory.DEMONSTRATION)
    assert "Demonstration" in text


def test_account_specific_text():
    text = generate_coaching_action(SignalType.INTEREST_DROP, account_name="City Hospital")
    assert "City Hospital" in text


@pytest.mark.parametrize("signal_type", list(SignalType))
def test_every_type_has_generic_text(signal_type):
    text = generate_coaching_action(signal_type)
    assert text
    assert text != DEFAULT_ACTION


def test_unknown_type_falls_back():
    assert generate_coaching_action("something_else") == DEFAULT_ACTION
