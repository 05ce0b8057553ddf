"""
Analytics Layer
Pure scoring, correlation and signal-detection functions.
"""
from salescoach.analytics.behavior_scores import (
    calculate_behavior_scores,
    calculate_diversity_score,
    calculate_intensity_score,
    calculate_quality_score,
    category_slice,
    whole_window,
)
from salescoach.analytics.coaching_actions import generate_coaching_action
from salescoach.analytics.coaching_signals import (
    behavior_lack_threshold,
    detect_behavior_lack,
    detect_competitor_activity,
    detect_conversion_lack,
    detect_interest_drop,
    detect_relationship_decline,
    detect_weak_behavior,
)
from salescoach.analytics.competitor_detection import detect_competitor_signal
from salescoach.analytics.consistency import calculate_bcr
from salescoach.analytics.correlation import analyze_correlation, pearson_correlation
from salescoach.analytics.next_best_action import NextBestAction, recommend_next_actions
from salescoach.analytics.outcomes import (
    calculate_conversion_rate,
    calculate_field_growth_rate,
    calculate_prescription_index,
)

__all__ = [
    "calculate_behavior_scores",
    "calculate_diversity_score",
    "calculate_intensity_score",
    "calculate_quality_score",
    "category_slice",
    "whole_window",
    "generate_coaching_action",
    "behavior_lack_threshold",
    "detect_behavior_lack",
    "detect_competitor_activity",
    "detect_conversion_lack",
    "detect_interest_drop",
    "detect_relationship_decline",
    "detect_weak_behavior",
    "detect_competitor_signal",
    "calculate_bcr",
    "analyze_correlation",
    "pearson_correlation",
    "NextBestAction",
    "recommend_next_actions",
    "calculate_conversion_rate",
    "calculate_field_growth_rate",
    "calculate_prescription_index",
]
