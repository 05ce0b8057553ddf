"""
Competitor Keyword Detection

Scans a free-text activity note for signs that a competitor is present at
an account. Produces at most one detection per note, with a confidence in
[0.5, 0.95]; anything weaker is dropped.
"""
import re
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from salescoach.models.activity import ActivityRecord
from salescoach.models.coaching_signal import CompetitorSignal

UNKNOWN_COMPETITOR = "Unknown competitor"

COMPETITOR_KEYWORDS = (
    "competitor",
    "competing product",
    "other product",
    "another company",
    "comparison",
    "compare",
    "sample",
    "sample request",
    "price comparison",
    "price inquiry",
    "alternative",
    "substitute",
    "replace",
    "switch",
)

MENTION_PATTERNS = (
    re.compile(r"using.*other.*product"),
    re.compile(r"other.*company.*product"),
    re.compile(r"comparing"),
    re.compile(r"price.*compar"),
    re.compile(r"sample.*request"),
    re.compile(r"alternative.*review"),
    re.compile(r"consider.*switch"),
)

PRICE_SAMPLE_PATTERNS = (
    re.compile(r"price.*inquir"),
    re.compile(r"price.*compar"),
    re.compile(r"sample.*request"),
    re.compile(r"sample.*provid"),
    re.compile(r"quote.*request"),
)

NAME_CONFIDENCE = 0.9
KEYWORD_BASE = 0.3
KEYWORD_STEP = 0.2
KEYWORD_CAP = 0.8
MENTION_CONFIDENCE = 0.7
PRICE_SAMPLE_CONFIDENCE = 0.6
PATTERN_BOOST = 0.1
CONFIDENCE_CAP = 0.95
MIN_CONFIDENCE = 0.5


class CompetitorDetection(BaseModel):
    competitor_name: str
    signal_type: str
    description: str
    confidence: float = Field(ge=0.0, le=1.0)


def _first_match(patterns: Sequence[re.Pattern], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def detect_competitor_signal(
    note: str,
    competitor_names: Sequence[str] = (),
) -> Optional[CompetitorDetection]:
    """
    Detect a competitor sighting in an activity note.

    Args:
        note: Free-text activity note
        competitor_names: Known competitor names, matched case-insensitively

    Returns:
        CompetitorDetection, or None if nothing credible was found
    """
    if not note or not note.strip():
        return None

    text = note.lower()
    competitor: Optional[str] = None
    signal_type = "general"
    confidence = KEYWORD_BASE

    for name in competitor_names:
        if name and name.lower() in text:
            competitor = name
            signal_type = "competitor_mentioned"
            confidence = NAME_CONFIDENCE
            break

    if competitor is None:
        matched = [keyword for keyword in COMPETITOR_KEYWORDS if keyword in text]
        if matched:
            competitor = UNKNOWN_COMPETITOR
            signal_type = "keyword_detected"
            confidence = min(KEYWORD_BASE + len(matched) * KEYWORD_STEP, KEYWORD_CAP)

    if _first_match(MENTION_PATTERNS, text):
        if competitor is None:
            competitor = UNKNOWN_COMPETITOR
            signal_type = "customer_mention"
            confidence = MENTION_CONFIDENCE
        else:
            confidence = min(confidence + PATTERN_BOOST, CONFIDENCE_CAP)

    if _first_match(PRICE_SAMPLE_PATTERNS, text):
        if competitor is None:
            competitor = UNKNOWN_COMPETITOR
            signal_type = "price_sample_inquiry"
            confidence = PRICE_SAMPLE_CONFIDENCE
        else:
            confidence = min(confidence + PATTERN_BOOST, CONFIDENCE_CAP)

    if competitor is None or confidence < MIN_CONFIDENCE:
        return None

    return CompetitorDetection(
        competitor_name=competitor,
        signal_type=signal_type,
        description=f"Competitor signal found in activity note (confidence {round(confidence * 100)}%)",
        confidence=round(confidence, 2),
    )


def competitor_signal_from_activity(
    activity: ActivityRecord,
    competitor_names: Sequence[str] = (),
) -> Optional[CompetitorSignal]:
    """Build a storable CompetitorSignal from an activity note, if one is detected."""
    detection = detect_competitor_signal(activity.note, competitor_names)
    if detection is None:
        return None
    return CompetitorSignal(
        account_id=activity.account_id,
        contact_id=activity.contact_id,
        competitor_name=detection.competitor_name,
        signal_type=detection.signal_type,
        description=detection.description,
        detected_at=activity.performed_at,
    )
