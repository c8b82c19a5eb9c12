# src/reputation/thresholds.py
"""
Category tap thresholds and the score confidence gate.

Pure utility: no DB access, no side effects.

A place's shown score is surfaced only once its qualifying taps
(positive + raw negative) reach the threshold of its primary category.
Busier categories need more taps before the number means anything:

  150  Restaurant, Food & Drink
  100  campgrounds, resorts, state / regional parks  (also the default)
   75  national parks / monuments, boondocking, overnight parking, rest areas
   50  niche categories

has_enough_taps_for_score() is the single gate. Callers never compare
qual_taps_total against a threshold themselves.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.models import PlaceReputation


DEFAULT_TAP_THRESHOLD = 100

CATEGORY_TAP_THRESHOLDS: dict[str, int] = {
    # High-traffic
    "Restaurant": 150,
    "Food & Drink": 150,
    # Medium-traffic
    "RV Campground": 100,
    "Campground": 100,
    "Luxury RV Resort": 100,
    "State Park": 100,
    "County / Regional Park": 100,
    # Lower-traffic
    "National Park": 75,
    "National Monument": 75,
    "Boondocking": 75,
    "Overnight Parking": 75,
    "Rest Area / Travel Plaza": 75,
    # Niche
    "Business Allowing Overnight": 50,
    "Fairgrounds / Event Grounds": 50,
    "Dog Park": 50,
    "RV Parking": 50,
    "RV Storage": 50,
}

BUILDING_CONFIDENCE_TEXT = "Building confidence…"


def get_category_threshold(category: Optional[str]) -> int:
    if not category:
        return DEFAULT_TAP_THRESHOLD
    return CATEGORY_TAP_THRESHOLDS.get(category, DEFAULT_TAP_THRESHOLD)


def has_enough_taps_for_score(qual_taps: int, category: Optional[str]) -> bool:
    return qual_taps >= get_category_threshold(category)


def taps_remaining(qual_taps: int, category: Optional[str]) -> int:
    return max(0, get_category_threshold(category) - qual_taps)


# ---------------------------------------------------------------------------
# Display state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoreDisplay:
    """
    What a UI may show for a place's score.

    state:
      'score'               → value holds the shown score
      'building_confidence' → below threshold; show text, never a number
      'no_score'            → above threshold but nothing computed upstream
    """
    state: str
    value: Optional[float] = None
    text: Optional[str] = None


def score_display(
    reputation: Optional[PlaceReputation],
    category: Optional[str] = None,
) -> ScoreDisplay:
    """
    Resolve the score a UI may surface for one place.

    category defaults to the reputation row's primary_category. A missing
    reputation row has zero qualifying taps.
    """
    if reputation is None:
        qual_taps = 0
    else:
        qual_taps = reputation.qual_taps_total
        if category is None:
            category = reputation.primary_category

    if not has_enough_taps_for_score(qual_taps, category):
        return ScoreDisplay(state="building_confidence", text=BUILDING_CONFIDENCE_TEXT)

    shown = reputation.muvo_score_shown if reputation is not None else None
    if shown is None:
        return ScoreDisplay(state="no_score")

    return ScoreDisplay(state="score", value=shown)
