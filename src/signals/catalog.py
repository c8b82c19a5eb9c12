# src/signals/catalog.py
"""
Signal catalog: reference definitions for every taggable signal (stamp).

Pure lookup with no DB access.

Definitions are grouped into review categories. A place's primary category
selects its review category:
  National Park / State Park / County / Regional Park → 'national_parks'
  everything else                                      → 'campgrounds'
"""
from __future__ import annotations

from typing import Iterable, Optional

from src.models import POLARITIES, SignalDefinition


# ---------------------------------------------------------------------------
# Place category → review category
# ---------------------------------------------------------------------------

PARK_CATEGORIES: frozenset[str] = frozenset({
    "National Park",
    "State Park",
    "County / Regional Park",
})

DEFAULT_REVIEW_CATEGORY = "campgrounds"


def review_category_for(place_category: Optional[str]) -> str:
    if place_category in PARK_CATEGORIES:
        return "national_parks"
    return DEFAULT_REVIEW_CATEGORY


# ---------------------------------------------------------------------------
# Fallback signals (used when a review category has no definitions yet)
# ---------------------------------------------------------------------------

_FALLBACK_ROWS: dict[str, list[tuple[str, str, str]]] = {
    "positive": [
        ("fallback_quality", "Quality", "Star"),
        ("fallback_service", "Service", "HandHeart"),
        ("fallback_value", "Value", "DollarSign"),
        ("fallback_cleanliness", "Cleanliness", "Sparkles"),
        ("fallback_location", "Location", "MapPin"),
    ],
    "improvement": [
        ("fallback_needs_work", "Needs Work", "AlertTriangle"),
        ("fallback_slow", "Slow", "Clock"),
        ("fallback_dirty", "Not Clean", "Ban"),
        ("fallback_expensive", "Expensive", "DollarSign"),
        ("fallback_poor_service", "Poor Service", "Frown"),
    ],
    "neutral": [
        ("fallback_modern", "Modern", "Building2"),
        ("fallback_rustic", "Rustic", "TreePine"),
        ("fallback_cozy", "Cozy", "Flame"),
        ("fallback_outdated", "Outdated", "Clock"),
    ],
}

FALLBACK_SIGNALS: tuple[SignalDefinition, ...] = tuple(
    SignalDefinition(
        id=sid,
        category="fallback",
        label=label,
        polarity=polarity,
        sort_order=i,
        icon=icon,
    )
    for polarity, rows in _FALLBACK_ROWS.items()
    for i, (sid, label, icon) in enumerate(rows)
)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class SignalCatalog:
    """
    Immutable id → SignalDefinition index.

    Built once from the stamp_definitions table (or from a static list in
    tests). Lookups never raise: an unknown id has no definition and its
    label is the id itself.
    """

    def __init__(self, definitions: Iterable[SignalDefinition] = ()) -> None:
        self._by_id: dict[str, SignalDefinition] = {}
        for d in definitions:
            self._by_id[d.id] = d

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, signal_id: object) -> bool:
        return signal_id in self._by_id

    def get(self, signal_id: Optional[str]) -> Optional[SignalDefinition]:
        if not signal_id:
            return None
        return self._by_id.get(signal_id)

    def label_for(self, signal_id: str) -> str:
        d = self._by_id.get(signal_id)
        return d.label if d else signal_id

    def for_category(self, review_category: str) -> dict[str, list[SignalDefinition]]:
        """
        Definitions of one review category split by polarity, each list in
        sort_order. Falls back to FALLBACK_SIGNALS when the category is empty.
        """
        defs = [d for d in self._by_id.values() if d.category == review_category]
        if not defs:
            defs = list(FALLBACK_SIGNALS)
        defs.sort(key=lambda d: d.sort_order)
        return {p: [d for d in defs if d.polarity == p] for p in POLARITIES}

    def for_place_category(self, place_category: Optional[str]) -> dict[str, list[SignalDefinition]]:
        return self.for_category(review_category_for(place_category))
