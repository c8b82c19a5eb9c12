# src/signals/grouping.py
"""
Three-section signal view for one place.

Pure utility: deterministic, no DB access, no side effects.

Display law (locked):
  positive  → "what stood out"
  neutral   → "how it feels"
  negative  → "what didn't work"   (polarity 'improvement')

Sections are always emitted in that order and never merged, interleaved
or reordered. Inside a section entries are sorted by total_votes
descending; equal counts keep their input order (stable sort, no
secondary key).

Top-N views are plain slices of the sorted sections. "Show more" widens
the slice to the whole section, it never re-sorts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from src.models import SignalAggregate
from src.signals.catalog import SignalCatalog

logger = logging.getLogger(__name__)

# Bucket name exposed to callers for each upstream polarity.
BUCKET_FOR_POLARITY: dict[str, str] = {
    "positive": "positive",
    "neutral": "neutral",
    "improvement": "negative",
}

BUCKET_ORDER: tuple[str, ...] = ("positive", "neutral", "negative")


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CatalogSignal:
    """Aggregate row that references a catalog signal."""
    signal_id: str
    label: str
    votes: int


@dataclass(frozen=True)
class RawDimensionSignal:
    """Aggregate row without a signal id; labelled by its raw dimension."""
    dimension: str
    votes: int

    @property
    def label(self) -> str:
        return self.dimension


SignalEntry = Union[CatalogSignal, RawDimensionSignal]


def resolve_entry(row: SignalAggregate, catalog: Optional[SignalCatalog] = None) -> SignalEntry:
    if row.stamp_id:
        label = catalog.label_for(row.stamp_id) if catalog is not None else row.stamp_id
        return CatalogSignal(signal_id=row.stamp_id, label=label, votes=row.total_votes)
    return RawDimensionSignal(dimension=row.dimension or "", votes=row.total_votes)


# ---------------------------------------------------------------------------
# Grouped view
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GroupedSignals:
    positive: tuple[SignalEntry, ...] = ()
    neutral: tuple[SignalEntry, ...] = ()
    negative: tuple[SignalEntry, ...] = ()

    def is_empty(self) -> bool:
        return not (self.positive or self.neutral or self.negative)

    def sections(self) -> list[tuple[str, tuple[SignalEntry, ...]]]:
        """(bucket, entries) pairs in display order."""
        return [(name, getattr(self, name)) for name in BUCKET_ORDER]

    def top(self, positive: int, neutral: int, negative: int) -> "GroupedSignals":
        return GroupedSignals(
            positive=self.positive[:positive],
            neutral=self.neutral[:neutral],
            negative=self.negative[:negative],
        )

    def to_dict(self) -> dict[str, list[dict[str, object]]]:
        return {
            name: [{"label": e.label, "votes": e.votes} for e in entries]
            for name, entries in self.sections()
        }


def group_signals(
    aggregates: Iterable[SignalAggregate],
    min_votes: int = 0,
    catalog: Optional[SignalCatalog] = None,
) -> GroupedSignals:
    """
    Partition one place's aggregate rows into positive / neutral / negative.

    Rows with total_votes < min_votes are dropped. Rows with an unknown
    polarity belong to no section and are dropped.
    """
    buckets: dict[str, list[SignalEntry]] = {name: [] for name in BUCKET_ORDER}

    for row in aggregates:
        if row.total_votes < min_votes:
            continue
        bucket = BUCKET_FOR_POLARITY.get(row.polarity)
        if bucket is None:
            logger.debug(
                "[grouping] DROP unknown polarity=%r | place_id=%s stamp_id=%s",
                row.polarity, row.place_id, row.stamp_id,
            )
            continue
        buckets[bucket].append(resolve_entry(row, catalog))

    return GroupedSignals(
        **{
            name: tuple(sorted(entries, key=lambda e: e.votes, reverse=True))
            for name, entries in buckets.items()
        }
    )


# ---------------------------------------------------------------------------
# Display contexts
# ---------------------------------------------------------------------------

# (positive, neutral, negative) slice sizes per UI surface
DISPLAY_LIMITS: dict[str, tuple[int, int, int]] = {
    "card_lines": (3, 2, 1),
    "place_card": (1, 1, 1),
    "expanded": (5, 3, 2),
}


def top_signals(grouped: GroupedSignals, context: str = "card_lines") -> GroupedSignals:
    """
    Fixed-size view for a display context. Unknown contexts raise KeyError.
    """
    pos, neu, neg = DISPLAY_LIMITS[context]
    return grouped.top(pos, neu, neg)


def show_more(grouped: GroupedSignals, bucket: str) -> tuple[SignalEntry, ...]:
    """
    One section widened to its full length.
    Only the slice bound changes; order is the grouped order.
    """
    if bucket not in BUCKET_ORDER:
        raise KeyError(bucket)
    return getattr(grouped, bucket)


def hidden_count(grouped: GroupedSignals, bucket: str, context: str = "expanded") -> int:
    """How many entries a 'show more' toggle would reveal."""
    limit = DISPLAY_LIMITS[context][BUCKET_ORDER.index(bucket)]
    return max(0, len(getattr(grouped, bucket)) - limit)


@dataclass(frozen=True)
class SignalSummary:
    known_for: tuple[SignalEntry, ...]
    common_issues: tuple[SignalEntry, ...]


def summarize_signals(grouped: GroupedSignals) -> SignalSummary:
    """Short summary: top 3 positives and top 2 negatives."""
    return SignalSummary(
        known_for=grouped.positive[:3],
        common_issues=grouped.negative[:2],
    )
