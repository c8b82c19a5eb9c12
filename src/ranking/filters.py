# src/ranking/filters.py
"""
Traveler filter specification.

An immutable value object. DEFAULT_FILTERS (every field empty) is the
identity filter: ranking with it returns the input unchanged. Changes
are made by building a new spec (toggle_* / with_minimum_score), never
by mutating a shared one.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from src.reputation.medals import normalize_medal


@dataclass(frozen=True)
class FilterSpecification:
    positive_signal_ids: tuple[str, ...] = ()
    neutral_signal_ids: tuple[str, ...] = ()
    negative_signal_ids: tuple[str, ...] = ()
    accepted_medal_tiers: tuple[str, ...] = ()
    minimum_shown_score: Optional[float] = None

    def __post_init__(self) -> None:
        # Medal tiers compare against normalize_medal() output
        for name in ("positive_signal_ids", "neutral_signal_ids", "negative_signal_ids"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(
            self,
            "accepted_medal_tiers",
            tuple(normalize_medal(m) for m in self.accepted_medal_tiers),
        )

    @classmethod
    def build(
        cls,
        *,
        positive: Iterable[str] = (),
        neutral: Iterable[str] = (),
        negative: Iterable[str] = (),
        medals: Iterable[str] = (),
        minimum_score: Optional[float] = None,
    ) -> "FilterSpecification":
        """Convenience constructor accepting any iterables (lists from JSON, argparse, ...)."""
        return cls(
            positive_signal_ids=tuple(positive),
            neutral_signal_ids=tuple(neutral),
            negative_signal_ids=tuple(negative),
            accepted_medal_tiers=tuple(medals),
            minimum_shown_score=minimum_score,
        )


DEFAULT_FILTERS = FilterSpecification()


def is_active(spec: FilterSpecification) -> bool:
    return count_active_filters(spec) > 0


def count_active_filters(spec: FilterSpecification) -> int:
    """Number of chips to show on a 'Filters (N)' button."""
    return (
        len(spec.positive_signal_ids)
        + len(spec.neutral_signal_ids)
        + len(spec.negative_signal_ids)
        + len(spec.accepted_medal_tiers)
        + (1 if spec.minimum_shown_score is not None else 0)
    )


def _toggle(values: tuple[str, ...], value: str) -> tuple[str, ...]:
    if value in values:
        return tuple(v for v in values if v != value)
    return values + (value,)


_FIELD_FOR_POLARITY = {
    "positive": "positive_signal_ids",
    "neutral": "neutral_signal_ids",
    "improvement": "negative_signal_ids",
    "negative": "negative_signal_ids",
}


def toggle_signal(spec: FilterSpecification, polarity: str, signal_id: str) -> FilterSpecification:
    field_name = _FIELD_FOR_POLARITY[polarity]
    return replace(spec, **{field_name: _toggle(getattr(spec, field_name), signal_id)})


def toggle_medal(spec: FilterSpecification, tier: str) -> FilterSpecification:
    return replace(
        spec,
        accepted_medal_tiers=_toggle(spec.accepted_medal_tiers, normalize_medal(tier)),
    )


def with_minimum_score(spec: FilterSpecification, minimum: Optional[float]) -> FilterSpecification:
    """A slider at 0 means 'any score' and clears the filter."""
    if not minimum:
        minimum = None
    return replace(spec, minimum_shown_score=minimum)
