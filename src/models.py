from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

Polarity = Literal["positive", "neutral", "improvement"]
MedalTier = Literal["none", "bronze", "silver", "gold", "platinum"]

POLARITIES: tuple[str, ...] = ("positive", "neutral", "improvement")
MEDAL_TIERS: tuple[str, ...] = ("none", "bronze", "silver", "gold", "platinum")


class SignalDefinition(BaseModel, frozen=True):
    id: str
    category: str
    label: str
    polarity: Polarity
    sort_order: int = 0
    icon: Optional[str] = None


class SignalAggregate(BaseModel, frozen=True):
    """One row of place_stamp_aggregates: running vote count for a (place, signal) pair."""

    place_id: str
    stamp_id: Optional[str] = None
    polarity: str
    dimension: Optional[str] = None
    total_votes: int = Field(default=0, ge=0)

    @field_validator("total_votes", mode="before")
    @classmethod
    def _null_votes_are_zero(cls, v):
        return 0 if v is None else v


class PlaceReputation(BaseModel, frozen=True):
    """Score engine columns of a place row. shown_score is None until upstream rules allow it."""

    place_id: str
    qual_taps_total: int = 0
    muvo_score_raw: Optional[float] = None
    muvo_score_shown: Optional[float] = None
    muvo_confidence: float = 0.0
    muvo_negative_ratio: float = 0.0
    neg_taps_decayed: float = 0.0
    muvo_medal_level: MedalTier = "none"
    medal_awarded_at: Optional[datetime] = None
    first_muvo_tap_at: Optional[datetime] = None
    active_weeks_count: int = 0
    primary_category: Optional[str] = None

    @field_validator(
        "qual_taps_total", "muvo_confidence", "muvo_negative_ratio",
        "neg_taps_decayed", "active_weeks_count",
        mode="before",
    )
    @classmethod
    def _null_counters_are_zero(cls, v):
        return 0 if v is None else v

    @field_validator("muvo_medal_level", mode="before")
    @classmethod
    def _unknown_medal_is_none(cls, v):
        tier = str(v or "").strip().lower()
        return tier if tier in MEDAL_TIERS else "none"
