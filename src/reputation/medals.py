# src/reputation/medals.py
"""
Medal tier vocabulary.

Tiers are strictly ordered none < bronze < silver < gold < platinum.
The order is used for inclusion tests and display only. It is never a
ranking weight.
"""
from __future__ import annotations

from typing import Optional

from src.models import MEDAL_TIERS

MEDAL_RANK: dict[str, int] = {tier: i for i, tier in enumerate(MEDAL_TIERS)}

MEDAL_LABELS: dict[str, str] = {
    "bronze": "Bronze",
    "silver": "Silver",
    "gold": "Gold",
    "platinum": "Platinum",
}


def normalize_medal(level: Optional[str]) -> str:
    """Unknown, blank or missing levels are 'none'."""
    tier = (level or "").strip().lower()
    return tier if tier in MEDAL_RANK else "none"


def medal_rank(level: Optional[str]) -> int:
    return MEDAL_RANK[normalize_medal(level)]


def medal_at_least(level: Optional[str], minimum: str) -> bool:
    return medal_rank(level) >= medal_rank(minimum)


def medal_label(level: Optional[str]) -> Optional[str]:
    """Badge label, or None when there is no badge to draw."""
    return MEDAL_LABELS.get(normalize_medal(level))
