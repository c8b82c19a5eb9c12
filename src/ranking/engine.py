# src/ranking/engine.py
"""
Filter / rank engine for search results.

Pure utility. No DB access, no side effects, no shared state. Each call
owns the MatchResult map it returns.

Algorithm (v1):
  1. Noise floor: signals with total_votes < 2 never match and never exclude.
  2. Match score per place:
       +2 × votes  for each wanted positive signal the place has
       +1 × votes  for each wanted neutral signal the place has
  3. Exclusion: any unwanted negative signal with votes ≥ 2 hides the place.
     A single hit is enough; positive score never cancels it.
  4. Filtering (skipped entirely for DEFAULT_FILTERS), first failing rule wins:
       negative_signal → medal_tier → minimum_score
  5. Ranking: match_score descending, stable (input order breaks ties).

Medal tier is a filter only. It never feeds match_score.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from src.models import SignalAggregate
from src.ranking.filters import FilterSpecification, is_active
from src.reputation.medals import normalize_medal


NOISE_FLOOR = 2

POSITIVE_WEIGHT = 2
NEUTRAL_WEIGHT = 1

EXCLUDED_NEGATIVE = "negative_signal"
EXCLUDED_MEDAL = "medal_tier"
EXCLUDED_SCORE = "minimum_score"


# ---------------------------------------------------------------------------
# Aggregate index
# ---------------------------------------------------------------------------

@dataclass
class PlaceSignalVotes:
    """Per-place signal_id → votes maps, one per polarity."""
    place_id: str
    positive: dict[str, int] = field(default_factory=dict)
    neutral: dict[str, int] = field(default_factory=dict)
    negative: dict[str, int] = field(default_factory=dict)


_INDEX_BUCKET = {
    "positive": "positive",
    "neutral": "neutral",
    "improvement": "negative",
}


def index_aggregates(
    rows: Iterable[SignalAggregate],
    min_votes: int = NOISE_FLOOR,
) -> dict[str, PlaceSignalVotes]:
    """
    Group feed rows by place for matching.

    Skips rows without a signal id (nothing to match a filter against),
    rows below min_votes and rows with an unknown polarity. A repeated
    (place, signal) row overwrites the earlier one.
    """
    index: dict[str, PlaceSignalVotes] = {}
    for row in rows:
        if not row.stamp_id or row.total_votes < min_votes:
            continue
        bucket = _INDEX_BUCKET.get(row.polarity)
        if bucket is None:
            continue
        votes = index.get(row.place_id)
        if votes is None:
            votes = PlaceSignalVotes(place_id=row.place_id)
            index[row.place_id] = votes
        getattr(votes, bucket)[row.stamp_id] = row.total_votes
    return index


# ---------------------------------------------------------------------------
# Match results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SignalMatch:
    signal_id: str
    votes: int


@dataclass(frozen=True)
class MatchResult:
    place_id: str
    match_score: int = 0
    matched_positive: tuple[SignalMatch, ...] = ()
    matched_neutral: tuple[SignalMatch, ...] = ()
    matched_negative: tuple[SignalMatch, ...] = ()
    excluded_by_negative: bool = False


def _counted(votes: Optional[int]) -> bool:
    return votes is not None and votes >= NOISE_FLOOR


def score_place(
    place_id: str,
    votes: Optional[PlaceSignalVotes],
    spec: FilterSpecification,
) -> MatchResult:
    if votes is None:
        votes = PlaceSignalVotes(place_id=place_id)

    score = 0
    positive: list[SignalMatch] = []
    neutral: list[SignalMatch] = []
    negative: list[SignalMatch] = []

    for sid in spec.positive_signal_ids:
        v = votes.positive.get(sid)
        if _counted(v):
            score += v * POSITIVE_WEIGHT
            positive.append(SignalMatch(sid, v))

    for sid in spec.neutral_signal_ids:
        v = votes.neutral.get(sid)
        if _counted(v):
            score += v * NEUTRAL_WEIGHT
            neutral.append(SignalMatch(sid, v))

    for sid in spec.negative_signal_ids:
        v = votes.negative.get(sid)
        if _counted(v):
            negative.append(SignalMatch(sid, v))

    return MatchResult(
        place_id=place_id,
        match_score=score,
        matched_positive=tuple(positive),
        matched_neutral=tuple(neutral),
        matched_negative=tuple(negative),
        excluded_by_negative=bool(negative),
    )


def score_places(
    place_ids: Sequence[str],
    index: Optional[Mapping[str, PlaceSignalVotes]],
    spec: FilterSpecification,
) -> dict[str, MatchResult]:
    index = index or {}
    return {pid: score_place(pid, index.get(pid), spec) for pid in place_ids}


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RankResult:
    ranked_ids: list[str]
    match_results: dict[str, MatchResult]
    excluded_count: int = 0
    # place_id → first rule that removed it
    exclusion_reasons: dict[str, str] = field(default_factory=dict)

    def excluded_by(self, reason: str) -> list[str]:
        return [pid for pid, r in self.exclusion_reasons.items() if r == reason]


def _exclusion_reason(
    place_id: str,
    result: MatchResult,
    spec: FilterSpecification,
    medal_by_place: Mapping[str, Optional[str]],
    score_by_place: Mapping[str, Optional[float]],
) -> Optional[str]:
    if result.excluded_by_negative:
        return EXCLUDED_NEGATIVE

    if spec.accepted_medal_tiers:
        medal = normalize_medal(medal_by_place.get(place_id))
        if medal not in spec.accepted_medal_tiers:
            return EXCLUDED_MEDAL

    if spec.minimum_shown_score is not None:
        shown = score_by_place.get(place_id)
        if shown is None or shown < spec.minimum_shown_score:
            return EXCLUDED_SCORE

    return None


def rank_places(
    place_ids: Sequence[str],
    index: Optional[Mapping[str, PlaceSignalVotes]],
    spec: FilterSpecification,
    medal_by_place: Optional[Mapping[str, Optional[str]]] = None,
    score_by_place: Optional[Mapping[str, Optional[float]]] = None,
) -> RankResult:
    """
    Filter and rank candidate places against a filter specification.

    place_ids order is the natural secondary key (e.g. distance) and
    survives for equal match scores. Duplicate ids are kept as given.
    Missing medal / score entries mean tier 'none' and no score. A None
    medal_by_place or score_by_place behaves as an empty map, so every
    place fails an active minimum score, and fails an active medal filter
    unless that filter accepts 'none'.

    With DEFAULT_FILTERS the input list comes back as-is with
    excluded_count = 0.
    """
    results = score_places(place_ids, index, spec)

    if not is_active(spec):
        return RankResult(ranked_ids=list(place_ids), match_results=results)

    medal_by_place = medal_by_place or {}
    score_by_place = score_by_place or {}

    kept: list[str] = []
    reasons: dict[str, str] = {}
    excluded = 0
    for pid in place_ids:
        reason = _exclusion_reason(pid, results[pid], spec, medal_by_place, score_by_place)
        if reason is None:
            kept.append(pid)
            continue
        excluded += 1
        reasons.setdefault(pid, reason)

    ranked = sorted(kept, key=lambda pid: results[pid].match_score, reverse=True)

    return RankResult(
        ranked_ids=ranked,
        match_results=results,
        excluded_count=excluded,
        exclusion_reasons=reasons,
    )


# ---------------------------------------------------------------------------
# Transparency helpers
# ---------------------------------------------------------------------------

def is_place_excluded_by_negatives(
    place_id: str,
    index: Optional[Mapping[str, PlaceSignalVotes]],
    negative_signal_ids: Sequence[str],
) -> bool:
    if not negative_signal_ids:
        return False
    votes = (index or {}).get(place_id)
    if votes is None:
        return False
    return any(_counted(votes.negative.get(sid)) for sid in negative_signal_ids)


def get_matching_signals(
    place_id: str,
    index: Optional[Mapping[str, PlaceSignalVotes]],
    spec: FilterSpecification,
) -> dict[str, list[SignalMatch]]:
    """
    Which of the requested signals a place carries, for "matches your
    filters" chips. Reports any vote count present in the index.
    """
    votes = (index or {}).get(place_id) or PlaceSignalVotes(place_id=place_id)

    def _present(ids: Sequence[str], bucket: dict[str, int]) -> list[SignalMatch]:
        return [SignalMatch(sid, bucket[sid]) for sid in ids if bucket.get(sid, 0) > 0]

    return {
        "positive": _present(spec.positive_signal_ids, votes.positive),
        "neutral": _present(spec.neutral_signal_ids, votes.neutral),
        "negative": _present(spec.negative_signal_ids, votes.negative),
    }
