# src/db/feeds.py
"""
Read-only snapshot loaders for the ranking engine.

  place_stamp_aggregates → SignalAggregate rows   (Signal Aggregate Feed)
  places (score columns)  → PlaceReputation rows  (Place Reputation Feed)
  stamp_definitions       → SignalCatalog

Aggregates and scores are computed by DB triggers; nothing here writes.
Rows that fail validation are skipped and counted, never fatal.
PostgREST errors surface as FeedFetchError.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client

from src.config import FEED_PAGE_SIZE
from src.models import PlaceReputation, SignalAggregate, SignalDefinition
from src.signals.catalog import SignalCatalog

logger = logging.getLogger(__name__)

AGGREGATE_COLUMNS = "place_id,stamp_id,polarity,dimension,total_votes"

REPUTATION_COLUMNS = (
    "id,primary_category,qual_taps_total,muvo_score_raw,muvo_score_shown,"
    "muvo_confidence,muvo_negative_ratio,neg_taps_decayed,muvo_medal_level,"
    "medal_awarded_at,first_muvo_tap_at,active_weeks_count"
)

# Keeps .in_() filters well below URL length limits
ID_CHUNK_SIZE = 200


class FeedFetchError(RuntimeError):
    def __init__(self, table: str, error: dict[str, Any]) -> None:
        self.table = table
        self.error = error
        super().__init__(f"[feeds] {table}: {error.get('message') or error}")


def _extract_postgrest_error(e: APIError) -> dict[str, Any]:
    """
    Normalize PostgREST APIError across versions.
    We try to recover the dict that contains: message, code, details, hint.
    """
    if getattr(e, "args", None) and len(e.args) >= 1 and isinstance(e.args[0], dict):
        return e.args[0]
    raw = getattr(e, "_raw_error", None)
    if isinstance(raw, dict):
        return raw
    return {"message": str(e)}


@dataclass
class FeedStats:
    rows_read: int = 0
    rows_invalid: int = 0
    pages: int = 0


@dataclass
class FeedSnapshot:
    """Self-consistent inputs for one ranking call."""
    aggregates: list[SignalAggregate] = field(default_factory=list)
    reputations: dict[str, PlaceReputation] = field(default_factory=dict)

    def medal_by_place(self) -> dict[str, str]:
        return {pid: r.muvo_medal_level for pid, r in self.reputations.items()}

    def score_by_place(self) -> dict[str, Optional[float]]:
        return {pid: r.muvo_score_shown for pid, r in self.reputations.items()}

    def aggregates_for(self, place_id: str) -> list[SignalAggregate]:
        return [a for a in self.aggregates if a.place_id == place_id]


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------

def _chunks(ids: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for i in range(0, len(ids), size):
        yield ids[i:i + size]


def _paginate(
    table: str,
    make_query: Callable[[], Any],
    stats: FeedStats,
    page_size: int,
) -> Iterable[dict[str, Any]]:
    offset = 0
    while True:
        try:
            resp = make_query().range(offset, offset + page_size - 1).execute()
        except APIError as e:
            raise FeedFetchError(table, _extract_postgrest_error(e)) from e

        rows = resp.data or []
        stats.pages += 1
        if not rows:
            return
        yield from rows
        if len(rows) < page_size:
            return
        offset += page_size


def _query_pages(
    supabase: Client,
    table: str,
    columns: str,
    stats: FeedStats,
    *,
    id_column: str,
    tiebreak: Optional[str] = None,
    ids: Optional[Sequence[str]] = None,
    min_votes: Optional[int] = None,
    page_size: int = FEED_PAGE_SIZE,
) -> Iterable[dict[str, Any]]:
    def make(chunk: Optional[Sequence[str]]) -> Callable[[], Any]:
        def _q() -> Any:
            q = supabase.table(table).select(columns)
            if chunk is not None:
                q = q.in_(id_column, list(chunk))
            if min_votes is not None:
                q = q.gte("total_votes", min_votes)
            q = q.order(id_column)
            # offset paging needs a total order; id_column alone may repeat
            if tiebreak is not None:
                q = q.order(tiebreak)
            return q
        return _q

    if ids is None:
        yield from _paginate(table, make(None), stats, page_size)
        return

    for chunk in _chunks(list(ids), ID_CHUNK_SIZE):
        yield from _paginate(table, make(chunk), stats, page_size)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def fetch_signal_aggregates(
    supabase: Client,
    *,
    place_ids: Optional[Sequence[str]] = None,
    min_votes: Optional[int] = None,
    page_size: int = FEED_PAGE_SIZE,
) -> list[SignalAggregate]:
    """
    Aggregate rows for the given places (all places when place_ids is None).

    min_votes pushes the noise floor into the query (search contexts use 2);
    detail views pass None and filter at grouping time.
    """
    if place_ids is not None and not place_ids:
        return []

    stats = FeedStats()
    out: list[SignalAggregate] = []
    for row in _query_pages(
        supabase, "place_stamp_aggregates", AGGREGATE_COLUMNS, stats,
        id_column="place_id", tiebreak="id", ids=place_ids, min_votes=min_votes, page_size=page_size,
    ):
        stats.rows_read += 1
        try:
            out.append(SignalAggregate.model_validate(row))
        except ValidationError as e:
            stats.rows_invalid += 1
            logger.warning(
                "[feeds] SKIP invalid aggregate row place_id=%s stamp_id=%s | %s",
                row.get("place_id"), row.get("stamp_id"), e.errors()[0].get("msg"),
            )

    logger.info(
        "[feeds] place_stamp_aggregates read=%d invalid=%d pages=%d",
        stats.rows_read, stats.rows_invalid, stats.pages,
    )
    return out


def fetch_place_reputations(
    supabase: Client,
    *,
    place_ids: Optional[Sequence[str]] = None,
    page_size: int = FEED_PAGE_SIZE,
) -> dict[str, PlaceReputation]:
    """place_id → PlaceReputation. Places without a row are simply absent."""
    if place_ids is not None and not place_ids:
        return {}

    stats = FeedStats()
    out: dict[str, PlaceReputation] = {}
    for row in _query_pages(
        supabase, "places", REPUTATION_COLUMNS, stats,
        id_column="id", ids=place_ids, page_size=page_size,
    ):
        stats.rows_read += 1
        payload = dict(row)
        payload["place_id"] = payload.pop("id", None)
        try:
            rep = PlaceReputation.model_validate(payload)
        except ValidationError as e:
            stats.rows_invalid += 1
            logger.warning(
                "[feeds] SKIP invalid reputation row id=%s | %s",
                payload.get("place_id"), e.errors()[0].get("msg"),
            )
            continue
        out[rep.place_id] = rep

    logger.info(
        "[feeds] places read=%d invalid=%d pages=%d",
        stats.rows_read, stats.rows_invalid, stats.pages,
    )
    return out


def fetch_signal_catalog(supabase: Client) -> SignalCatalog:
    try:
        resp = (
            supabase.table("stamp_definitions")
            .select("id,category,label,polarity,sort_order,icon")
            .order("category")
            .order("sort_order")
            .execute()
        )
    except APIError as e:
        raise FeedFetchError("stamp_definitions", _extract_postgrest_error(e)) from e

    defs: list[SignalDefinition] = []
    for row in resp.data or []:
        try:
            defs.append(SignalDefinition.model_validate(row))
        except ValidationError:
            logger.warning("[feeds] SKIP invalid stamp definition id=%s", row.get("id"))
    return SignalCatalog(defs)


def load_snapshot(
    supabase: Client,
    place_ids: Sequence[str],
    *,
    min_votes: Optional[int] = 2,
) -> FeedSnapshot:
    return FeedSnapshot(
        aggregates=fetch_signal_aggregates(supabase, place_ids=place_ids, min_votes=min_votes),
        reputations=fetch_place_reputations(supabase, place_ids=place_ids),
    )
