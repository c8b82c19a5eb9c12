#!/usr/bin/env python3
# scripts/rank_places.py
"""
Rank a set of places against review-signal filters, using live feeds.

Read-only: fetches place_stamp_aggregates + places score columns,
runs the ranking engine, prints the ranked list and why places were hidden.

Usage:
  python -m scripts.rank_places --place-id P1 --place-id P2 \
      --positive level_sites --neutral family_friendly --negative spotty_wifi

  python -m scripts.rank_places --ids-file ids.txt --medal gold --medal platinum --min-score 70
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Optional


def _read_ids(args: argparse.Namespace) -> list[str]:
    ids = list(args.place_id or [])
    if args.ids_file:
        with open(args.ids_file, "r", encoding="utf-8") as f:
            for line in f:
                s = line.strip()
                if s and not s.startswith("#"):
                    ids.append(s)
    return ids


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rank places by review signals, medal tier and shown score."
    )
    parser.add_argument("--place-id", action="append", help="Candidate place id (repeatable, order = tie-break).")
    parser.add_argument("--ids-file", default=None, help="File with one candidate place id per line.")
    parser.add_argument("--positive", action="append", default=[], help="Wanted positive signal id.")
    parser.add_argument("--neutral", action="append", default=[], help="Wanted neutral signal id.")
    parser.add_argument("--negative", action="append", default=[], help="Excluded negative signal id.")
    parser.add_argument(
        "--medal",
        action="append",
        default=[],
        choices=["none", "bronze", "silver", "gold", "platinum"],
        help="Accepted medal tier (repeatable).",
    )
    parser.add_argument("--min-score", type=float, default=None, help="Minimum shown score.")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON.")
    return parser


def run(supabase: Any, args: argparse.Namespace) -> dict[str, Any]:
    from src.db.feeds import load_snapshot
    from src.ranking.engine import index_aggregates, rank_places
    from src.ranking.filters import FilterSpecification

    place_ids = _read_ids(args)
    spec = FilterSpecification.build(
        positive=args.positive,
        neutral=args.neutral,
        negative=args.negative,
        medals=args.medal,
        minimum_score=args.min_score,
    )

    snapshot = load_snapshot(supabase, place_ids)
    result = rank_places(
        place_ids,
        index_aggregates(snapshot.aggregates),
        spec,
        medal_by_place=snapshot.medal_by_place(),
        score_by_place=snapshot.score_by_place(),
    )

    return {
        "candidates": len(place_ids),
        "ranked_ids": result.ranked_ids,
        "scores": {pid: result.match_results[pid].match_score for pid in result.ranked_ids},
        "excluded_count": result.excluded_count,
        "exclusion_reasons": result.exclusion_reasons,
    }


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    from src.db.feeds import FeedFetchError
    from src.db.supabase_client import get_supabase_client

    try:
        out = run(get_supabase_client(), args)
    except FeedFetchError as e:
        print(f"[rank] FEED_ERROR table={e.table} | {e.error.get('message')}")
        return 1

    if args.json:
        print(json.dumps(out, indent=2))
    else:
        for i, pid in enumerate(out["ranked_ids"], start=1):
            print(f"  {i:>3}. {pid}  match_score={out['scores'][pid]}")
        for pid, reason in out["exclusion_reasons"].items():
            print(f"  [hidden] {pid}  reason={reason}")

    print(
        f"[rank][summary]"
        f" candidates={out['candidates']}"
        f" ranked={len(out['ranked_ids'])}"
        f" excluded={out['excluded_count']}",
        # keep stdout parseable in --json mode
        file=sys.stderr if args.json else sys.stdout,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
