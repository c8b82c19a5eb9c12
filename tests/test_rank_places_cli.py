"""
Rank CLI tests: argument parsing, engine wiring, exit codes.
No network; feeds are mocked at the Supabase builder level.
"""
from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

from postgrest.exceptions import APIError

from scripts import rank_places as cli


def _mock_supabase(pages):
    sb = MagicMock()
    builder = MagicMock()
    for method in ["select", "in_", "gte", "order", "range", "eq"]:
        getattr(builder, method).return_value = builder
    sb.table.return_value = builder
    results = []
    for data in pages:
        r = MagicMock()
        r.data = data
        results.append(r)
    builder.execute.side_effect = results
    return sb, builder


AGGS = [
    {"place_id": "P", "stamp_id": "spotty_wifi", "polarity": "improvement", "dimension": "reliability", "total_votes": 18},
    {"place_id": "Q", "stamp_id": "level_sites", "polarity": "positive", "dimension": "quality", "total_votes": 5},
]
REPS = [
    {"id": "P", "qual_taps_total": 120, "muvo_score_shown": 90, "muvo_medal_level": "gold"},
    {"id": "Q", "qual_taps_total": 120, "muvo_score_shown": 75, "muvo_medal_level": "silver"},
]


def test_parser_collects_repeatable_flags():
    args = cli.build_parser().parse_args(
        ["--place-id", "P", "--place-id", "Q", "--negative", "spotty_wifi", "--medal", "gold", "--min-score", "70"]
    )
    assert args.place_id == ["P", "Q"]
    assert args.negative == ["spotty_wifi"]
    assert args.medal == ["gold"]
    assert args.min_score == 70.0


def test_run_excludes_negative_match():
    sb, _ = _mock_supabase([AGGS, REPS])
    args = cli.build_parser().parse_args(["--place-id", "P", "--place-id", "Q", "--negative", "spotty_wifi"])

    out = cli.run(sb, args)

    assert out["ranked_ids"] == ["Q"]
    assert out["excluded_count"] == 1
    assert out["exclusion_reasons"] == {"P": "negative_signal"}


def test_run_reads_ids_file(tmp_path):
    ids_file = tmp_path / "ids.txt"
    ids_file.write_text("# candidates\nQ\n\nP\n", encoding="utf-8")
    sb, _ = _mock_supabase([AGGS, REPS])
    args = cli.build_parser().parse_args(["--ids-file", str(ids_file), "--positive", "level_sites"])

    out = cli.run(sb, args)

    assert out["candidates"] == 2
    assert out["ranked_ids"] == ["Q", "P"]
    assert out["scores"] == {"Q": 10, "P": 0}


def test_main_prints_summary(capsys):
    sb, _ = _mock_supabase([AGGS, REPS])
    with patch("src.db.supabase_client.get_supabase_client", return_value=sb):
        code = cli.main(["--place-id", "P", "--place-id", "Q", "--medal", "gold"])

    out = capsys.readouterr().out
    assert code == 0
    assert "[rank][summary] candidates=2 ranked=1 excluded=1" in out
    assert "[hidden] Q  reason=medal_tier" in out


def test_main_feed_error_exit_code(capsys):
    sb, builder = _mock_supabase([])
    builder.execute.side_effect = APIError({"message": "permission denied", "code": "42501"})
    with patch("src.db.supabase_client.get_supabase_client", return_value=sb):
        code = cli.main(["--place-id", "P"])

    assert code == 1
    assert "[rank] FEED_ERROR table=place_stamp_aggregates" in capsys.readouterr().out


def test_main_json_stdout_is_pure_json(capsys):
    sb, _ = _mock_supabase([AGGS, REPS])
    with patch("src.db.supabase_client.get_supabase_client", return_value=sb):
        code = cli.main(["--place-id", "P", "--place-id", "Q", "--medal", "gold", "--json"])

    captured = capsys.readouterr()
    assert code == 0
    payload = json.loads(captured.out)
    assert payload["ranked_ids"] == ["P"]
    assert payload["excluded_count"] == 1
    assert "[rank][summary] candidates=2 ranked=1 excluded=1" in captured.err
