from dataclasses import FrozenInstanceError

import pytest

from src.ranking.filters import (
    DEFAULT_FILTERS,
    FilterSpecification,
    count_active_filters,
    is_active,
    toggle_medal,
    toggle_signal,
    with_minimum_score,
)


def test_default_filters_are_inactive():
    assert not is_active(DEFAULT_FILTERS)
    assert not is_active(FilterSpecification())
    assert count_active_filters(DEFAULT_FILTERS) == 0


def test_empty_lists_are_inactive():
    spec = FilterSpecification(positive_signal_ids=[], accepted_medal_tiers=[])
    assert not is_active(spec)


def test_default_filters_are_immutable():
    with pytest.raises(FrozenInstanceError):
        DEFAULT_FILTERS.minimum_shown_score = 50


def test_build_from_lists():
    spec = FilterSpecification.build(
        positive=["level_sites"],
        negative=["spotty_wifi"],
        medals=["Gold", "platinum"],
        minimum_score=70,
    )
    assert spec.positive_signal_ids == ("level_sites",)
    assert spec.negative_signal_ids == ("spotty_wifi",)
    assert spec.accepted_medal_tiers == ("gold", "platinum")
    assert is_active(spec)
    assert count_active_filters(spec) == 5


def test_plain_constructor_normalizes_medals_and_lists():
    spec = FilterSpecification(
        positive_signal_ids=["level_sites"],
        accepted_medal_tiers=["Gold", " PLATINUM ", "shiny"],
    )
    assert spec.positive_signal_ids == ("level_sites",)
    assert spec.accepted_medal_tiers == ("gold", "platinum", "none")
    assert spec == FilterSpecification.build(positive=["level_sites"], medals=["gold", "platinum", "none"])


def test_toggle_signal_adds_then_removes():
    spec = toggle_signal(DEFAULT_FILTERS, "positive", "level_sites")
    assert spec.positive_signal_ids == ("level_sites",)
    assert DEFAULT_FILTERS.positive_signal_ids == ()

    spec = toggle_signal(spec, "positive", "level_sites")
    assert spec == DEFAULT_FILTERS


def test_toggle_improvement_goes_to_negative_list():
    spec = toggle_signal(DEFAULT_FILTERS, "improvement", "spotty_wifi")
    assert spec.negative_signal_ids == ("spotty_wifi",)


def test_toggle_medal():
    spec = toggle_medal(DEFAULT_FILTERS, "gold")
    spec = toggle_medal(spec, "silver")
    assert spec.accepted_medal_tiers == ("gold", "silver")
    assert toggle_medal(spec, "gold").accepted_medal_tiers == ("silver",)


def test_minimum_score_zero_clears_filter():
    spec = with_minimum_score(DEFAULT_FILTERS, 60)
    assert spec.minimum_shown_score == 60
    assert count_active_filters(spec) == 1
    assert with_minimum_score(spec, 0) == DEFAULT_FILTERS
    assert with_minimum_score(spec, None) == DEFAULT_FILTERS
