from __future__ import annotations

import pytest

from expedition.luck import NO_ROLLS, build_luck_summary, build_streams, luck_label, normal_cdf, summarize_luck
from expedition.rng import RollRecord


def _records(label: str, probability: float, results: list[bool]) -> list[RollRecord]:
    return [
        RollRecord(label=label, probability=probability, result=result, counter=index)
        for index, result in enumerate(results)
    ]


def test_no_history_reports_not_applicable() -> None:
    assert build_luck_summary([]) == NO_ROLLS


def test_certain_and_impossible_rolls_are_ignored() -> None:
    history = _records("sure", 1.0, [True, True]) + _records("never", 0.0, [False])

    assert build_luck_summary(history) == NO_ROLLS


def test_streams_group_by_label_and_probability() -> None:
    history = (
        _records("survey-roll", 0.15, [False, True])
        + _records("explore-roll", 0.5, [True])
        + _records("survey-roll", 0.15, [False])
        + _records("survey-roll", 0.2, [True])
    )

    streams = build_streams(history)

    assert [(s.label, s.probability, s.trials, s.successes) for s in streams] == [
        ("survey-roll", 0.15, 3, 1),
        ("explore-roll", 0.5, 1, 1),
        ("survey-roll", 0.2, 1, 1),
    ]


def test_lucky_history_is_formatted_as_top_percent() -> None:
    history = _records("explore-roll", 0.5, [True, True, True, True])

    assert build_luck_summary(history) == "Top 3% (very lucky - +2.00σ)"


def test_unlucky_history_is_formatted_as_bottom_percent() -> None:
    history = _records("explore-roll", 0.5, [False, False, False, False])

    assert build_luck_summary(history) == "Bottom 3% (very unlucky - -2.00σ)"


def test_expected_outcome_is_average() -> None:
    history = _records("survey-roll", 0.5, [True, False])

    assert build_luck_summary(history) == "Top 50% (average - +0.00σ)"


def test_streams_combine_with_stouffer() -> None:
    history = _records("a", 0.5, [True, True, True, True]) + _records("b", 0.5, [True, False])

    summary = summarize_luck(history)

    assert summary is not None
    assert summary.streams == 2
    assert summary.z == pytest.approx(2 / 2**0.5)
    assert summary.label == "lucky"


def test_labels_use_half_and_one_and_a_half_sigma() -> None:
    assert luck_label(1.5) == "very lucky"
    assert luck_label(0.5) == "lucky"
    assert luck_label(0.49) == "average"
    assert luck_label(-0.5) == "unlucky"
    assert luck_label(-1.5) == "very unlucky"


def test_normal_cdf_reference_points() -> None:
    assert normal_cdf(0.0) == pytest.approx(0.5)
    assert normal_cdf(1.96) == pytest.approx(0.975, abs=1e-3)
    assert normal_cdf(-1.0) == pytest.approx(0.1587, abs=1e-4)
