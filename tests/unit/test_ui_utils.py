"""Tests for UI formatting helpers."""

import pytest

from byc.ui.utils import format_time, question_progress


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "0:00"), (5, "0:05"), (60, "1:00"), (125, "2:05"), (-3, "0:00")],
)
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_question_progress():
    assert question_progress(0, 2) == 0.5
    assert question_progress(1, 2) == 1.0
    assert question_progress(5, 2) == 1.0
    assert question_progress(0, 0) == 0.0
