from datetime import datetime, timezone

import pytest

from orchestrator.difficulty import baseline_entry, next_difficulty, opening_entry, progress_bucket

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_progress_buckets():
    assert progress_bucket(1, 10) == "early"
    assert progress_bucket(3, 10) == "mid"
    assert progress_bucket(6, 10) == "mid"
    assert progress_bucket(7, 10) == "late"


@pytest.mark.parametrize(
    "current,quality,qn,expected,adjustment",
    [
        ("easy", "strong", 1, "medium", "increase"),
        ("medium", "strong", 1, "medium", "maintain"),
        ("hard", "weak", 1, "easy", "decrease"),
        ("medium", "medium", 1, "medium", "maintain"),
        ("medium", "strong", 5, "hard", "increase"),
        ("hard", "strong", 5, "hard", "maintain"),
        ("medium", "weak", 5, "easy", "decrease"),
        ("easy", "weak", 5, "easy", "maintain"),
        ("easy", "strong", 9, "hard", "increase"),
        ("hard", "weak", 9, "medium", "decrease"),
        ("easy", "weak", 9, "easy", "maintain"),
        ("medium", "medium", 9, "medium", "maintain"),
    ],
)
def test_transition_table(current, quality, qn, expected, adjustment):
    entry = next_difficulty(current, quality, qn, 10, turn_index=qn + 1, now=NOW)
    assert entry.new_difficulty == expected
    assert entry.previous_difficulty == current
    assert entry.adjustment == adjustment
    assert entry.quality == quality
    assert entry.turn_index == qn + 1
    assert entry.reason


def test_early_strong_never_skips_to_hard():
    entry = next_difficulty("easy", "strong", 1, 20, turn_index=2, now=NOW)
    assert entry.new_difficulty == "medium"


def test_reason_is_human_readable():
    entry = next_difficulty("medium", "strong", 5, 10, turn_index=6, now=NOW)
    assert entry.reason == "Strong performance - increasing challenge"
    assert entry.timestamp == NOW.isoformat()


def test_baseline_and_opening_entries():
    base = baseline_entry("easy", now=NOW)
    assert base.turn_index == 0
    assert base.adjustment == "maintain"
    opening = opening_entry("easy", "medium", turn_index=1, now=NOW)
    assert opening.adjustment == "increase"
    assert opening.quality is None
