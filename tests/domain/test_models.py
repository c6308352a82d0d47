from datetime import date, datetime, timezone

import pytest

from retain.domain.progress.models import (
    CardScheduleState,
    ProgressAggregate,
    UserStats,
    parse_study_date,
    parse_timestamp,
)


def test_parse_timestamp_handles_zulu_and_naive():
    assert parse_timestamp("2026-03-10T09:30:00.000Z") == datetime(
        2026, 3, 10, 9, 30, tzinfo=timezone.utc
    )
    assert parse_timestamp("2026-03-10T09:30:00").tzinfo == timezone.utc


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        ("", None),
        ("2026-03-10", date(2026, 3, 10)),
        ("2026-03-10T23:59:00.000Z", date(2026, 3, 10)),
        (date(2026, 3, 10), date(2026, 3, 10)),
    ],
)
def test_parse_study_date(value, expected):
    assert parse_study_date(value) == expected


def test_card_state_uses_original_field_names(now):
    state = CardScheduleState(2.5, 6, 2, now, now)

    assert state.to_dict() == {
        "easeFactor": 2.5,
        "interval": 6,
        "repetitions": 2,
        "lastReview": "2026-03-10T09:30:00Z",
        "nextReview": "2026-03-10T09:30:00Z",
    }


def test_is_mastered_threshold(now):
    assert CardScheduleState(2.5, 30, 3, now, now).is_mastered
    assert not CardScheduleState(2.5, 29, 5, now, now).is_mastered
    assert not CardScheduleState(2.5, 90, 2, now, now).is_mastered


def test_stats_omit_missing_last_study_date():
    assert "lastStudyDate" not in UserStats().to_dict()


def test_aggregate_from_partial_record():
    progress = ProgressAggregate.from_dict({"userId": "dave"})

    assert progress.user_id == "dave"
    assert dict(progress.flashcards) == {}
    assert progress.stats == UserStats()
