"""Tests for daily totals."""

import random
from datetime import UTC, datetime, timedelta

import pytest

from meal_tracker.domain.errors import InvalidTimezone
from meal_tracker.services.stats import StatsService, aggregate, day_window
from tests.conftest import InMemoryMealRecordRepository, make_nutrition, make_record


def test_aggregate_empty_is_zero() -> None:
    totals = aggregate([])

    assert totals.calories == 0
    assert totals.protein == 0
    assert totals.carbohydrates == 0
    assert totals.fat == 0


def test_aggregate_matches_plain_sums() -> None:
    now = datetime.now(tz=UTC)
    records = [
        make_record(now, make_nutrition(95, 0.5, 25, 0.3)),
        make_record(now, make_nutrition(612.4, 41.2, 55.1, 22.7)),
        make_record(now, make_nutrition(180, 3.3, 12.9, 14.05)),
    ]

    totals = aggregate(records)

    assert totals.calories == sum(r.nutrition.calories for r in records)
    assert totals.protein == sum(r.nutrition.macronutrients.protein for r in records)
    assert totals.carbohydrates == sum(
        r.nutrition.macronutrients.carbohydrates for r in records
    )
    assert totals.fat == sum(r.nutrition.macronutrients.fat for r in records)


def test_aggregate_is_order_independent() -> None:
    now = datetime.now(tz=UTC)
    records = [
        make_record(now, make_nutrition(95, 0.5, 25, 0.25)),
        make_record(now, make_nutrition(600, 40, 55.5, 22)),
        make_record(now, make_nutrition(180.75, 3, 12, 14.5)),
        make_record(now, make_nutrition(0, 0, 0, 0)),
    ]
    expected = aggregate(records)

    shuffled = list(records)
    random.Random(7).shuffle(shuffled)

    assert aggregate(shuffled) == expected
    assert aggregate(reversed(records)) == expected


def test_aggregate_of_inexact_values_depends_on_order_only_by_rounding() -> None:
    now = datetime.now(tz=UTC)
    records = [
        make_record(now, make_nutrition(calories=value)) for value in (0.1, 0.2, 0.3)
    ]

    forward = aggregate(records).calories
    backward = aggregate(reversed(records)).calories

    assert forward == 0.1 + 0.2 + 0.3
    assert backward == 0.3 + 0.2 + 0.1
    assert forward != backward
    assert forward == pytest.approx(backward)


def test_day_window_uses_local_midnight() -> None:
    now = datetime(2026, 10, 18, 1, 30, tzinfo=UTC)

    start, end = day_window("America/Los_Angeles", now=now)

    # 01:30 UTC is still 17 October in Los Angeles (UTC-7).
    assert start == datetime(2026, 10, 17, 7, 0, tzinfo=UTC)
    assert end == datetime(2026, 10, 18, 7, 0, tzinfo=UTC)


def test_day_window_spans_to_next_midnight_on_dst_change() -> None:
    now = datetime(2026, 10, 25, 12, 0, tzinfo=UTC)

    start, end = day_window("Europe/Berlin", now=now)

    assert start == datetime(2026, 10, 24, 22, 0, tzinfo=UTC)
    assert end == datetime(2026, 10, 25, 23, 0, tzinfo=UTC)
    assert end - start == timedelta(hours=25)


def test_day_window_rejects_unknown_timezone() -> None:
    with pytest.raises(InvalidTimezone):
        day_window("Mars/Olympus_Mons")


def test_get_today_excludes_window_boundaries() -> None:
    now = datetime(2026, 10, 18, 15, 0, tzinfo=UTC)
    start = datetime(2026, 10, 18, tzinfo=UTC)
    end = start + timedelta(days=1)
    repo = InMemoryMealRecordRepository()
    repo.records = [
        make_record(start, make_nutrition(100)),
        make_record(start + timedelta(hours=8), make_nutrition(200)),
        make_record(end - timedelta(microseconds=1), make_nutrition(300)),
        make_record(end, make_nutrition(400)),
        make_record(start - timedelta(microseconds=1), make_nutrition(500)),
        make_record(start + timedelta(hours=9), make_nutrition(800), user_id="other"),
    ]

    summary = StatsService(repo).get_today("user-1", "UTC", now=now)

    assert summary.totals.calories == 600
    assert summary.day.isoformat() == "2026-10-18"
    assert all(start <= meal.created_at < end for meal in summary.meals)
    assert [meal.nutrition.calories for meal in summary.meals] == [300, 200, 100]


def test_list_window_returns_empty_for_inverted_range() -> None:
    repo = InMemoryMealRecordRepository()
    now = datetime.now(tz=UTC)
    repo.records = [make_record(now)]

    service = StatsService(repo)

    assert service.list_window("user-1", now + timedelta(hours=1), now) == []
    assert len(service.list_window("user-1", now, now + timedelta(hours=1))) == 1


def test_list_window_requires_aware_datetimes() -> None:
    service = StatsService(InMemoryMealRecordRepository())

    with pytest.raises(ValueError):
        service.list_window("user-1", datetime(2026, 1, 1), datetime(2026, 1, 2))
