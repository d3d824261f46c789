"""Tests for exhale/statistics.py — money, cravings, puff summaries."""

from datetime import date

import pytest

from exhale.ledger import CheckInLedger
from exhale.models import Badge, PuffInterval, QuitProfile, Statistics
from exhale.statistics import (
    aggregate_statistics,
    cravings_reduced_pct,
    money_saved,
    per_day_cost,
    puff_summary,
    timeframe_start,
)
from exhale.streak import StreakResult

from conftest import TODAY, days_ago


def test_money_saved_worked_example():
    assert per_day_cost(21) == pytest.approx(3.0)
    assert money_saved(10, 21) == pytest.approx(30.0)


def test_money_saved_zero_cost():
    for streak in (0, 1, 50):
        assert money_saved(streak, 0) == 0


def test_cravings_reduced_empty():
    assert cravings_reduced_pct([]) == 0.0


def test_cravings_reduced_uses_last_seven():
    ledger = CheckInLedger()
    for n in range(7):
        ledger.record_check_in(days_ago(n), True, craving_level=2)
    ledger.record_check_in(days_ago(10), True, craving_level=5)
    assert cravings_reduced_pct(ledger.recent(7)) == pytest.approx(60.0)
    assert cravings_reduced_pct(ledger.entries()) == pytest.approx(60.0)


def test_cravings_reduced_bounds():
    ledger = CheckInLedger()
    ledger.record_check_in(days_ago(0), True, craving_level=5)
    assert cravings_reduced_pct(ledger.entries()) == 0.0
    ledger.record_check_in(days_ago(0), True, craving_level=1)
    assert cravings_reduced_pct(ledger.entries()) == pytest.approx(80.0)


def test_aggregate_keeps_additive_fields():
    previous = Statistics(
        total_xp=130,
        current_streak=99,
        money_saved=1000,
        completed_quest_count=4,
        badges=[Badge(name="First Day")],
    )
    profile = QuitProfile(quit_start_date=days_ago(5), weekly_cost=14)
    stats = aggregate_statistics(previous, StreakResult(current=3, longest=2), [], profile)
    assert stats.total_xp == 130
    assert stats.level == 2
    assert stats.completed_quest_count == 4
    assert stats.current_streak == 3
    assert stats.longest_streak == 3
    assert stats.money_saved == pytest.approx(6.0)
    assert [b.name for b in stats.badges] == ["First Day"]
    assert stats.badges is not previous.badges


def test_aggregate_without_profile_saves_nothing():
    stats = aggregate_statistics(Statistics(), StreakResult(current=5, longest=5), [], None)
    assert stats.money_saved == 0


def test_timeframe_start_month_clamps_day():
    assert timeframe_start("month", date(2026, 3, 31), []) == date(2026, 2, 28)
    assert timeframe_start("month", date(2026, 1, 15), []) == date(2025, 12, 15)
    assert timeframe_start("all", TODAY, []) is None


def test_puff_summary_week():
    ledger = CheckInLedger()
    ledger.record_check_in(days_ago(0), True, puff_interval=PuffInterval.NONE)
    ledger.record_check_in(days_ago(1), False, puff_interval=PuffInterval.LIGHT)
    ledger.record_check_in(days_ago(2), False, puff_interval=PuffInterval.LIGHT)
    ledger.record_check_in(days_ago(3), False, puff_interval=PuffInterval.HEAVY)
    ledger.record_check_in(days_ago(20), False, puff_interval=PuffInterval.VERY_HEAVY)

    summary = puff_summary(ledger.entries(), TODAY, "week")
    assert summary.days_tracked == 4
    assert summary.most_common is PuffInterval.LIGHT
    assert summary.best is PuffInterval.NONE
    assert summary.puff_free_days == 1

    all_time = puff_summary(ledger.entries(), TODAY, "all")
    assert all_time.days_tracked == 5


def test_puff_summary_missing_band_counts_as_none():
    ledger = CheckInLedger()
    ledger.record_check_in(days_ago(0), True)
    summary = puff_summary(ledger.entries(), TODAY, "week")
    assert summary.puff_free_days == 1
    assert summary.to_dict()["mostCommon"] == "none"


def test_puff_summary_empty_and_unknown_timeframe():
    summary = puff_summary([], TODAY, "decade")
    assert summary.timeframe == "week"
    assert summary.days_tracked == 0
    assert summary.most_common is PuffInterval.NONE
