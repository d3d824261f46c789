"""Derived statistics for Exhale.

Everything here is recomputed from the ledger and profile on every change.
XP, level and the completed-quest count are the exception: they only move
through quest completion and are carried over from the previous snapshot.
"""

from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable

from exhale.models import CheckIn, PuffInterval, QuitProfile, Statistics
from exhale.streak import StreakResult


CRAVING_WINDOW = 7
TIMEFRAMES = ("week", "month", "all")


def per_day_cost(weekly_cost: float) -> float:
    return max(0.0, weekly_cost) / 7.0


def money_saved(current_streak: int, weekly_cost: float) -> float:
    return max(0, current_streak) * per_day_cost(weekly_cost)


def cravings_reduced_pct(recent: list[CheckIn]) -> float:
    """Percent reduction implied by the average craving of the most recent entries."""
    window = recent[:CRAVING_WINDOW]
    if not window:
        return 0.0
    avg = sum(e.craving_level for e in window) / len(window)
    return min(100.0, max(0.0, 5.0 - avg) * 20)


def aggregate_statistics(
    previous: Statistics,
    streaks: StreakResult,
    recent: list[CheckIn],
    profile: QuitProfile | None,
) -> Statistics:
    """Build a fresh Statistics, keeping only the additive fields from *previous*."""
    weekly_cost = profile.weekly_cost if profile else 0.0
    return Statistics(
        total_xp=previous.total_xp,
        current_streak=streaks.current,
        longest_streak=max(streaks.longest, streaks.current),
        money_saved=money_saved(streaks.current, weekly_cost),
        cravings_reduced_pct=cravings_reduced_pct(recent),
        completed_quest_count=previous.completed_quest_count,
        badges=list(previous.badges),
    )


# ── Puff summary ──────────────────────────────────────────────


@dataclass
class PuffSummary:
    timeframe: str = "week"
    days_tracked: int = 0
    most_common: PuffInterval = PuffInterval.NONE
    best: PuffInterval = PuffInterval.NONE
    puff_free_days: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeframe": self.timeframe,
            "daysTracked": self.days_tracked,
            "mostCommon": self.most_common.value,
            "best": self.best.value,
            "puffFreeDays": self.puff_free_days,
        }


def timeframe_start(timeframe: str, today: date, entries: list[CheckIn]) -> date | None:
    if timeframe == "week":
        return today - timedelta(days=7)
    if timeframe == "month":
        month = today.month - 1 or 12
        year = today.year if today.month > 1 else today.year - 1
        return date(year, month, min(today.day, calendar.monthrange(year, month)[1]))
    return min((e.day for e in entries), default=None)


def puff_summary(entries: Iterable[CheckIn], today: date, timeframe: str = "week") -> PuffSummary:
    """Most common and best puff band, plus puff-free days, over a time frame.

    Days without a reported band count as puff-free.
    """
    if timeframe not in TIMEFRAMES:
        timeframe = "week"
    entries = list(entries)
    start = timeframe_start(timeframe, today, entries)
    window = [e for e in entries if start is not None and start <= e.day <= today]
    summary = PuffSummary(timeframe=timeframe, days_tracked=len(window))
    if not window:
        return summary

    bands = [e.puff_interval or PuffInterval.NONE for e in sorted(window, key=lambda e: e.day)]
    counts = Counter(bands)
    # Ties go to the band seen first.
    summary.most_common = max(counts, key=lambda b: (counts[b], -bands.index(b)))
    summary.best = min(bands, key=lambda b: b.numeric_value)
    summary.puff_free_days = counts.get(PuffInterval.NONE, 0)
    return summary
