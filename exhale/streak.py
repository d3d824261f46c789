"""Streak reconstruction from the check-in ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from exhale.models import CheckIn


@dataclass(frozen=True)
class StreakResult:
    current: int = 0
    longest: int = 0


def compute_streaks(entries: Iterable[CheckIn], today: date) -> StreakResult:
    """Walk check-ins newest-first and measure abstinent runs.

    A non-abstinent day or a missing day ends a run. The first run only counts
    as the current streak when it reaches today, or yesterday when today has
    no check-in yet. Entries after *today* are ignored.
    """
    ordered = sorted((e for e in entries if e.day <= today), key=lambda e: e.day, reverse=True)
    if not ordered:
        return StreakResult()

    runs: list[int] = []
    run = 0
    prev_day: date | None = None
    for entry in ordered:
        if prev_day is not None and (prev_day - entry.day).days > 1:
            runs.append(run)
            run = 0
        if entry.abstinent:
            run += 1
        else:
            runs.append(run)
            run = 0
        prev_day = entry.day
    runs.append(run)

    anchor = ordered[0].day
    anchored = anchor == today or anchor == today - timedelta(days=1)
    current = runs[0] if anchored and ordered[0].abstinent else 0
    longest = max(max(runs), current)
    return StreakResult(current=current, longest=longest)


def days_since(start: date, today: date) -> int:
    """Whole calendar days from *start* to *today*, never negative."""
    return max(0, (today - start).days)
