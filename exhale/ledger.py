"""Day-keyed check-in ledger for Exhale."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable

from exhale.models import CheckIn, Mood, PuffInterval

logger = logging.getLogger(__name__)


class CheckInLedger:
    """One check-in per calendar day. Recording a day twice overwrites it."""

    def __init__(self, entries: Iterable[CheckIn] | None = None) -> None:
        self._by_day: dict[date, CheckIn] = {}
        for entry in entries or []:
            self._by_day[entry.day] = entry

    def __len__(self) -> int:
        return len(self._by_day)

    def __contains__(self, day: object) -> bool:
        return day in self._by_day

    def get(self, day: date) -> CheckIn | None:
        return self._by_day.get(day)

    def entries(self, newest_first: bool = True) -> list[CheckIn]:
        return sorted(self._by_day.values(), key=lambda e: e.day, reverse=newest_first)

    def recent(self, n: int, through: date | None = None) -> list[CheckIn]:
        """The *n* most recent entries, newest first, skipping days after *through*."""
        entries = self.entries()
        if through is not None:
            entries = [e for e in entries if e.day <= through]
        return entries[: max(0, n)]

    def latest_relapse(self) -> date | None:
        """Most recent day recorded as not abstinent."""
        relapses = [e.day for e in self._by_day.values() if not e.abstinent]
        return max(relapses) if relapses else None

    def record_check_in(
        self,
        day: date,
        abstinent: bool,
        craving_level: int = 1,
        mood: Mood | str = Mood.NEUTRAL,
        notes: str = "",
        puff_interval: PuffInterval | str | None = None,
    ) -> CheckIn:
        """Upsert the check-in for *day*. Craving level is clamped to 1-5.

        Quest completions already attached to the day survive the overwrite.
        """
        existing = self._by_day.get(day)
        entry = CheckIn(
            day=day,
            abstinent=bool(abstinent),
            craving_level=craving_level,
            mood=mood if isinstance(mood, Mood) else Mood.parse(mood),
            notes=notes or "",
            completed_quest_ids=list(existing.completed_quest_ids) if existing else [],
            puff_interval=(
                puff_interval
                if isinstance(puff_interval, PuffInterval) or puff_interval is None
                else PuffInterval.parse(puff_interval)
            ),
        )
        self._by_day[day] = entry
        logger.debug("check-in %s for %s (abstinent=%s)", "updated" if existing else "recorded", day, entry.abstinent)
        return entry

    def attach_quest_completion(self, day: date, quest_id: str) -> bool:
        """Append *quest_id* to the day's completions. No-op without a check-in for *day*."""
        entry = self._by_day.get(day)
        if entry is None:
            logger.debug("no check-in for %s; quest %s not attached", day, quest_id)
            return False
        if quest_id in entry.completed_quest_ids:
            return False
        entry.completed_quest_ids.append(quest_id)
        return True

    # ── Serialization ────────────────────────────────────────

    @classmethod
    def from_list(cls, data: Any) -> CheckInLedger:
        if not data or not isinstance(data, list):
            return cls()
        return cls(CheckIn.from_dict(d) for d in data)

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.entries(newest_first=False)]
