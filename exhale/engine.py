"""The progress & recovery engine for one user session.

Pipeline on every mutation:
1. Guard: no profile -> no-op
2. Apply the mutation (ledger upsert, quest completion, profile update)
3. Rebuild streaks from the ledger
4. Rebuild statistics (keeping XP and quest count)
5. Evaluate badges
6. Return an EngineUpdate describing what changed

The engine holds no global state and does no I/O; the host persists the
snapshot and reacts to the returned update. Calls must be serialized by the
host.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Callable

from exhale.badges import evaluate_badges
from exhale.ledger import CheckInLedger
from exhale.models import (
    Badge,
    CheckIn,
    EngineUpdate,
    Mood,
    PuffInterval,
    Quest,
    QuitProfile,
    RecoveryState,
    Statistics,
)
from exhale.quests import QuestCatalog, QuestProvider, QuestScheduler
from exhale.recovery import compute_recovery_state, health_description_band
from exhale.statistics import CRAVING_WINDOW, PuffSummary, aggregate_statistics, puff_summary
from exhale.streak import StreakResult, compute_streaks, days_since

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecoveryEngine:
    def __init__(
        self,
        profile: QuitProfile | None = None,
        ledger: CheckInLedger | None = None,
        statistics: Statistics | None = None,
        quests: list[Quest] | None = None,
        provider: QuestProvider | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.profile = profile
        self.ledger = ledger if ledger is not None else CheckInLedger()
        self._stats = statistics if statistics is not None else Statistics()
        self.scheduler = QuestScheduler(provider or QuestCatalog(), quests)
        self._clock = clock or _utc_now

    # ── Time ─────────────────────────────────────────────────

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self.now().date()

    # ── Derived state (pure queries) ─────────────────────────

    def effective_start_date(self) -> date | None:
        """Day recovery accounting restarts from, or None without a profile.

        Relapses recorded in the ledger on or after the quit date count like
        the profile's own last relapse date.
        """
        if self.profile is None:
            return None
        today = self.today()
        relapse = self.profile.last_relapse_date
        ledger_relapse = self.ledger.latest_relapse()
        if (
            ledger_relapse is not None
            and self.profile.quit_start_date <= ledger_relapse <= today
            and (relapse is None or ledger_relapse > relapse)
        ):
            relapse = ledger_relapse
        return replace(self.profile, last_relapse_date=relapse).effective_start_date(today)

    def days_since_start(self) -> int:
        start = self.effective_start_date()
        return days_since(start, self.today()) if start is not None else 0

    def streaks(self) -> StreakResult:
        return compute_streaks(self.ledger.entries(), self.today())

    def current_streak(self) -> int:
        return self.streaks().current

    def longest_streak(self) -> int:
        return self.streaks().longest

    def recovery_state(self) -> RecoveryState:
        return compute_recovery_state(
            self.profile,
            self.effective_start_date(),
            self.now(),
            streak=self.current_streak(),
        )

    def health_score(self) -> int:
        return self.recovery_state().health_score

    def statistics(self) -> Statistics:
        return aggregate_statistics(
            self._stats,
            self.streaks(),
            self.ledger.recent(CRAVING_WINDOW, through=self.today()),
            self.profile,
        )

    def money_saved(self) -> float:
        return self.statistics().money_saved

    @staticmethod
    def health_description_band(days: int) -> str:
        return health_description_band(days)

    def health_description(self) -> str:
        return health_description_band(self.current_streak())

    def active_quests(self) -> list[Quest]:
        """The quest pool as of now; quests past their expiry are left out."""
        return self.scheduler.active(self.now())

    def puff_summary(self, timeframe: str = "week") -> PuffSummary:
        return puff_summary(self.ledger.entries(), self.today(), timeframe)

    # ── Commits ──────────────────────────────────────────────

    def _recompute(self) -> list[Badge]:
        self._stats = self.statistics()
        return evaluate_badges(self._stats, self.days_since_start(), self.now())

    def refresh(self) -> EngineUpdate:
        """Rebuild derived statistics and evaluate badges (e.g. after loading)."""
        badges = self._recompute()
        return EngineUpdate(changed=bool(badges), new_badges=badges)

    def set_profile(self, profile: QuitProfile) -> EngineUpdate:
        self.profile = profile
        badges = self._recompute()
        return EngineUpdate(changed=True, new_badges=badges)

    def record_check_in(
        self,
        abstinent: bool,
        craving_level: int = 1,
        mood: Mood | str = Mood.NEUTRAL,
        notes: str = "",
        puff_interval: PuffInterval | str | None = None,
        day: date | None = None,
    ) -> EngineUpdate:
        if self.profile is None:
            logger.debug("check-in ignored: no active profile")
            return EngineUpdate(reason="no-profile")
        entry: CheckIn = self.ledger.record_check_in(
            day or self.today(), abstinent, craving_level, mood, notes, puff_interval
        )
        badges = self._recompute()
        return EngineUpdate(changed=True, check_in=entry, new_badges=badges)

    def complete_quest(self, quest_id: str) -> EngineUpdate:
        if self.profile is None:
            logger.debug("quest completion ignored: no active profile")
            return EngineUpdate(reason="no-profile")
        now = self.now()
        existing = self.scheduler.find(quest_id)
        quest = self.scheduler.complete(quest_id, now)
        if quest is None:
            if existing is None:
                reason = "quest-not-found"
            elif existing.is_completed:
                reason = "already-completed"
            else:
                reason = "quest-expired"
            logger.debug("quest %s not completed: %s", quest_id, reason)
            return EngineUpdate(reason=reason)

        self._stats.add_xp(quest.xp_reward)
        self._stats.completed_quest_count += 1
        self.ledger.attach_quest_completion(self.today(), quest.id)
        badges = self._recompute()
        return EngineUpdate(
            changed=True,
            new_badges=badges,
            xp_awarded=quest.xp_reward,
            completed_quest=quest,
        )

    def replenish_quests(self) -> EngineUpdate:
        if self.profile is None:
            logger.debug("quest replenish ignored: no active profile")
            return EngineUpdate(reason="no-profile")
        added, purged = self.scheduler.replenish(self.now())
        return EngineUpdate(changed=bool(added or purged), quests_added=added, quests_purged=purged)

    # ── Snapshot ─────────────────────────────────────────────

    def to_snapshot(self) -> dict[str, Any]:
        """Per-category payloads. XP counters travel with the quest pool."""
        stats = self.statistics()
        return {
            "ledger": self.ledger.to_list(),
            "profile": self.profile.to_dict() if self.profile else None,
            "statistics": stats.to_dict(),
            "quests": {
                "pool": self.scheduler.to_list(),
                "totalXP": stats.total_xp,
                "completedQuestCount": stats.completed_quest_count,
            },
        }
