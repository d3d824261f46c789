"""Quest content and the rolling daily quest pool for Exhale."""

from __future__ import annotations

import logging
import random
import re
import uuid
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Any, Protocol

from exhale.models import Quest, QuestCategory

logger = logging.getLogger(__name__)


DAILY_QUEST_TARGET = 3


class QuestProvider(Protocol):
    def generate_daily_quests(self, existing_today_ids: set[str]) -> list[Quest]:
        ...


# ── Built-in content ──────────────────────────────────────────


PREDEFINED_QUESTS: list[tuple[str, str, int, QuestCategory]] = [
    ("Stay Hydrated", "Drink at least 8 glasses of water today", 15, QuestCategory.HEALTH),
    ("Take Deep Breaths", "Practice 5 minutes of deep breathing", 10, QuestCategory.MINDFULNESS),
    ("Walk It Off", "Take a 10-minute walk when you feel cravings", 20, QuestCategory.HEALTH),
    ("Learn Something New", "Read an article about quitting vaping", 15, QuestCategory.EDUCATION),
    ("Connect with Others", "Talk to a friend or family member about your progress", 25, QuestCategory.SOCIAL),
    ("Mindful Moment", "Spend 5 minutes in meditation or mindfulness", 15, QuestCategory.MINDFULNESS),
    ("Healthy Snack", "Choose a healthy snack over junk food", 10, QuestCategory.HEALTH),
    ("Exercise Boost", "Do 15 minutes of any physical activity", 30, QuestCategory.HEALTH),
    ("Gratitude Practice", "Write down 3 things you're grateful for", 10, QuestCategory.MINDFULNESS),
    ("Clean Space", "Organize or clean your living/work space", 15, QuestCategory.HEALTH),
    ("Digital Detox", "Stay off social media for 2 hours", 20, QuestCategory.MINDFULNESS),
    ("Support Someone", "Help someone else who's trying to quit", 35, QuestCategory.SOCIAL),
]

WEEKLY_CHALLENGES: list[tuple[str, str, int, QuestCategory]] = [
    ("7-Day Hydration Hero", "Drink 8 glasses of water every day this week", 100, QuestCategory.HEALTH),
    ("Mindfulness Master", "Practice meditation for 10 minutes daily this week", 150, QuestCategory.MINDFULNESS),
    ("Social Support Champion", "Connect with friends/family about your progress 3 times this week", 120, QuestCategory.SOCIAL),
    ("Knowledge Seeker", "Read about health benefits of quitting vaping every day this week", 80, QuestCategory.EDUCATION),
]


def quest_slug(title: str) -> str:
    """'Take Deep Breaths' -> 'take-deep-breaths'."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def quest_title_slug(quest_id: str) -> str:
    """Title slug a catalog quest id was minted from ('slug:token')."""
    return quest_id.split(":", 1)[0]


class QuestCatalog:
    """Quest provider backed by the fixed catalog.

    Every generated quest gets a fresh id of the form ``<title slug>:<uuid hex>``,
    so a title repeated on a later day is a new quest. The slug prefix tells
    which titles are already assigned today.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def _mint(self, title: str, description: str, xp_reward: int, category: QuestCategory) -> Quest:
        token = uuid.UUID(int=self._rng.getrandbits(128), version=4).hex
        return Quest(
            id=f"{quest_slug(title)}:{token}",
            title=title,
            description=description,
            xp_reward=xp_reward,
            category=category,
        )

    def generate_daily_quests(self, existing_today_ids: set[str]) -> list[Quest]:
        needed = DAILY_QUEST_TARGET - len(existing_today_ids)
        if needed <= 0:
            return []
        taken = {quest_title_slug(qid) for qid in existing_today_ids}
        available = [entry for entry in PREDEFINED_QUESTS if quest_slug(entry[0]) not in taken]
        self._rng.shuffle(available)
        return [self._mint(*entry) for entry in available[:needed]]

    def weekly_challenge(self) -> Quest:
        return self._mint(*self._rng.choice(WEEKLY_CHALLENGES))


# ── Pool ──────────────────────────────────────────────────────


def start_of_next_day(day: date, tzinfo: Any = None) -> datetime:
    return datetime.combine(day + timedelta(days=1), time.min, tzinfo=tzinfo)


class QuestScheduler:
    """Active quest pool: assigned -> completed, or assigned -> expired (purged)."""

    def __init__(self, provider: QuestProvider, quests: list[Quest] | None = None) -> None:
        self.provider = provider
        self._quests: list[Quest] = []
        for quest in quests or []:
            if self.find(quest.id) is None:
                self._quests.append(quest)

    @property
    def quests(self) -> list[Quest]:
        return list(self._quests)

    def find(self, quest_id: str) -> Quest | None:
        for q in self._quests:
            if q.id == quest_id:
                return q
        return None

    def purge_expired(self, now: datetime) -> list[str]:
        purged = [q.id for q in self._quests if q.is_expired(now)]
        if purged:
            self._quests = [q for q in self._quests if not q.is_expired(now)]
            logger.debug("purged %d expired quests", len(purged))
        return purged

    def active(self, now: datetime) -> list[Quest]:
        """Quests not yet past their expiry, whether or not purged."""
        return [q for q in self._quests if not q.is_expired(now)]

    def today_quests(self, today: date) -> list[Quest]:
        return [q for q in self._quests if q.date_assigned == today]

    def replenish(self, now: datetime) -> tuple[list[Quest], list[str]]:
        """Purge expired quests and top today's set up to three. Returns (added, purged ids)."""
        purged = self.purge_expired(now)
        today = now.date()
        existing = {q.id for q in self.today_quests(today)}
        if len(existing) >= DAILY_QUEST_TARGET:
            return [], purged

        added = []
        expires_at = start_of_next_day(today, now.tzinfo)
        for quest in self.provider.generate_daily_quests(set(existing)):
            if self.find(quest.id) is not None:
                logger.debug("provider returned duplicate quest id %s; skipped", quest.id)
                continue
            stamped = replace(quest, is_completed=False, date_assigned=today, expires_at=expires_at)
            self._quests.append(stamped)
            added.append(stamped)
        if added:
            logger.info("assigned %d new quests for %s", len(added), today)
        return added, purged

    def complete(self, quest_id: str, now: datetime | None = None) -> Quest | None:
        """Mark a quest completed.

        Returns None when the quest is unknown, already completed, or expired
        at *now*.
        """
        quest = self.find(quest_id)
        if quest is None or quest.is_completed:
            return None
        if now is not None and quest.is_expired(now):
            return None
        quest.is_completed = True
        return quest

    # ── Serialization ────────────────────────────────────────

    def to_list(self) -> list[dict[str, Any]]:
        return [q.to_dict() for q in self._quests]

    @staticmethod
    def quests_from_list(data: Any) -> list[Quest]:
        if not data or not isinstance(data, list):
            return []
        return [Quest.from_dict(d) for d in data]
