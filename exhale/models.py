"""Typed dataclasses for the Exhale data model.

All models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ── Enums ─────────────────────────────────────────────────────


class Mood(str, Enum):
    TERRIBLE = "terrible"
    BAD = "bad"
    NEUTRAL = "neutral"
    GOOD = "good"
    EXCELLENT = "excellent"

    @property
    def emoji(self) -> str:
        return {
            "terrible": "\U0001f630",
            "bad": "\U0001f614",
            "neutral": "\U0001f610",
            "good": "\U0001f60a",
            "excellent": "\U0001f604",
        }[self.value]

    @classmethod
    def parse(cls, value: Any) -> Mood:
        """Lenient parse; unknown values become NEUTRAL."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NEUTRAL


class PuffInterval(str, Enum):
    """Self-reported puff count band for a day."""

    NONE = "none"
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"
    VERY_HEAVY = "very_heavy"

    @property
    def numeric_value(self) -> int:
        return list(PuffInterval).index(self)

    @property
    def display_name(self) -> str:
        return {
            "none": "0 puffs",
            "light": "1-10 puffs",
            "moderate": "11-50 puffs",
            "heavy": "51-100 puffs",
            "very_heavy": "100+ puffs",
        }[self.value]

    @classmethod
    def parse(cls, value: Any) -> PuffInterval | None:
        if value is None or value == "":
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class QuestCategory(str, Enum):
    HEALTH = "health"
    MINDFULNESS = "mindfulness"
    SOCIAL = "social"
    EDUCATION = "education"

    @property
    def icon(self) -> str:
        return {
            "health": "heart.fill",
            "mindfulness": "leaf.fill",
            "social": "person.3.fill",
            "education": "book.fill",
        }[self.value]

    @classmethod
    def parse(cls, value: Any) -> QuestCategory:
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.HEALTH


# ── Check-in ──────────────────────────────────────────────────


CRAVING_MIN = 1
CRAVING_MAX = 5


@dataclass
class CheckIn:
    day: date
    abstinent: bool = True
    craving_level: int = 1
    mood: Mood = Mood.NEUTRAL
    notes: str = ""
    completed_quest_ids: list[str] = field(default_factory=list)
    puff_interval: PuffInterval | None = None

    def __post_init__(self) -> None:
        self.craving_level = int(_clamp(int(self.craving_level), CRAVING_MIN, CRAVING_MAX))

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CheckIn:
        day = _parse_date(d.get("day"))
        if day is None:
            raise ValueError("check-in without a day")
        quest_ids: list[str] = []
        for qid in d.get("completedQuestIds") or []:
            if str(qid) not in quest_ids:
                quest_ids.append(str(qid))
        return cls(
            day=day,
            abstinent=bool(d.get("abstinent", True)),
            craving_level=int(d.get("cravingLevel", 1) or 1),
            mood=Mood.parse(d.get("mood", "neutral")),
            notes=str(d.get("notes", "") or ""),
            completed_quest_ids=quest_ids,
            puff_interval=PuffInterval.parse(d.get("puffInterval")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "day": self.day.isoformat(),
            "abstinent": self.abstinent,
            "cravingLevel": self.craving_level,
            "mood": self.mood.value,
            "notes": self.notes,
            "completedQuestIds": list(self.completed_quest_ids),
        }
        if self.puff_interval is not None:
            d["puffInterval"] = self.puff_interval.value
        return d


# ── Profile ───────────────────────────────────────────────────


@dataclass
class QuitProfile:
    quit_start_date: date
    last_relapse_date: date | None = None
    weekly_cost: float = 0.0
    years_vaping: float = 0.0
    frequency_label: str | None = None

    def __post_init__(self) -> None:
        self.weekly_cost = max(0.0, float(self.weekly_cost))
        self.years_vaping = max(0.0, float(self.years_vaping))

    def effective_start_date(self, today: date | None = None) -> date:
        """Day after the last relapse if any, else the quit date; never after *today*."""
        if self.last_relapse_date is not None:
            start = self.last_relapse_date + timedelta(days=1)
        else:
            start = self.quit_start_date
        if today is not None and start > today:
            return today
        return start

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> QuitProfile:
        start = _parse_date(d.get("quitStartDate"))
        if start is None:
            raise ValueError("profile without a quit start date")
        label = d.get("frequencyLabel")
        return cls(
            quit_start_date=start,
            last_relapse_date=_parse_date(d.get("lastRelapseDate")),
            weekly_cost=float(d.get("weeklyCost", 0.0) or 0.0),
            years_vaping=float(d.get("yearsVaping", 0.0) or 0.0),
            frequency_label=str(label) if label else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "quitStartDate": self.quit_start_date.isoformat(),
            "lastRelapseDate": self.last_relapse_date.isoformat() if self.last_relapse_date else None,
            "weeklyCost": self.weekly_cost,
            "yearsVaping": self.years_vaping,
            "frequencyLabel": self.frequency_label,
        }


# ── Recovery ──────────────────────────────────────────────────


@dataclass
class LungAppearance:
    tier: str = "early"  # early, improving, healthy, optimal
    color: str = "gray"
    opacity: float = 0.6
    glow_intensity: float = 0.0
    animation_speed: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": self.tier,
            "color": self.color,
            "opacity": self.opacity,
            "glowIntensity": self.glow_intensity,
            "animationSpeed": round(self.animation_speed, 3),
        }


@dataclass
class RecoveryState:
    health_score: int = 0
    appearance: LungAppearance = field(default_factory=LungAppearance)

    def to_dict(self) -> dict[str, Any]:
        return {"healthScore": self.health_score, "appearance": self.appearance.to_dict()}


# ── Badges & statistics ───────────────────────────────────────


@dataclass(frozen=True)
class Badge:
    name: str
    description: str = ""
    icon: str = ""
    unlocked_at: datetime | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Badge:
        name = str(d.get("name", "") or "")
        if not name:
            raise ValueError("badge without a name")
        return cls(
            name=name,
            description=str(d.get("description", "") or ""),
            icon=str(d.get("icon", "") or ""),
            unlocked_at=_parse_datetime(d.get("unlockedAt")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "unlockedAt": self.unlocked_at.isoformat(timespec="seconds") if self.unlocked_at else None,
        }


XP_PER_LEVEL = 100


@dataclass
class Statistics:
    total_xp: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    money_saved: float = 0.0
    cravings_reduced_pct: float = 0.0
    completed_quest_count: int = 0
    badges: list[Badge] = field(default_factory=list)

    @property
    def level(self) -> int:
        return self.total_xp // XP_PER_LEVEL + 1

    def has_badge(self, name: str) -> bool:
        return any(b.name == name for b in self.badges)

    def add_xp(self, amount: int) -> None:
        self.total_xp = max(0, self.total_xp + int(amount))

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Statistics:
        if not d or not isinstance(d, dict):
            return cls()
        badges: list[Badge] = []
        for bd in d.get("badges") or []:
            badge = Badge.from_dict(bd)
            if not any(b.name == badge.name for b in badges):
                badges.append(badge)
        current = max(0, int(d.get("currentStreak", 0) or 0))
        return cls(
            total_xp=max(0, int(d.get("totalXP", 0) or 0)),
            current_streak=current,
            longest_streak=max(current, int(d.get("longestStreak", 0) or 0)),
            money_saved=max(0.0, float(d.get("moneySaved", 0.0) or 0.0)),
            cravings_reduced_pct=_clamp(float(d.get("cravingsReducedPct", 0.0) or 0.0), 0.0, 100.0),
            completed_quest_count=max(0, int(d.get("completedQuestCount", 0) or 0)),
            badges=badges,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalXP": self.total_xp,
            "level": self.level,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "moneySaved": round(self.money_saved, 2),
            "cravingsReducedPct": round(self.cravings_reduced_pct, 1),
            "completedQuestCount": self.completed_quest_count,
            "badges": [b.to_dict() for b in self.badges],
        }


# ── Quests ────────────────────────────────────────────────────


@dataclass
class Quest:
    id: str
    title: str = ""
    description: str = ""
    xp_reward: int = 10
    category: QuestCategory = QuestCategory.HEALTH
    is_completed: bool = False
    date_assigned: date | None = None
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        self.xp_reward = max(1, int(self.xp_reward))

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Quest:
        qid = str(d.get("id", "") or "")
        if not qid:
            raise ValueError("quest without an id")
        return cls(
            id=qid,
            title=str(d.get("title", "") or ""),
            description=str(d.get("description", "") or ""),
            xp_reward=int(d.get("xpReward", 10) or 10),
            category=QuestCategory.parse(d.get("category", "health")),
            is_completed=bool(d.get("isCompleted", False)),
            date_assigned=_parse_date(d.get("dateAssigned")),
            expires_at=_parse_datetime(d.get("expiresAt")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "xpReward": self.xp_reward,
            "category": self.category.value,
            "isCompleted": self.is_completed,
            "dateAssigned": self.date_assigned.isoformat() if self.date_assigned else None,
            "expiresAt": self.expires_at.isoformat(timespec="seconds") if self.expires_at else None,
        }


# ── Engine updates ────────────────────────────────────────────


@dataclass
class EngineUpdate:
    """What a mutating engine call changed. Returned instead of publishing."""

    changed: bool = False
    reason: str = ""
    check_in: CheckIn | None = None
    new_badges: list[Badge] = field(default_factory=list)
    xp_awarded: int = 0
    completed_quest: Quest | None = None
    quests_added: list[Quest] = field(default_factory=list)
    quests_purged: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"changed": self.changed}
        if self.reason:
            d["reason"] = self.reason
        if self.check_in is not None:
            d["checkIn"] = self.check_in.to_dict()
        if self.new_badges:
            d["newBadges"] = [b.to_dict() for b in self.new_badges]
        if self.xp_awarded:
            d["xpAwarded"] = self.xp_awarded
        if self.completed_quest is not None:
            d["completedQuest"] = self.completed_quest.to_dict()
        if self.quests_added:
            d["questsAdded"] = [q.to_dict() for q in self.quests_added]
        if self.quests_purged:
            d["questsPurged"] = list(self.quests_purged)
        return d
