"""Badge rules and idempotent unlocking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from exhale.models import Badge, Statistics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeRule:
    name: str
    description: str
    icon: str
    predicate: Callable[[Statistics, int], bool]


# Predicates receive (statistics, days since effective start).
BADGE_RULES: list[BadgeRule] = [
    BadgeRule("First Day", "Your first day vape-free!", "star.fill", lambda s, days: days >= 1),
    BadgeRule("One Week Strong", "One week without vaping!", "calendar", lambda s, days: days >= 7),
    BadgeRule("Month Champion", "30 days vape-free!", "crown.fill", lambda s, days: days >= 30),
    BadgeRule("Quest Master", "Completed 10 quests!", "target", lambda s, days: s.completed_quest_count >= 10),
]


def evaluate_badges(stats: Statistics, days_since_start: int, now: datetime) -> list[Badge]:
    """Append every newly earned badge to *stats* and return them.

    A badge is only added when none with the same name exists, so repeated
    evaluation never duplicates one. The unlock time is *now*.
    """
    unlocked = []
    for rule in BADGE_RULES:
        if stats.has_badge(rule.name):
            continue
        if not rule.predicate(stats, days_since_start):
            continue
        badge = Badge(name=rule.name, description=rule.description, icon=rule.icon, unlocked_at=now)
        stats.badges.append(badge)
        unlocked.append(badge)
        logger.info("badge unlocked: %s", rule.name)
    return unlocked
