"""Tests for exhale/engine.py — commit pipeline, relapse handling, quests and XP."""

from datetime import timedelta

import pytest

from exhale.engine import RecoveryEngine
from exhale.ledger import CheckInLedger
from exhale.models import Quest, QuitProfile, Statistics

from conftest import TODAY, days_ago


class OneQuestProvider:
    def __init__(self, quest_id: str = "breathe", xp: int = 20) -> None:
        self.quest_id = quest_id
        self.xp = xp

    def generate_daily_quests(self, existing_today_ids: set[str]) -> list[Quest]:
        if self.quest_id in existing_today_ids:
            return []
        return [Quest(id=self.quest_id, title="Breathe", xp_reward=self.xp)]


# ── No profile ───────────────────────────────────────────────


def test_commits_without_profile_are_noops(clock, catalog):
    engine = RecoveryEngine(provider=catalog, clock=clock)
    for update in (
        engine.record_check_in(True, craving_level=2),
        engine.complete_quest("stay-hydrated"),
        engine.replenish_quests(),
    ):
        assert update.changed is False
        assert update.reason == "no-profile"
    assert len(engine.ledger) == 0
    assert engine.active_quests() == []
    assert engine.statistics().total_xp == 0


def test_fallback_health_without_profile(clock):
    ledger = CheckInLedger()
    for n in range(3):
        ledger.record_check_in(days_ago(n), True)
    engine = RecoveryEngine(ledger=ledger, clock=clock)
    assert engine.effective_start_date() is None
    assert engine.days_since_start() == 0
    assert engine.health_score() == 30


# ── Check-ins ────────────────────────────────────────────────


def test_check_in_updates_streak_and_badges(engine):
    update = engine.record_check_in(True, craving_level=3, mood="good")
    assert update.changed is True
    assert update.check_in.day == TODAY
    assert engine.current_streak() == 1
    assert [b.name for b in update.new_badges] == ["First Day", "One Week Strong"]

    again = engine.record_check_in(True, craving_level=2)
    assert again.new_badges == []
    assert [b.name for b in engine.statistics().badges] == ["First Day", "One Week Strong"]


def test_check_in_same_day_overwrites(engine):
    engine.record_check_in(True, craving_level=5, notes="rough")
    engine.record_check_in(False, craving_level=2, notes="slipped")
    assert len(engine.ledger) == 1
    entry = engine.ledger.get(TODAY)
    assert entry.abstinent is False
    assert entry.craving_level == 2
    assert entry.notes == "slipped"


def test_craving_level_is_clamped(engine):
    engine.record_check_in(True, craving_level=9)
    assert engine.ledger.get(TODAY).craving_level == 5
    engine.record_check_in(True, craving_level=-1)
    assert engine.ledger.get(TODAY).craving_level == 1


def test_streak_and_money_after_ten_days(engine):
    for n in range(10):
        engine.record_check_in(True, day=days_ago(n))
    assert engine.current_streak() == 10
    assert engine.money_saved() == pytest.approx(30.0)
    stats = engine.statistics()
    assert stats.longest_streak >= stats.current_streak


def test_grace_window_moves_with_clock(engine, clock):
    engine.record_check_in(True)
    clock.advance(days=1)
    assert engine.current_streak() == 1
    clock.advance(days=1)
    assert engine.current_streak() == 0


def test_future_check_in_does_not_count(engine):
    engine.record_check_in(True)
    engine.record_check_in(False, day=TODAY + timedelta(days=2))
    assert engine.current_streak() == 1


# ── Relapse and recovery ─────────────────────────────────────


def test_relapse_restarts_recovery(engine, profile):
    assert engine.days_since_start() == 10
    before = engine.health_score()
    assert before > 0

    engine.record_check_in(False, craving_level=4, day=days_ago(1))
    assert engine.effective_start_date() == TODAY
    assert engine.days_since_start() == 0
    assert engine.health_score() == 0
    assert profile.last_relapse_date is None


def test_relapse_today_clamps_start_to_today(engine):
    engine.record_check_in(False)
    assert engine.effective_start_date() == TODAY
    assert engine.health_score() == 0


def test_relapse_before_quit_date_is_ignored(engine):
    engine.record_check_in(False, day=days_ago(30))
    assert engine.effective_start_date() == days_ago(10)


def test_profile_relapse_date_wins_when_later(clock, catalog):
    profile = QuitProfile(quit_start_date=days_ago(20), last_relapse_date=days_ago(3))
    engine = RecoveryEngine(profile=profile, provider=catalog, clock=clock)
    engine.record_check_in(False, day=days_ago(8))
    assert engine.effective_start_date() == days_ago(2)


def test_health_score_grows_with_time(engine, clock):
    first = engine.health_score()
    clock.advance(days=30)
    assert engine.health_score() > first


def test_health_description_follows_streak(engine):
    assert engine.health_description() == "Your body is ready to begin healing"
    for n in range(5):
        engine.record_check_in(True, day=days_ago(n))
    assert engine.health_description() == "Lung function starting to improve"
    assert RecoveryEngine.health_description_band(100) == "Lungs functioning at optimal health!"


def test_set_profile_replaces_and_recomputes(clock, catalog):
    engine = RecoveryEngine(provider=catalog, clock=clock)
    update = engine.set_profile(QuitProfile(quit_start_date=days_ago(31), weekly_cost=7))
    assert update.changed is True
    assert [b.name for b in update.new_badges] == ["First Day", "One Week Strong", "Month Champion"]
    assert engine.days_since_start() == 31


# ── Quests ───────────────────────────────────────────────────


def test_replenish_fills_pool(engine):
    update = engine.replenish_quests()
    assert update.changed is True
    assert len(update.quests_added) == 3
    assert len(engine.active_quests()) == 3
    assert engine.replenish_quests().changed is False


def test_complete_quest_awards_xp_and_attaches(engine):
    engine.record_check_in(True)
    engine.replenish_quests()
    quest = engine.active_quests()[0]

    update = engine.complete_quest(quest.id)
    assert update.changed is True
    assert update.xp_awarded == quest.xp_reward
    assert update.completed_quest.is_completed is True
    stats = engine.statistics()
    assert stats.total_xp == quest.xp_reward
    assert stats.completed_quest_count == 1
    assert engine.ledger.get(TODAY).completed_quest_ids == [quest.id]


def test_complete_quest_without_check_in_does_not_create_entry(engine):
    engine.replenish_quests()
    quest = engine.active_quests()[0]
    assert engine.complete_quest(quest.id).changed is True
    assert len(engine.ledger) == 0


def test_complete_quest_twice(engine):
    engine.replenish_quests()
    qid = engine.active_quests()[0].id
    engine.complete_quest(qid)
    xp = engine.statistics().total_xp

    again = engine.complete_quest(qid)
    assert again.changed is False
    assert again.reason == "already-completed"
    assert engine.statistics().total_xp == xp


def test_complete_unknown_quest(engine):
    update = engine.complete_quest("nope")
    assert update.changed is False
    assert update.reason == "quest-not-found"


def test_check_in_keeps_completed_quests(engine):
    engine.record_check_in(True)
    engine.replenish_quests()
    qid = engine.active_quests()[0].id
    engine.complete_quest(qid)
    engine.record_check_in(False, craving_level=3)
    assert engine.ledger.get(TODAY).completed_quest_ids == [qid]


def test_level_and_quest_master(clock, profile):
    engine = RecoveryEngine(
        profile=profile,
        statistics=Statistics(total_xp=90, completed_quest_count=9),
        provider=OneQuestProvider(xp=20),
        clock=clock,
    )
    engine.replenish_quests()
    update = engine.complete_quest("breathe")
    stats = engine.statistics()
    assert stats.total_xp == 110
    assert stats.level == 2
    assert stats.completed_quest_count == 10
    assert "Quest Master" in [b.name for b in update.new_badges]


def test_expired_quests_purged_next_day(engine, clock):
    engine.replenish_quests()
    old_ids = {q.id for q in engine.active_quests()}
    clock.advance(days=1)
    update = engine.replenish_quests()
    assert set(update.quests_purged) == old_ids
    assert all(q.date_assigned == TODAY + timedelta(days=1) for q in engine.active_quests())


# ── Snapshot ─────────────────────────────────────────────────


def test_snapshot_shape(engine):
    engine.record_check_in(True)
    engine.replenish_quests()
    snap = engine.to_snapshot()
    assert set(snap) == {"ledger", "profile", "statistics", "quests"}
    assert snap["profile"]["quitStartDate"] == days_ago(10).isoformat()
    assert len(snap["quests"]["pool"]) == 3
    assert snap["quests"]["totalXP"] == 0
    assert snap["statistics"]["currentStreak"] == 1


def test_queries_do_not_mutate(engine):
    engine.record_check_in(True)
    snap = engine.to_snapshot()
    engine.statistics()
    engine.recovery_state()
    engine.puff_summary("all")
    assert engine.to_snapshot() == snap


def test_expired_quest_is_inactive_and_earns_nothing(engine, clock):
    engine.replenish_quests()
    qid = engine.active_quests()[0].id
    clock.advance(days=2)

    assert engine.active_quests() == []
    update = engine.complete_quest(qid)
    assert update.changed is False
    assert update.reason == "quest-expired"
    assert engine.statistics().total_xp == 0
    assert engine.statistics().completed_quest_count == 0


def test_xp_awarded_once_per_quest_across_days(engine, clock):
    awarded: list[str] = []
    for _ in range(12):
        engine.record_check_in(True)
        engine.replenish_quests()
        for quest in engine.active_quests():
            if engine.complete_quest(quest.id).changed:
                awarded.append(quest.id)
        clock.advance(days=1)
    assert len(awarded) == len(set(awarded)) == 36
    attached = [qid for e in engine.ledger.entries() for qid in e.completed_quest_ids]
    assert len(attached) == len(set(attached)) == 36


def test_future_check_in_does_not_move_cravings(engine):
    engine.record_check_in(True, craving_level=1)
    before = engine.statistics().cravings_reduced_pct
    engine.record_check_in(True, craving_level=5, day=TODAY + timedelta(days=3))
    assert engine.statistics().cravings_reduced_pct == before == pytest.approx(80.0)
