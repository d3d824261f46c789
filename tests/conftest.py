"""Shared test fixtures for Exhale tests."""

from __future__ import annotations

import json
import os
import random
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest
import yaml

from exhale.engine import RecoveryEngine
from exhale.models import QuitProfile
from exhale.quests import QuestCatalog


TODAY = date(2026, 2, 11)
NOW = datetime(2026, 2, 11, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for engine tests."""

    def __init__(self, now: datetime = NOW) -> None:
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.current = self.current + timedelta(days=days, hours=hours)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> QuestCatalog:
    return QuestCatalog(random.Random(7))


@pytest.fixture
def profile() -> QuitProfile:
    return QuitProfile(
        quit_start_date=days_ago(10),
        weekly_cost=21.0,
        years_vaping=4.0,
        frequency_label="Regularly",
    )


@pytest.fixture
def engine(profile: QuitProfile, catalog: QuestCatalog, clock: FakeClock) -> RecoveryEngine:
    return RecoveryEngine(profile=profile, provider=catalog, clock=clock)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with settings and a saved snapshot."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    (root / "settings.yaml").write_text(
        yaml.dump({"timezone": "UTC"}, default_flow_style=False), encoding="utf-8"
    )

    profile = {
        "quitStartDate": "2026-02-01",
        "lastRelapseDate": None,
        "weeklyCost": 14.0,
        "yearsVaping": 2.0,
        "frequencyLabel": "A few times a day",
    }
    (root / "data" / "profile.json").write_text(json.dumps(profile, indent=2), encoding="utf-8")

    ledger = [
        {"day": "2026-02-09", "abstinent": True, "cravingLevel": 4, "mood": "bad", "notes": "", "completedQuestIds": []},
        {"day": "2026-02-10", "abstinent": True, "cravingLevel": 2, "mood": "good", "notes": "", "completedQuestIds": []},
    ]
    (root / "data" / "ledger.json").write_text(json.dumps(ledger, indent=2), encoding="utf-8")

    os.environ["EXHALE_ROOT"] = str(root)
    yield root
    if "EXHALE_ROOT" in os.environ:
        del os.environ["EXHALE_ROOT"]
