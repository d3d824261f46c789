"""Key-value persistence adapters and engine snapshots for Exhale.

Each category (ledger, profile, statistics, quests) is stored as its own
JSON blob. A missing or corrupt blob falls back to that category's default
without affecting the others.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Protocol

from exhale.engine import RecoveryEngine
from exhale.fileio import read_bytes, write_bytes_atomic
from exhale.ledger import CheckInLedger
from exhale.models import Quest, QuitProfile, Statistics
from exhale.quests import QuestProvider, QuestScheduler
from exhale.workspace import data_dir

logger = logging.getLogger(__name__)


LEDGER_KEY = "ledger"
PROFILE_KEY = "profile"
STATISTICS_KEY = "statistics"
QUESTS_KEY = "quests"
SNAPSHOT_KEYS = (LEDGER_KEY, PROFILE_KEY, STATISTICS_KEY, QUESTS_KEY)

# Decoding failures that mean "corrupt blob", not a programming error.
_SNAPSHOT_ERRORS = (ValueError, TypeError, KeyError, AttributeError, OverflowError)


class KeyValueStore(Protocol):
    def load(self, key: str) -> bytes | None:
        ...

    def save(self, key: str, data: bytes) -> None:
        ...


class MemoryStore:
    """Dict-backed store."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.blobs: dict[str, bytes] = dict(initial or {})

    def load(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    def save(self, key: str, data: bytes) -> None:
        self.blobs[key] = data


class FileStore:
    """One atomically written ``data/<key>.json`` file per key."""

    def __init__(self, root: Path | None = None) -> None:
        self.directory = data_dir(root)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> bytes | None:
        return read_bytes(self.path_for(key))

    def save(self, key: str, data: bytes) -> None:
        write_bytes_atomic(self.path_for(key), data, suffix=".json")


# ── Snapshots ─────────────────────────────────────────────────


def _encode(payload: Any) -> bytes:
    return (json.dumps(payload, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def _decode(store: KeyValueStore, key: str) -> Any:
    raw = store.load(key)
    if raw is None or not raw.strip():
        return None
    return json.loads(raw.decode("utf-8"))


def _load_category(store: KeyValueStore, key: str, parse: Callable[[Any], Any], default: Any) -> Any:
    try:
        data = _decode(store, key)
        if data is None:
            return default
        return parse(data)
    except _SNAPSHOT_ERRORS as e:
        logger.warning("discarding malformed %s snapshot: %s", key, e)
        return default


def _parse_profile(data: Any) -> QuitProfile:
    return QuitProfile.from_dict(data)


def _parse_statistics(data: Any) -> Statistics:
    if not isinstance(data, dict):
        raise ValueError("statistics snapshot is not an object")
    return Statistics.from_dict(data)


def _parse_quests(data: Any) -> tuple[list[Quest], int, int]:
    if not isinstance(data, dict):
        raise ValueError("quests snapshot is not an object")
    pool = QuestScheduler.quests_from_list(data.get("pool"))
    return pool, max(0, int(data.get("totalXP", 0))), max(0, int(data.get("completedQuestCount", 0)))


def load_engine(
    store: KeyValueStore,
    provider: QuestProvider | None = None,
    clock: Callable[[], datetime] | None = None,
) -> RecoveryEngine:
    """Restore an engine, recovering each category independently.

    XP counters come from the quest blob, which is written together with the
    pool; the statistics blob is only used when the quest blob is unusable.
    Badges earned since the last save are not evaluated here; call
    ``engine.refresh()`` to get them as an update.
    """
    ledger = _load_category(store, LEDGER_KEY, CheckInLedger.from_list, CheckInLedger())
    profile = _load_category(store, PROFILE_KEY, _parse_profile, None)
    stats = _load_category(store, STATISTICS_KEY, _parse_statistics, Statistics())
    quests = _load_category(store, QUESTS_KEY, _parse_quests, None)

    pool: list[Quest] = []
    if quests is not None:
        pool, stats.total_xp, stats.completed_quest_count = quests

    return RecoveryEngine(
        profile=profile,
        ledger=ledger,
        statistics=stats,
        quests=pool,
        provider=provider,
        clock=clock,
    )


def save_engine(engine: RecoveryEngine, store: KeyValueStore) -> None:
    snapshot = engine.to_snapshot()
    for key in SNAPSHOT_KEYS:
        store.save(key, _encode(snapshot[key]))
