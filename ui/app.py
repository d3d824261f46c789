from __future__ import annotations

import logging
import os
import secrets
import threading
from datetime import date
from pathlib import Path
from typing import Any, Callable

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from exhale import (
    FileStore,
    QuestCatalog,
    QuitProfile,
    RecoveryEngine,
    dispatch_update,
    load_engine,
    now_local,
    save_engine,
    workspace_root as _workspace_root,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Exhale API", version="0.1.0")

security = HTTPBasic(auto_error=False)

# The engine has no internal locking; every load-mutate-save cycle runs under this.
_engine_lock = threading.Lock()


# ── Auth ──────────────────────────────────────────────────────

def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("EXHALE_USERNAME", "")
    expected_password = os.environ.get("EXHALE_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Engine session helpers ────────────────────────────────────

def _open_engine(root: Path) -> tuple[RecoveryEngine, FileStore]:
    store = FileStore(root)
    engine = load_engine(store, provider=QuestCatalog(), clock=lambda: now_local(root))
    return engine, store


def _commit(operation: str, apply: Callable[[RecoveryEngine], Any]) -> dict[str, Any]:
    """Load the engine, apply one mutation, persist, then run hooks."""
    root = _workspace_root()
    with _engine_lock:
        engine, store = _open_engine(root)
        pending = engine.refresh()
        update = apply(engine)
        if update.reason == "no-profile":
            raise HTTPException(status_code=409, detail="No quit profile yet. PUT /api/profile first.")
        # Badges earned by time passing since the last save are reported with this change.
        update.new_badges = pending.new_badges + update.new_badges
        update.changed = update.changed or pending.changed
        if update.changed:
            save_engine(engine, store)
    hook_results = dispatch_update(operation, update, root)
    return {"ok": True, "update": update.to_dict(), "hooks": hook_results}


def _read_engine() -> RecoveryEngine:
    with _engine_lock:
        engine, _store = _open_engine(_workspace_root())
    engine.refresh()
    return engine


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/profile")
def api_get_profile(username: str = Depends(get_current_user)) -> dict[str, Any]:
    engine = _read_engine()
    return {"profile": engine.profile.to_dict() if engine.profile else None}


@app.put("/api/profile")
def api_put_profile(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Create or replace the quit profile."""
    try:
        profile = QuitProfile.from_dict(payload)
    except (ValueError, TypeError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _commit("profile", lambda engine: engine.set_profile(profile))


@app.post("/api/checkin")
def api_checkin(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Record (or overwrite) a day's check-in; defaults to today."""
    day = None
    if payload.get("day"):
        try:
            day = date.fromisoformat(str(payload["day"]))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid day: {payload['day']!r}")
    try:
        craving = int(payload.get("cravingLevel", 1))
    except (TypeError, ValueError, OverflowError):
        raise HTTPException(status_code=400, detail="cravingLevel must be an integer")
    abstinent = payload.get("abstinent", True)
    if not isinstance(abstinent, bool):
        raise HTTPException(status_code=400, detail="abstinent must be true or false")

    return _commit("checkin", lambda engine: engine.record_check_in(
        abstinent=abstinent,
        craving_level=craving,
        mood=str(payload.get("mood", "neutral")),
        notes=str(payload.get("notes", "") or ""),
        puff_interval=payload.get("puffInterval"),
        day=day,
    ))


@app.get("/api/checkins")
def api_checkins(n: int = 30, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Most recent N check-ins, newest first."""
    engine = _read_engine()
    recent = engine.ledger.recent(n)
    return {"count": len(recent), "checkins": [e.to_dict() for e in recent]}


@app.get("/api/quests")
def api_quests(username: str = Depends(get_current_user)) -> dict[str, Any]:
    engine = _read_engine()
    return {"quests": [q.to_dict() for q in engine.active_quests()]}


@app.post("/api/quests/replenish")
def api_replenish_quests(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return _commit("replenish", lambda engine: engine.replenish_quests())


@app.post("/api/quests/{quest_id}/complete")
def api_complete_quest(quest_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Complete a quest. Unknown or already-completed ids report changed=false."""
    return _commit("complete_quest", lambda engine: engine.complete_quest(quest_id))


@app.get("/api/quests/weekly")
def api_weekly_challenge(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"challenge": QuestCatalog().weekly_challenge().to_dict()}


@app.get("/api/progress")
def api_progress(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Streaks, recovery score, and statistics in one view."""
    engine = _read_engine()
    start = engine.effective_start_date()
    return {
        "effectiveStartDate": start.isoformat() if start else None,
        "daysSinceStart": engine.days_since_start(),
        "currentStreak": engine.current_streak(),
        "longestStreak": engine.longest_streak(),
        "recovery": engine.recovery_state().to_dict(),
        "healthDescription": engine.health_description(),
        "moneySaved": round(engine.money_saved(), 2),
        "statistics": engine.statistics().to_dict(),
    }


@app.get("/api/puffs")
def api_puffs(timeframe: str = "week", username: str = Depends(get_current_user)) -> dict[str, Any]:
    return _read_engine().puff_summary(timeframe).to_dict()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=os.environ.get("EXHALE_HOST", "127.0.0.1"), port=int(os.environ.get("EXHALE_PORT", "8000")))
