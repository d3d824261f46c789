"""Exhale core library: progress & recovery engine for quitting vaping.

Public API re-exports for convenient imports:
    from exhale import RecoveryEngine, QuitProfile, load_engine, ...
"""

# Workspace & paths
from exhale.workspace import (
    workspace_root,
    load_settings,
    get_user_timezone,
    now_local,
    today_local,
    settings_path,
    hooks_config_path,
    data_dir,
)

# Models
from exhale.models import (
    Mood,
    PuffInterval,
    QuestCategory,
    CheckIn,
    QuitProfile,
    LungAppearance,
    RecoveryState,
    Badge,
    Statistics,
    Quest,
    EngineUpdate,
)

# Ledger & streaks
from exhale.ledger import CheckInLedger
from exhale.streak import StreakResult, compute_streaks, days_since

# Recovery
from exhale.recovery import (
    compute_health_score,
    compute_recovery_state,
    health_from_streak,
    appearance_for,
    health_description_band,
    intensity_scale,
    recovery_horizon_days,
)

# Statistics & badges
from exhale.statistics import (
    aggregate_statistics,
    money_saved,
    cravings_reduced_pct,
    puff_summary,
    PuffSummary,
)
from exhale.badges import BADGE_RULES, evaluate_badges

# Quests
from exhale.quests import QuestCatalog, QuestProvider, QuestScheduler

# Engine & persistence
from exhale.engine import RecoveryEngine
from exhale.store import FileStore, KeyValueStore, MemoryStore, load_engine, save_engine

# Hooks
from exhale.hooks import run_hooks, dispatch_update
