"""Recovery score model for Exhale.

Maps time since the effective start date, scaled by how heavy prior usage
was, onto a 0-100 health score with a concave (sqrt) easing curve.
"""

from __future__ import annotations

import math
from datetime import date, datetime

from exhale.models import LungAppearance, QuitProfile, RecoveryState
from exhale.streak import days_since


BASE_RECOVERY_DAYS = 180.0
MIN_RECOVERY_DAYS = 21.0
MIN_INTENSITY = 0.5

YEARS_CAP = 8.0
YEARS_WEIGHT = 0.3
# Tuned against a daily-cost input although the profile stores weekly cost.
# Kept as-is pending a product decision.
COST_CAP = 15.0
COST_WEIGHT = 0.2

# Checked in order; first substring match wins.
FREQUENCY_SCALES = [
    ("occasionally", 0.7),
    ("few", 0.9),
    ("regularly", 1.2),
    ("almost", 1.5),
    ("constantly", 1.5),
]

HEALTH_BANDS = [
    (0, "Your body is ready to begin healing"),
    (3, "Your body is beginning to heal"),
    (7, "Lung function starting to improve"),
    (30, "Significant lung healing in progress"),
    (90, "Major lung function improvements"),
]
HEALTH_BAND_FINAL = "Lungs functioning at optimal health!"


def frequency_scale(label: str | None) -> float:
    normalized = (label or "").lower()
    for needle, scale in FREQUENCY_SCALES:
        if needle in normalized:
            return scale
    return 1.0


def years_scale(years_vaping: float) -> float:
    return 1.0 + min(max(years_vaping, 0.0) / YEARS_CAP, 1.0) * YEARS_WEIGHT


def cost_scale(weekly_cost: float) -> float:
    return 1.0 + min(max(weekly_cost, 0.0) / COST_CAP, 1.0) * COST_WEIGHT


def intensity_scale(profile: QuitProfile) -> float:
    scale = (
        frequency_scale(profile.frequency_label)
        * years_scale(profile.years_vaping)
        * cost_scale(profile.weekly_cost)
    )
    return max(MIN_INTENSITY, scale)


def recovery_horizon_days(profile: QuitProfile) -> float:
    """Modeled days until a full score of 100."""
    return max(MIN_RECOVERY_DAYS, BASE_RECOVERY_DAYS * intensity_scale(profile))


def compute_health_score(profile: QuitProfile, effective_start: date, now: datetime | date) -> int:
    today = now.date() if isinstance(now, datetime) else now
    elapsed = days_since(effective_start, today)
    linear = min(1.0, elapsed / recovery_horizon_days(profile))
    eased = math.sqrt(linear)
    return int(round(eased * 100))


def health_from_streak(streak: int) -> int:
    """Fallback score for callers without profile data."""
    return int(min(100, max(0, streak * 10)))


def appearance_for(health_score: int) -> LungAppearance:
    if health_score < 20:
        look = LungAppearance("early", "gray", 0.6, 0.0)
    elif health_score < 50:
        look = LungAppearance("improving", "lightPink", 0.8, 0.2)
    elif health_score < 80:
        look = LungAppearance("healthy", "pink", 0.9, 0.5)
    else:
        look = LungAppearance("optimal", "healthyPink", 1.0, 1.0)
    look.animation_speed = 1.0 + health_score / 100.0
    return look


def compute_recovery_state(
    profile: QuitProfile | None,
    effective_start: date | None,
    now: datetime | date,
    streak: int = 0,
) -> RecoveryState:
    """Time-based score when a profile and start date exist, else the streak fallback."""
    if profile is not None and effective_start is not None:
        score = compute_health_score(profile, effective_start, now)
    else:
        score = health_from_streak(streak)
    score = int(min(100, max(0, score)))
    return RecoveryState(health_score=score, appearance=appearance_for(score))


def health_description_band(days: int) -> str:
    """Human-readable recovery milestone for days since the effective start."""
    for upper, text in HEALTH_BANDS:
        if days <= upper:
            return text
    return HEALTH_BAND_FINAL
