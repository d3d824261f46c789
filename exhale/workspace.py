"""Workspace root, settings, timezone, path helpers for Exhale."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from exhale.fileio import read_yaml

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace root directory (contains settings.yaml and data/)."""
    return Path(
        os.environ.get("EXHALE_ROOT", str(Path.home() / "exhale"))
    ).expanduser().resolve()


def load_settings(root: Path | None = None) -> dict[str, Any]:
    """Read settings.yaml; a missing or unparsable file yields {}."""
    if root is None:
        root = workspace_root()
    try:
        return read_yaml(settings_path(root))
    except yaml.YAMLError:
        logger.warning("settings.yaml is not valid YAML; using defaults")
        return {}


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from settings.yaml, defaulting to UTC."""
    settings = load_settings(root)
    name = settings.get("timezone")
    if name:
        try:
            return ZoneInfo(str(name))
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("unknown timezone %r in settings.yaml; using UTC", name)
    return ZoneInfo("UTC")


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(get_user_timezone(root))


def today_local(root: Path | None = None) -> date:
    return now_local(root).date()


# ── Path helpers ──────────────────────────────────────────────

def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"


def data_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data"
