"""Event hooks for Exhale hosts.

Hooks run shell commands after the engine reports a change.
Configured via hooks.yaml in the workspace root.

Hook points:
- post_checkin
- on_quest_complete
- on_badge_unlocked
- post_replenish
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from exhale.fileio import read_yaml
from exhale.models import EngineUpdate
from exhale.workspace import hooks_config_path, workspace_root

logger = logging.getLogger(__name__)


VALID_HOOK_POINTS = {
    "post_checkin",
    "on_quest_complete",
    "on_badge_unlocked",
    "post_replenish",
}

DEFAULT_TIMEOUT = 30
OUTPUT_CAP = 4096


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from hooks.yaml."""
    if root is None:
        root = workspace_root()
    path = hooks_config_path(root)
    if not path.exists():
        return {}
    return read_yaml(path)


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run all hooks registered for a given hook point.

    Context is passed as JSON via stdin to each hook subprocess.
    Returns list of results with stdout/stderr and exit codes.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []

    if root is None:
        root = workspace_root()

    hooks = load_hooks_config(root).get(hook_point, [])
    if not hooks or not isinstance(hooks, list):
        return []

    results = []
    context_json = json.dumps(context, ensure_ascii=False)

    for hook in hooks:
        if isinstance(hook, str):
            command = hook
            timeout = DEFAULT_TIMEOUT
        elif isinstance(hook, dict):
            command = hook.get("command", "")
            timeout = hook.get("timeout", DEFAULT_TIMEOUT)
        else:
            continue

        if not command:
            continue

        result: dict[str, Any] = {"command": command, "hook_point": hook_point}
        try:
            proc = subprocess.run(
                command,
                shell=True,
                input=context_json,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(root),
            )
            result["exit_code"] = proc.returncode
            result["stdout"] = proc.stdout[:OUTPUT_CAP]
            result["stderr"] = proc.stderr[:OUTPUT_CAP]
        except subprocess.TimeoutExpired:
            result["exit_code"] = -1
            result["error"] = f"Hook timed out after {timeout}s"
        except OSError as e:
            result["exit_code"] = -1
            result["error"] = str(e)

        if result["exit_code"] != 0:
            logger.warning("%s hook %r failed: %s", hook_point, command, result.get("error") or result["exit_code"])
        results.append(result)

    return results


def hook_points_for(operation: str, update: EngineUpdate) -> list[tuple[str, dict[str, Any]]]:
    """Map an engine update to (hook point, context) pairs."""
    if not update.changed:
        return []
    events: list[tuple[str, dict[str, Any]]] = []
    if operation == "checkin" and update.check_in is not None:
        events.append(("post_checkin", update.check_in.to_dict()))
    if operation == "complete_quest" and update.completed_quest is not None:
        events.append(("on_quest_complete", {
            "quest": update.completed_quest.to_dict(),
            "xpAwarded": update.xp_awarded,
        }))
    if operation == "replenish":
        events.append(("post_replenish", {
            "added": [q.id for q in update.quests_added],
            "purged": list(update.quests_purged),
        }))
    for badge in update.new_badges:
        events.append(("on_badge_unlocked", badge.to_dict()))
    return events


def dispatch_update(operation: str, update: EngineUpdate, root: Path | None = None) -> list[dict[str, Any]]:
    """Run the hooks an engine update triggers. Returns all hook results."""
    results: list[dict[str, Any]] = []
    for hook_point, context in hook_points_for(operation, update):
        results.extend(run_hooks(hook_point, context, root))
    return results
