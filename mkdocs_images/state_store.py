from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

STATE_VERSION = 1

# Everything a step records about the previous build; dropped when inputs change.
RESULT_KEYS = ("variant", "manifest", "theme", "context", "image", "verification")


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Default to JSON for unknown extensions.
    return "json"


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    if _detect_format(p) == "yaml":
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    else:
        data = json.loads(p.read_text(encoding="utf-8"))

    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) == "yaml":
        p.write_text(yaml.safe_dump(state, sort_keys=False) + "\n", encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with defaults (without overriding stored values)."""

    state.setdefault("version", STATE_VERSION)
    state.setdefault("config", {})
    state.setdefault("options", {})
    state.setdefault("execution", {})

    opts = state["options"]
    opts.setdefault("variant", None)
    opts.setdefault("push", False)
    opts.setdefault("dry_run", False)
    opts.setdefault("verify", True)

    exe = state["execution"]
    exe.setdefault("current_step", None)
    exe.setdefault("completed_steps", [])
    exe.setdefault("errors", [])

    return state


def mark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    exe = state.setdefault("execution", {})
    completed = exe.setdefault("completed_steps", [])
    if step_id not in completed:
        completed.append(step_id)


def is_step_completed(state: Dict[str, Any], step_id: str) -> bool:
    exe = state.get("execution") or {}
    completed = exe.get("completed_steps") or []
    return step_id in completed


def file_digest(path: Optional[str]) -> Optional[str]:
    """sha256 of a file's bytes, or None when there is no such file."""
    if not path:
        return None
    p = Path(path)
    if not p.is_file():
        return None
    return hashlib.sha256(p.read_bytes()).hexdigest()


def config_digest(raw: Mapping[str, Any]) -> str:
    blob = json.dumps(raw, sort_keys=True, default=str)
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


def changed_inputs(state: Dict[str, Any], inputs: Mapping[str, Any]) -> List[str]:
    """Names of build inputs that differ from the ones the recorded progress was made with."""

    exe = state.get("execution") or {}
    previous = exe.get("inputs")
    if previous is None:
        # Progress without a record of its inputs cannot be trusted.
        return sorted(inputs) if exe.get("completed_steps") else []
    keys = set(previous) | set(inputs)
    return sorted(k for k in keys if previous.get(k) != inputs.get(k))


def reset_progress(state: Dict[str, Any]) -> None:
    exe = state.setdefault("execution", {})
    exe["completed_steps"] = []
    for key in RESULT_KEYS:
        exe.pop(key, None)
