from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .state_store import changed_inputs, is_step_completed, mark_step_completed, reset_progress

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single idempotent build step."""

    step_id: str

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    skipped_steps: List[str]
    changed_inputs: List[str] = field(default_factory=list)


def _window(steps: Sequence[Step], start_at: Optional[str], stop_after: Optional[str]) -> List[Step]:
    ids = [s.step_id for s in steps]
    for name, value in (("start_at", start_at), ("stop_after", stop_after)):
        if value is not None and value not in ids:
            raise ValueError(f"Unknown step for {name}: {value} (steps: {', '.join(ids)})")

    first = ids.index(start_at) if start_at is not None else 0
    last = ids.index(stop_after) if stop_after is not None else len(ids) - 1
    if last < first:
        raise ValueError(f"stop_after {stop_after} comes before start_at {start_at}")
    return list(steps[first : last + 1])


def run_pipeline(
    *,
    state: Dict[str, Any],
    steps: Sequence[Step],
    inputs: Optional[Mapping[str, Any]] = None,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
) -> PipelineResult:
    """Run steps in order, resuming only work done with the same ``inputs``.

    ``inputs`` is a flat mapping of everything that decides what gets built
    (config digest, variant, push, commit, manifest digests ...). When any
    value differs from the one stored with the recorded progress, that
    progress is discarded and every step runs again.
    """

    window = _window(steps, start_at, stop_after)
    exe = state.setdefault("execution", {})

    changed: List[str] = []
    if inputs is not None:
        changed = changed_inputs(state, inputs)
        if changed:
            logger.info("Build inputs changed (%s); discarding previous progress", ", ".join(changed))
            reset_progress(state)
        exe["inputs"] = dict(inputs)

    ran: List[str] = []
    skipped: List[str] = []

    for step in window:
        exe["current_step"] = step.step_id

        if (not force) and is_step_completed(state, step.step_id):
            logger.info("Skipping step %s (already completed with the same inputs)", step.step_id)
            skipped.append(step.step_id)
            continue

        logger.info("Running step %s", step.step_id)
        state = step.run(state)
        exe = state.setdefault("execution", {})
        mark_step_completed(state, step.step_id)
        ran.append(step.step_id)

    if stop_after is not None:
        logger.info("Stopped after %s", stop_after)
    exe["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, skipped_steps=skipped, changed_inputs=changed)
