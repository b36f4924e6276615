from __future__ import annotations

import argparse
import logging
import os
from typing import Any, Dict, Optional

from .build_config import BuildConfig, load_build_config
from .lib.git import build_commit
from .lib.env import PATHS
from .logging_utils import configure_logging
from .pipeline import run_pipeline
from .state_store import config_digest, ensure_defaults, file_digest, load_state, save_state
from .steps import (
    AssembleContextStep,
    BuildImageStep,
    FetchThemeStep,
    LoadManifestStep,
    SelectVariantStep,
    VerifyImageStep,
)
from .variants import ALIASES, VARIANTS, select_variant, variant_from_env

logger = logging.getLogger(__name__)


def build_steps():
    return [
        SelectVariantStep(),
        LoadManifestStep(),
        FetchThemeStep(),
        AssembleContextStep(),
        BuildImageStep(),
        VerifyImageStep(),
    ]


def build_inputs(
    cfg: BuildConfig, *, variant: Optional[str], push: bool, verify: bool
) -> Dict[str, Any]:
    """Everything that decides what a build produces; recorded progress is only
    reused while all of it stays the same."""

    return {
        "config": config_digest(cfg.raw),
        "variant": select_variant(
            variant or variant_from_env(os.environ), default=cfg.default_variant
        ).name,
        "push": push,
        "verify": verify,
        "commit": build_commit(os.environ),
        "manifest": file_digest(cfg.manifest_path),
        "browser_manifest": file_digest(cfg.browser_manifest_path),
    }


def run(
    *,
    config_path: str = PATHS.config_default,
    state_path: str = PATHS.state_default,
    log_path: str = PATHS.log_default,
    variant: Optional[str] = None,
    push: bool = False,
    verify: bool = True,
    dry_run: bool = False,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
    verbose: bool = False,
) -> Dict[str, Any]:
    """Run the image build pipeline, persisting state for resume."""

    actual_log_path = configure_logging(
        log_path=log_path, console_level=logging.DEBUG if verbose else logging.INFO
    )

    cfg = load_build_config(config_path)
    state = ensure_defaults(load_state(state_path))

    state["config"] = cfg.raw
    state["options"].update(
        {"variant": variant, "push": push, "verify": verify, "dry_run": dry_run}
    )
    state["execution"].setdefault("paths", {})["log_path_requested"] = log_path
    state["execution"]["paths"]["log_path_actual"] = actual_log_path

    try:
        result = run_pipeline(
            state=state,
            steps=build_steps(),
            inputs=build_inputs(cfg, variant=variant, push=push, verify=verify),
            start_at=start_at,
            stop_after=stop_after,
            force=force,
        )
        state = result.state
        state["execution"].setdefault("summary", {})["ran_steps"] = result.ran_steps
        state["execution"]["summary"]["skipped_steps"] = result.skipped_steps
        state["execution"]["summary"]["changed_inputs"] = result.changed_inputs
        if dry_run:
            # A dry run must not mark anything as done for the real build.
            state["execution"]["completed_steps"] = []
        return state
    except Exception as e:
        logger.exception("Image build failed")
        state["execution"].setdefault("errors", []).append(
            {
                "step": state["execution"].get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        save_state(state_path, state)


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="mkdocs-images")
    p.add_argument("--config", default=PATHS.config_default, help="Path to build config (yaml)")
    p.add_argument("--state", default=PATHS.state_default, help="Path to build state (json|yaml)")
    p.add_argument("--log", default=PATHS.log_default, help="Path to build log")
    p.add_argument(
        "--variant",
        default=None,
        choices=sorted([*VARIANTS, *ALIASES]),
        help="Image variant (defaults to $IMAGE_VARIANT, then image.default_variant)",
    )
    p.add_argument("--push", action="store_true", help="Log in and push the multi-arch image")
    p.add_argument("--no-verify", action="store_true", help="Skip post-build verification")
    p.add_argument("--dry-run", action="store_true", help="Log commands without running them")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 40_assemble_context)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--force", action="store_true", help="Re-run steps even if marked completed")
    p.add_argument("--verbose", action="store_true", help="Show command output on the console")

    args = p.parse_args(argv)

    run(
        config_path=args.config,
        state_path=args.state,
        log_path=args.log,
        variant=args.variant,
        push=args.push,
        verify=not args.no_verify,
        dry_run=args.dry_run,
        start_at=args.start_at,
        stop_after=args.stop_after,
        force=args.force,
        verbose=args.verbose,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
