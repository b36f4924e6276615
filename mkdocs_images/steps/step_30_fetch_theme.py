from __future__ import annotations

import logging
from typing import Any, Dict

from ..build_config import BuildConfig
from ..lib.git import clone_snapshot

logger = logging.getLogger(__name__)


class FetchThemeStep:
    step_id = "30_fetch_theme"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = BuildConfig(raw=state.get("config") or {})
        opts = state.get("options") or {}
        exe = state.setdefault("execution", {})

        if not cfg.theme_repo:
            logger.info("No theme.repo configured; image uses the theme from the manifest")
            exe["theme"] = None
            return state

        sha = clone_snapshot(
            cfg.theme_repo,
            cfg.theme_ref,
            cfg.theme_dir,
            dry_run=bool(opts.get("dry_run", False)),
        )
        exe["theme"] = {
            "repo": cfg.theme_repo,
            "ref": cfg.theme_ref,
            "dir": cfg.theme_dir,
            "commit": sha,
        }
        return state
