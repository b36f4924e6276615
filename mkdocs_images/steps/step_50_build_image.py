from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..build_config import BuildConfig
from ..lib.docker import buildx_build, credentials_from_env, image_tags, registry_login
from ..lib.env import COMMIT_ENV, env_value
from ..lib.git import DRY_RUN_SHA, resolve_commit_sha
from ..variants import select_variant

logger = logging.getLogger(__name__)


class BuildImageStep:
    step_id = "50_build_image"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = BuildConfig(raw=state.get("config") or {})
        opts = state.get("options") or {}
        exe = state.setdefault("execution", {})
        dry_run = bool(opts.get("dry_run", False))
        push = bool(opts.get("push", False))

        context = exe.get("context") or {}
        if not context.get("dir"):
            raise RuntimeError("execution.context missing (run 40_assemble_context first)")
        variant = select_variant(exe.get("variant"))

        if dry_run and not env_value(os.environ, COMMIT_ENV):
            sha = DRY_RUN_SHA
        else:
            sha = resolve_commit_sha(os.environ, repo_dir=".")
        tags = image_tags(cfg.image_name, sha, variant.tag_suffix)
        platforms = cfg.platforms

        if push:
            username, password = credentials_from_env(
                os.environ, cfg.registry_username_env, cfg.registry_password_env
            )
            registry_login(cfg.registry, username, password, dry_run=dry_run)

        labels = dict(cfg.labels)
        labels["org.opencontainers.image.revision"] = sha
        theme = exe.get("theme")
        if theme:
            labels["org.opencontainers.image.base.name"] = f"{theme['repo']}@{theme['commit']}"

        buildx_build(
            context["dir"],
            context["dockerfile"],
            tags=tags,
            platforms=platforms,
            push=push,
            labels=labels,
            dry_run=dry_run,
        )

        exe["image"] = {
            "tags": tags,
            "commit": sha,
            "platforms": platforms,
            "pushed": push and not dry_run,
            "loaded": (not push) and len(platforms) == 1 and not dry_run,
        }
        logger.info("Built %s", ", ".join(tags))
        return state
