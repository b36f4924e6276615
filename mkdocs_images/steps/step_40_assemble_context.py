from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict

from ..build_config import BuildConfig
from ..lib.assets import copy_file, copy_tree, write_text
from ..lib.dockerfile import DockerfileOptions, render_dockerfile
from ..lib.manifest import load_manifest
from ..lib.env import BROWSER_PATH_ENV, env_value
from ..lib.theme import write_inherit_file
from ..variants import select_variant

logger = logging.getLogger(__name__)

THEME_CONTEXT_DIR = "theme"


class AssembleContextStep:
    step_id = "40_assemble_context"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = BuildConfig(raw=state.get("config") or {})
        opts = state.get("options") or {}
        exe = state.setdefault("execution", {})
        dry_run = bool(opts.get("dry_run", False))

        variant_name = exe.get("variant")
        if not variant_name:
            raise RuntimeError("execution.variant missing (run 10_select_variant first)")
        variant = select_variant(variant_name)

        ctx_dir = Path(cfg.work_dir) / variant.name
        if ctx_dir.exists() and not dry_run:
            shutil.rmtree(ctx_dir)
        if not dry_run:
            ctx_dir.mkdir(parents=True, exist_ok=True)

        manifest_file = Path(cfg.manifest_path).name
        copy_file(cfg.manifest_path, str(ctx_dir / manifest_file), dry_run=dry_run)
        manifests = [manifest_file]

        # Only a browser variant installs the browser manifest.
        browser_manifest_file = None
        if variant.browser and cfg.browser_manifest_path:
            browser_manifest_file = Path(cfg.browser_manifest_path).name
            if browser_manifest_file == manifest_file:
                raise RuntimeError(f"browser.manifest must not share a file name with the manifest: {manifest_file}")
            copy_file(cfg.browser_manifest_path, str(ctx_dir / browser_manifest_file), dry_run=dry_run)
            manifests.append(browser_manifest_file)

        if not dry_run:
            for name in manifests:
                load_manifest(str(ctx_dir / name))

        theme_dir = None
        theme = exe.get("theme")
        if theme:
            if dry_run and not Path(theme["dir"]).exists():
                # Dry-run clones never materialize.
                logger.info("Would copy theme snapshot %s -> %s", theme["dir"], str(ctx_dir / THEME_CONTEXT_DIR))
            else:
                copy_tree(theme["dir"], str(ctx_dir / THEME_CONTEXT_DIR), dry_run=dry_run)
            theme_dir = THEME_CONTEXT_DIR

        inherit_file = None
        if cfg.inherit_path:
            write_inherit_file(str(ctx_dir / cfg.inherit_file), cfg.inherit_path, dry_run=dry_run)
            inherit_file = cfg.inherit_file

        dockerfile = render_dockerfile(
            variant,
            DockerfileOptions(
                manifest_file=manifest_file,
                browser_manifest_file=browser_manifest_file,
                docs_dir=cfg.docs_dir,
                output_dir=cfg.output_dir,
                port=cfg.port,
                browser_path=env_value(os.environ, BROWSER_PATH_ENV) or cfg.browser_path,
                inherit_file=inherit_file,
                theme_dir=theme_dir,
                labels=cfg.labels,
            ),
        )
        dockerfile_path = ctx_dir / variant.dockerfile
        write_text(dockerfile_path, dockerfile, dry_run=dry_run)

        exe["context"] = {
            "dir": str(ctx_dir),
            "dockerfile": str(dockerfile_path),
            "manifest_file": manifest_file,
            "manifests": manifests,
            "inherit_file": inherit_file,
        }
        logger.info("Build context ready: %s", str(ctx_dir))
        return state
