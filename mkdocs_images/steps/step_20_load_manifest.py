from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..build_config import BuildConfig
from ..lib.manifest import Manifest, load_manifest, merge_manifests

logger = logging.getLogger(__name__)


class LoadManifestStep:
    step_id = "20_load_manifest"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = BuildConfig(raw=state.get("config") or {})

        manifest = load_manifest(cfg.manifest_path)
        if not manifest.entries:
            raise RuntimeError(f"Manifest is empty: {cfg.manifest_path}")

        manifests: List[Manifest] = [manifest]
        browser_packages: List[str] = []
        if cfg.browser_manifest_path:
            browser = load_manifest(cfg.browser_manifest_path)
            manifests.append(browser)
            browser_packages = browser.names
        combined = merge_manifests(manifests)

        unpinned = [e.name for e in combined.entries if not e.specifier]
        if unpinned:
            logger.warning("Packages without a version constraint: %s", ", ".join(unpinned))

        state.setdefault("execution", {})["manifest"] = {
            "path": manifest.path,
            "packages": len(manifest.entries),
            "pins": combined.pins(),
            "browser_path": cfg.browser_manifest_path,
            "browser_packages": browser_packages,
        }
        return state
