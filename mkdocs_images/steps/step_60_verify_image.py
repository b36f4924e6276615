from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from ..build_config import BuildConfig
from ..lib.dockerfile import inherit_dest
from ..lib.docker import docker_run_capture, inspect_platforms
from ..lib.manifest import load_manifest, merge_manifests, parse_pip_freeze, verify_installed
from ..lib.theme import verify_inherit_text

logger = logging.getLogger(__name__)

# Works in every variant, including the shell-less, pip-less hardened runtime.
LIST_DISTRIBUTIONS = (
    "import importlib.metadata as m\n"
    "for d in m.distributions():\n"
    "    print(f\"{d.metadata['Name']}=={d.version}\")\n"
)
READ_FILE = "import sys; sys.stdout.write(open(sys.argv[1]).read())"


def platform_covered(wanted: str, pushed: List[str]) -> bool:
    # linux/arm64 is satisfied by linux/arm64/v8.
    return any(p == wanted or p.startswith(wanted + "/") for p in pushed)


class VerifyImageStep:
    step_id = "60_verify_image"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = BuildConfig(raw=state.get("config") or {})
        opts = state.get("options") or {}
        exe = state.setdefault("execution", {})
        image = exe.get("image") or {}

        if not opts.get("verify", True):
            logger.info("Verification disabled")
            return state
        if not image.get("tags"):
            raise RuntimeError("execution.image missing (run 50_build_image first)")

        tag = image["tags"][0]
        problems: List[str] = []
        report: Dict[str, Any] = {"tag": tag}

        if image.get("loaded"):
            context = exe.get("context") or {}
            if context.get("manifests"):
                paths = [os.path.join(context["dir"], name) for name in context["manifests"]]
            else:
                paths = [cfg.manifest_path]
            manifest = merge_manifests([load_manifest(p) for p in paths])
            frozen = docker_run_capture(tag, ["-c", LIST_DISTRIBUTIONS], entrypoint="python3")
            mismatches = verify_installed(manifest, parse_pip_freeze(frozen))
            problems += [str(m) for m in mismatches]
            report["packages_checked"] = len(manifest.entries)

            inherit_file = context.get("inherit_file")
            if inherit_file and cfg.inherit_path:
                text = docker_run_capture(
                    tag, ["-c", READ_FILE, inherit_dest(inherit_file)], entrypoint="python3"
                )
                if not verify_inherit_text(text, cfg.inherit_path):
                    problems.append(f"{inherit_dest(inherit_file)} does not contain INHERIT: {cfg.inherit_path}")
                report["inherit_checked"] = True
        elif image.get("pushed"):
            pushed = inspect_platforms(tag)
            report["platforms"] = pushed
            for wanted in image.get("platforms") or cfg.platforms:
                if not platform_covered(wanted, pushed):
                    problems.append(f"{tag}: platform {wanted} missing from pushed manifest")
        else:
            logger.warning("Image %s was neither loaded nor pushed; nothing to verify", tag)
            report["skipped"] = True

        report["problems"] = problems
        exe["verification"] = report
        if problems:
            raise RuntimeError("Image verification failed:\n  " + "\n  ".join(problems))

        logger.info("Image %s verified", tag)
        return state
