from __future__ import annotations

import json
import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

SHORT_SHA_LEN = 12


def image_tags(image: str, sha: str, suffix: str = "") -> List[str]:
    """``latest`` plus the commit SHA, both carrying the variant suffix."""
    if not sha:
        raise ValueError("commit SHA is required for image tags")
    return [f"{image}:latest{suffix}", f"{image}:{sha[:SHORT_SHA_LEN]}{suffix}"]


def credentials_from_env(
    environ: Mapping[str, str], username_env: str, password_env: str
) -> Tuple[str, str]:
    username = environ.get(username_env) or ""
    password = environ.get(password_env) or ""
    if not username or not password:
        raise RuntimeError(
            f"Registry credentials missing: set {username_env} and {password_env}"
        )
    return username, password


def registry_login(
    registry: Optional[str], username: str, password: str, *, dry_run: bool = False
) -> None:
    argv = ["docker", "login", "--username", username, "--password-stdin"]
    if registry:
        argv.append(registry)
    run_cmd(argv, input_text=password + "\n", dry_run=dry_run)
    logger.info("Logged in to %s as %s", registry or "docker.io", username)


def buildx_build(
    context: str,
    dockerfile: str,
    *,
    tags: Sequence[str],
    platforms: Sequence[str],
    push: bool = False,
    build_args: Optional[Dict[str, str]] = None,
    labels: Optional[Dict[str, str]] = None,
    dry_run: bool = False,
) -> CmdResult:
    if not tags:
        raise ValueError("at least one image tag is required")
    if not platforms:
        raise ValueError("at least one platform is required")

    argv = ["docker", "buildx", "build", "--file", dockerfile]
    argv += ["--platform", ",".join(platforms)]
    for tag in tags:
        argv += ["--tag", tag]
    for k, v in sorted((build_args or {}).items()):
        argv += ["--build-arg", f"{k}={v}"]
    for k, v in sorted((labels or {}).items()):
        argv += ["--label", f"{k}={v}"]

    if push:
        argv.append("--push")
    elif len(platforms) == 1:
        argv.append("--load")
    else:
        # A multi-platform result cannot be loaded into the local engine.
        logger.warning("Multi-platform build without --push: result stays in the build cache")

    argv.append(context)
    return run_cmd(argv, dry_run=dry_run)


def _platform_str(platform: Dict[str, str]) -> str:
    parts = [platform.get("os", ""), platform.get("architecture", "")]
    if platform.get("variant"):
        parts.append(platform["variant"])
    return "/".join(parts)


def parse_manifest_platforms(raw: str) -> List[str]:
    """Platforms listed by an OCI index / Docker manifest list.

    Attestation manifests (``unknown/unknown``) are ignored.
    """
    doc = json.loads(raw)
    if not isinstance(doc, dict):
        raise ValueError("image manifest must be a JSON object")
    platforms: List[str] = []
    for m in doc.get("manifests") or []:
        p = m.get("platform") or {}
        if p.get("os") in (None, "unknown"):
            continue
        s = _platform_str(p)
        if s not in platforms:
            platforms.append(s)
    return platforms


def inspect_platforms(tag: str) -> List[str]:
    r = run_cmd(["docker", "buildx", "imagetools", "inspect", "--raw", tag])
    return parse_manifest_platforms(r.stdout)


def docker_run_capture(image: str, argv: Sequence[str], *, entrypoint: Optional[str] = None) -> str:
    cmd = ["docker", "run", "--rm"]
    if entrypoint:
        cmd += ["--entrypoint", entrypoint]
    cmd += [image, *argv]
    return run_cmd(cmd).stdout
