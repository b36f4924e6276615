from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Mapping, Optional

from .command import run_cmd
from .env import COMMIT_ENV, env_value

logger = logging.getLogger(__name__)

DRY_RUN_SHA = "0" * 40


def head_commit(repo_dir: str) -> str:
    r = run_cmd(["git", "-C", repo_dir, "rev-parse", "HEAD"])
    return r.stdout.strip()


def try_head_commit(repo_dir: str) -> Optional[str]:
    """HEAD of ``repo_dir``, or None when git or the checkout is unavailable."""
    if shutil.which("git") is None:
        return None
    r = run_cmd(["git", "-C", repo_dir, "rev-parse", "HEAD"], check=False)
    return r.stdout.strip() if r.ok else None


def clone_snapshot(repo: str, ref: str, dest: str, *, dry_run: bool = False) -> str:
    """Shallow-clone ``ref`` of ``repo`` into ``dest`` and return its commit.

    An existing checkout is refreshed in place instead of re-cloned.
    """

    d = Path(dest)
    if (d / ".git").exists():
        logger.info("Refreshing theme snapshot in %s (%s)", dest, ref)
        run_cmd(["git", "-C", dest, "fetch", "--depth", "1", "origin", ref], dry_run=dry_run)
        run_cmd(["git", "-C", dest, "checkout", "--force", "FETCH_HEAD"], dry_run=dry_run)
    else:
        if d.exists() and any(d.iterdir()):
            raise RuntimeError(f"Theme checkout dir exists and is not a git repo: {dest}")
        if not dry_run:
            d.parent.mkdir(parents=True, exist_ok=True)
        run_cmd(["git", "clone", "--depth", "1", "--branch", ref, repo, dest], dry_run=dry_run)

    if dry_run:
        return DRY_RUN_SHA
    sha = head_commit(dest)
    logger.info("Theme snapshot %s@%s -> %s", repo, sha[:12], dest)
    return sha


def resolve_commit_sha(environ: Mapping[str, str], repo_dir: Optional[str] = ".") -> str:
    """Commit the image is tagged with: CI-provided SHA first, else HEAD."""
    sha = env_value(environ, COMMIT_ENV)
    if sha:
        return sha
    if repo_dir is None:
        raise RuntimeError(f"{COMMIT_ENV} not set and no repository to read HEAD from")
    return head_commit(repo_dir)


def build_commit(environ: Mapping[str, str], repo_dir: str = ".") -> Optional[str]:
    """Commit identifying this build's inputs; None when it cannot be known."""
    return env_value(environ, COMMIT_ENV) or try_head_commit(repo_dir)
