from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

# VCS metadata never belongs in a build context.
DEFAULT_EXCLUDES = frozenset({".git", ".github", "__pycache__"})


def copy_tree(
    src: str,
    dst: str,
    *,
    exclude: Iterable[str] = DEFAULT_EXCLUDES,
    dry_run: bool = False,
) -> int:
    """Copy ``src`` into ``dst`` and return the number of files copied."""

    s = Path(src)
    d = Path(dst)
    if not s.exists():
        raise FileNotFoundError(src)

    if dry_run:
        logger.info("Would copy tree %s -> %s", str(s), str(d))
        return 0

    skip = set(exclude)
    copied = 0
    d.mkdir(parents=True, exist_ok=True)
    for item in s.rglob("*"):
        rel = item.relative_to(s)
        if skip.intersection(rel.parts):
            continue
        out = d / rel
        if item.is_dir():
            out.mkdir(parents=True, exist_ok=True)
        else:
            out.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, out)
            copied += 1
    logger.info("Copied %d files %s -> %s", copied, str(s), str(d))
    return copied


def copy_file(src: str, dst: str, *, dry_run: bool = False) -> None:
    s = Path(src)
    if not s.is_file():
        raise FileNotFoundError(src)

    if dry_run:
        logger.info("Would copy %s -> %s", src, dst)
        return

    Path(dst).parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(s, dst)


def write_text(path: Path, text: str, *, dry_run: bool = False) -> None:
    if dry_run:
        logger.info("Would write %s (%d bytes)", str(path), len(text))
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
