from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .assets import write_text

logger = logging.getLogger(__name__)

INHERIT_KEY = "INHERIT"


def render_inherit(inherit_path: str) -> str:
    """Return the single MkDocs config line that inherits ``inherit_path``."""
    path = (inherit_path or "").strip()
    if not path:
        raise ValueError("theme inherit path must not be empty")
    if "\n" in path or "\r" in path:
        raise ValueError("theme inherit path must be a single line")
    line = f"{INHERIT_KEY}: {path}\n"
    # The line is read back by MkDocs as YAML; it must load as the same path.
    try:
        loaded = yaml.safe_load(line)
    except yaml.YAMLError as e:
        raise ValueError(f"theme inherit path is not a plain YAML scalar: {path!r}") from e
    if loaded != {INHERIT_KEY: path}:
        raise ValueError(f"theme inherit path is not a plain YAML scalar: {path!r}")
    return line


def write_inherit_file(dest: str, inherit_path: str, *, dry_run: bool = False) -> Path:
    line = render_inherit(inherit_path)
    p = Path(dest)
    write_text(p, line, dry_run=dry_run)
    logger.info("Theme inheritance: %s -> %s", str(p), inherit_path)
    return p


def read_inherit(dest: str) -> str:
    text = Path(dest).read_text(encoding="utf-8")
    return parse_inherit(text, source=dest)


def parse_inherit(text: str, *, source: str = "<string>") -> str:
    lines = [ln for ln in text.splitlines() if ln.strip()]
    if len(lines) != 1:
        raise ValueError(f"{source}: expected exactly one {INHERIT_KEY} line, found {len(lines)} lines")
    key, sep, value = lines[0].partition(":")
    if not sep or key.strip() != INHERIT_KEY or not value.strip():
        raise ValueError(f"{source}: not an {INHERIT_KEY} line: {lines[0]!r}")
    return value.strip()


def verify_inherit_text(text: str, expected_path: str) -> bool:
    return text == render_inherit(expected_path)


def verify_inherit_file(dest: str, expected_path: str) -> bool:
    p = Path(dest)
    if not p.is_file():
        return False
    return verify_inherit_text(p.read_text(encoding="utf-8"), expected_path)
