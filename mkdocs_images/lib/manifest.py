from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from packaging.requirements import InvalidRequirement, Requirement
from packaging.specifiers import SpecifierSet
from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)

# Same rule pip uses: "#" at line start or after whitespace opens a comment.
COMMENT_RE = re.compile(r"(^|\s+)#.*$")


class ManifestError(ValueError):
    def __init__(self, path: str, line_no: int, message: str) -> None:
        super().__init__(f"{path}:{line_no}: {message}")
        self.path = path
        self.line_no = line_no


@dataclass(frozen=True)
class ManifestEntry:
    name: str
    specifier: str = ""
    extras: Tuple[str, ...] = ()
    marker: Optional[str] = None
    line_no: int = 0

    @property
    def key(self) -> str:
        return canonicalize_name(self.name)

    @property
    def pinned_version(self) -> Optional[str]:
        spec = self.specifier
        if spec.startswith("==") and "," not in spec and "*" not in spec:
            return spec[2:].strip()
        return None

    def requirement_line(self) -> str:
        extras = f"[{','.join(self.extras)}]" if self.extras else ""
        line = f"{self.name}{extras}{self.specifier}"
        if self.marker:
            line += f"; {self.marker}"
        return line


@dataclass(frozen=True)
class Manifest:
    path: str
    entries: Tuple[ManifestEntry, ...]

    @property
    def names(self) -> List[str]:
        return [e.name for e in self.entries]

    def get(self, name: str) -> Optional[ManifestEntry]:
        key = canonicalize_name(name)
        for e in self.entries:
            if e.key == key:
                return e
        return None

    def pins(self) -> Dict[str, str]:
        return {e.name: e.pinned_version for e in self.entries if e.pinned_version}

    def render(self) -> str:
        return "".join(e.requirement_line() + "\n" for e in self.entries)


@dataclass(frozen=True)
class Mismatch:
    name: str
    expected: str
    actual: Optional[str]

    def __str__(self) -> str:
        if self.actual is None:
            return f"{self.name}: not installed (expected {self.expected or 'any version'})"
        return f"{self.name}: installed {self.actual}, expected {self.expected}"


def _strip_comment(line: str) -> str:
    return COMMENT_RE.sub("", line).strip()


def parse_manifest(text: str, path: str = "<string>") -> Manifest:
    entries: List[ManifestEntry] = []
    seen: Dict[str, int] = {}

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = _strip_comment(raw)
        if not line:
            continue
        if line.startswith("-"):
            raise ManifestError(path, line_no, f"installer options are not allowed in the manifest: {line}")

        try:
            req = Requirement(line)
        except InvalidRequirement as e:
            raise ManifestError(path, line_no, f"invalid requirement '{line}': {e}") from e
        if req.url:
            raise ManifestError(path, line_no, f"direct URL requirements are not supported: {line}")

        key = canonicalize_name(req.name)
        if key in seen:
            raise ManifestError(path, line_no, f"duplicate package '{req.name}' (first on line {seen[key]})")
        seen[key] = line_no

        entries.append(
            ManifestEntry(
                name=req.name,
                specifier=str(req.specifier),
                extras=tuple(sorted(req.extras)),
                marker=str(req.marker) if req.marker else None,
                line_no=line_no,
            )
        )

    logger.info("Manifest %s: %d packages", path, len(entries))
    return Manifest(path=path, entries=tuple(entries))


def load_manifest(path: str) -> Manifest:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)
    return parse_manifest(p.read_text(encoding="utf-8"), path=str(p))


def merge_manifests(manifests: List[Manifest]) -> Manifest:
    """Combine manifests installed into one image; a package may appear once."""
    entries: List[ManifestEntry] = []
    owner: Dict[str, str] = {}
    for m in manifests:
        for e in m.entries:
            if e.key in owner:
                raise ManifestError(
                    m.path, e.line_no, f"package '{e.name}' is already listed in {owner[e.key]}"
                )
            owner[e.key] = m.path
            entries.append(e)
    return Manifest(path=" + ".join(m.path for m in manifests), entries=tuple(entries))


def parse_pip_freeze(text: str) -> Dict[str, str]:
    installed: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("-e") or " @ " in line:
            continue
        name, sep, version = line.partition("==")
        if not sep:
            continue
        installed[canonicalize_name(name.strip())] = version.strip()
    return installed


def verify_installed(manifest: Manifest, installed: Mapping[str, str]) -> List[Mismatch]:
    """Compare installed distributions against the manifest.

    ``installed`` maps distribution names (any spelling) to versions.
    """

    normalized = {canonicalize_name(k): v for k, v in installed.items()}
    mismatches: List[Mismatch] = []

    for entry in manifest.entries:
        actual = normalized.get(entry.key)
        if actual is None:
            if entry.marker:
                # Conditional requirement; the image environment decides.
                continue
            mismatches.append(Mismatch(entry.name, entry.specifier, None))
            continue
        if not entry.specifier:
            continue
        try:
            ok = SpecifierSet(entry.specifier).contains(Version(actual), prereleases=True)
        except InvalidVersion:
            ok = False
        if not ok:
            mismatches.append(Mismatch(entry.name, entry.specifier, actual))

    return mismatches


def pip_install_argv(
    manifest_file: str, *, python: str = "python", target: Optional[str] = None
) -> List[str]:
    argv = [python, "-m", "pip", "install", "--no-cache-dir"]
    if target:
        argv += ["--target", target]
    return argv + ["-r", manifest_file]
