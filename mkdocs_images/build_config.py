from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_PLATFORMS = ["linux/amd64", "linux/arm64"]


@dataclass(frozen=True)
class BuildConfig:
    raw: Dict[str, Any]

    def _section(self, key: str) -> Dict[str, Any]:
        value = self.raw.get(key) or {}
        if not isinstance(value, dict):
            raise ValueError(f"build config section '{key}' must be a mapping")
        return value

    @property
    def image_name(self) -> str:
        name = self._section("image").get("name")
        if not name:
            raise ValueError("image.name is required")
        return str(name)

    @property
    def default_variant(self) -> str:
        return str(self._section("image").get("default_variant") or "full")

    @property
    def platforms(self) -> List[str]:
        return [str(p) for p in (self._section("image").get("platforms") or DEFAULT_PLATFORMS)]

    @property
    def labels(self) -> Dict[str, str]:
        return {str(k): str(v) for k, v in (self._section("image").get("labels") or {}).items()}

    @property
    def manifest_path(self) -> str:
        return str(self.raw.get("manifest") or "requirements.txt")

    @property
    def theme_repo(self) -> Optional[str]:
        repo = self._section("theme").get("repo")
        return str(repo) if repo else None

    @property
    def theme_ref(self) -> str:
        return str(self._section("theme").get("ref") or "master")

    @property
    def theme_dir(self) -> str:
        return str(self._section("theme").get("checkout_dir") or "build/theme")

    @property
    def inherit_path(self) -> Optional[str]:
        path = self._section("theme").get("inherit")
        return str(path) if path else None

    @property
    def inherit_file(self) -> str:
        return str(self._section("theme").get("inherit_file") or "mkdocs.inherit.yml")

    @property
    def work_dir(self) -> str:
        return str(self._section("paths").get("work_dir") or "build/work")

    @property
    def docs_dir(self) -> str:
        return str(self._section("paths").get("docs_dir") or "/docs")

    @property
    def output_dir(self) -> str:
        return str(self._section("paths").get("output_dir") or "/docs/site")

    @property
    def port(self) -> int:
        return int(self._section("serve").get("port") or 8000)

    @property
    def browser_path(self) -> str:
        return str(self._section("browser").get("path") or "/ms-playwright")

    @property
    def browser_manifest_path(self) -> Optional[str]:
        # Packages that only install where the browser tool exists (glibc wheels only).
        path = self._section("browser").get("manifest")
        return str(path) if path else None

    @property
    def registry(self) -> Optional[str]:
        url = self._section("registry").get("url")
        if url:
            return str(url)
        # ghcr.io/org/name -> ghcr.io; a bare name means Docker Hub.
        first = self.image_name.split("/", 1)[0]
        if "/" in self.image_name and ("." in first or ":" in first or first == "localhost"):
            return first
        return None

    @property
    def registry_username_env(self) -> str:
        return str(self._section("registry").get("username_env") or "REGISTRY_USERNAME")

    @property
    def registry_password_env(self) -> str:
        return str(self._section("registry").get("password_env") or "REGISTRY_PASSWORD")


def load_build_config(path: str) -> BuildConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("build config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("build_config.yaml must contain a mapping/object")

    return BuildConfig(raw=raw)
