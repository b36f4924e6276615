from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Paths:
    config_default: str = "build_config.yaml"
    state_default: str = "build/state.json"
    log_default: str = "logs/mkdocs-images.log"


PATHS = Paths()

VARIANT_ENV = "IMAGE_VARIANT"
COMMIT_ENV = "GITHUB_SHA"
BROWSER_PATH_ENV = "PLAYWRIGHT_BROWSERS_PATH"


def env_value(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Return a stripped, non-empty environment value or None."""
    value = (environ.get(name) or "").strip()
    return value or None

