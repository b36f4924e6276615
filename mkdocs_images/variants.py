from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from .lib.env import VARIANT_ENV, env_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Variant:
    """One image recipe.

    Recipes differ only in base image and layering strategy; the manifest,
    health check and entrypoint are shared.
    """

    name: str
    dockerfile: str
    base_image: str
    package_manager: str
    system_packages: Tuple[str, ...] = ()
    runtime_image: Optional[str] = None
    browser: bool = False
    run_as_root: bool = True
    tag_suffix: str = ""
    entrypoint: Tuple[str, ...] = ("mkdocs",)

    @property
    def multi_stage(self) -> bool:
        return self.runtime_image is not None


VARIANTS: Dict[str, Variant] = {
    "full": Variant(
        name="full",
        dockerfile="Dockerfile",
        base_image="python:3.12-slim-bookworm",
        package_manager="apt",
        system_packages=(
            "git",
            "libcairo2",
            "libpango-1.0-0",
            "libpangocairo-1.0-0",
            "libffi-dev",
            "fonts-noto",
            "pngquant",
        ),
        browser=True,
    ),
    "hardened": Variant(
        name="hardened",
        dockerfile="Dockerfile.hardened",
        # Must match the interpreter shipped in the distroless runtime.
        base_image="python:3.11-slim-bookworm",
        runtime_image="gcr.io/distroless/python3-debian12:nonroot",
        package_manager="apt",
        system_packages=("build-essential", "libffi-dev"),
        run_as_root=False,
        tag_suffix="-hardened",
        entrypoint=("python3", "-m", "mkdocs"),
    ),
    "lightweight": Variant(
        name="lightweight",
        dockerfile="Dockerfile.lightweight",
        base_image="python:3.12-alpine",
        package_manager="apk",
        system_packages=("git", "cairo", "pango", "libffi"),
        tag_suffix="-lightweight",
    ),
}

ALIASES = {
    "minimal": "hardened",
    "light": "lightweight",
    "slim": "lightweight",
}


def select_variant(flag: Optional[str], *, default: str = "full") -> Variant:
    name = (flag or "").strip().lower() or default.strip().lower()
    name = ALIASES.get(name, name)
    variant = VARIANTS.get(name)
    if variant is None:
        choices = ", ".join([*VARIANTS, *ALIASES])
        raise ValueError(f"Unknown image variant '{flag or default}' (choose one of: {choices})")
    logger.info("Selected image variant: %s (base=%s)", variant.name, variant.base_image)
    return variant


def variant_from_env(environ: Mapping[str, str]) -> Optional[str]:
    return env_value(environ, VARIANT_ENV)
