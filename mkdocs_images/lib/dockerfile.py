from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..variants import Variant
from .manifest import pip_install_argv

logger = logging.getLogger(__name__)

MANIFEST_DEST = "/tmp/requirements.txt"
BROWSER_MANIFEST_DEST = "/tmp/requirements-browser.txt"
SITE_PACKAGES = "/opt/mkdocs"
THEME_DEST = "/theme"
INHERIT_DEST_DIR = "/etc/mkdocs"


@dataclass(frozen=True)
class DockerfileOptions:
    manifest_file: str = "requirements.txt"
    browser_manifest_file: Optional[str] = None
    docs_dir: str = "/docs"
    output_dir: str = "/docs/site"
    port: int = 8000
    browser_path: str = "/ms-playwright"
    inherit_file: Optional[str] = None
    theme_dir: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)


def inherit_dest(inherit_file: str) -> str:
    return f"{INHERIT_DEST_DIR}/{inherit_file}"


def _exec_form(argv: List[str]) -> str:
    return json.dumps(argv)


def _env_block(env: Dict[str, str]) -> List[str]:
    items = [f"{k}={json.dumps(v)}" for k, v in env.items()]
    if not items:
        return []
    lines = ["ENV " + items[0]]
    for item in items[1:]:
        lines[-1] += " \\"
        lines.append("    " + item)
    return lines


def _system_packages(variant: Variant) -> List[str]:
    pkgs = " ".join(variant.system_packages)
    if not pkgs:
        return []
    if variant.package_manager == "apk":
        return [f"RUN apk add --no-cache {pkgs}"]
    if variant.package_manager == "apt":
        return [
            "RUN apt-get update \\",
            f" && apt-get install -y --no-install-recommends {pkgs} \\",
            " && rm -rf /var/lib/apt/lists/*",
        ]
    raise ValueError(f"Unsupported package manager: {variant.package_manager}")


def _labels(labels: Dict[str, str]) -> List[str]:
    return [f"LABEL {k}={json.dumps(v)}" for k, v in sorted(labels.items())]


def _theme_layers(opts: DockerfileOptions) -> List[str]:
    lines: List[str] = []
    if opts.theme_dir:
        lines.append(f"COPY {opts.theme_dir}/ {THEME_DEST}/")
    if opts.inherit_file:
        lines.append(f"COPY {opts.inherit_file} {inherit_dest(opts.inherit_file)}")
    return lines


def _runtime_tail(variant: Variant, opts: DockerfileOptions) -> List[str]:
    entry = list(variant.entrypoint)
    lines = [
        f"WORKDIR {opts.docs_dir}",
        f"VOLUME {_exec_form([opts.docs_dir, opts.output_dir])}",
        f"EXPOSE {opts.port}",
        "HEALTHCHECK --interval=30s --timeout=10s --retries=3 "
        f"CMD {_exec_form([*entry, '--version'])}",
    ]
    if not variant.run_as_root:
        lines.append("USER nonroot")
    lines += [
        f"ENTRYPOINT {_exec_form(entry)}",
        f"CMD {_exec_form(['serve', f'--dev-addr=0.0.0.0:{opts.port}'])}",
    ]
    return lines


def _single_stage(variant: Variant, opts: DockerfileOptions) -> List[str]:
    env = {
        "PYTHONDONTWRITEBYTECODE": "1",
        "PIP_DISABLE_PIP_VERSION_CHECK": "1",
    }
    browser = variant.browser and bool(opts.browser_manifest_file)
    if browser:
        env["PLAYWRIGHT_BROWSERS_PATH"] = opts.browser_path

    lines = [f"FROM {variant.base_image}", ""]
    lines += _labels(opts.labels)
    lines += _env_block(env)
    lines.append("")
    lines += _system_packages(variant)
    lines += [
        "",
        f"COPY {opts.manifest_file} {MANIFEST_DEST}",
        "RUN " + " ".join(pip_install_argv(MANIFEST_DEST)),
    ]
    if browser:
        lines += [
            f"COPY {opts.browser_manifest_file} {BROWSER_MANIFEST_DEST}",
            "RUN " + " ".join(pip_install_argv(BROWSER_MANIFEST_DEST)),
            "RUN playwright install --with-deps chromium",
        ]
    theme = _theme_layers(opts)
    if theme:
        lines += [""] + theme
    lines.append("")
    lines += _runtime_tail(variant, opts)
    return lines


def _multi_stage(variant: Variant, opts: DockerfileOptions) -> List[str]:
    lines = [f"FROM {variant.base_image} AS builder", ""]
    lines += _env_block({"PIP_DISABLE_PIP_VERSION_CHECK": "1"})
    lines += _system_packages(variant)
    lines += [
        f"COPY {opts.manifest_file} {MANIFEST_DEST}",
        "RUN " + " ".join(pip_install_argv(MANIFEST_DEST, target=SITE_PACKAGES)),
        "",
        f"FROM {variant.runtime_image}",
        "",
    ]
    lines += _labels(opts.labels)
    lines += _env_block({"PYTHONDONTWRITEBYTECODE": "1", "PYTHONPATH": SITE_PACKAGES})
    lines.append(f"COPY --from=builder {SITE_PACKAGES} {SITE_PACKAGES}")
    lines += _theme_layers(opts)
    lines.append("")
    lines += _runtime_tail(variant, opts)
    return lines


def render_dockerfile(variant: Variant, opts: DockerfileOptions) -> str:
    header = ["# syntax=docker/dockerfile:1", f"# mkdocs-images variant: {variant.name}"]
    body = _multi_stage(variant, opts) if variant.multi_stage else _single_stage(variant, opts)
    logger.info("Rendered %s for variant %s", variant.dockerfile, variant.name)
    return "\n".join(header + body) + "\n"
