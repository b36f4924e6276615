"""Tests for the docker CLI wrappers (tags, login, buildx, manifest lists)."""

import json

import pytest

from mkdocs_images.lib import docker
from mkdocs_images.lib.command import CmdResult

SHA = "0123456789abcdef0123456789abcdef01234567"


@pytest.fixture
def calls(monkeypatch):
    recorded = []

    def fake_run_cmd(argv, **kwargs):
        recorded.append((list(argv), kwargs))
        return CmdResult(argv=list(argv), returncode=0, stdout="", stderr="")

    monkeypatch.setattr(docker, "run_cmd", fake_run_cmd)
    return recorded


def test_image_tags_latest_and_short_sha():
    assert docker.image_tags("ghcr.io/example/mkdocs", SHA) == [
        "ghcr.io/example/mkdocs:latest",
        "ghcr.io/example/mkdocs:0123456789ab",
    ]
    assert docker.image_tags("example/mkdocs", SHA, "-hardened") == [
        "example/mkdocs:latest-hardened",
        "example/mkdocs:0123456789ab-hardened",
    ]


def test_image_tags_require_sha():
    with pytest.raises(ValueError):
        docker.image_tags("example/mkdocs", "")


def test_credentials_from_env():
    env = {"REG_USER": "bot", "REG_PASS": "s3cret"}
    assert docker.credentials_from_env(env, "REG_USER", "REG_PASS") == ("bot", "s3cret")

    with pytest.raises(RuntimeError, match="REG_PASS"):
        docker.credentials_from_env({"REG_USER": "bot"}, "REG_USER", "REG_PASS")


def test_login_sends_password_on_stdin(calls):
    docker.registry_login("ghcr.io", "bot", "s3cret")

    argv, kwargs = calls[0]
    assert argv == ["docker", "login", "--username", "bot", "--password-stdin", "ghcr.io"]
    assert "s3cret" not in " ".join(argv)
    assert kwargs["input_text"] == "s3cret\n"


def test_buildx_push_multi_platform():
    result = docker.buildx_build(
        "build/work/full",
        "build/work/full/Dockerfile",
        tags=["example/mkdocs:latest", "example/mkdocs:0123456789ab"],
        platforms=["linux/amd64", "linux/arm64"],
        push=True,
        labels={"org.opencontainers.image.revision": SHA},
        dry_run=True,
    )

    argv = result.argv
    assert argv[:3] == ["docker", "buildx", "build"]
    assert argv[argv.index("--platform") + 1] == "linux/amd64,linux/arm64"
    assert argv.count("--tag") == 2
    assert "--push" in argv and "--load" not in argv
    assert f"org.opencontainers.image.revision={SHA}" in argv
    assert argv[-1] == "build/work/full"


def test_buildx_single_platform_loads_locally():
    result = docker.buildx_build(
        "ctx", "ctx/Dockerfile", tags=["x:latest"], platforms=["linux/amd64"], dry_run=True
    )
    assert "--load" in result.argv
    assert "--push" not in result.argv


def test_buildx_multi_platform_without_push_does_not_load():
    result = docker.buildx_build(
        "ctx", "ctx/Dockerfile", tags=["x:latest"], platforms=["linux/amd64", "linux/arm64"], dry_run=True
    )
    assert "--load" not in result.argv
    assert "--push" not in result.argv


def test_buildx_requires_tags_and_platforms():
    with pytest.raises(ValueError):
        docker.buildx_build("ctx", "ctx/Dockerfile", tags=[], platforms=["linux/amd64"], dry_run=True)
    with pytest.raises(ValueError):
        docker.buildx_build("ctx", "ctx/Dockerfile", tags=["x:latest"], platforms=[], dry_run=True)


def test_parse_manifest_platforms_skips_attestations():
    raw = json.dumps(
        {
            "mediaType": "application/vnd.oci.image.index.v1+json",
            "manifests": [
                {"platform": {"os": "linux", "architecture": "amd64"}},
                {"platform": {"os": "linux", "architecture": "arm64", "variant": "v8"}},
                {"platform": {"os": "unknown", "architecture": "unknown"}},
            ],
        }
    )
    assert docker.parse_manifest_platforms(raw) == ["linux/amd64", "linux/arm64/v8"]


def test_inspect_platforms_reads_raw_manifest(monkeypatch):
    raw = json.dumps({"manifests": [{"platform": {"os": "linux", "architecture": "amd64"}}]})
    seen = []

    def fake_run_cmd(argv, **kwargs):
        seen.append(list(argv))
        return CmdResult(argv=list(argv), returncode=0, stdout=raw, stderr="")

    monkeypatch.setattr(docker, "run_cmd", fake_run_cmd)

    assert docker.inspect_platforms("x:latest") == ["linux/amd64"]
    assert seen == [["docker", "buildx", "imagetools", "inspect", "--raw", "x:latest"]]


def test_docker_run_capture_overrides_entrypoint(calls):
    docker.docker_run_capture("x:latest", ["-c", "print(1)"], entrypoint="python3")
    assert calls[0][0] == ["docker", "run", "--rm", "--entrypoint", "python3", "x:latest", "-c", "print(1)"]
