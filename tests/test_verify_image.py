"""Tests for post-build verification of the image contents and pushed platforms."""

import pytest

from mkdocs_images.state_store import ensure_defaults
from mkdocs_images.steps import step_60_verify_image
from mkdocs_images.steps.step_60_verify_image import VerifyImageStep, platform_covered

FROZEN_OK = "mkdocs==1.6.1\nmkdocs_material==9.5.44\npymdown-extensions==10.12\nMarkdown==3.7\n"


def _state(project, **image):
    state = ensure_defaults({})
    state["config"] = {
        "image": {"name": "ghcr.io/example/mkdocs"},
        "manifest": str(project / "requirements.txt"),
        "theme": {"inherit": "/theme/mkdocs.yml"},
    }
    state["execution"]["context"] = {"inherit_file": "mkdocs.inherit.yml"}
    state["execution"]["image"] = {
        "tags": ["ghcr.io/example/mkdocs:latest"],
        "platforms": ["linux/amd64", "linux/arm64"],
        "loaded": False,
        "pushed": False,
        **image,
    }
    return state


@pytest.fixture
def container(monkeypatch):
    outputs = {"freeze": FROZEN_OK, "inherit": "INHERIT: /theme/mkdocs.yml\n"}
    calls = []

    def fake_run(image, argv, entrypoint=None):
        calls.append((image, list(argv), entrypoint))
        if argv[-1] == "/etc/mkdocs/mkdocs.inherit.yml":
            return outputs["inherit"]
        return outputs["freeze"]

    monkeypatch.setattr(step_60_verify_image, "docker_run_capture", fake_run)
    outputs["calls"] = calls
    return outputs


def test_loaded_image_passes(project, container):
    state = VerifyImageStep().run(_state(project, loaded=True))

    report = state["execution"]["verification"]
    assert report["problems"] == []
    assert report["packages_checked"] == 3
    assert report["inherit_checked"] is True
    assert all(entry == "python3" for _, _, entry in container["calls"])


def test_wrong_package_version_fails(project, container):
    container["freeze"] = "mkdocs==1.5.3\nmkdocs-material==9.5.44\n"

    with pytest.raises(RuntimeError) as exc:
        VerifyImageStep().run(_state(project, loaded=True))

    message = str(exc.value)
    assert "mkdocs: installed 1.5.3, expected ==1.6.1" in message
    assert "pymdown-extensions: not installed" in message


def test_wrong_inherit_content_fails(project, container):
    container["inherit"] = "INHERIT: /elsewhere.yml\n"

    with pytest.raises(RuntimeError, match="does not contain INHERIT"):
        VerifyImageStep().run(_state(project, loaded=True))


def test_pushed_image_checks_platforms(project, monkeypatch):
    monkeypatch.setattr(step_60_verify_image, "inspect_platforms", lambda tag: ["linux/amd64", "linux/arm64/v8"])

    state = VerifyImageStep().run(_state(project, pushed=True))

    assert state["execution"]["verification"]["platforms"] == ["linux/amd64", "linux/arm64/v8"]


def test_pushed_image_missing_platform_fails(project, monkeypatch):
    monkeypatch.setattr(step_60_verify_image, "inspect_platforms", lambda tag: ["linux/amd64"])

    with pytest.raises(RuntimeError, match="linux/arm64 missing"):
        VerifyImageStep().run(_state(project, pushed=True))


def test_nothing_to_verify_is_skipped(project):
    state = VerifyImageStep().run(_state(project))
    assert state["execution"]["verification"]["skipped"] is True


def test_verification_can_be_disabled(project):
    state = _state(project)
    state["options"]["verify"] = False
    state["execution"]["image"] = {}

    VerifyImageStep().run(state)

    assert "verification" not in state["execution"]


def test_platform_covered():
    assert platform_covered("linux/arm64", ["linux/arm64/v8"])
    assert platform_covered("linux/amd64", ["linux/amd64"])
    assert not platform_covered("linux/arm", ["linux/arm64"])


def test_browser_manifest_from_context_is_checked(project, container):
    ctx = project / "build" / "work" / "full"
    ctx.mkdir(parents=True)
    (ctx / "requirements.txt").write_text("mkdocs==1.6.1\n", encoding="utf-8")
    (ctx / "requirements-browser.txt").write_text("playwright==1.48.0\n", encoding="utf-8")
    state = _state(project, loaded=True)
    state["execution"]["context"].update(
        {"dir": str(ctx), "manifests": ["requirements.txt", "requirements-browser.txt"]}
    )

    with pytest.raises(RuntimeError, match="playwright: not installed"):
        VerifyImageStep().run(state)

    container["freeze"] = FROZEN_OK + "playwright==1.48.0\n"
    state = VerifyImageStep().run(state)
    assert state["execution"]["verification"]["packages_checked"] == 2
