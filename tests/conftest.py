import pytest

MANIFEST = "mkdocs==1.6.1\nmkdocs-material==9.5.44\npymdown-extensions>=10.12\n"
BROWSER_MANIFEST = "playwright==1.48.0\n"


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A throwaway project directory with a manifest and a build config."""

    monkeypatch.chdir(tmp_path)
    for name in ("GITHUB_SHA", "IMAGE_VARIANT", "PLAYWRIGHT_BROWSERS_PATH", "REGISTRY_USERNAME", "REGISTRY_PASSWORD"):
        monkeypatch.delenv(name, raising=False)

    (tmp_path / "requirements.txt").write_text(MANIFEST, encoding="utf-8")
    (tmp_path / "requirements-browser.txt").write_text(BROWSER_MANIFEST, encoding="utf-8")
    (tmp_path / "build_config.yaml").write_text(
        "image:\n"
        "  name: ghcr.io/example/mkdocs\n"
        "  platforms: [linux/amd64, linux/arm64]\n"
        "theme:\n"
        "  inherit: /theme/mkdocs.yml\n"
        "browser:\n"
        "  manifest: requirements-browser.txt\n",
        encoding="utf-8",
    )
    return tmp_path
