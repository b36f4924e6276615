"""Tests for the one-line theme inheritance file."""

import pytest

from mkdocs_images.lib.theme import (
    parse_inherit,
    read_inherit,
    render_inherit,
    verify_inherit_file,
    write_inherit_file,
)


def test_render_inherit_is_exactly_one_line():
    assert render_inherit("/theme/mkdocs.yml") == "INHERIT: /theme/mkdocs.yml\n"
    assert render_inherit("  ../base/mkdocs.yml ") == "INHERIT: ../base/mkdocs.yml\n"
    assert render_inherit("/theme/my docs/mkdocs.yml") == "INHERIT: /theme/my docs/mkdocs.yml\n"


@pytest.mark.parametrize(
    "path",
    [
        "",
        "   ",
        "/a.yml\nsite_name: x",
        "/a.yml\r\nx",
        "/theme/mk #docs.yml",
        "/a: b.yml",
        "[x]",
        "{a: b}",
        "true",
        "'/quoted.yml'",
    ],
)
def test_render_inherit_rejects_bad_paths(path):
    with pytest.raises(ValueError):
        render_inherit(path)


def test_write_then_read(tmp_path):
    dest = tmp_path / "ctx" / "mkdocs.inherit.yml"

    written = write_inherit_file(str(dest), "/theme/mkdocs.yml")

    assert written == dest
    assert dest.read_text(encoding="utf-8") == "INHERIT: /theme/mkdocs.yml\n"
    assert read_inherit(str(dest)) == "/theme/mkdocs.yml"
    assert verify_inherit_file(str(dest), "/theme/mkdocs.yml")
    assert not verify_inherit_file(str(dest), "/other/mkdocs.yml")


def test_dry_run_writes_nothing(tmp_path):
    dest = tmp_path / "mkdocs.inherit.yml"
    write_inherit_file(str(dest), "/theme/mkdocs.yml", dry_run=True)
    assert not dest.exists()
    assert not verify_inherit_file(str(dest), "/theme/mkdocs.yml")


def test_extra_content_fails_verification(tmp_path):
    dest = tmp_path / "mkdocs.inherit.yml"
    dest.write_text("INHERIT: /theme/mkdocs.yml\nsite_name: Docs\n", encoding="utf-8")

    assert not verify_inherit_file(str(dest), "/theme/mkdocs.yml")
    with pytest.raises(ValueError, match="exactly one"):
        read_inherit(str(dest))


def test_parse_inherit_rejects_other_keys():
    with pytest.raises(ValueError, match="not an INHERIT line"):
        parse_inherit("site_name: Docs\n")
    with pytest.raises(ValueError):
        parse_inherit("INHERIT:\n")
