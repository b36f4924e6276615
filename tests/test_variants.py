"""Tests for the image variant selector."""

import pytest

from mkdocs_images.variants import VARIANTS, select_variant, variant_from_env


def test_default_is_full():
    assert select_variant(None).name == "full"
    assert select_variant("").name == "full"


def test_configured_default_is_used_without_flag():
    assert select_variant(None, default="lightweight").name == "lightweight"


@pytest.mark.parametrize(
    "flag,expected",
    [
        ("full", "full"),
        ("HARDENED", "hardened"),
        ("minimal", "hardened"),
        ("light", "lightweight"),
        (" slim ", "lightweight"),
    ],
)
def test_flags_and_aliases(flag, expected):
    assert select_variant(flag).name == expected


def test_unknown_variant_lists_choices():
    with pytest.raises(ValueError) as exc:
        select_variant("huge")
    assert "huge" in str(exc.value)
    for name in VARIANTS:
        assert name in str(exc.value)


def test_recipes_differ_in_base_and_layering():
    full, hardened, light = VARIANTS["full"], VARIANTS["hardened"], VARIANTS["lightweight"]

    assert not full.multi_stage and not light.multi_stage
    assert hardened.multi_stage
    assert hardened.runtime_image.startswith("gcr.io/distroless/")
    assert light.package_manager == "apk"
    assert len({v.base_image for v in VARIANTS.values()}) == 3
    assert len({v.dockerfile for v in VARIANTS.values()}) == 3


def test_only_the_default_variant_has_no_tag_suffix():
    assert [v.name for v in VARIANTS.values() if not v.tag_suffix] == ["full"]


def test_variant_from_env():
    assert variant_from_env({"IMAGE_VARIANT": " hardened "}) == "hardened"
    assert variant_from_env({"IMAGE_VARIANT": ""}) is None
    assert variant_from_env({}) is None
