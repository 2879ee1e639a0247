import pytest

from simpleblog.services.tag import slugify


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Letnia Rosa", "letnia-rosa"),
        ("  Żółć!! ", "zolc"),
        ("Café & Crème", "cafe-creme"),
        ("Straße", "strasse"),
        ("a -- b", "a-b"),
        ("!!!", ""),
    ],
)
def test_slugify(name, expected):
    assert slugify(name) == expected


def test_slugify_is_a_fixed_point():
    for name in ("Letnia Rosa", "  Żółć!! ", "Zima 2024 / Nowości"):
        slug = slugify(name)
        assert slugify(slug) == slug
