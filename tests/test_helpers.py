"""Unit tests for the pure helpers: slugs, tag-name cleanup, error bodies."""
import re

import pytest

from app.errors import error_body
from app.services.article_service import slugify
from app.services.tag_service import normalize_tag_names


# ---------------------------------------------------------------------------
# slugify
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("title, expected", [
    ("A Title!", "a-title"),
    ("  How to   train your DRAGON ", "how-to-train-your-dragon"),
    ("snake_case and-dashes--here", "snake-case-and-dashes-here"),
    ("--edges--", "edges"),
    ("Café Déjà Vu", "cafe-deja-vu"),
    ("Über Straße", "uber-strasse"),
])
def test_slugify(title, expected):
    assert slugify(title) == expected


@pytest.mark.parametrize("title", ["Привет мир", "日本語のタイトル", "Ελληνικά"])
def test_slugify_non_latin_is_ascii(title):
    slug = slugify(title)
    assert slug
    assert slug.isascii()
    assert re.fullmatch(r"[a-z0-9-]+", slug)


def test_slugify_nothing_left_falls_back_to_random_key():
    assert re.fullmatch(r"[0-9a-f]{8}", slugify("!!! ???"))


def test_slugify_random_suffix():
    slug = slugify("A Title!", random_suffix=True)
    prefix, _, suffix = slug.rpartition("-")
    assert prefix == "a-title"
    assert len(suffix) == 8


# ---------------------------------------------------------------------------
# Tag names and error bodies
# ---------------------------------------------------------------------------

def test_normalize_tag_names():
    assert normalize_tag_names([" b ", "a", "b", "", "   ", "A"]) == ["b", "a", "A"]


def test_error_body_shape():
    assert error_body("one", "two") == {"errors": {"body": ["one", "two"]}}
    assert error_body("") == {"errors": {"body": []}}
