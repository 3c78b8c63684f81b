"""Collection Rules — tests for pure collection validation and defaults.

Tests cover:
    - name_key normalization
    - Name, description and color checks
    - System collection update restrictions
    - Protection of the default and "Favoritos" collections
    - Default collection set and palettes
"""

from uuid import uuid4

import pytest

from explicaai.core.collection_rules import (
    COLOR_PALETTE, DEFAULT_COLLECTIONS, FAVORITES_NAME, ICON_PALETTE,
    MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH, CollectionRecord,
    check_collection_name, check_color, check_description, check_system_update,
    is_protected, name_key, pick_color, pick_icon,
)
from explicaai.core.domain_types import Category


def _record(name="Minha coleção", is_system=False, is_default=False):
    return CollectionRecord(
        id=uuid4(), name=name, description="", color="#FF6B6B", icon="📚",
        is_system=is_system, is_default=is_default,
    )


# ─── name_key ───────────────────────────────────────────────────

def test_name_key_strips_and_casefolds():
    assert name_key("  Geometria ") == "geometria"
    assert name_key("ÁLGEBRA Básica") == name_key("álgebra básica")


# ─── Checks ─────────────────────────────────────────────────────

@pytest.mark.parametrize("name", [None, "", "   "])
def test_blank_name_rejected(name):
    assert check_collection_name(name) is not None


def test_name_length_limit():
    assert check_collection_name("a" * MAX_NAME_LENGTH) is None
    assert check_collection_name("a" * (MAX_NAME_LENGTH + 1)) is not None


def test_description_length_limit():
    assert check_description(None) is None
    assert check_description("a" * MAX_DESCRIPTION_LENGTH) is None
    assert check_description("a" * (MAX_DESCRIPTION_LENGTH + 1)) is not None


@pytest.mark.parametrize("color, ok", [
    (None, True), ("#4ECDC4", True), ("#abcdef", True),
    ("4ECDC4", False), ("#FFF", False), ("#GGGGGG", False),
])
def test_color_format(color, ok):
    assert (check_color(color) is None) is ok


def test_system_collection_allows_color_and_icon_only():
    record = _record(Category.GEOMETRY.value, is_system=True)
    assert check_system_update(record, {"color": "#000000", "icon": "📐"}) is None
    assert check_system_update(record, {"name": "Outra"}) is not None
    assert check_system_update(record, {"description": "nova"}) is not None


def test_user_collection_accepts_any_update():
    assert check_system_update(_record(), {"name": "Outra", "description": "x"}) is None


# ─── Protection ─────────────────────────────────────────────────

def test_default_collection_is_protected():
    assert is_protected(_record(FAVORITES_NAME, is_system=True, is_default=True))


def test_favorites_name_is_protected_case_insensitively():
    assert is_protected(_record(" favoritos "))


def test_other_system_collections_are_deletable():
    assert not is_protected(_record(Category.ALGEBRA.value, is_system=True))
    assert not is_protected(_record())


# ─── Defaults ───────────────────────────────────────────────────

def test_exactly_one_default_collection():
    defaults = [c for c in DEFAULT_COLLECTIONS if c.is_default]
    assert [c.name for c in defaults] == [FAVORITES_NAME]


def test_every_category_has_a_system_collection():
    names = {c.name for c in DEFAULT_COLLECTIONS}
    assert {c.value for c in Category} <= names


def test_default_colors_are_valid():
    assert all(check_color(c.color) is None for c in DEFAULT_COLLECTIONS)


def test_palette_picks():
    assert pick_color() in COLOR_PALETTE
    assert pick_icon() in ICON_PALETTE
