"""Collection Rules — pure validation and defaults for collections.

Invariants:
    - check_* functions return None if valid, or an error message (pt-BR)
    - The default collection (is_default) and any collection named
      "Favoritos" (case-insensitive) are protected from deletion
    - System collections accept only color/icon changes
    - Palette picks are the only non-deterministic functions here

Design Decisions:
    - Error-message-or-None instead of raising: the lifecycle manager decides
      which exception to raise and with which field
    - CollectionRecord is a frozen snapshot; services never hand ORM rows
      across a transaction boundary
"""

import random
import re
from dataclasses import dataclass

from explicaai.core.domain_types import Category, CollectionId

FAVORITES_NAME = "Favoritos"
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500

COLOR_PALETTE = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7", "#DDA0DD",
    "#98D8C8", "#F7DC6F", "#BB8FCE", "#85C1E9", "#F8C471", "#82E0AA",
)

ICON_PALETTE = (
    "📚", "📖", "📝", "📊", "📐", "🔢", "📋", "📌",
    "🎯", "⭐", "🔥", "💡", "🧮", "📏", "📑", "🎨",
)

_HEX_COLOR = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)


@dataclass(frozen=True)
class DefaultCollection:
    name: str
    description: str
    color: str
    icon: str
    is_default: bool = False


DEFAULT_COLLECTIONS = (
    DefaultCollection(
        FAVORITES_NAME, "Problemas marcados como favoritos", "#FF6B6B", "⭐",
        is_default=True,
    ),
    DefaultCollection(
        Category.ALGEBRA.value, "Equações lineares, quadráticas e sistemas",
        "#4ECDC4", "🔢",
    ),
    DefaultCollection(
        Category.GEOMETRY.value, "Áreas, volumes e teoremas geométricos",
        "#45B7D1", "📐",
    ),
    DefaultCollection(
        Category.FUNCTIONS.value, "Funções lineares, quadráticas e trigonométricas",
        "#96CEB4", "📊",
    ),
    DefaultCollection(
        Category.ENEM.value, "Problemas típicos do ENEM e vestibulares",
        "#FFEAA7", "🎯",
    ),
    DefaultCollection(
        Category.REVIEW.value, "Problemas que precisam ser revistos",
        "#DDA0DD", "🔄",
    ),
)


@dataclass(frozen=True)
class CollectionRecord:
    """Read model of a collection row."""
    id: CollectionId
    name: str
    description: str
    color: str
    icon: str
    is_system: bool
    is_default: bool
    problem_count: int = 0


@dataclass(frozen=True)
class DeletionReport:
    """Outcome of delete-with-migration."""
    collection_id: CollectionId
    problems_migrated: int
    problems_detached: int


# ─── Checks ─────────────────────────────────────────────────────

def name_key(name: str) -> str:
    """Uniqueness key: stripped and casefolded."""
    return name.strip().casefold()


def check_collection_name(name: str | None) -> str | None:
    if name is None or not name.strip():
        return "Nome da coleção é obrigatório"
    if len(name.strip()) > MAX_NAME_LENGTH:
        return f"Nome da coleção deve ter no máximo {MAX_NAME_LENGTH} caracteres"
    return None


def check_description(description: str | None) -> str | None:
    if description and len(description.strip()) > MAX_DESCRIPTION_LENGTH:
        return f"Descrição deve ter no máximo {MAX_DESCRIPTION_LENGTH} caracteres"
    return None


def check_color(color: str | None) -> str | None:
    if color is not None and not _HEX_COLOR.match(color):
        return "Cor deve estar no formato hexadecimal (#RRGGBB)"
    return None


def check_system_update(record: CollectionRecord, changes: dict) -> str | None:
    """System collections may only change color and icon."""
    if not record.is_system:
        return None
    if changes.get("name") is not None or changes.get("description") is not None:
        return "Não é possível alterar nome/descrição de coleções do sistema"
    return None


def is_protected(record: CollectionRecord) -> bool:
    return record.is_default or name_key(record.name) == FAVORITES_NAME.casefold()


# ─── Palettes ───────────────────────────────────────────────────

def pick_color() -> str:
    return random.choice(COLOR_PALETTE)  # nosec B311


def pick_icon() -> str:
    return random.choice(ICON_PALETTE)  # nosec B311
