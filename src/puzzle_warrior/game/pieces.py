from __future__ import annotations

from enum import IntEnum


EMPTY = ""
DIAMOND = "*"
NO_PIECE = "."


class PieceKind(IntEnum):
    EMPTY = 0
    NORMAL = 1
    EXPLOSIVE = 2
    DIAMOND = 3


def _is_letter(marker: str) -> bool:
    return len(marker) == 1 and marker.isascii() and marker.isalpha()


def kind_of(marker: str) -> PieceKind:
    if marker == EMPTY:
        return PieceKind.EMPTY
    if marker == DIAMOND:
        return PieceKind.DIAMOND
    if _is_letter(marker):
        return PieceKind.EXPLOSIVE if marker.isupper() else PieceKind.NORMAL
    raise ValueError(f"Invalid piece marker: {marker!r}")


def is_empty(marker: str) -> bool:
    return marker == EMPTY


def is_diamond(marker: str) -> bool:
    return marker == DIAMOND


def is_explosive(marker: str) -> bool:
    # Uppercase letters only; the diamond symbol has no case
    return _is_letter(marker) and marker.isupper()


def same_type(a: str, b: str) -> bool:
    """Letters match case-insensitively, the diamond matches only itself."""
    if a == EMPTY or b == EMPTY:
        return False
    return a.lower() == b.lower()


def normal(color: str) -> str:
    return color.lower()


def explosive(color: str) -> str:
    return color.upper()


def encode(marker: str, palette: str) -> int:
    """Integer code of a marker for observation arrays.

    0 is empty, 1 is the diamond, then one code per palette color for normal
    pieces followed by one per color for explosive pieces.
    """
    kind = kind_of(marker)
    if kind == PieceKind.EMPTY:
        return 0
    if kind == PieceKind.DIAMOND:
        return 1
    index = palette.lower().find(marker.lower())
    if index < 0:
        raise ValueError(f"Color {marker!r} is not in palette {palette!r}")
    if kind == PieceKind.EXPLOSIVE:
        return 2 + len(palette) + index
    return 2 + index


def max_code(palette: str) -> int:
    return 1 + 2 * len(palette)
