"""Canonical taxonomy definitions for catalog items.

This module centralises the role lexicon, the color-name taxonomy and the
neutral palette. Helper functions keep role lookups consistent across the
scoring engine, the candidate generator and the ingestion pipeline.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Tuple

LEXICON_VERSION = 2


class Role(str, Enum):
    """Functional slot a garment fills in an outfit."""

    TOP = "top"
    BOTTOM = "bottom"
    SHOES = "shoes"
    OUTERWEAR = "outerwear"
    UNKNOWN = "unknown"


# Lookup order matters: "Denim Shirt Jacket" is outerwear and "Bootcut Jeans"
# is a bottom, so outerwear and bottoms are consulted before shoes and tops.
ROLE_LEXICON: Tuple[Tuple[Role, Tuple[str, ...]], ...] = (
    (
        Role.OUTERWEAR,
        (
            "jacket",
            "coat",
            "raincoat",
            "overcoat",
            "blazer",
            "parka",
            "puffer",
            "trench",
            "windbreaker",
            "anorak",
            "cardigan",
            "gilet",
        ),
    ),
    (
        Role.BOTTOM,
        (
            "jeans",
            "pants",
            "trousers",
            "shorts",
            "skirt",
            "chinos",
            "leggings",
            "joggers",
            "slacks",
            "sweatpants",
            "bootcut",
        ),
    ),
    (
        Role.SHOES,
        (
            "shoe",
            "shoes",
            "sneaker",
            "sneakers",
            "trainer",
            "trainers",
            "boot",
            "boots",
            "sandal",
            "sandals",
            "heels",
            "loafer",
            "loafers",
            "flats",
            "oxfords",
            "slides",
            "flip",
        ),
    ),
    (
        Role.TOP,
        (
            "shirt",
            "tshirt",
            "tee",
            "top",
            "blouse",
            "sweater",
            "sweatshirt",
            "hoodie",
            "pullover",
            "polo",
            "tank",
            "jersey",
            "turtleneck",
            "tunic",
            "camisole",
        ),
    ),
)

# Color names produced by the HSB classifier, in cascade order.
ACHROMATIC_COLOR_NAMES: List[str] = ["Black", "White", "Light Gray", "Dark Gray", "Gray"]
CHROMATIC_COLOR_NAMES: List[str] = [
    "Red",
    "Orange",
    "Brown",
    "Yellow",
    "Olive",
    "Green",
    "Teal",
    "Blue",
    "Purple",
    "Magenta",
    "Colored",
]
UNKNOWN_COLOR_NAME = "Unknown Color"
DEFAULT_COLOR_HEX = "#808080"

NEUTRAL_COLORS = {"black", "white", "gray", "grey", "brown", "beige", "cream"}

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def tokenize(value: str) -> List[str]:
    """Split a free-form label into lowercase word tokens."""

    return [token for token in _TOKEN_SPLIT.split(value.lower()) if token]


def role_for_category(category: str | None) -> Role:
    """Derive the outfit role of a catalog item from its category label."""

    tokens = tokenize(category or "")
    if not tokens:
        return Role.UNKNOWN
    token_set = set(tokens)
    for role, keywords in ROLE_LEXICON:
        for keyword in keywords:
            if keyword in token_set:
                return role
    return Role.UNKNOWN


def is_neutral_color(color_name: str | None) -> bool:
    """Return True when the color name reads as a neutral that anchors anything.

    Missing and unknown colors are treated as neutral because they carry no hue
    information to clash with.
    """

    if not color_name or color_name == UNKNOWN_COLOR_NAME:
        return True
    return any(token in NEUTRAL_COLORS for token in tokenize(color_name))


__all__ = [
    "LEXICON_VERSION",
    "Role",
    "ROLE_LEXICON",
    "ACHROMATIC_COLOR_NAMES",
    "CHROMATIC_COLOR_NAMES",
    "UNKNOWN_COLOR_NAME",
    "DEFAULT_COLOR_HEX",
    "NEUTRAL_COLORS",
    "tokenize",
    "role_for_category",
    "is_neutral_color",
]
