from __future__ import annotations

from typing import Optional, Sequence, Tuple

from .models import Emoji, Stock


RACCOON = "🦝"

DEFAULT_EMOJIS: Tuple[Emoji, ...] = (
    Emoji("🫓", "flatbread", 10),
    Emoji("🗑️", "trash", 100),
    Emoji("🧅", "onion", 200),
    Emoji("🍳", "egg", 399),
    Emoji("🍩", "donut", 1000),
    Emoji("🍔", "burger", 2000),
    Emoji("🍕", "pizza", 2000),
    Emoji("🍨", "icecream", 2000),
    Emoji("🍟", "fries", 2000),
    Emoji("🍌", "banana", 5000),
    Emoji("🪃", "boomerang", 5000),
    Emoji("🙈", "seenoevil", 5000),
    Emoji("🙉", "hearnoevil", 5000),
    Emoji("🙊", "speaknoevil", 5000),
    Emoji("🦍", "gorilla", 10000),
    Emoji("🐸", "frog", 10000),
    Emoji("🦘", "kangaroo", 10000),
    Emoji("🐶", "dog", 20000),
    Emoji("🐱", "cat", 20000),
    Emoji("🦧", "orangutan", 20000),
    Emoji("🐊", "crocodile", 20000),
    Emoji("💰", "moneybag", 50000),
    Emoji("💎", "diamond", 100000),
    Emoji("🗿", "moai", 200000),
    Emoji("🏎️", "car", 500000),
    Emoji("🚁", "helicopter", 1000000),
    Emoji("🪂", "parachute", 1000000),
    Emoji("👑", "crown", 10000000),
    Emoji("🚀", "rocket", 100000000),
    Emoji("🛸", "ufo", 200000000),
    Emoji("💦", "sweat", 500000000),
    Emoji(RACCOON, "raccoon", 0, is_hidden=True),
    Emoji("🎅", "santa", 0, is_hidden=True),
)


def find_emoji(catalog: Sequence[Emoji], item: str) -> Optional[Emoji]:
    """Look an emoji up by its character or (case-insensitive) alias."""

    lowered = item.lower()
    for emoji in catalog:
        if emoji.character == item or emoji.alias == lowered:
            return emoji
    return None


def store_listing(catalog: Sequence[Emoji]) -> Sequence[Emoji]:
    return [emoji for emoji in catalog if not emoji.is_hidden]


# Stock listings with their opening prices. Symbols missing from this list are
# delisted by the stores on start-up.
DEFAULT_STOCKS: Tuple[Stock, ...] = (
    Stock("WICH", 150, 148),
    Stock("SNAX", 2500, 2498),
    Stock("COPES", 300, 298),
    Stock("WKAI", 3500, 3498),
    Stock("KLONG", 350, 348),
    Stock("POKE", 4000, 3998),
    Stock("ROR", 450, 448),
    Stock("EWGF", 5000, 4998),
    Stock("DIGI", 550, 548),
    Stock("BOB", 50, 48),
    Stock("ALLG", 100, 98),
    Stock("LJF", 200, 198),
    Stock("DORG", 300, 298),
    Stock("GAS", 500, 498),
    Stock("GOKU", 600, 598),
    Stock("CLIV", 10, 8),
    Stock("DAGG", 20, 18),
)
