"""Deterministic RNG utilities for reproducible card draws."""

import hashlib
import random
from typing import List

from arcana.models import CardPosition

SUITS = ["wands", "cups", "swords", "pentacles"]


def full_deck() -> List[str]:
    """Card ids for a 78-card deck: 22 major arcana plus 4 suits of 14."""
    majors = [f"major_{i:02d}" for i in range(22)]
    minors = [f"{suit}_{rank:02d}" for suit in SUITS for rank in range(1, 15)]
    return majors + minors


def seeded_random(seed: str, salt: str = "") -> random.Random:
    """Create a deterministic random.Random instance from seed and optional salt.

    Args:
        seed: Base seed string
        salt: Optional salt to modify the seed (e.g., user id)

    Returns:
        random.Random instance that will produce deterministic sequences
    """
    combined = f"{seed}{salt}"
    int_seed = int(hashlib.sha256(combined.encode("utf-8")).hexdigest(), 16)

    # Mask to fit within Python's random seed range
    int_seed = int_seed & ((1 << 31) - 1)

    return random.Random(int_seed)


def draw_positions(
    deck_ids: List[str], count: int, seed: str, salt: str = "", allow_reversed: bool = True
) -> List[CardPosition]:
    """Draw `count` distinct cards laid out at positions 0..count-1.

    Raises:
        ValueError: if the deck holds fewer than `count` cards
    """
    if count > len(deck_ids):
        raise ValueError(f"Cannot draw {count} cards from a deck of {len(deck_ids)}")

    rng = seeded_random(seed, salt)
    shuffled = deck_ids.copy()
    rng.shuffle(shuffled)

    return [
        CardPosition(
            card_id=card_id,
            position=position,
            is_reversed=allow_reversed and rng.choice([True, False]),
        )
        for position, card_id in enumerate(shuffled[:count])
    ]
