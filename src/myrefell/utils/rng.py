"""Deterministic Random Number Generator (RNG) system for Myrefell.

Tournament brackets and match rolls must be reproducible, so randomness here
is never drawn from the global generator. Every roll is seeded from the game
record it belongs to (tournament id, round, match, exchange), which gives:
- Reproducibility: Same seed always produces same results
- Fairness: Competitors cannot re-roll by retrying a request
- Audit trail: The seed is stored next to each roll in the combat log

Examples:
    >>> seed = generate_seed("tournament", 7, "round", 1, "match", 2, "exchange", 0)
    >>> seed
    'tournament:7:round:1:match:2:exchange:0'
    >>> result = roll_dice(seed, "1d100")
    >>> 1 <= result["total"] <= 100
    True
"""

import hashlib
import random
import re
from typing import Any, TypeVar

T = TypeVar("T")


def generate_seed(namespace: str, *parts: object) -> str:
    """Generate deterministic seed from a namespace and identifying parts.

    Format: "namespace:part1:part2:..."

    Args:
        namespace: What the roll is for (e.g. 'tournament', 'bracket')
        *parts: Identifiers that make the roll unique (ids, round numbers)

    Returns:
        Seed string

    Raises:
        ValueError: If namespace is empty or an integer part is negative
    """
    if not namespace:
        raise ValueError("namespace must not be empty")
    for part in parts:
        if isinstance(part, int) and part < 0:
            raise ValueError(f"seed parts must be non-negative, got {part}")

    return ":".join([namespace, *(str(part) for part in parts)])


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    # Use first 8 bytes for a 64-bit integer
    return int.from_bytes(digest[:8], "big", signed=False)


def _parse_dice_notation(notation: str) -> tuple[int, int]:
    """Parse dice notation like '1d100' into (num_dice, num_sides).

    Raises:
        ValueError: If notation is invalid or values are non-positive
    """
    match = re.match(r"^(\d+)d(\d+)$", notation.lower())
    if not match:
        raise ValueError(
            f"Invalid dice notation: '{notation}'. Expected format: NdM (e.g., '1d100', '2d6')"
        )

    num_dice = int(match.group(1))
    num_sides = int(match.group(2))

    if num_dice <= 0:
        raise ValueError(f"Number of dice must be positive, got {num_dice}")
    if num_sides <= 0:
        raise ValueError(f"Number of sides must be positive, got {num_sides}")

    return num_dice, num_sides


def roll_dice(seed: str, notation: str = "1d100") -> dict[str, Any]:
    """Roll dice with deterministic seed.

    Args:
        seed: Deterministic seed string (from generate_seed)
        notation: Dice notation (e.g., "1d100", "2d6")

    Returns:
        Dictionary containing:
            - notation: The dice notation used
            - rolls: List of individual die rolls
            - total: Sum of all rolls
            - seed: The seed used

    Raises:
        ValueError: If dice notation is invalid
    """
    num_dice, num_sides = _parse_dice_notation(notation)

    rng = random.Random(_seed_to_int(seed))
    rolls = [rng.randint(1, num_sides) for _ in range(num_dice)]

    return {
        "notation": notation,
        "rolls": rolls,
        "total": sum(rolls),
        "seed": seed,
    }


def shuffled(seed: str, items: list[T]) -> list[T]:
    """Return a copy of ``items`` in a deterministic order for ``seed``.

    The input list is not modified.
    """
    result = list(items)
    random.Random(_seed_to_int(seed)).shuffle(result)
    return result
