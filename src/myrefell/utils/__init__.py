"""Utility functions for the Myrefell game system."""

from myrefell.utils.rng import generate_seed, roll_dice, shuffled

__all__ = [
    "generate_seed",
    "roll_dice",
    "shuffled",
]
