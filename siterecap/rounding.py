"""Numeric helpers shared by renderers and collaborators."""
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (12.5 -> 13, -0.5 -> 0)."""
    return math.floor(value + 0.5)
