"""
Displayed vote percentages, shared by the API and the client read model.
"""

import math


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (66.5 -> 67, not 66)."""
    return math.floor(value + 0.5)


def vote_percentages(positive: int, negative: int) -> tuple[int, int]:
    """
    Displayed (positive%, negative%). A subject with no votes shows 50/50.
    """
    total = positive + negative
    if total == 0:
        return 50, 50
    return (
        round_half_up(positive / total * 100),
        round_half_up(negative / total * 100),
    )
