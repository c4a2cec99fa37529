"""
European roulette wheel: fixed table layout and classification queries.
"""

import random
from typing import FrozenSet, Optional

from .models import MAX_NUMBER, MIN_NUMBER, Color


WHEEL_NUMBERS = range(MIN_NUMBER, MAX_NUMBER + 1)

RED_NUMBERS: FrozenSet[int] = frozenset({1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36})
BLACK_NUMBERS: FrozenSet[int] = frozenset({2, 4, 6, 8, 10, 11, 13, 15, 17, 20, 22, 24, 26, 28, 29, 31, 33, 35})

# Racetrack groups, listed in wheel order
TIERS_NUMBERS: FrozenSet[int] = frozenset({27, 13, 36, 11, 30, 8, 23, 10, 5, 24, 16, 33})
ORPHELINS_NUMBERS: FrozenSet[int] = frozenset({17, 34, 6, 1, 20, 14, 31, 9})
VOISINS_NUMBERS: FrozenSet[int] = frozenset({22, 18, 29, 7, 28, 12, 35, 3, 26, 0, 32, 15, 19, 4, 21, 2, 25})


class Wheel:
    """
    The wheel and its layout.

    The random source is owned by the instance so tests can pass a seeded
    ``random.Random`` or a stub exposing ``randint``.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.Random()

    def spin(self) -> int:
        """Draw a winning number, uniform over 0-36."""
        return self._rng.randint(MIN_NUMBER, MAX_NUMBER)

    def is_red(self, number: int) -> bool:
        return number in RED_NUMBERS

    def is_black(self, number: int) -> bool:
        return number in BLACK_NUMBERS

    def is_green(self, number: int) -> bool:
        return number == 0

    # Zero has no parity
    def is_even(self, number: int) -> bool:
        return number != 0 and number % 2 == 0

    def is_odd(self, number: int) -> bool:
        return number != 0 and number % 2 == 1

    def is_first_half(self, number: int) -> bool:
        return 1 <= number <= 18

    def is_second_half(self, number: int) -> bool:
        return 19 <= number <= 36

    def is_in_dozen(self, number: int, dozen: int) -> bool:
        if dozen == 1:
            return 1 <= number <= 12
        if dozen == 2:
            return 13 <= number <= 24
        if dozen == 3:
            return 25 <= number <= 36
        return False

    def is_in_column(self, number: int, column: int) -> bool:
        if number == 0 or column not in (1, 2, 3):
            return False
        return number % 3 == column % 3

    def is_tiers(self, number: int) -> bool:
        return number in TIERS_NUMBERS

    def is_orphelins(self, number: int) -> bool:
        return number in ORPHELINS_NUMBERS

    def is_voisins(self, number: int) -> bool:
        return number in VOISINS_NUMBERS

    def is_zero_neighbors(self, number: int) -> bool:
        # 0 is already in Voisins, so this matches exactly the Voisins set
        return number == 0 or self.is_voisins(number)

    def color_of(self, number: int) -> Color:
        if self.is_red(number):
            return Color.RED
        if self.is_black(number):
            return Color.BLACK
        return Color.GREEN
