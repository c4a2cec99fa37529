"""
Outcome evaluation: decides whether a bet wins for a given winning number.
"""

from decimal import Decimal
from typing import Callable, Dict, Optional

from .models import Bet, BetCategory
from .wheel import Wheel


_DEFAULT_WHEEL = Wheel()

_PREDICATES: Dict[BetCategory, Callable[[Wheel, Bet, int], bool]] = {
    BetCategory.SINGLE_NUMBER: lambda wheel, bet, n: bet.target_number == n,
    BetCategory.RED: lambda wheel, bet, n: wheel.is_red(n),
    BetCategory.BLACK: lambda wheel, bet, n: wheel.is_black(n),
    BetCategory.GREEN: lambda wheel, bet, n: wheel.is_green(n),
    BetCategory.EVEN: lambda wheel, bet, n: wheel.is_even(n),
    BetCategory.ODD: lambda wheel, bet, n: wheel.is_odd(n),
    BetCategory.FIRST_HALF: lambda wheel, bet, n: wheel.is_first_half(n),
    BetCategory.SECOND_HALF: lambda wheel, bet, n: wheel.is_second_half(n),
    BetCategory.FIRST_DOZEN: lambda wheel, bet, n: wheel.is_in_dozen(n, 1),
    BetCategory.SECOND_DOZEN: lambda wheel, bet, n: wheel.is_in_dozen(n, 2),
    BetCategory.THIRD_DOZEN: lambda wheel, bet, n: wheel.is_in_dozen(n, 3),
    BetCategory.FIRST_COLUMN: lambda wheel, bet, n: wheel.is_in_column(n, 1),
    BetCategory.SECOND_COLUMN: lambda wheel, bet, n: wheel.is_in_column(n, 2),
    BetCategory.THIRD_COLUMN: lambda wheel, bet, n: wheel.is_in_column(n, 3),
    BetCategory.TIERS: lambda wheel, bet, n: wheel.is_tiers(n),
    BetCategory.ORPHELINS: lambda wheel, bet, n: wheel.is_orphelins(n),
    BetCategory.VOISINS: lambda wheel, bet, n: wheel.is_voisins(n),
    BetCategory.ZERO_NEIGHBORS: lambda wheel, bet, n: n == 0 or wheel.is_voisins(n),
}


def is_winning(bet: Bet, spin_result: int, wheel: Optional[Wheel] = None) -> bool:
    """
    Check whether a bet wins on the given winning number.

    Args:
        bet: The bet to evaluate
        spin_result: The winning number (0-36)
        wheel: Wheel used for classification; the layout is fixed, so any
            instance answers the same

    Returns:
        True if the bet wins
    """
    predicate = _PREDICATES.get(bet.category)
    if predicate is None:
        return False
    return predicate(wheel or _DEFAULT_WHEEL, bet, spin_result)


def payout_for(bet: Bet, spin_result: int, wheel: Optional[Wheel] = None) -> Decimal:
    """Amount paid for this bet: stake times multiplier, rounded to cents, on a win; zero otherwise."""
    if is_winning(bet, spin_result, wheel):
        return bet.potential_payout
    return Decimal(0)
