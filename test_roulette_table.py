#!/usr/bin/env python3
"""
Unit tests for the roulette table core: wheel, bets and outcome evaluation.

Run with: python -m pytest test_roulette_table.py -v
or: python test_roulette_table.py
"""

import json
import random
import tempfile
import unittest
from collections import Counter
from decimal import Decimal
from pathlib import Path

from roulette_table.evaluator import is_winning, payout_for
from roulette_table.models import (
    BET_MENU, Bet, BetCategory, Color, ConfigurationError, GameConfig,
    InvalidBetError, category_for_selector, payout_multiplier_for
)
from roulette_table.wheel import (
    BLACK_NUMBERS, ORPHELINS_NUMBERS, RED_NUMBERS, TIERS_NUMBERS,
    VOISINS_NUMBERS, WHEEL_NUMBERS, Wheel
)


class FixedRng:
    """Stand-in random source returning preset numbers in order."""

    def __init__(self, *numbers):
        self.numbers = list(numbers)
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        return self.numbers.pop(0)


class TestWheel(unittest.TestCase):
    """Test Wheel classification."""

    def setUp(self):
        self.wheel = Wheel()

    def test_exactly_one_color(self):
        """Every number is exactly one of red, black, green."""
        for n in WHEEL_NUMBERS:
            flags = [self.wheel.is_red(n), self.wheel.is_black(n), self.wheel.is_green(n)]
            self.assertEqual(flags.count(True), 1, f"number {n}")

    def test_zero_is_green(self):
        self.assertTrue(self.wheel.is_green(0))
        self.assertFalse(self.wheel.is_red(0))
        self.assertFalse(self.wheel.is_black(0))
        self.assertEqual(self.wheel.color_of(0), Color.GREEN)

    def test_color_sets(self):
        self.assertEqual(len(RED_NUMBERS), 18)
        self.assertEqual(len(BLACK_NUMBERS), 18)
        self.assertFalse(RED_NUMBERS & BLACK_NUMBERS)
        self.assertEqual(self.wheel.color_of(1), Color.RED)
        self.assertEqual(self.wheel.color_of(2), Color.BLACK)

    def test_parity(self):
        """Exactly one parity for 1-36; zero has none."""
        for n in range(1, 37):
            self.assertNotEqual(self.wheel.is_even(n), self.wheel.is_odd(n), f"number {n}")
        self.assertFalse(self.wheel.is_even(0))
        self.assertFalse(self.wheel.is_odd(0))

    def test_halves(self):
        self.assertTrue(self.wheel.is_first_half(1))
        self.assertTrue(self.wheel.is_first_half(18))
        self.assertTrue(self.wheel.is_second_half(19))
        self.assertTrue(self.wheel.is_second_half(36))
        self.assertFalse(self.wheel.is_first_half(0))
        self.assertFalse(self.wheel.is_second_half(0))

    def test_dozens(self):
        """Exactly one dozen for 1-36; zero is in none."""
        for n in range(1, 37):
            matches = [d for d in (1, 2, 3) if self.wheel.is_in_dozen(n, d)]
            self.assertEqual(len(matches), 1, f"number {n}")
        for d in (1, 2, 3):
            self.assertFalse(self.wheel.is_in_dozen(0, d))
        self.assertTrue(self.wheel.is_in_dozen(12, 1))
        self.assertTrue(self.wheel.is_in_dozen(13, 2))
        self.assertTrue(self.wheel.is_in_dozen(25, 3))
        self.assertFalse(self.wheel.is_in_dozen(5, 4))

    def test_columns(self):
        """Exactly one column for 1-36; zero is in none."""
        for n in range(1, 37):
            matches = [c for c in (1, 2, 3) if self.wheel.is_in_column(n, c)]
            self.assertEqual(len(matches), 1, f"number {n}")
        for c in (1, 2, 3):
            self.assertFalse(self.wheel.is_in_column(0, c))
        self.assertTrue(self.wheel.is_in_column(34, 1))
        self.assertTrue(self.wheel.is_in_column(35, 2))
        self.assertTrue(self.wheel.is_in_column(36, 3))
        self.assertFalse(self.wheel.is_in_column(3, 0))

    def test_racetrack_sets(self):
        """Tiers, Orphelins and Voisins have the published membership."""
        self.assertEqual(len(TIERS_NUMBERS), 12)
        self.assertEqual(len(ORPHELINS_NUMBERS), 8)
        self.assertEqual(len(VOISINS_NUMBERS), 17)
        self.assertFalse(TIERS_NUMBERS & ORPHELINS_NUMBERS)
        self.assertFalse(TIERS_NUMBERS & VOISINS_NUMBERS)
        self.assertFalse(ORPHELINS_NUMBERS & VOISINS_NUMBERS)
        self.assertEqual(TIERS_NUMBERS | ORPHELINS_NUMBERS | VOISINS_NUMBERS, set(WHEEL_NUMBERS))

    def test_zero_neighbors_matches_voisins(self):
        for n in WHEEL_NUMBERS:
            self.assertEqual(self.wheel.is_zero_neighbors(n), self.wheel.is_voisins(n), f"number {n}")

    def test_spin_uses_injected_rng(self):
        rng = FixedRng(17, 0)
        wheel = Wheel(rng)
        self.assertEqual(wheel.spin(), 17)
        self.assertEqual(wheel.spin(), 0)
        self.assertEqual(rng.calls, [(0, 36), (0, 36)])

    def test_spin_range_and_coverage(self):
        """A seeded wheel only produces 0-36 and reaches all of them."""
        wheel = Wheel(random.Random(1234))
        counts = Counter(wheel.spin() for _ in range(5000))
        self.assertEqual(set(counts), set(WHEEL_NUMBERS))

    def test_seeded_wheels_repeat(self):
        first = Wheel(random.Random(42))
        second = Wheel(random.Random(42))
        self.assertEqual([first.spin() for _ in range(20)], [second.spin() for _ in range(20)])


class TestBet(unittest.TestCase):
    """Test Bet construction."""

    def test_multipliers(self):
        self.assertEqual(Bet(BetCategory.SINGLE_NUMBER, 1, 5).payout_multiplier, 36)
        self.assertEqual(Bet(BetCategory.GREEN, 1).payout_multiplier, 36)
        self.assertEqual(Bet(BetCategory.RED, 1).payout_multiplier, 2)
        self.assertEqual(Bet(BetCategory.SECOND_HALF, 1).payout_multiplier, 2)
        self.assertEqual(Bet(BetCategory.THIRD_DOZEN, 1).payout_multiplier, 3)
        self.assertEqual(Bet(BetCategory.FIRST_COLUMN, 1).payout_multiplier, 3)
        self.assertEqual(Bet(BetCategory.TIERS, 1).payout_multiplier, Decimal("7.2"))
        self.assertEqual(Bet(BetCategory.ZERO_NEIGHBORS, 1).payout_multiplier, Decimal("7.2"))

    def test_unknown_category_falls_back_to_one(self):
        self.assertEqual(payout_multiplier_for("Split"), Decimal(1))

    def test_stake_is_decimal(self):
        bet = Bet(BetCategory.RED, "10.50")
        self.assertEqual(bet.stake, Decimal("10.50"))
        self.assertEqual(Bet(BetCategory.RED, 0.1).stake, Decimal("0.1"))

    def test_single_number_needs_valid_target(self):
        with self.assertRaises(InvalidBetError):
            Bet(BetCategory.SINGLE_NUMBER, 10)
        with self.assertRaises(InvalidBetError):
            Bet(BetCategory.SINGLE_NUMBER, 10, 40)
        with self.assertRaises(InvalidBetError):
            Bet(BetCategory.SINGLE_NUMBER, 10, -1)
        self.assertEqual(Bet(BetCategory.SINGLE_NUMBER, 10, 0).target_number, 0)
        self.assertEqual(Bet(BetCategory.SINGLE_NUMBER, 10, 36).target_number, 36)

    def test_target_only_for_single_number(self):
        with self.assertRaises(InvalidBetError):
            Bet(BetCategory.RED, 10, 3)

    def test_stake_must_be_positive(self):
        for stake in (0, -5, "0.00", "abc", None, float("nan")):
            with self.assertRaises(InvalidBetError, msg=f"stake {stake!r}"):
                Bet(BetCategory.RED, stake)

    def test_stake_in_whole_cents(self):
        """Stakes finer than a cent cannot be stored, so they are refused."""
        for stake in ("0.004", "10.005", Decimal("0.001")):
            with self.assertRaises(InvalidBetError, msg=f"stake {stake!r}"):
                Bet(BetCategory.SINGLE_NUMBER, stake, 17)
        self.assertEqual(Bet(BetCategory.RED, "0.01").stake, Decimal("0.01"))
        self.assertEqual(Bet(BetCategory.RED, "2.500").stake, Decimal("2.5"))

    def test_immutable(self):
        bet = Bet(BetCategory.RED, 10)
        with self.assertRaises(AttributeError):
            bet.stake = Decimal(100)

    def test_describe_and_dict(self):
        bet = Bet(BetCategory.SINGLE_NUMBER, 5, 17)
        self.assertEqual(bet.describe(), "Single number 17")
        data = bet.to_dict()
        self.assertEqual(data['category'], "SingleNumber")
        self.assertEqual(data['target_number'], 17)
        self.assertEqual(data['stake'], "5")

    def test_menu_maps_every_category(self):
        self.assertEqual([s for s, _, _, _ in BET_MENU], list(range(1, 19)))
        self.assertEqual({c for _, c, _, _ in BET_MENU}, set(BetCategory))
        self.assertEqual(category_for_selector(1), BetCategory.SINGLE_NUMBER)
        self.assertEqual(category_for_selector(18), BetCategory.ZERO_NEIGHBORS)
        with self.assertRaises(InvalidBetError):
            category_for_selector(19)
        with self.assertRaises(InvalidBetError):
            category_for_selector(0)


class TestEvaluator(unittest.TestCase):
    """Test outcome evaluation."""

    def test_single_number(self):
        bet = Bet(BetCategory.SINGLE_NUMBER, 10, 17)
        self.assertTrue(is_winning(bet, 17))
        self.assertFalse(is_winning(bet, 18))
        self.assertEqual(payout_for(bet, 17), 360)

    def test_red(self):
        bet = Bet(BetCategory.RED, 10)
        self.assertTrue(is_winning(bet, 1))
        self.assertEqual(payout_for(bet, 1), 20)
        self.assertFalse(is_winning(bet, 2))
        self.assertFalse(is_winning(bet, 0))
        self.assertEqual(payout_for(bet, 0), 0)

    def test_first_dozen(self):
        bet = Bet(BetCategory.FIRST_DOZEN, 5)
        self.assertTrue(is_winning(bet, 12))
        self.assertFalse(is_winning(bet, 13))
        self.assertEqual(payout_for(bet, 12), 15)

    def test_zero_loses_outside_bets(self):
        for category in (
            BetCategory.RED, BetCategory.BLACK, BetCategory.EVEN, BetCategory.ODD,
            BetCategory.FIRST_HALF, BetCategory.SECOND_HALF,
            BetCategory.FIRST_DOZEN, BetCategory.SECOND_DOZEN, BetCategory.THIRD_DOZEN,
            BetCategory.FIRST_COLUMN, BetCategory.SECOND_COLUMN, BetCategory.THIRD_COLUMN,
            BetCategory.TIERS, BetCategory.ORPHELINS,
        ):
            self.assertFalse(is_winning(Bet(category, 1), 0), category)
        self.assertTrue(is_winning(Bet(BetCategory.GREEN, 1), 0))
        self.assertTrue(is_winning(Bet(BetCategory.VOISINS, 1), 0))
        self.assertTrue(is_winning(Bet(BetCategory.ZERO_NEIGHBORS, 1), 0))

    def test_columns(self):
        self.assertTrue(is_winning(Bet(BetCategory.FIRST_COLUMN, 1), 34))
        self.assertTrue(is_winning(Bet(BetCategory.SECOND_COLUMN, 1), 2))
        self.assertTrue(is_winning(Bet(BetCategory.THIRD_COLUMN, 1), 36))
        self.assertFalse(is_winning(Bet(BetCategory.THIRD_COLUMN, 1), 35))

    def test_racetrack_bets(self):
        tiers = Bet(BetCategory.TIERS, 5)
        self.assertTrue(is_winning(tiers, 27))
        self.assertFalse(is_winning(tiers, 17))
        self.assertEqual(payout_for(tiers, 27), 36)
        self.assertTrue(is_winning(Bet(BetCategory.ORPHELINS, 1), 17))
        self.assertTrue(is_winning(Bet(BetCategory.VOISINS, 1), 26))

    def test_racetrack_payout_rounded_to_cents(self):
        """7.2x on a small stake pays a whole number of cents."""
        bet = Bet(BetCategory.VOISINS, "0.01")
        self.assertEqual(payout_for(bet, 26), Decimal("0.07"))
        self.assertEqual(bet.potential_payout, Decimal("0.07"))
        self.assertEqual(payout_for(Bet(BetCategory.TIERS, "0.25"), 27), Decimal("1.80"))
        self.assertEqual(payout_for(Bet(BetCategory.ORPHELINS, "0.05"), 17), Decimal("0.36"))

    def test_zero_neighbors_same_as_voisins(self):
        zero_neighbors = Bet(BetCategory.ZERO_NEIGHBORS, 1)
        voisins = Bet(BetCategory.VOISINS, 1)
        for n in WHEEL_NUMBERS:
            self.assertEqual(is_winning(zero_neighbors, n), is_winning(voisins, n), f"number {n}")

    def test_total_over_all_categories(self):
        """Every category evaluates on every number without raising."""
        for _, category, _, _ in BET_MENU:
            bet = Bet(category, 1, 7 if category == BetCategory.SINGLE_NUMBER else None)
            winners = [n for n in WHEEL_NUMBERS if is_winning(bet, n)]
            self.assertTrue(winners, category)

    def test_explicit_wheel(self):
        self.assertTrue(is_winning(Bet(BetCategory.BLACK, 1), 2, Wheel(FixedRng())))


class TestGameConfig(unittest.TestCase):
    """Test GameConfig loading and saving."""

    def test_defaults(self):
        config = GameConfig()
        self.assertEqual(config.database_url, "sqlite:///roulette.db")
        self.assertEqual(config.opening_balance, Decimal("1000.00"))
        self.assertEqual(config.currency_symbol, "$")
        self.assertEqual(config.history_size, 20)

    def test_round_trip_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            GameConfig(opening_balance="250.50", history_size=5).save_to_file(path)
            loaded = GameConfig.from_file(path)
        self.assertEqual(loaded.opening_balance, Decimal("250.50"))
        self.assertEqual(loaded.history_size, 5)

    def test_missing_file_uses_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            config = GameConfig.from_file(Path(tmp) / "missing.json")
        self.assertEqual(config, GameConfig())

    def test_invalid_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(ConfigurationError):
                GameConfig.from_file(path)

    def test_unknown_key(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"martingale_factor": 2}), encoding="utf-8")
            with self.assertRaises(ConfigurationError):
                GameConfig.from_file(path)

    def test_invalid_values(self):
        with self.assertRaises(ConfigurationError):
            GameConfig(opening_balance=-1)
        with self.assertRaises(ConfigurationError):
            GameConfig(history_size=0)
        with self.assertRaises(ConfigurationError):
            GameConfig(log_level="LOUD")
        with self.assertRaises(ConfigurationError):
            GameConfig(account_id="one")


def run_tests():
    """Run all tests."""
    unittest.main(verbosity=2)


if __name__ == '__main__':
    run_tests()
