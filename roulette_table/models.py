"""
Data models for the roulette table.
Immutable bet values, the closed set of bet categories and configuration.
"""

import json
import logging
from dataclasses import dataclass, field, fields
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union


logger = logging.getLogger(__name__)


class BetCategory(Enum):
    """Wager types accepted by the table."""
    SINGLE_NUMBER = "SingleNumber"
    RED = "Red"
    BLACK = "Black"
    GREEN = "Green"
    EVEN = "Even"
    ODD = "Odd"
    FIRST_HALF = "FirstHalf"        # 1-18
    SECOND_HALF = "SecondHalf"      # 19-36
    FIRST_DOZEN = "FirstDozen"      # 1-12
    SECOND_DOZEN = "SecondDozen"    # 13-24
    THIRD_DOZEN = "ThirdDozen"      # 25-36
    FIRST_COLUMN = "FirstColumn"    # 1, 4, 7, ..., 34
    SECOND_COLUMN = "SecondColumn"  # 2, 5, 8, ..., 35
    THIRD_COLUMN = "ThirdColumn"    # 3, 6, 9, ..., 36
    TIERS = "Tiers"
    ORPHELINS = "Orphelins"
    VOISINS = "Voisins"
    ZERO_NEIGHBORS = "ZeroNeighbors"


class Color(Enum):
    """Pocket colours."""
    RED = "RED"
    BLACK = "BLACK"
    GREEN = "GREEN"


class TransactionType(Enum):
    """Audit entry types written to the ledger."""
    BET = "BET"
    WIN = "WIN"


MIN_NUMBER = 0
MAX_NUMBER = 36

RACETRACK_MULTIPLIER = Decimal(36) / Decimal(5)

PAYOUT_MULTIPLIERS = {
    BetCategory.SINGLE_NUMBER: Decimal(36),
    BetCategory.GREEN: Decimal(36),
    BetCategory.RED: Decimal(2),
    BetCategory.BLACK: Decimal(2),
    BetCategory.EVEN: Decimal(2),
    BetCategory.ODD: Decimal(2),
    BetCategory.FIRST_HALF: Decimal(2),
    BetCategory.SECOND_HALF: Decimal(2),
    BetCategory.FIRST_DOZEN: Decimal(3),
    BetCategory.SECOND_DOZEN: Decimal(3),
    BetCategory.THIRD_DOZEN: Decimal(3),
    BetCategory.FIRST_COLUMN: Decimal(3),
    BetCategory.SECOND_COLUMN: Decimal(3),
    BetCategory.THIRD_COLUMN: Decimal(3),
    BetCategory.TIERS: RACETRACK_MULTIPLIER,
    BetCategory.ORPHELINS: RACETRACK_MULTIPLIER,
    BetCategory.VOISINS: RACETRACK_MULTIPLIER,
    BetCategory.ZERO_NEIGHBORS: RACETRACK_MULTIPLIER,
}

FALLBACK_MULTIPLIER = Decimal(1)

# Smallest amount the ledger stores
CENTS = Decimal("0.01")


class RouletteError(Exception):
    """Base exception for roulette table errors."""
    pass


class InvalidBetError(RouletteError):
    """Raised when a bet cannot be constructed."""
    pass


class LedgerError(RouletteError):
    """Base exception for ledger failures."""
    pass


class LedgerReadError(LedgerError):
    """Raised when the ledger cannot be read."""
    pass


class LedgerWriteError(LedgerError):
    """Raised when the ledger fails to persist a balance change."""
    pass


class ConfigurationError(RouletteError):
    """Raised when configuration is invalid."""
    pass


def payout_multiplier_for(category: BetCategory) -> Decimal:
    """Return the multiplier paid on a winning bet of the given category."""
    return PAYOUT_MULTIPLIERS.get(category, FALLBACK_MULTIPLIER)


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """
    Convert user or JSON input to a Decimal.

    Floats go through ``str`` so that 0.1 stays 0.1.

    Raises:
        InvalidBetError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidBetError(f"Invalid amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(str(value).strip().replace(',', '.')) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidBetError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise InvalidBetError(f"Invalid amount: {value!r}")
    return amount


def quantize(amount: Decimal) -> Decimal:
    """Round an amount to cents."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Bet:
    """
    A single wager on the table.
    Immutable; the payout multiplier is fixed at creation from the category.
    """
    category: BetCategory
    stake: Decimal
    target_number: Optional[int] = None
    payout_multiplier: Decimal = field(init=False)

    def __post_init__(self):
        if not isinstance(self.category, BetCategory):
            raise InvalidBetError(f"Unknown bet category: {self.category!r}")

        stake = to_decimal(self.stake)
        if stake <= 0:
            raise InvalidBetError(f"Stake must be positive, got {stake}")
        try:
            whole_cents = stake == stake.quantize(CENTS)
        except InvalidOperation:
            raise InvalidBetError(f"Stake out of range: {stake}")
        if not whole_cents:
            raise InvalidBetError(f"Stake must be a whole number of cents, got {stake}")
        object.__setattr__(self, 'stake', stake)

        if self.category == BetCategory.SINGLE_NUMBER:
            if self.target_number is None:
                raise InvalidBetError("A single number bet needs a target number")
            if isinstance(self.target_number, bool) or not isinstance(self.target_number, int):
                raise InvalidBetError(f"Invalid target number: {self.target_number!r}")
            if not MIN_NUMBER <= self.target_number <= MAX_NUMBER:
                raise InvalidBetError(
                    f"Target number {self.target_number} is out of range ({MIN_NUMBER}-{MAX_NUMBER})"
                )
        elif self.target_number is not None:
            raise InvalidBetError(f"{self.category.value} bets do not take a target number")

        object.__setattr__(self, 'payout_multiplier', payout_multiplier_for(self.category))

    @property
    def potential_payout(self) -> Decimal:
        """Amount paid back if this bet wins, rounded to cents."""
        return quantize(self.stake * self.payout_multiplier)

    def describe(self) -> str:
        """Human readable label for this bet."""
        label = CATEGORY_LABELS[self.category]
        if self.category == BetCategory.SINGLE_NUMBER:
            return f"{label} {self.target_number}"
        return label

    def to_dict(self) -> dict:
        """Convert to a dictionary for the API."""
        return {
            'category': self.category.value,
            'target_number': self.target_number,
            'stake': str(self.stake),
            'payout_multiplier': str(self.payout_multiplier),
            'description': self.describe(),
        }


# Selector, category, label and odds as offered at the table.
BET_MENU: Tuple[Tuple[int, BetCategory, str, str], ...] = (
    (1, BetCategory.SINGLE_NUMBER, "Single number (0-36)", "36:1"),
    (2, BetCategory.RED, "Red", "2:1"),
    (3, BetCategory.BLACK, "Black", "2:1"),
    (4, BetCategory.GREEN, "Green (0)", "36:1"),
    (5, BetCategory.EVEN, "Even", "2:1"),
    (6, BetCategory.ODD, "Odd", "2:1"),
    (7, BetCategory.FIRST_HALF, "First half (1-18)", "2:1"),
    (8, BetCategory.SECOND_HALF, "Second half (19-36)", "2:1"),
    (9, BetCategory.FIRST_DOZEN, "First dozen (1-12)", "3:1"),
    (10, BetCategory.SECOND_DOZEN, "Second dozen (13-24)", "3:1"),
    (11, BetCategory.THIRD_DOZEN, "Third dozen (25-36)", "3:1"),
    (12, BetCategory.FIRST_COLUMN, "First column", "3:1"),
    (13, BetCategory.SECOND_COLUMN, "Second column", "3:1"),
    (14, BetCategory.THIRD_COLUMN, "Third column", "3:1"),
    (15, BetCategory.TIERS, "Tiers du cylindre", "~7:1"),
    (16, BetCategory.ORPHELINS, "Orphelins", "~7:1"),
    (17, BetCategory.VOISINS, "Voisins du zero", "~7:1"),
    (18, BetCategory.ZERO_NEIGHBORS, "Zero neighbors", "~7:1"),
)

CATEGORY_LABELS = {
    BetCategory.SINGLE_NUMBER: "Single number",
    BetCategory.RED: "Red",
    BetCategory.BLACK: "Black",
    BetCategory.GREEN: "Green",
    BetCategory.EVEN: "Even",
    BetCategory.ODD: "Odd",
    BetCategory.FIRST_HALF: "First half",
    BetCategory.SECOND_HALF: "Second half",
    BetCategory.FIRST_DOZEN: "First dozen",
    BetCategory.SECOND_DOZEN: "Second dozen",
    BetCategory.THIRD_DOZEN: "Third dozen",
    BetCategory.FIRST_COLUMN: "First column",
    BetCategory.SECOND_COLUMN: "Second column",
    BetCategory.THIRD_COLUMN: "Third column",
    BetCategory.TIERS: "Tiers du cylindre",
    BetCategory.ORPHELINS: "Orphelins",
    BetCategory.VOISINS: "Voisins du zero",
    BetCategory.ZERO_NEIGHBORS: "Zero neighbors",
}


def category_for_selector(selector: int) -> BetCategory:
    """
    Map a menu selector (1-18) to its bet category.

    Raises:
        InvalidBetError: If the selector is not on the menu
    """
    for number, category, _, _ in BET_MENU:
        if number == selector:
            return category
    raise InvalidBetError(f"Invalid bet type: {selector} (expected 1-{len(BET_MENU)})")


@dataclass
class GameConfig:
    """Table configuration."""
    database_url: str = "sqlite:///roulette.db"
    account_id: int = 1  # account served by the web API
    opening_balance: Decimal = Decimal("1000.00")
    currency_symbol: str = "$"
    history_size: int = 20
    log_level: str = "INFO"

    def __post_init__(self):
        try:
            self.opening_balance = to_decimal(self.opening_balance)
        except InvalidBetError:
            raise ConfigurationError(f"Invalid opening_balance: {self.opening_balance!r}")
        if self.opening_balance < 0:
            raise ConfigurationError("opening_balance cannot be negative")
        if isinstance(self.account_id, bool) or not isinstance(self.account_id, int):
            raise ConfigurationError(f"Invalid account_id: {self.account_id!r}")
        if not isinstance(self.history_size, int) or self.history_size <= 0:
            raise ConfigurationError("history_size must be positive")
        if logging.getLevelName(str(self.log_level).upper()) not in (
            logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL
        ):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")

    @property
    def level(self) -> int:
        return logging.getLevelName(self.log_level.upper())

    @classmethod
    def from_file(cls, file_path: Path) -> 'GameConfig':
        """Load configuration from a JSON file."""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Config file not found: {file_path}. Using defaults.")
            return cls()
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in config file: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a JSON object")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        return cls(**data)

    def save_to_file(self, file_path: Path) -> None:
        """Save configuration to a JSON file."""
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def to_dict(self) -> dict:
        """Convert to a dictionary."""
        return {
            'database_url': self.database_url,
            'account_id': self.account_id,
            'opening_balance': str(self.opening_balance),
            'currency_symbol': self.currency_symbol,
            'history_size': self.history_size,
            'log_level': self.log_level,
        }
