"""
Game session for the roulette table.
Takes bets against the ledger balance, spins the wheel and pays out winners.
"""

from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Deque, List, Optional, Tuple
import logging

from .evaluator import payout_for
from .ledger import SqlLedger
from .models import Bet, Color, GameConfig, LedgerError, TransactionType, quantize
from .wheel import Wheel


logger = logging.getLogger(__name__)


class BetStatus(Enum):
    ACCEPTED = "ACCEPTED"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    LEDGER_FAILURE = "LEDGER_FAILURE"


class SpinStatus(Enum):
    RESOLVED = "RESOLVED"
    NO_BETS = "NO_BETS"
    LEDGER_FAILURE = "LEDGER_FAILURE"


@dataclass
class BetResult:
    """Outcome of placing a bet."""
    status: BetStatus
    bet: Bet
    balance: Decimal
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status == BetStatus.ACCEPTED

    def to_dict(self) -> dict:
        """Convert to a dictionary for the API."""
        return {
            'success': self.success,
            'status': self.status.value,
            'bet': self.bet.to_dict(),
            'balance': str(self.balance),
            'message': self.message,
        }


@dataclass
class SpinResult:
    """Outcome of one spin of the wheel."""
    status: SpinStatus
    balance: Decimal
    winning_number: Optional[int] = None
    color: Optional[Color] = None
    winning_bets: List[Tuple[Bet, Decimal]] = field(default_factory=list)
    total_payout: Decimal = Decimal(0)
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status != SpinStatus.LEDGER_FAILURE

    def to_dict(self) -> dict:
        """Convert to a dictionary for the API."""
        return {
            'success': self.success,
            'status': self.status.value,
            'winning_number': self.winning_number,
            'color': self.color.value if self.color else None,
            'winning_bets': [
                {'bet': bet.to_dict(), 'payout': str(payout)}
                for bet, payout in self.winning_bets
            ],
            'total_payout': str(self.total_payout),
            'balance': str(self.balance),
            'message': self.message,
        }


@dataclass
class GameSession:
    """
    One player's session at the table.

    The ledger is the source of truth for the balance; the cached value is
    re-read before every solvency check and after every write.
    """
    ledger: SqlLedger
    account_id: int
    wheel: Wheel = field(default_factory=Wheel)
    config: GameConfig = field(default_factory=GameConfig)
    balance: Decimal = field(default=Decimal(0), init=False)
    pending_bets: List[Bet] = field(default_factory=list, init=False)
    history: Deque[int] = field(init=False)
    total_wagered: Decimal = field(default=Decimal(0), init=False)
    total_won: Decimal = field(default=Decimal(0), init=False)
    rounds_played: int = field(default=0, init=False)
    unsettled: Optional[SpinResult] = field(default=None, init=False)

    def __post_init__(self):
        """Load the balance and size the spin history."""
        self.history = deque(maxlen=self.config.history_size)
        self.refresh_balance()

    def refresh_balance(self) -> Decimal:
        """Re-read the balance from the ledger, discarding the cached value."""
        self.balance = self.ledger.get_balance(self.account_id)
        return self.balance

    def _reload_balance(self) -> None:
        """Refresh after a write; a failed read keeps the last known balance."""
        try:
            self.refresh_balance()
        except LedgerError as e:
            logger.warning(f"Balance refresh failed, keeping {self.balance}: {e}")

    def place_bet(self, bet: Bet) -> BetResult:
        """
        Debit the stake and add the bet to the pending set.

        Args:
            bet: The bet to place

        Returns:
            BetResult; only an ACCEPTED bet is pending and debited
        """
        try:
            self.refresh_balance()
        except LedgerError as e:
            logger.error(f"Bet not placed, balance unavailable: {e}")
            return BetResult(
                BetStatus.LEDGER_FAILURE, bet, self.balance,
                "Could not read balance from the ledger; bet not placed"
            )

        if bet.stake > self.balance:
            logger.warning(f"Bet rejected, insufficient balance: {self.balance} < {bet.stake}")
            return BetResult(
                BetStatus.INSUFFICIENT_FUNDS, bet, self.balance,
                f"Insufficient balance: {self.balance} < {bet.stake}"
            )

        new_balance = self.balance - bet.stake
        try:
            posted = self.ledger.post_entry(
                self.account_id, new_balance, -bet.stake,
                TransactionType.BET, f"Placed {bet.category.value} bet"
            )
        except LedgerError as e:
            logger.error(f"Bet not placed: {e}")
            posted = False

        if not posted:
            self._reload_balance()
            return BetResult(
                BetStatus.LEDGER_FAILURE, bet, self.balance,
                "Error updating balance in the ledger; bet not placed"
            )

        self.pending_bets.append(bet)
        self.balance = quantize(new_balance)
        self.total_wagered += bet.stake

        logger.info(f"Bet placed: {bet.describe()} - {bet.stake}")
        return BetResult(BetStatus.ACCEPTED, bet, self.balance, f"Bet placed: {bet.describe()} - {bet.stake}")

    def spin(self) -> SpinResult:
        """
        Spin the wheel and settle every pending bet.

        A spin whose winnings could not be credited is settled first, without
        drawing again; bets placed since then wait for the following spin.

        Returns:
            SpinResult; NO_BETS when nothing is pending (no number drawn)
        """
        if self.unsettled is not None:
            return self.settle()

        if not self.pending_bets:
            return SpinResult(SpinStatus.NO_BETS, self.balance, message="No bets placed!")

        winning_number = self.wheel.spin()
        color = self.wheel.color_of(winning_number)

        winning_bets: List[Tuple[Bet, Decimal]] = []
        total_payout = Decimal(0)
        for bet in self.pending_bets:
            payout = payout_for(bet, winning_number, self.wheel)
            if payout > 0:
                winning_bets.append((bet, payout))
                total_payout += payout

        bets_settled = len(self.pending_bets)
        self.pending_bets = []

        outcome = SpinResult(
            SpinStatus.RESOLVED, self.balance, winning_number, color,
            winning_bets, total_payout, f"Total winnings: {total_payout}"
        )
        if total_payout > 0 and not self._credit(total_payout):
            # Outcome stands; only the credit is retried
            self.unsettled = outcome
            return self._credit_failure(outcome)

        logger.debug(f"Spin {winning_number}: {len(winning_bets)}/{bets_settled} bets won")
        return self._resolve(outcome)

    def settle(self) -> Optional[SpinResult]:
        """
        Retry crediting the winnings of a spin whose credit failed.

        Returns:
            SpinResult for that spin, or None when nothing is owed
        """
        if self.unsettled is None:
            return None

        outcome = self.unsettled
        if not self._credit(outcome.total_payout):
            return self._credit_failure(outcome)

        self.unsettled = None
        logger.info(f"Winnings of {outcome.total_payout} from spin {outcome.winning_number} credited on retry")
        return self._resolve(outcome)

    def _credit(self, amount: Decimal) -> bool:
        """Post a WIN entry; False (balance re-read) if the ledger did not take it."""
        try:
            new_balance = self.ledger.get_balance(self.account_id) + amount
            posted = self.ledger.post_entry(
                self.account_id, new_balance, amount,
                TransactionType.WIN, "Roulette winnings from spin"
            )
        except LedgerError as e:
            logger.error(f"Winnings not credited: {e}")
            posted = False

        if not posted:
            self._reload_balance()
        return posted

    def _credit_failure(self, outcome: SpinResult) -> SpinResult:
        return SpinResult(
            SpinStatus.LEDGER_FAILURE, self.balance, outcome.winning_number, outcome.color,
            outcome.winning_bets, outcome.total_payout,
            "Error updating balance in the ledger; winnings will be credited on the next spin"
        )

    def _resolve(self, outcome: SpinResult) -> SpinResult:
        """Commit a spin whose winnings (if any) are in the ledger."""
        self._reload_balance()
        self.history.append(outcome.winning_number)
        self.total_won += outcome.total_payout
        self.rounds_played += 1

        logger.info(
            f"Spin {outcome.winning_number} ({outcome.color.value}) settled: "
            f"payout {outcome.total_payout}, balance {self.balance}"
        )

        return SpinResult(
            SpinStatus.RESOLVED, self.balance, outcome.winning_number, outcome.color,
            outcome.winning_bets, outcome.total_payout, outcome.message
        )

    def statistics(self) -> dict:
        """Current session statistics."""
        return {
            'account_id': self.account_id,
            'balance': str(self.balance),
            'total_wagered': str(self.total_wagered),
            'total_won': str(self.total_won),
            'net_result': str(self.total_won - self.total_wagered),
            'rounds_played': self.rounds_played,
            'pending_bets': len(self.pending_bets),
            'unsettled_payout': str(self.unsettled.total_payout) if self.unsettled else "0",
            'history': list(self.history),
        }
