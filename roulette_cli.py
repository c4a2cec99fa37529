#!/usr/bin/env python3
"""
Roulette Table - Interactive Terminal

A single-player European roulette table. Place straight-up, outside and
racetrack bets (Tiers, Orphelins, Voisins, Zero neighbors), spin the wheel
and have winnings paid into a persisted account.

Run with: python roulette_cli.py [--config config.json]
"""

import argparse
import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from roulette_table.engine import BetStatus, GameSession, SpinResult, SpinStatus
from roulette_table.ledger import SqlLedger
from roulette_table.models import (
    BET_MENU, Bet, BetCategory, Color, ConfigurationError, GameConfig,
    InvalidBetError, LedgerError, MAX_NUMBER, MIN_NUMBER,
    category_for_selector, to_decimal
)


COLOR_STYLES = {
    Color.RED: "bold white on red",
    Color.BLACK: "bold white on black",
    Color.GREEN: "bold black on green",
}


class RouletteTable:
    """Menu-driven terminal front end for a game session."""

    def __init__(self, session: GameSession, config: GameConfig, console: Optional[Console] = None):
        """
        Initialize the table.

        Args:
            session: Game session bound to the player's account
            config: Table configuration
            console: Console to print to (tests pass a recording console)
        """
        self.session = session
        self.config = config
        self.console = console or Console()
        self.logger = logging.getLogger(self.__class__.__name__)

    def money(self, amount: Decimal) -> str:
        return f"{self.config.currency_symbol}{amount:,.2f}"

    def display_balance(self) -> None:
        """Show the balance, always read fresh from the ledger."""
        try:
            balance = self.session.refresh_balance()
        except LedgerError as e:
            self.console.print(f"[red]Could not read balance: {e}[/red]")
            return
        self.console.print(f"Current balance: [cyan]{self.money(balance)}[/cyan]")

    def display_betting_options(self) -> None:
        table = Table(title="Betting options", show_header=True)
        table.add_column("#", justify="right", style="bold")
        table.add_column("Bet")
        table.add_column("Pays", justify="right", style="cyan")

        for selector, _, label, odds in BET_MENU:
            table.add_row(str(selector), label, odds)

        self.console.print(table)

    def place_bet_menu(self) -> None:
        """Prompt for stake, bet type and (for straight-up bets) the number."""
        self.console.print("\n[bold]=== PLACE BET ===[/bold]")

        try:
            amount = to_decimal(self.console.input("Enter bet amount: "))
        except InvalidBetError:
            self.console.print("[red]Invalid amount![/red]")
            return
        if amount <= 0:
            self.console.print("[red]Invalid amount![/red]")
            return

        self.display_betting_options()
        try:
            category = category_for_selector(int(self.console.input(f"Enter bet type (1-{len(BET_MENU)}): ")))
        except (ValueError, InvalidBetError):
            self.console.print("[red]Invalid bet type![/red]")
            return

        number = None
        if category == BetCategory.SINGLE_NUMBER:
            try:
                number = int(self.console.input(f"Enter number ({MIN_NUMBER}-{MAX_NUMBER}): "))
            except ValueError:
                self.console.print("[red]Invalid number![/red]")
                return

        try:
            bet = Bet(category, amount, number)
        except InvalidBetError as e:
            self.console.print(f"[red]{e}[/red]")
            return

        result = self.session.place_bet(bet)
        if result.status == BetStatus.ACCEPTED:
            self.console.print(
                f"[green]Bet placed: {bet.describe()} - {self.money(bet.stake)}[/green] "
                f"(balance {self.money(result.balance)})"
            )
        elif result.status == BetStatus.INSUFFICIENT_FUNDS:
            self.console.print("[red]Insufficient balance![/red]")
        else:
            self.console.print(f"[red]{result.message}[/red]")

    def spin_wheel(self) -> None:
        result = self.session.spin()
        if result.status == SpinStatus.NO_BETS:
            self.console.print("[yellow]No bets placed![/yellow]")
            return

        self._display_spin(result)

        if result.status == SpinStatus.LEDGER_FAILURE:
            self.console.print(f"[red]{result.message}[/red]")
            return

        self.console.print(f"Total winnings: [bold]{self.money(result.total_payout)}[/bold]")
        self.console.print(f"New balance: [cyan]{self.money(result.balance)}[/cyan]")

    def _display_spin(self, result: SpinResult) -> None:
        self.console.print("\n[bold]=== SPINNING THE WHEEL ===[/bold]")

        header = Text()
        header.append("The ball lands on: ", style="bold")
        header.append(f" {result.winning_number} ", style=COLOR_STYLES[result.color])
        header.append(f"  {result.color.value}", style="dim")
        self.console.print(header)

        for bet, payout in result.winning_bets:
            self.console.print(f"[green]WIN! {bet.describe()} bet pays {self.money(payout)}[/green]")

    def display_summary(self) -> None:
        """Display the session summary."""
        stats = self.session.statistics()

        summary = Table(title="Session summary", show_header=True, box=None)
        summary.add_column("Metric", style="bold")
        summary.add_column("Value", justify="right")

        net = Decimal(stats['net_result'])
        net_color = "green" if net >= 0 else "red"
        net_sign = "+" if net >= 0 else ""

        summary.add_row("Account", str(stats['account_id']))
        summary.add_row("Balance", self.money(Decimal(stats['balance'])))
        summary.add_row("Rounds played", str(stats['rounds_played']))
        summary.add_row("Total wagered", self.money(Decimal(stats['total_wagered'])))
        summary.add_row("Total won", self.money(Decimal(stats['total_won'])))
        summary.add_row("Result", f"[{net_color}]{net_sign}{self.money(net)}[/{net_color}]")
        if stats['pending_bets']:
            summary.add_row("Unresolved bets", str(stats['pending_bets']))
        if Decimal(stats['unsettled_payout']):
            summary.add_row("Winnings awaiting credit", self.money(Decimal(stats['unsettled_payout'])))

        self.console.print(summary)
        self.console.print("\n[dim]Thanks for playing![/dim]")

    def run(self) -> None:
        """Run the main menu loop."""
        actions = {
            1: self.display_balance,
            2: self.display_betting_options,
            3: self.place_bet_menu,
            4: self.spin_wheel,
            5: self.display_balance,
        }

        while True:
            try:
                self.console.print("\n[bold cyan]=== MAIN MENU ===[/bold cyan]")
                self.console.print("1. View balance")
                self.console.print("2. View betting options")
                self.console.print("3. Place bet")
                self.console.print("4. Spin wheel")
                self.console.print("5. Refresh balance from database")
                self.console.print("6. Exit")

                try:
                    choice = int(self.console.input("Choose an option: "))
                except ValueError:
                    self.console.print("[red]Invalid input![/red]")
                    continue

                if choice == 6:
                    self.display_summary()
                    break

                action = actions.get(choice)
                if action is None:
                    self.console.print("[red]Invalid option![/red]")
                    continue
                action()

            except KeyboardInterrupt:
                self.console.print("\n[yellow]Interrupted by user.[/yellow]")
                self.display_summary()
                break
            except EOFError:
                self.display_summary()
                break


def setup_logging(level: int = logging.INFO) -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)]
    )


def open_session(config: GameConfig, account_id: int, console: Console) -> GameSession:
    """Connect to the ledger and open the account if it is new."""
    ledger = SqlLedger(config.database_url)
    ledger.create_schema()

    if not ledger.account_exists(account_id):
        ledger.open_account(account_id, config.opening_balance)
        console.print(
            f"[green]New account {account_id} opened with "
            f"{config.currency_symbol}{config.opening_balance:,.2f}.[/green]"
        )

    return GameSession(ledger, account_id, config=config)


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Play roulette against a persisted account.")
    parser.add_argument("--config", type=Path, default=Path("config.json"), help="JSON configuration file")
    parser.add_argument("--account", type=int, help="account ID (prompted for when omitted)")
    args = parser.parse_args(argv)

    console = Console()

    try:
        if args.config.exists():
            config = GameConfig.from_file(args.config)
        else:
            config = GameConfig()
            config.save_to_file(args.config)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        return 1

    setup_logging(config.level)

    console.print(Panel.fit(
        "[bold cyan]=== ROULETTE GAME ===[/bold cyan]\n"
        "[dim]Welcome to the roulette table![/dim]",
        border_style="cyan"
    ))

    account_id = args.account
    if account_id is None:
        try:
            account_id = int(console.input("Please enter your Account ID: "))
        except ValueError:
            console.print("[red]Invalid Account ID![/red]")
            return 1
        except (KeyboardInterrupt, EOFError):
            return 1

    try:
        session = open_session(config, account_id, console)
    except LedgerError as e:
        console.print(f"[red]Could not open account {account_id}: {e}[/red]")
        return 1

    RouletteTable(session, config, console).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
