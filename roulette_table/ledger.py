"""
Account ledger persisted with SQLAlchemy.
Holds the player balance and an append-only audit of bets and wins.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy import DateTime, Integer, Numeric, String, create_engine, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import LedgerError, LedgerReadError, LedgerWriteError, TransactionType, quantize


Base = declarative_base()


class Account(Base):
    __tablename__ = "account"
    account_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False, default=Decimal(0))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())


class LedgerEntry(Base):
    __tablename__ = "ledger_entry"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)  # negative for bets
    balance_after: Mapped[Optional[Decimal]] = mapped_column(Numeric(16, 2))
    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'account_id': self.account_id,
            'amount': str(self.amount),
            'balance_after': str(self.balance_after) if self.balance_after is not None else None,
            'type': self.transaction_type,
            'description': self.description,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


def make_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across sessions."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


class SqlLedger:
    """
    Balance and transaction store for player accounts.

    ``get_balance``, ``update_balance`` and ``record_transaction`` are the
    single-step operations. ``post_entry`` applies a balance change and its
    audit entry in one database transaction; the game session uses it so the
    two can never drift apart.
    """

    def __init__(self, database_url: str = "sqlite:///roulette.db", engine: Optional[Engine] = None):
        try:
            self.engine = engine if engine is not None else make_engine(database_url)
        except SQLAlchemyError as e:
            raise LedgerError(f"Invalid database URL {database_url!r}: {e}") from e
        self._session_factory = sessionmaker(self.engine, expire_on_commit=False)
        self.logger = logging.getLogger(self.__class__.__name__)

    def create_schema(self) -> None:
        """Create the ledger tables if they do not exist."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise LedgerWriteError(f"Could not create ledger tables: {e}") from e

    def open_account(self, account_id: int, opening_balance: Union[Decimal, int] = 0) -> Decimal:
        """
        Create an account if it has no record yet.

        Returns:
            The balance of the (new or existing) account
        """
        try:
            with self._session_factory.begin() as session:
                account = session.get(Account, account_id)
                if account is None:
                    account = Account(account_id=account_id, balance=quantize(opening_balance))
                    session.add(account)
                    self.logger.info(f"Opened account {account_id} with balance {account.balance}")
                return Decimal(account.balance)
        except SQLAlchemyError as e:
            self.logger.exception(f"Could not open account {account_id}")
            raise LedgerWriteError(f"Could not open account {account_id}: {e}") from e

    def account_exists(self, account_id: int) -> bool:
        try:
            with self._session_factory() as session:
                return session.get(Account, account_id) is not None
        except SQLAlchemyError as e:
            raise LedgerReadError(f"Could not look up account {account_id}: {e}") from e

    def get_balance(self, account_id: int) -> Decimal:
        """Current balance, or zero if the account has no record."""
        try:
            with self._session_factory() as session:
                balance = session.scalar(select(Account.balance).where(Account.account_id == account_id))
        except SQLAlchemyError as e:
            self.logger.exception(f"Balance read failed for account {account_id}")
            raise LedgerReadError(f"Balance read failed for account {account_id}: {e}") from e
        return Decimal(balance) if balance is not None else Decimal(0)

    def update_balance(self, account_id: int, new_balance: Decimal) -> bool:
        """
        Persist a new balance.

        Returns:
            True if a record was affected
        """
        try:
            with self._session_factory.begin() as session:
                rows = self._write_balance(session, account_id, new_balance)
        except SQLAlchemyError as e:
            self.logger.exception(f"Balance update failed for account {account_id}")
            raise LedgerWriteError(f"Balance update failed for account {account_id}: {e}") from e

        if rows == 0:
            self.logger.warning(f"Balance update affected no record (account {account_id})")
        return rows > 0

    def record_transaction(
        self,
        account_id: int,
        amount: Decimal,
        transaction_type: Union[TransactionType, str],
        description: str = "",
    ) -> None:
        """Append an audit entry. Amount is signed: negative for bets, positive for wins."""
        try:
            with self._session_factory.begin() as session:
                session.add(self._entry(account_id, amount, transaction_type, description))
        except SQLAlchemyError as e:
            self.logger.exception(f"Could not record transaction for account {account_id}")
            raise LedgerWriteError(f"Could not record transaction for account {account_id}: {e}") from e

    def post_entry(
        self,
        account_id: int,
        new_balance: Decimal,
        amount: Decimal,
        transaction_type: Union[TransactionType, str],
        description: str = "",
    ) -> bool:
        """
        Write a balance change and its audit entry atomically.

        Returns:
            False if the account has no record (nothing is written)

        Raises:
            LedgerWriteError: If the database rejects either write; both are
                rolled back
        """
        with self._session_factory() as session:
            try:
                rows = self._write_balance(session, account_id, new_balance)
                if rows == 0:
                    session.rollback()
                    self.logger.warning(f"No account {account_id}; entry not posted")
                    return False
                session.add(self._entry(account_id, amount, transaction_type, description, new_balance))
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                self.logger.exception(f"Ledger entry rolled back for account {account_id}")
                raise LedgerWriteError(f"Ledger entry rolled back for account {account_id}: {e}") from e

        self.logger.debug(f"Posted {amount} ({description}) to account {account_id}, balance {quantize(new_balance)}")
        return True

    def recent_transactions(self, account_id: int, limit: int = 20) -> List[LedgerEntry]:
        """Most recent audit entries, newest first."""
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.id.desc())
            .limit(limit)
        )
        try:
            with self._session_factory() as session:
                return list(session.scalars(stmt))
        except SQLAlchemyError as e:
            raise LedgerReadError(f"Could not read transactions for account {account_id}: {e}") from e

    @staticmethod
    def _write_balance(session, account_id: int, new_balance: Decimal) -> int:
        result = session.execute(
            update(Account)
            .where(Account.account_id == account_id)
            .values(balance=quantize(new_balance))
        )
        return result.rowcount

    @staticmethod
    def _entry(account_id, amount, transaction_type, description, balance_after=None) -> LedgerEntry:
        if isinstance(transaction_type, TransactionType):
            transaction_type = transaction_type.value
        return LedgerEntry(
            account_id=account_id,
            amount=quantize(amount),
            balance_after=quantize(balance_after) if balance_after is not None else None,
            transaction_type=transaction_type,
            description=description,
        )
