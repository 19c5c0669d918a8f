"""
Account Module

A bank account holds its owner, product type, balance and an append-only
history of human-readable records. Every balance read and mutation goes
through the account's own lock; transfers take both accounts' locks in
ascending id order.
"""

from contextlib import ExitStack, contextmanager
from datetime import datetime, timezone
from decimal import Decimal, DecimalException
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
import threading

from .currency import MAX_AMOUNT, Currency, Money, Numeric, exceeds_limit, to_decimal
from .errors import InsufficientFunds, InvalidAmount, InvalidArgument, InvalidOperation


class AccountType(Enum):
    """Banking product types"""
    CHECKING = "checking"
    SAVINGS = "savings"


AmountLike = Union[Money, Numeric]


class Account:
    """
    Bank account with a lock-guarded balance.

    Accounts are created by Ledger.create_account; the ledger assigns the id.
    """

    def __init__(
        self,
        account_id: int,
        owner: str,
        account_type: AccountType,
        opening_balance: Money,
        created_at: Optional[datetime] = None
    ):
        if owner is None or not owner.strip():
            raise InvalidArgument("Owner cannot be empty")
        if not isinstance(account_type, AccountType):
            raise InvalidArgument(f"Unknown account type: {account_type!r}")
        if opening_balance.is_negative():
            raise InvalidAmount("Opening balance cannot be negative")

        self._id = account_id
        self._owner = owner.strip()
        self._account_type = account_type
        self._currency = opening_balance.currency
        self._created_at = created_at or datetime.now(timezone.utc)
        self._balance = opening_balance
        self._history: List[str] = [
            f"Account created with initial balance: ${opening_balance.plain()}"
        ]
        self._lock = threading.RLock()

    @property
    def id(self) -> int:
        return self._id

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def account_type(self) -> AccountType:
        return self._account_type

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def is_savings(self) -> bool:
        return self._account_type == AccountType.SAVINGS

    @property
    def balance(self) -> Money:
        return self.get_balance()

    @property
    def history(self) -> Tuple[str, ...]:
        """Snapshot of the history records, oldest first"""
        with self._lock:
            return tuple(self._history)

    def get_balance(self) -> Money:
        """Current balance as of the latest completed mutation"""
        with self._lock:
            return self._balance

    def deposit(self, amount: AmountLike) -> Money:
        """
        Deposit funds into the account

        Args:
            amount: Positive amount in the account currency

        Returns:
            Balance after the deposit

        Raises:
            InvalidAmount: If amount is not positive
        """
        money = self._coerce_amount(amount, "deposit")
        with self._lock:
            self._check_headroom(money)
            self._balance = self._balance + money
            self._history.append(
                f"Deposit of ${money.plain()} | New balance: ${self._balance.plain()}"
            )
            return self._balance

    def withdraw(self, amount: AmountLike) -> Money:
        """
        Withdraw funds from the account

        Raises:
            InvalidAmount: If amount is not positive
            InsufficientFunds: If amount exceeds the balance
        """
        money = self._coerce_amount(amount, "withdraw")
        with self._lock:
            if money > self._balance:
                raise InsufficientFunds(
                    f"Insufficient funds: balance {self._balance.plain()}, requested {money.plain()}",
                    account_id=self._id
                )
            self._balance = self._balance - money
            self._history.append(
                f"Withdrawal of ${money.plain()} | New balance: ${self._balance.plain()}"
            )
            return self._balance

    def transfer(self, destination: Optional['Account'], amount: AmountLike) -> Money:
        """
        Move funds from this account to another as one atomic unit

        Both locks are held for the whole debit/credit, so no reader of
        either balance sees one side without the other.

        Args:
            destination: Account to credit
            amount: Positive amount to move

        Returns:
            This account's balance after the transfer

        Raises:
            InvalidArgument: Missing destination, same account, or currency mismatch
            InvalidAmount: If amount is not positive
            InsufficientFunds: If amount exceeds this account's balance
        """
        if destination is None:
            raise InvalidArgument("Destination account cannot be empty", account_id=self._id)
        if destination is self:
            raise InvalidArgument("Cannot transfer to the same account", account_id=self._id)
        if destination.currency != self._currency:
            raise InvalidArgument(
                f"Cannot transfer {self._currency.code} to a {destination.currency.code} account",
                account_id=self._id
            )
        money = self._coerce_amount(amount, "transfer")

        with lock_accounts(self, destination):
            if money > self._balance:
                raise InsufficientFunds(
                    f"Insufficient funds to transfer: balance {self._balance.plain()}, "
                    f"requested {money.plain()}",
                    account_id=self._id
                )
            destination._check_headroom(money)
            self._balance = self._balance - money
            destination._balance = destination._balance + money
            self._history.append(f"Transfer of ${money.plain()} to {destination.owner}")
            destination._history.append(
                f"Transfer received of ${money.plain()} from {self._owner}"
            )
            return self._balance

    def apply_interest(self, rate: Numeric) -> Money:
        """
        Credit interest of balance * rate / 100

        Only savings accounts accrue interest. The interest is rounded to the
        currency's minor unit before it is added.

        Raises:
            InvalidArgument: If rate is negative or not a finite number
            InvalidOperation: If this is not a savings account
        """
        try:
            rate = to_decimal(rate)
        except (TypeError, ValueError):
            raise InvalidArgument(f"Invalid interest rate: {rate!r}", account_id=self._id)
        if not rate.is_finite():
            raise InvalidArgument(f"Invalid interest rate: {rate}", account_id=self._id)
        if rate < 0:
            raise InvalidArgument("Interest rate cannot be negative", account_id=self._id)
        if not self.is_savings:
            raise InvalidOperation(
                "Only SAVINGS accounts accrue interest", account_id=self._id
            )

        with self._lock:
            try:
                raw_interest = self._balance.amount * rate / Decimal('100')
            except DecimalException:
                raise InvalidArgument(f"Invalid interest rate: {rate}", account_id=self._id)
            if exceeds_limit(self._balance.amount + raw_interest):
                raise InvalidArgument(
                    f"Interest would take the balance above the maximum of {MAX_AMOUNT}",
                    account_id=self._id
                )
            interest = Money(raw_interest, self._currency)
            self._balance = self._balance + interest
            self._history.append(
                f"Interest applied: ${interest.plain()} | New balance: ${self._balance.plain()}"
            )
            return self._balance

    def show_history(self) -> str:
        """Render the history the way the console prints it"""
        entries = self.history
        if not entries:
            return "No transactions recorded."
        lines = [f"History for {self._owner}:"]
        lines.extend(f" - {entry}" for entry in entries)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe snapshot of the account"""
        with self._lock:
            return {
                'id': self._id,
                'owner': self._owner,
                'account_type': self._account_type.value,
                'currency': self._currency.code,
                'balance': str(self._balance.amount),
                'created_at': self._created_at.isoformat(),
                'history': list(self._history)
            }

    def _check_headroom(self, money: Money) -> None:
        """Caller holds the lock"""
        if exceeds_limit(self._balance.amount + money.amount):
            raise InvalidAmount(
                f"Balance of account {self._id} would exceed the maximum of {MAX_AMOUNT}",
                account_id=self._id
            )

    def _coerce_amount(self, amount: AmountLike, action: str) -> Money:
        """Convert input to Money in this account's currency and require it positive"""
        if isinstance(amount, Money):
            if amount.currency != self._currency:
                raise InvalidArgument(
                    f"Amount currency {amount.currency.code} does not match account "
                    f"currency {self._currency.code}",
                    account_id=self._id
                )
            money = amount
        else:
            try:
                value = to_decimal(amount)
            except (TypeError, ValueError):
                raise InvalidAmount(f"Invalid amount: {amount!r}", account_id=self._id)
            if not value.is_finite():
                raise InvalidAmount(f"Invalid amount: {amount!r}", account_id=self._id)
            if exceeds_limit(value):
                raise InvalidAmount(
                    f"Amount exceeds the maximum of {MAX_AMOUNT}", account_id=self._id
                )
            money = Money(value, self._currency)

        if exceeds_limit(money.amount):
            raise InvalidAmount(
                f"Amount exceeds the maximum of {MAX_AMOUNT}", account_id=self._id
            )

        if not money.is_positive():
            raise InvalidAmount(
                f"Amount to {action} must be greater than 0", account_id=self._id
            )
        return money

    def __str__(self) -> str:
        return (
            f"ID:{self._id} - {self._owner} ({self._account_type.name}) - "
            f"Balance: {self.get_balance().plain()}"
        )

    def __repr__(self) -> str:
        return f"Account(id={self._id}, owner={self._owner!r}, type={self._account_type.name})"


@contextmanager
def lock_accounts(*accounts: Account) -> Iterator[None]:
    """
    Hold the locks of several accounts at once

    Locks are taken in ascending id order so that two threads locking the
    same pair never wait on each other in a cycle.
    """
    unique = {account.id: account for account in accounts}
    with ExitStack() as stack:
        for account_id in sorted(unique):
            stack.enter_context(unique[account_id]._lock)
        yield
