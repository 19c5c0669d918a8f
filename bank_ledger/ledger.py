"""
Ledger Module

The ledger is the registry that owns every account. It assigns sequential
ids from a counter held in the ledger instance, keeps accounts in creation
order and never removes them.
"""

from decimal import Decimal
from typing import Dict, Iterator, Optional, Tuple
import itertools
import threading

from .accounts import Account, AccountType
from .config import get_config
from .currency import MAX_AMOUNT, Currency, Money, Numeric, exceeds_limit, to_decimal
from .errors import InvalidAmount, InvalidArgument, NotFound
from .logging_config import get_logger, log_action


CLAMP = "clamp"
REJECT = "reject"

DEMO_ACCOUNTS = (
    ("Tony Stark", AccountType.CHECKING, Decimal('1500.00')),
    ("Natasha Romanoff", AccountType.SAVINGS, Decimal('2000.00')),
)


class Ledger:
    """
    Registry of accounts

    Creation and lookup are safe under concurrent access. The registry lock
    is never held while an account lock is taken.
    """

    def __init__(
        self,
        currency: Optional[Currency] = None,
        negative_initial_balance: Optional[str] = None
    ):
        settings = get_config()
        self.currency = currency or Currency[settings.default_currency.upper()]
        self.negative_initial_balance = negative_initial_balance or settings.negative_initial_balance
        if self.negative_initial_balance not in (CLAMP, REJECT):
            raise ValueError(
                f"negative_initial_balance must be '{CLAMP}' or '{REJECT}', "
                f"got {self.negative_initial_balance!r}"
            )

        self._accounts: Dict[int, Account] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self.logger = get_logger("ledger")

    def create_account(
        self,
        owner: str,
        account_type: AccountType,
        initial_balance: Numeric = Decimal('0')
    ) -> Account:
        """
        Open a new account

        Args:
            owner: Account holder name, must not be blank
            account_type: CHECKING or SAVINGS
            initial_balance: Opening balance; negative values are clamped to
                zero unless the ledger is configured to reject them

        Returns:
            The stored Account

        Raises:
            InvalidAmount: Negative balance under the reject policy, or not a number
            InvalidArgument: Blank owner or unknown account type
        """
        # Validate before drawing an id so rejected requests leave no gap
        if owner is None or not owner.strip():
            raise InvalidArgument("Owner cannot be empty")
        if not isinstance(account_type, AccountType):
            raise InvalidArgument(f"Unknown account type: {account_type!r}")

        try:
            value = to_decimal(initial_balance)
        except (TypeError, ValueError):
            raise InvalidAmount(f"Invalid initial balance: {initial_balance!r}")
        if not value.is_finite():
            raise InvalidAmount(f"Invalid initial balance: {initial_balance!r}")

        if value < 0:
            if self.negative_initial_balance == REJECT:
                raise InvalidAmount("Initial balance cannot be negative")
            self.logger.warning(
                f"Negative initial balance {value} for {owner!r} clamped to 0"
            )
            value = Decimal('0')

        if exceeds_limit(value):
            raise InvalidAmount(f"Initial balance exceeds the maximum of {MAX_AMOUNT}")

        opening_balance = Money(value, self.currency)

        with self._lock:
            account_id = next(self._ids)
            account = Account(account_id, owner, account_type, opening_balance)
            self._accounts[account_id] = account

        log_action(
            self.logger, "info", f"Account {account_id} opened for {account.owner}",
            action="create_account", account_id=account_id,
            extra={"account_type": account_type.value, "opening_balance": opening_balance.plain()}
        )
        return account

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by id, or None if there is no such account"""
        with self._lock:
            return self._accounts.get(account_id)

    def require_account(self, account_id: int) -> Account:
        """Get account by id, raising NotFound if it does not exist"""
        account = self.get_account(account_id)
        if account is None:
            raise NotFound(f"Account {account_id} not found", account_id=account_id)
        return account

    def list_accounts(self) -> Tuple[Account, ...]:
        """All accounts in creation order"""
        with self._lock:
            return tuple(self._accounts.values())

    def total_balance(self) -> Money:
        """Sum of every account balance"""
        total = Money.zero(self.currency)
        for account in self.list_accounts():
            total = total + account.get_balance()
        return total

    def seed_demo_accounts(self) -> Tuple[Account, ...]:
        """Open the two starter accounts the console ships with"""
        return tuple(
            self.create_account(owner, account_type, balance)
            for owner, account_type, balance in DEMO_ACCOUNTS
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    def __contains__(self, account_id: object) -> bool:
        with self._lock:
            return account_id in self._accounts

    def __iter__(self) -> Iterator[Account]:
        return iter(self.list_accounts())
