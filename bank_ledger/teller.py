"""
Teller Service Module

Front desk for the ledger. Each operation returns an OperationResult instead
of raising, so callers branch on ``result.ok`` and ``result.error`` rather
than on exceptions. Successful mutations are written to the audit trail;
rejected ones are logged at WARNING.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .accounts import Account, AccountType, AmountLike
from .audit import AuditEventType, AuditTrail
from .config import get_config
from .currency import Money, Numeric
from .errors import LedgerError
from .ledger import Ledger
from .logging_config import get_logger, log_action


def _amount_text(amount: AmountLike) -> str:
    if isinstance(amount, Money):
        return amount.plain()
    return str(amount)


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a teller operation"""
    operation: str
    ok: bool
    account_id: Optional[int] = None
    balance: Optional[Money] = None
    account: Optional[Account] = None
    history: Tuple[str, ...] = ()
    error: Optional[LedgerError] = None
    detail: str = ""

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        return self.detail

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> 'OperationResult':
        """Return self on success, raise the stored error otherwise"""
        if self.error is not None:
            raise self.error
        return self


class Teller:
    """
    Runs ledger operations and reports typed results
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        audit_trail: Optional[AuditTrail] = None,
        enable_audit: Optional[bool] = None
    ):
        self.ledger = ledger or Ledger()
        self.audit_trail = audit_trail or AuditTrail()
        if enable_audit is None:
            enable_audit = get_config().enable_audit_logging
        self.enable_audit = enable_audit
        self.logger = get_logger("teller")

    def open_account(
        self,
        owner: str,
        account_type: AccountType,
        initial_balance: Numeric = 0
    ) -> OperationResult:
        def run() -> OperationResult:
            account = self.ledger.create_account(owner, account_type, initial_balance)
            self._audit(AuditEventType.ACCOUNT_CREATED, account.id, {
                'owner': account.owner,
                'account_type': account.account_type,
                'opening_balance': account.get_balance().amount
            })
            return self._success(
                "open_account", account, account.get_balance(), f"Account created: {account}"
            )
        return self._run("open_account", None, run)

    def balance(self, account_id: int) -> OperationResult:
        def run() -> OperationResult:
            account = self.ledger.require_account(account_id)
            balance = account.get_balance()
            return self._success(
                "balance", account, balance, f"Current balance: ${balance.plain()}"
            )
        return self._run("balance", account_id, run)

    def deposit(self, account_id: int, amount: AmountLike) -> OperationResult:
        def run() -> OperationResult:
            account = self.ledger.require_account(account_id)
            balance = account.deposit(amount)
            self._audit(AuditEventType.DEPOSIT, account_id, {
                'amount': _amount_text(amount), 'balance': balance.amount
            })
            return self._success(
                "deposit", account, balance, f"Deposit successful. New balance: ${balance.plain()}"
            )
        return self._run("deposit", account_id, run)

    def withdraw(self, account_id: int, amount: AmountLike) -> OperationResult:
        def run() -> OperationResult:
            account = self.ledger.require_account(account_id)
            balance = account.withdraw(amount)
            self._audit(AuditEventType.WITHDRAWAL, account_id, {
                'amount': _amount_text(amount), 'balance': balance.amount
            })
            return self._success(
                "withdraw", account, balance, f"Withdrawal successful. New balance: ${balance.plain()}"
            )
        return self._run("withdraw", account_id, run)

    def transfer(
        self,
        source_id: int,
        destination_id: Optional[int],
        amount: AmountLike
    ) -> OperationResult:
        def run() -> OperationResult:
            source = self.ledger.require_account(source_id)
            destination = None
            if destination_id is not None:
                destination = self.ledger.require_account(destination_id)
            balance = source.transfer(destination, amount)
            self._audit(AuditEventType.TRANSFER, source_id, {
                'destination_id': destination_id,
                'amount': _amount_text(amount),
                'balance': balance.amount
            })
            return self._success("transfer", source, balance, "Transfer successful.")
        return self._run("transfer", source_id, run)

    def apply_interest(self, account_id: int, rate: Numeric) -> OperationResult:
        def run() -> OperationResult:
            account = self.ledger.require_account(account_id)
            balance = account.apply_interest(rate)
            self._audit(AuditEventType.INTEREST_APPLIED, account_id, {
                'rate': str(rate), 'balance': balance.amount
            })
            return self._success(
                "apply_interest", account, balance, "Interest applied successfully."
            )
        return self._run("apply_interest", account_id, run)

    def history(self, account_id: int) -> OperationResult:
        def run() -> OperationResult:
            account = self.ledger.require_account(account_id)
            return OperationResult(
                operation="history",
                ok=True,
                account_id=account.id,
                balance=account.get_balance(),
                account=account,
                history=account.history,
                detail=account.show_history()
            )
        return self._run("history", account_id, run)

    def list_accounts(self) -> Tuple[Account, ...]:
        return self.ledger.list_accounts()

    def _run(
        self,
        operation: str,
        account_id: Optional[int],
        func: Callable[[], OperationResult]
    ) -> OperationResult:
        try:
            return func()
        except LedgerError as e:
            log_action(
                self.logger, "warning", f"{operation} rejected: {e.message}",
                action=operation, account_id=account_id if account_id is not None else e.account_id,
                extra={"error": e.kind}
            )
            return OperationResult(
                operation=operation,
                ok=False,
                account_id=account_id if account_id is not None else e.account_id,
                error=e
            )

    def _success(
        self,
        operation: str,
        account: Account,
        balance: Money,
        detail: str
    ) -> OperationResult:
        log_action(
            self.logger, "debug", detail, action=operation, account_id=account.id,
            extra={"balance": balance.plain()}
        )
        return OperationResult(
            operation=operation,
            ok=True,
            account_id=account.id,
            balance=balance,
            account=account,
            detail=detail
        )

    def _audit(self, event_type: AuditEventType, account_id: int, metadata: Dict) -> None:
        if self.enable_audit:
            self.audit_trail.log_event(event_type, account_id, metadata)
