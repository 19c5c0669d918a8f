"""
Ledger Error Types

Validation failures (bad input from the caller) and business rule outcomes
(insufficient funds, interest on a checking account) are kept in separate
families so callers can treat them differently.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for every error raised by the ledger"""

    def __init__(self, message: str, account_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.account_id = account_id

    @property
    def kind(self) -> str:
        """Error kind name, e.g. 'InsufficientFunds'"""
        return type(self).__name__


class ValidationError(LedgerError, ValueError):
    """The caller supplied an argument the ledger cannot accept"""


class InvalidAmount(ValidationError):
    """Monetary amount is zero or negative"""


class InvalidArgument(ValidationError):
    """Missing destination, negative rate, blank owner and similar"""


class ParseError(ValidationError):
    """Console input could not be parsed as a number"""


class BusinessRuleError(LedgerError):
    """A well-formed request that the account's state does not allow"""


class InsufficientFunds(BusinessRuleError):
    """Withdrawal or transfer exceeds the available balance"""


class InvalidOperation(BusinessRuleError):
    """Operation not supported for this account type"""


class NotFound(LedgerError, LookupError):
    """No account with the requested id"""
