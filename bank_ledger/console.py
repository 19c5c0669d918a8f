"""
Interactive Console Module

Line-based menu driving the teller. Reads one answer per line; a bad
number aborts only the current operation and returns to the menu. End of
input ends the session normally.
"""

import sys
from decimal import Decimal
from typing import Callable, Dict, Optional, TextIO

from .accounts import Account, AccountType
from .config import get_config
from .currency import parse_amount, parse_int
from .errors import LedgerError, ParseError
from .ledger import Ledger
from .logging_config import setup_logging
from .teller import OperationResult, Teller


MENU = """
========== BANK ==========
1 - Create account
2 - Check balance
3 - Withdraw
4 - Deposit
5 - List accounts
6 - Transfer
7 - Apply interest
8 - View history
9 - Exit"""

EXIT_OPTION = 9


class Console:
    """Menu loop over a pair of text streams"""

    def __init__(
        self,
        teller: Teller,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None
    ):
        self.teller = teller
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._flows: Dict[int, Callable[[], None]] = {
            1: self.create_account_flow,
            2: self.balance_flow,
            3: self.withdraw_flow,
            4: self.deposit_flow,
            5: self.list_flow,
            6: self.transfer_flow,
            7: self.interest_flow,
            8: self.history_flow,
        }

    def run(self) -> int:
        """Run until option 9 or end of input; returns the exit code"""
        while True:
            self._print(MENU)
            try:
                line = self._prompt("Select option: ")
            except EOFError:
                return 0
            if not line:
                continue

            try:
                option = parse_int(line)
            except ParseError:
                self._print("Invalid option.")
                continue

            if option == EXIT_OPTION:
                self._print("Exiting...")
                return 0

            flow = self._flows.get(option)
            if flow is None:
                self._print("Option not valid.")
                continue

            try:
                flow()
            except EOFError:
                return 0
            except LedgerError as e:
                self._print(f"Error: {e.message}")

    def create_account_flow(self) -> None:
        name = self._prompt("Account holder name: ")
        if not name:
            self._print("Name cannot be empty.")
            return

        answer = self._prompt("Type (1=Checking, 2=Savings): ")
        account_type = AccountType.SAVINGS if answer == "2" else AccountType.CHECKING

        initial_balance = self._read_decimal("Initial balance: ", "Invalid balance.")
        if initial_balance is None:
            return
        self._report(self.teller.open_account(name, account_type, initial_balance))

    def balance_flow(self) -> None:
        account = self._read_account()
        if account is None:
            return
        self._report(self.teller.balance(account.id))

    def withdraw_flow(self) -> None:
        account = self._read_account()
        if account is None:
            return
        amount = self._read_decimal("Amount to withdraw: ", "Invalid amount.")
        if amount is None:
            return
        self._report(self.teller.withdraw(account.id, amount))

    def deposit_flow(self) -> None:
        account = self._read_account()
        if account is None:
            return
        amount = self._read_decimal("Amount to deposit: ", "Invalid amount.")
        if amount is None:
            return
        self._report(self.teller.deposit(account.id, amount))

    def list_flow(self) -> None:
        accounts = self.teller.list_accounts()
        if not accounts:
            self._print("No accounts.")
            return
        for account in accounts:
            self._print(str(account))
        self._print(f"Total: ${self.teller.ledger.total_balance().plain()}")

    def transfer_flow(self) -> None:
        source = self._read_account("Source account ID: ", "Source account not found.")
        if source is None:
            return
        destination = self._read_account(
            "Destination account ID: ", "Destination account not found."
        )
        if destination is None:
            return
        amount = self._read_decimal("Amount to transfer: ", "Invalid amount.")
        if amount is None:
            return
        self._report(self.teller.transfer(source.id, destination.id, amount))

    def interest_flow(self) -> None:
        account = self._read_account()
        if account is None:
            return
        rate = self._read_decimal("Enter interest rate (%): ", "Invalid rate.")
        if rate is None:
            return
        self._report(self.teller.apply_interest(account.id, rate))

    def history_flow(self) -> None:
        account = self._read_account()
        if account is None:
            return
        self._report(self.teller.history(account.id))

    def _read_account(
        self,
        prompt: str = "Enter account ID: ",
        not_found: str = "Account not found."
    ) -> Optional[Account]:
        answer = self._prompt(prompt)
        try:
            account_id = parse_int(answer)
        except ParseError:
            self._print("Invalid ID.")
            return None

        account = self.teller.ledger.get_account(account_id)
        if account is None:
            self._print(not_found)
        return account

    def _read_decimal(self, prompt: str, invalid: str) -> Optional[Decimal]:
        answer = self._prompt(prompt)
        try:
            return parse_amount(answer)
        except ParseError:
            self._print(invalid)
            return None

    def _report(self, result: OperationResult) -> None:
        if result.ok:
            self._print(result.message)
        else:
            self._print(f"Error: {result.message}")

    def _prompt(self, text: str) -> str:
        self.stdout.write(text)
        self.stdout.flush()
        line = self.stdin.readline()
        if line == "":
            raise EOFError
        return line.strip()

    def _print(self, text: str) -> None:
        print(text, file=self.stdout)


def main(
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None
) -> int:
    """Console entry point"""
    settings = get_config()
    setup_logging(settings.log_level, settings.log_format, settings.log_file)

    ledger = Ledger()
    if settings.seed_demo_accounts:
        ledger.seed_demo_accounts()

    console = Console(Teller(ledger), stdin=stdin, stdout=stdout)
    return console.run()
