"""
Test suite for the interactive console

Drives the menu loop with scripted input and checks what gets printed.
"""

import io
import pytest
from decimal import Decimal
from unittest.mock import patch

from bank_ledger.accounts import AccountType
from bank_ledger.console import Console, main
from bank_ledger.currency import Money, Currency
from bank_ledger.ledger import Ledger
from bank_ledger.teller import Teller


def usd(value) -> Money:
    return Money(Decimal(str(value)), Currency.USD)


class TestConsole:
    """Test menu flows against a seeded ledger"""

    def setup_method(self):
        self.ledger = Ledger(currency=Currency.USD, negative_initial_balance="clamp")
        self.ledger.seed_demo_accounts()
        self.teller = Teller(self.ledger, enable_audit=True)

    def run_console(self, *lines):
        stdin = io.StringIO("".join(line + "\n" for line in lines))
        stdout = io.StringIO()
        exit_code = Console(self.teller, stdin=stdin, stdout=stdout).run()
        return exit_code, stdout.getvalue()

    def test_exit_option(self):
        exit_code, output = self.run_console("9")
        assert exit_code == 0
        assert "1 - Create account" in output
        assert "Exiting..." in output

    def test_end_of_input_exits_cleanly(self):
        exit_code, output = self.run_console()
        assert exit_code == 0
        assert "Exiting..." not in output

    def test_end_of_input_mid_flow(self):
        exit_code, _ = self.run_console("3", "1")
        assert exit_code == 0

    def test_invalid_and_unknown_options(self):
        _, output = self.run_console("", "abc", "42", "9")
        assert "Invalid option." in output
        assert "Option not valid." in output

    def test_create_account(self):
        _, output = self.run_console("1", "Steve Rogers", "2", "250.50", "9")

        assert "Account created: ID:3 - Steve Rogers (SAVINGS) - Balance: 250.50" in output
        account = self.ledger.get_account(3)
        assert account.account_type == AccountType.SAVINGS

    def test_create_account_defaults_to_checking_and_clamps(self):
        _, output = self.run_console("1", "Bruce Banner", "x", "-10", "9")

        account = self.ledger.get_account(3)
        assert account.account_type == AccountType.CHECKING
        assert account.balance.is_zero()

    def test_create_account_empty_name(self):
        _, output = self.run_console("1", "", "9")
        assert "Name cannot be empty." in output
        assert len(self.ledger) == 2

    def test_create_account_invalid_balance(self):
        _, output = self.run_console("1", "Steve", "1", "lots", "9")
        assert "Invalid balance." in output
        assert len(self.ledger) == 2

    def test_check_balance(self):
        _, output = self.run_console("2", "1", "9")
        assert "Current balance: $1500.00" in output

    def test_invalid_and_unknown_id(self):
        _, output = self.run_console("2", "one", "2", "77", "9")
        assert "Invalid ID." in output
        assert "Account not found." in output

    def test_withdraw(self):
        _, output = self.run_console("3", "1", "500", "9")
        assert "Withdrawal successful. New balance: $1000.00" in output

    def test_withdraw_insufficient_funds(self):
        _, output = self.run_console("3", "1", "2000", "9")

        assert "Error: Insufficient funds" in output
        assert self.ledger.get_account(1).balance == usd("1500.00")

    def test_withdraw_invalid_amount(self):
        _, output = self.run_console("3", "1", "ten", "9")
        assert "Invalid amount." in output

    def test_deposit(self):
        _, output = self.run_console("4", "2", "100", "9")
        assert "Deposit successful. New balance: $2100.00" in output

    def test_deposit_non_positive(self):
        _, output = self.run_console("4", "2", "0", "9")
        assert "Error: Amount to deposit must be greater than 0" in output

    def test_oversized_amounts_return_to_menu(self):
        exit_code, output = self.run_console(
            "4", "1", "9" * 30,
            "1", "Thor", "2", "9" * 27,
            "7", "2", "9" * 30,
            "9"
        )

        assert exit_code == 0
        assert "Error: Amount exceeds the maximum" in output
        assert "Error: Initial balance exceeds the maximum" in output
        assert "Error: Interest would take the balance above the maximum" in output
        assert "Exiting..." in output
        assert self.ledger.get_account(1).balance == usd("1500.00")
        assert self.ledger.get_account(2).balance == usd("2000.00")
        assert len(self.ledger) == 2

    def test_list_accounts(self):
        _, output = self.run_console("5", "9")
        assert "ID:1 - Tony Stark (CHECKING) - Balance: 1500.00" in output
        assert "ID:2 - Natasha Romanoff (SAVINGS) - Balance: 2000.00" in output
        assert "Total: $3500.00" in output

    def test_list_accounts_empty(self):
        self.teller = Teller(Ledger(currency=Currency.USD))
        _, output = self.run_console("5", "9")
        assert "No accounts." in output

    def test_transfer(self):
        _, output = self.run_console("6", "1", "2", "300", "9")

        assert "Transfer successful." in output
        assert self.ledger.get_account(1).balance == usd("1200")
        assert self.ledger.get_account(2).balance == usd("2300")

    def test_transfer_unknown_accounts(self):
        _, output = self.run_console("6", "9", "6", "1", "8", "9")
        assert "Source account not found." in output
        assert "Destination account not found." in output

    def test_apply_interest(self):
        _, output = self.run_console("7", "2", "5", "9")

        assert "Interest applied successfully." in output
        assert self.ledger.get_account(2).balance == usd("2100.00")

    def test_apply_interest_checking(self):
        _, output = self.run_console("7", "1", "5", "9")
        assert "Error: Only SAVINGS accounts accrue interest" in output

    def test_apply_interest_invalid_rate(self):
        _, output = self.run_console("7", "2", "five", "9")
        assert "Invalid rate." in output

    def test_history(self):
        _, output = self.run_console("4", "1", "10", "8", "1", "9")

        assert "History for Tony Stark:" in output
        assert " - Account created with initial balance: $1500.00" in output
        assert " - Deposit of $10.00 | New balance: $1510.00" in output


class TestMain:
    """Test the console entry point"""

    def test_main_seeds_demo_accounts(self):
        stdin = io.StringIO("5\n9\n")
        stdout = io.StringIO()

        with patch("bank_ledger.console.setup_logging") as setup_logging:
            exit_code = main(stdin=stdin, stdout=stdout)

        assert exit_code == 0
        setup_logging.assert_called_once()
        assert "Tony Stark" in stdout.getvalue()
        assert "Natasha Romanoff" in stdout.getvalue()

    def test_main_survives_oversized_deposit(self):
        stdin = io.StringIO("4\n1\n" + "9" * 30 + "\n9\n")
        stdout = io.StringIO()

        with patch("bank_ledger.console.setup_logging"):
            exit_code = main(stdin=stdin, stdout=stdout)

        assert exit_code == 0
        assert "Error: Amount exceeds the maximum" in stdout.getvalue()


if __name__ == "__main__":
    pytest.main([__file__])
