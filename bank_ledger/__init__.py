"""
Bank Ledger

An in-memory banking ledger: checking and savings accounts, deposits,
withdrawals, transfers and interest, with Decimal money, per-account locking
and an interactive console menu.
"""

__version__ = "1.0.0"
