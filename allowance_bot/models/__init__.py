"""
データモデル、データ永続化
"""

from .balance_manager import BalanceManager
from .ledger_store import LedgerStore, Transaction

__all__ = [
    "BalanceManager",
    "LedgerStore",
    "Transaction"
]
