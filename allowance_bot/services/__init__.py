"""
ビジネスロジックサービス
"""

from .ledger_formatter import LedgerFormatter, StatementEntry
from .transfer_service import TransferService

__all__ = [
    "LedgerFormatter",
    "StatementEntry",
    "TransferService"
]
