"""
取引履歴フォーマッタ - 直近の取引と各時点の残高の再構成
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz

from allowance_bot.config import Config
from allowance_bot.models.balance_manager import BalanceManager
from allowance_bot.models.ledger_store import LedgerStore
from allowance_bot.utils.identity import IdentityResolver
from allowance_bot.utils.money import format_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatementEntry:
    """取引履歴の1行"""

    balance: int  # この取引が反映された時点の残高
    counterparty: Optional[str]  # Noneは発行
    amount: int  # 表示中の口座から見た符号付き金額
    memo: Optional[str]
    date: datetime


class LedgerFormatter:
    """取引履歴の作成・整形クラス"""

    def __init__(
        self,
        store: LedgerStore,
        balance_manager: BalanceManager,
        identity: IdentityResolver,
        timezone: Optional[str] = None,
    ):
        self.store = store
        self.balance_manager = balance_manager
        self.identity = identity
        self.timezone = pytz.timezone(timezone or Config.TIMEZONE)

    def statement(self, account: str, limit: Optional[int] = None) -> List[StatementEntry]:
        """
        直近の取引履歴を作成

        先頭行の残高は現在の残高と一致し、以降は新しい順に取引を1件ずつ
        差し引いた残高になる。

        Args:
            account: 対象口座
            limit: 表示件数（省略時は設定値）

        Returns:
            取引履歴（新しい順）
        """
        if limit is None:
            limit = Config.LEDGER_LIMIT

        with self.store.lock:
            running = self.balance_manager.get_balance(account)
            transactions = self.store.recent_transactions(account, limit)

        entries = []
        for transaction in transactions:
            if transaction.receiver == account:
                counterparty, signed_amount = transaction.sender, transaction.amount
            else:
                counterparty, signed_amount = transaction.receiver, -transaction.amount

            entries.append(StatementEntry(
                balance=running,
                counterparty=counterparty,
                amount=signed_amount,
                memo=transaction.memo,
                date=transaction.timestamp,
            ))
            running -= signed_amount

        return entries

    def format_plain(self, entries: List[StatementEntry]) -> str:
        """
        取引履歴をプレーンテキストに整形
        """
        if not entries:
            return "📝 取引はまだありません。"

        lines = []
        for entry in entries:
            date = self._format_date(entry.date)
            counterparty = self.identity.display(entry.counterparty)
            memo = f"（{entry.memo}）" if entry.memo else ""

            if entry.amount < 0:
                lines.append(f"{date} {counterparty} に {format_money(-entry.amount)} を送金しました{memo}。")
            else:
                lines.append(f"{date} {counterparty} から {format_money(entry.amount)} を受け取りました{memo}。")

        return "\n".join(lines)

    def format_blocks(self, account: str, entries: List[StatementEntry]) -> List[Dict[str, Any]]:
        """
        取引履歴をSlackのブロック（2列の表）に整形
        """
        blocks: List[Dict[str, Any]] = [{
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"📊 {self.identity.display(account)} の取引履歴"},
        }]

        for entry in entries:
            fields = [
                {"type": "mrkdwn", "text": f"*残高*\n{format_money(entry.balance)}"},
                {"type": "mrkdwn", "text": f"*金額*\n{format_money(entry.amount)}"},
                {"type": "mrkdwn", "text": f"*相手*\n{self.identity.display(entry.counterparty)}"},
                {"type": "mrkdwn", "text": f"*日付*\n{self._format_date(entry.date)}"},
            ]
            if entry.memo:
                fields.append({"type": "mrkdwn", "text": f"*メモ*\n{entry.memo}"})

            blocks.append({"type": "divider"})
            blocks.append({"type": "section", "fields": fields})

        return blocks

    def _format_date(self, date: datetime) -> str:
        return date.astimezone(self.timezone).strftime("%b %d")
