"""
残高マネージャ - 取引ログからの残高・最低残高の算出
"""

import logging

from allowance_bot.models.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


class BalanceManager:
    """
    残高管理クラス

    残高は保存せず、呼び出しごとに取引ログから再計算する。
    受取合計と送金合計はストアのロック内で読むため、間に書き込みが入ることはない。
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def get_balance(self, account: str) -> int:
        """
        現在の残高を取得

        Returns:
            セント単位の残高（受取合計 - 送金合計）
        """
        with self.store.lock:
            received = self.store.sum_received(account)
            sent = self.store.sum_sent(account)
        return received - sent

    def get_minimum_balance(self, account: str) -> int:
        """最低残高を取得"""
        return self.store.minimum_balance(account)

    def available(self, account: str) -> int:
        """最低残高まで使える金額"""
        with self.store.lock:
            return self.get_balance(account) - self.get_minimum_balance(account)
