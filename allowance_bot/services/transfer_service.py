"""
送金サービス - 送金の検証、取引ログへの記録、最低残高の設定
"""

import logging
from typing import Optional

from allowance_bot.errors import (
    InsufficientFundsError,
    PermissionDeniedError,
    SelfTransferError,
    UnknownRecipientError,
    WithdrawalNotPermittedError,
    ZeroAmountError,
)
from allowance_bot.models.balance_manager import BalanceManager
from allowance_bot.models.ledger_store import LedgerStore, Transaction
from allowance_bot.utils.identity import IdentityResolver

logger = logging.getLogger(__name__)


class TransferService:
    """送金実行サービス"""

    def __init__(self, store: LedgerStore, balance_manager: BalanceManager, identity: IdentityResolver):
        self.store = store
        self.balance_manager = balance_manager
        self.identity = identity

    def transfer(
        self,
        actor: str,
        sender: str,
        receiver: str,
        amount: int,
        memo: Optional[str] = None,
    ) -> Transaction:
        """
        送金を実行

        検証から記録までをストアのロック内で行うため、同時に実行された
        送金が古い残高で最低残高チェックを通過することはない。

        Args:
            actor: 操作したユーザー（権限判定に使用）
            sender: 送金元
            receiver: 送金先
            amount: 金額（セント単位）。負の値は管理者のみ可能で、送金元と送金先を入れ替えて記録する
            memo: メモ

        Returns:
            記録された取引

        Raises:
            ValidationError: 送金が受け付けられない場合（種類ごとのサブクラス）
            StoreError: データベースが利用できない場合
        """
        privileged = self.identity.is_privileged(actor)
        logger.info(f"送金実行: {sender} -> {receiver}, {amount}, actor: {actor}")

        if amount == 0:
            raise ZeroAmountError()

        if amount < 0 and not privileged:
            raise WithdrawalNotPermittedError()

        if sender == receiver:
            raise SelfTransferError()

        with self.store.lock:
            if not privileged:
                available = self.balance_manager.available(sender)
                if amount > available:
                    logger.info(f"残高不足: {sender} 利用可能額={available}, 送金額={amount}")
                    raise InsufficientFundsError()

            if not privileged and not self.store.account_known(receiver):
                raise UnknownRecipientError(receiver)

            # 記録する金額は常に正。負の送金は向きを反転して記録する
            if amount < 0:
                sender, receiver = receiver, sender

            transaction = self.store.append(
                sender=sender,
                receiver=receiver,
                amount=abs(amount),
                memo=memo,
            )

        logger.info(f"送金が正常に完了しました: #{transaction.id}")
        return transaction

    def set_minimum_balance(self, actor: str, account: str, floor: int) -> None:
        """
        最低残高を設定（管理者のみ）
        """
        if not self.identity.is_privileged(actor):
            raise PermissionDeniedError("🔒 最低残高を設定する権限がありません。")

        self.store.set_minimum_balance(account, floor)

    def get_minimum_balance(self, account: str) -> int:
        return self.balance_manager.get_minimum_balance(account)

    def get_balance(self, account: str) -> int:
        return self.balance_manager.get_balance(account)
