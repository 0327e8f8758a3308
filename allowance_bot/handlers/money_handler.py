"""
お金ハンドラ - balance, send, set min, get min, ledger, help コマンド処理
"""

import logging
from typing import Callable, Optional

from allowance_bot.errors import UnknownRecipientError
from allowance_bot.handlers.commands import (
    Balance,
    Command,
    GetMin,
    Help,
    Invalid,
    Ledger,
    Send,
    SetMin,
    Unknown,
    parse_command,
)
from allowance_bot.handlers.common_handlers import CommonHandlers
from allowance_bot.services.ledger_formatter import LedgerFormatter
from allowance_bot.services.transfer_service import TransferService
from allowance_bot.utils.identity import IdentityResolver
from allowance_bot.utils.money import format_money

logger = logging.getLogger(__name__)


class MoneyHandler:
    """お金コマンドのハンドラクラス"""

    def __init__(
        self,
        transfer_service: TransferService,
        ledger_formatter: LedgerFormatter,
        identity: IdentityResolver,
        common_handlers: Optional[CommonHandlers] = None,
        ledger_limit: Optional[int] = None,
    ):
        self.transfer_service = transfer_service
        self.ledger_formatter = ledger_formatter
        self.identity = identity
        self.common_handlers = common_handlers or CommonHandlers()
        self.ledger_limit = ledger_limit

    def handle_message(self, say: Callable, event: dict) -> None:
        """
        メッセージイベントを解析してコマンドを実行
        """
        actor = event.get("user")
        command = parse_command(event.get("text", ""))
        if isinstance(command, Unknown):
            return

        logger.info(f"コマンド受信: {type(command).__name__}, user: {actor}")
        self.dispatch(say, actor, command)

    def dispatch(self, say: Callable, actor: str, command: Command) -> None:
        if isinstance(command, Balance):
            self.handle_balance(say, actor, command)
        elif isinstance(command, Send):
            self.handle_send(say, actor, command)
        elif isinstance(command, SetMin):
            self.handle_set_min(say, actor, command)
        elif isinstance(command, GetMin):
            self.handle_get_min(say, command)
        elif isinstance(command, Ledger):
            self.handle_ledger(say, actor, command)
        elif isinstance(command, Help):
            self.common_handlers.handle_help(say)
        elif isinstance(command, Invalid):
            say(text=command.message)
        elif isinstance(command, Unknown):
            return
        else:
            raise TypeError(f"未対応のコマンドです: {command!r}")

    def handle_balance(self, say: Callable, actor: str, command: Balance) -> None:
        """
        balance [ユーザー] コマンドの処理
        """
        account = self.identity.normalize(actor, command.account)
        balance = self.transfer_service.get_balance(account)
        say(text=f"💰 {self.identity.display(account)} の残高: {format_money(balance)}")

    def handle_send(self, say: Callable, actor: str, command: Send) -> None:
        """
        send {金額} to {ユーザー} [for {メモ}] コマンドの処理
        """
        receiver = self.identity.resolve(command.receiver)

        try:
            self.transfer_service.transfer(
                actor=actor,
                sender=actor,
                receiver=receiver,
                amount=command.amount,
                memo=command.memo,
            )
        except UnknownRecipientError:
            raise UnknownRecipientError(self.identity.display(receiver)) from None

        text = f"✅ {self.identity.display(receiver)} に {format_money(command.amount)} を送金しました"
        if command.memo:
            text += f"（{command.memo}）"
        say(text=text + "。")

    def handle_set_min(self, say: Callable, actor: str, command: SetMin) -> None:
        """
        set min {ユーザー} {金額} コマンドの処理（管理者のみ）
        """
        account = self.identity.resolve(command.account)
        self.transfer_service.set_minimum_balance(actor, account, command.amount)
        say(text=f"✅ {self.identity.display(account)} の最低残高を {format_money(command.amount)} に設定しました。")

    def handle_get_min(self, say: Callable, command: GetMin) -> None:
        """
        get min {ユーザー} コマンドの処理
        """
        account = self.identity.resolve(command.account)
        floor = self.transfer_service.get_minimum_balance(account)
        say(text=f"{self.identity.display(account)} の最低残高: {format_money(floor)}")

    def handle_ledger(self, say: Callable, actor: str, command: Ledger) -> None:
        """
        ledger [ユーザー] [plain] コマンドの処理
        plain 指定時はテキストのみ、それ以外は表形式で表示
        """
        account = self.identity.normalize(actor, command.account)
        entries = self.ledger_formatter.statement(account, self.ledger_limit)
        text = self.ledger_formatter.format_plain(entries)

        if command.plain:
            say(text=text)
        else:
            say(text=text, blocks=self.ledger_formatter.format_blocks(account, entries))


def setup_money_handlers(app, money_handler, error_handler):
    """
    お金関連のハンドラーを設定
    """
    @app.event("message")
    def handle_message_events(event, say):
        # Bot自身の投稿や編集・削除などのイベントは無視
        if event.get("bot_id") or event.get("subtype"):
            return
        try:
            money_handler.handle_message(say, event)
        except Exception as e:
            error_handler.handle_error(say, e, "お金コマンドの実行中")
