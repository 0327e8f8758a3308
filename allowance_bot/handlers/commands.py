"""
コマンド解析 - チャットのメッセージをコマンドに変換
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from allowance_bot.errors import InvalidAmountError
from allowance_bot.utils.money import parse_amount

SEND_USAGE = "使用方法: `send {金額} to {ユーザー} [for {メモ}]`\n例: `send $5 to chase for おやつ`"
SET_MIN_USAGE = "使用方法: `set min {ユーザー} {金額}`"
GET_MIN_USAGE = "使用方法: `get min {ユーザー}`"


@dataclass(frozen=True)
class Balance:
    account: Optional[str] = None


@dataclass(frozen=True)
class Send:
    amount: int
    receiver: str
    memo: Optional[str] = None


@dataclass(frozen=True)
class SetMin:
    account: str
    amount: int


@dataclass(frozen=True)
class GetMin:
    account: str


@dataclass(frozen=True)
class Ledger:
    account: Optional[str] = None
    plain: bool = False


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Invalid:
    """コマンドとして認識したが引数が不正"""

    message: str


@dataclass(frozen=True)
class Unknown:
    """コマンドではない通常のメッセージ"""

    text: str


Command = Union[Balance, Send, SetMin, GetMin, Ledger, Help, Invalid, Unknown]


def get_command(prefix: str, message: str) -> Optional[str]:
    """
    メッセージが `prefix` で始まる場合は残りの引数部分を返す

    大文字小文字は区別せず、`balance.` のような末尾のピリオドも許容する。
    """
    lower_message = message.lower()
    lower_prefix = prefix.lower()

    if lower_message in (lower_prefix, f"{lower_prefix}."):
        return ""

    for head in (f"{lower_prefix} ", f"{lower_prefix}. "):
        if lower_message.startswith(head):
            return message[len(head):].strip()

    return None


def parse_command(text: str) -> Command:
    """
    メッセージをコマンドに変換
    """
    message = (text or "").strip()

    args = get_command("set min", message)
    if args is not None:
        return _parse_set_min(args)

    args = get_command("get min", message)
    if args is not None:
        return _parse_get_min(args)

    args = get_command("balance", message)
    if args is not None:
        words = args.split()
        return Balance(account=words[0] if words else None)

    args = get_command("send", message)
    if args is not None:
        return _parse_send(args)

    args = get_command("ledger", message)
    if args is not None:
        return _parse_ledger(args)

    if get_command("help", message) is not None:
        return Help()

    return Unknown(text=message)


def _parse_send(args: str) -> Command:
    """
    send コマンドのパラメータをパース

    金額とユーザーはどちらが先でもよい（`send $5 to chase` / `send chase $5`）
    """
    head, *rest = re.split(r"\s+for\s+", args, maxsplit=1, flags=re.IGNORECASE)
    memo = rest[0].strip() if rest and rest[0].strip() else None

    words = [word for word in head.split() if word.lower() != "to"]
    if len(words) < 2:
        return Invalid(message=f"❌ コマンド形式が正しくありません。\n{SEND_USAGE}")

    for amount_text, receiver in ((words[0], words[1]), (words[1], words[0])):
        try:
            return Send(amount=parse_amount(amount_text), receiver=receiver, memo=memo)
        except InvalidAmountError:
            continue

    return Invalid(message="❌ 正しい金額を入力してください。")


def _parse_set_min(args: str) -> Command:
    words = args.split()
    if len(words) != 2:
        return Invalid(message=SET_MIN_USAGE)

    try:
        amount = parse_amount(words[1])
    except InvalidAmountError:
        return Invalid(message=f"❌ 金額が正しくありません: {words[1]}")

    return SetMin(account=words[0], amount=amount)


def _parse_get_min(args: str) -> Command:
    words = args.split()
    if len(words) != 1:
        return Invalid(message=GET_MIN_USAGE)
    return GetMin(account=words[0])


def _parse_ledger(args: str) -> Command:
    words = args.split()
    plain = any(word.lower() == "plain" for word in words)
    accounts = [word for word in words if word.lower() != "plain"]
    return Ledger(account=accounts[0] if accounts else None, plain=plain)
