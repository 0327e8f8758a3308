"""
金額ユーティリティ - ドル表記とセント単位の相互変換
"""

import re
from decimal import Decimal, InvalidOperation

from allowance_bot.errors import InvalidAmountError

# 符号は `$` の前後どちらか一方に1つまで
_AMOUNT_PATTERN = re.compile(
    r"^(?P<lead>[+-]?)\$?(?P<trail>[+-]?)(?P<number>\d+(?:\.\d{1,2})?|\.\d{1,2})$"
)


def parse_amount(text: str) -> int:
    """
    金額文字列をセント単位の整数に変換

    例: "$5" -> 500, "-1,234.5" -> -123450, "$-0.25" -> -25

    Raises:
        InvalidAmountError: 金額として解釈できない場合
    """
    cleaned = (text or "").strip().replace(",", "")

    match = _AMOUNT_PATTERN.match(cleaned)
    if not match or (match.group("lead") and match.group("trail")):
        raise InvalidAmountError(f"❌ 正しい金額を入力してください: {text}")

    try:
        cents = int((Decimal(match.group("number")) * 100).to_integral_value())
    except InvalidOperation:
        raise InvalidAmountError(f"❌ 正しい金額を入力してください: {text}")

    negative = "-" in (match.group("lead"), match.group("trail"))
    return -cents if negative else cents


def format_money(cents: int) -> str:
    """セント単位の整数をドル表記に変換（例: -150 -> "-$1.50"）"""
    sign = "-" if cents < 0 else ""
    dollars, remainder = divmod(abs(cents), 100)
    return f"{sign}${dollars:,}.{remainder:02d}"
