"""
ユーザー識別 - エイリアス・メンションから口座IDへの正規化と権限判定
"""

import re
from typing import Dict, Iterable, Optional

from allowance_bot.config import Config

_MENTION_PATTERN = re.compile(r"^<@([A-Z0-9]+)(?:\|[^>]*)?>$")
_SLACK_ID_PATTERN = re.compile(r"^[UW][A-Z0-9]{2,}$")


class IdentityResolver:
    """口座IDの正規化クラス"""

    def __init__(self, aliases: Optional[Dict[str, str]] = None, admin_ids: Optional[Iterable[str]] = None):
        aliases = Config.ACCOUNT_ALIASES if aliases is None else aliases
        self.aliases = {name.lower(): account for name, account in aliases.items()}
        self.admin_ids = frozenset(Config.ADMIN_USER_IDS if admin_ids is None else admin_ids)

    def resolve(self, token: str) -> str:
        """
        `<@U123>`、`@chase`、`chase` などを正規の口座IDに変換
        """
        token = token.strip()

        match = _MENTION_PATTERN.match(token)
        if match:
            return match.group(1)

        name = token.lstrip("@")
        return self.aliases.get(name.lower(), name)

    def normalize(self, actor: str, token: Optional[str]) -> str:
        """引数が省略されていれば発言者自身の口座を返す"""
        if not token or token.lower() == "me":
            return actor
        return self.resolve(token)

    def is_privileged(self, account: str) -> bool:
        """管理者（親）かどうかを判定"""
        return account in self.admin_ids

    def display(self, account: Optional[str]) -> str:
        """
        口座IDを表示用に変換（SlackユーザーIDはメンション形式）
        """
        if account is None:
            return "発行"
        if _SLACK_ID_PATTERN.match(account):
            return f"<@{account}>"
        return account
