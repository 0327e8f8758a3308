"""
共通ハンドラ - ヘルプなどの共通機能
"""

import logging
from typing import Callable

from allowance_bot.config import Config

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["月", "火", "水", "木", "金", "土", "日"]


class CommonHandlers:
    """共通機能のハンドラクラス"""

    def handle_help(self, say: Callable):
        """
        help コマンドの処理
        利用可能なコマンドの一覧を表示
        """
        say(text=self._generate_help_text())

    def _generate_help_text(self) -> str:
        """
        ヘルプテキストを生成
        """
        help_lines = [
            "🤖 *お小遣いBot ヘルプ*",
            "",
            "*💳 残高*",
            "`balance [ユーザー]` - 残高を表示",
            "`ledger [ユーザー] [plain]` - 最近の取引履歴を表示",
            "",
            "*💸 送金*",
            "`send {金額} to {ユーザー} [for {メモ}]` - 送金",
            "  例: `send $5 to chase for おやつ`",
            "",
            "*🔧 最低残高*",
            "`get min {ユーザー}` - 最低残高を表示",
            "`set min {ユーザー} {金額}` - 最低残高を設定（管理者のみ）",
            "",
            "`help` - このヘルプを表示",
            "",
        ]

        if Config.ALLOWANCE_ENABLED:
            weekday = WEEKDAY_NAMES[Config.ALLOWANCE_WEEKDAY % 7]
            help_lines.append(f"• お小遣い: 毎週{weekday}曜日 {Config.ALLOWANCE_HOUR}:00（{Config.TIMEZONE}）に自動送金")
        else:
            help_lines.append("• お小遣い: 無効")

        return "\n".join(help_lines)
