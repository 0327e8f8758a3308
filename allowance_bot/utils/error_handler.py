"""
エラーハンドラ - エラーハンドリング共通関数
"""

import json
import logging
import traceback
from datetime import datetime
from typing import Callable, Optional

from allowance_bot.config import Config
from allowance_bot.errors import StoreError, ValidationError
from allowance_bot.utils.slack_utils import SlackUtils

logger = logging.getLogger(__name__)


class ErrorHandler:
    """エラーハンドリングクラス"""

    def __init__(self, slack_utils: Optional[SlackUtils] = None, admin_channel: Optional[str] = None):
        self.slack_utils = slack_utils
        self.admin_channel = Config.ADMIN_CHANNEL if admin_channel is None else admin_channel

    def handle_error(self, say: Callable, error: Exception, context: str = "") -> None:
        """
        エラーを統一的に処理

        Args:
            say: Slack応答関数
            error: 発生したエラー
            context: エラーの文脈情報
        """
        if isinstance(error, ValidationError):
            # ユーザー操作の問題なのでシステム障害としては記録しない
            logger.info(f"操作を受け付けませんでした（{context}）: {error.code}")
            say(text=error.user_message)
            return

        self._log_error(error, context)
        say(text=self._generate_user_error_message(error, context))

        if self._is_critical_error(error):
            self._notify_admin(error, context)

    def _log_error(self, error: Exception, context: str) -> None:
        """
        エラーを詳細にログに記録
        """
        error_info = {
            "timestamp": datetime.now().isoformat(),
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
            "traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }

        # JSONフォーマットでログ出力
        logger.error(f"Error occurred: {json.dumps(error_info, indent=2, ensure_ascii=False)}")

    def _generate_user_error_message(self, error: Exception, context: str) -> str:
        """
        ユーザー向けのエラーメッセージを生成
        """
        if isinstance(error, StoreError):
            return "💾 データベースエラーが発生しました。取引は記録されていません。しばらくしてから再度お試しください。"

        base_message = "❌ 予期しないエラーが発生しました。"
        if context:
            base_message += f"（{context}）"
        base_message += "\n\n管理者に連絡するか、しばらくしてから再度お試しください。"
        return base_message

    def _is_critical_error(self, error: Exception) -> bool:
        """
        重要なエラーかどうかを判定
        """
        return isinstance(error, StoreError)

    def _notify_admin(self, error: Exception, context: str) -> None:
        """
        管理者にエラー通知を送信
        """
        if not self.admin_channel or self.slack_utils is None:
            logger.warning("管理者チャンネルが設定されていません")
            return

        error_details = [
            "🚨 *重要なエラーが発生しました*",
            "",
            f"*発生時刻:* {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            f"*エラータイプ:* {type(error).__name__}",
            f"*エラーメッセージ:* {str(error)}",
            f"*文脈:* {context}",
            "",
            "対応が必要な可能性があります。確認をお願いします。",
        ]

        if not self.slack_utils.send_message(self.admin_channel, "\n".join(error_details)):
            logger.error("管理者通知の送信に失敗しました")
