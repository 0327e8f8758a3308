"""
Slackユーティリティ - Slack APIとの連携ヘルパー
"""

import logging
from typing import Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from allowance_bot.config import Config

logger = logging.getLogger(__name__)


class SlackUtils:
    """Slack API連携ユーティリティクラス"""

    def __init__(self, client: Optional[WebClient] = None):
        self.client = client or WebClient(token=Config.SLACK_BOT_TOKEN)

    def send_message(self, channel_id: str, text: str, **kwargs) -> bool:
        """
        メッセージを送信

        Args:
            channel_id: 送信先チャンネルID
            text: メッセージテキスト
            **kwargs: その他のSlack API パラメータ（blocks など）

        Returns:
            送信成功の場合True
        """
        try:
            response = self.client.chat_postMessage(
                channel=channel_id,
                text=text,
                **kwargs
            )

            if response["ok"]:
                logger.debug(f"メッセージを送信しました: {channel_id}")
                return True
            else:
                logger.error(f"メッセージ送信に失敗: {response.get('error', 'Unknown error')}")
                return False

        except SlackApiError as e:
            logger.error(f"Slack API エラー: {e.response['error']}")
            return False
        except Exception as e:
            logger.error(f"メッセージ送信中にエラー: {e}")
            return False
