"""
メインアプリケーション - Slackイベントハンドラとお小遣いスケジューラの起動
"""

import logging
import sys

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler

from allowance_bot.config import Config
from allowance_bot.handlers.common_handlers import CommonHandlers
from allowance_bot.handlers.money_handler import MoneyHandler, setup_money_handlers
from allowance_bot.models.balance_manager import BalanceManager
from allowance_bot.models.ledger_store import LedgerStore
from allowance_bot.schedulers.allowance_scheduler import AllowanceScheduler
from allowance_bot.services.ledger_formatter import LedgerFormatter
from allowance_bot.services.transfer_service import TransferService
from allowance_bot.utils.error_handler import ErrorHandler
from allowance_bot.utils.identity import IdentityResolver
from allowance_bot.utils.slack_utils import SlackUtils

# 環境変数のロード
load_dotenv()

logger = logging.getLogger(__name__)


def setup_logging():
    """ログ設定"""
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(Config.LOG_FILE, encoding='utf-8'),
        ]
    )


class AllowanceSlackBot:
    def __init__(self):
        """お小遣いBotの初期化"""
        self.app = App(token=Config.SLACK_BOT_TOKEN, signing_secret=Config.SLACK_SIGNING_SECRET or None)
        self.scheduler = BackgroundScheduler(timezone=Config.TIMEZONE)

        # 台帳はプロセス全体で1つだけ生成し、各サービスに渡す
        self.store = LedgerStore()
        self.identity = IdentityResolver()
        self.balance_manager = BalanceManager(self.store)
        self.transfer_service = TransferService(self.store, self.balance_manager, self.identity)
        self.ledger_formatter = LedgerFormatter(self.store, self.balance_manager, self.identity)
        self.slack_utils = SlackUtils(self.app.client)

        # ハンドラの初期化
        self.money_handler = MoneyHandler(
            self.transfer_service,
            self.ledger_formatter,
            self.identity,
            common_handlers=CommonHandlers(),
        )
        self.allowance_scheduler = AllowanceScheduler(
            self.transfer_service,
            self.slack_utils,
            self.scheduler,
            self.identity,
        )

        # エラーハンドラの設定
        self.error_handler = ErrorHandler(self.slack_utils)

        self._register_handlers()
        self._setup_scheduler()

    def _register_handlers(self):
        """イベントハンドラの登録"""
        setup_money_handlers(self.app, self.money_handler, self.error_handler)

    def _setup_scheduler(self):
        """お小遣いのスケジューリング設定"""
        if Config.ALLOWANCE_ENABLED:
            due = self.allowance_scheduler.start()
            logger.info(f"お小遣いの自動送金を設定しました: 次回 {due.isoformat()}")

    def start(self):
        """Slack Botの開始"""
        logger.info("Slack Botを開始します...")
        logger.info(f"設定: {Config.get_summary()}")
        if Config.ALLOWANCE_ENABLED:
            self.scheduler.start()
            logger.info("お小遣いスケジューラーを開始しました")
        handler = SocketModeHandler(self.app, Config.SLACK_APP_TOKEN)
        handler.start()

    def stop(self):
        """Slack Botの停止"""
        logger.info("Slack Botを停止します...")
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("お小遣いスケジューラーを停止しました")
        self.store.close()


def main():
    setup_logging()

    if not Config.validate_config():
        sys.exit(1)

    Config.create_data_directory()

    bot = AllowanceSlackBot()
    try:
        bot.start()
    except KeyboardInterrupt:
        logger.info("キーボード割り込みを受信しました")
        bot.stop()
    except Exception as e:
        logger.error(f"予期しないエラーが発生しました: {e}")
        bot.stop()


if __name__ == "__main__":
    main()
