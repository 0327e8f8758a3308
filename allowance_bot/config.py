"""
設定ファイル - Slackトークン、口座、お小遣いスケジュールなどの設定管理
"""

import os
from typing import Dict, List, Tuple
from dotenv import load_dotenv

# .envファイルを読み込む
load_dotenv()


def _split_list(value: str) -> List[str]:
    """カンマ区切りの文字列をリストに変換"""
    return [item.strip() for item in value.split(",") if item.strip()]


def _split_pairs(value: str) -> List[Tuple[str, str]]:
    """`key=value,key=value` 形式の文字列を (key, value) のリストに変換"""
    pairs = []
    for item in _split_list(value):
        if "=" not in item:
            continue
        key, _, val = item.partition("=")
        pairs.append((key.strip(), val.strip()))
    return pairs


class Config:
    """アプリケーション設定クラス"""

    # Slack関連設定
    SLACK_BOT_TOKEN: str = os.getenv("SLACK_BOT_TOKEN", "")
    SLACK_SIGNING_SECRET: str = os.getenv("SLACK_SIGNING_SECRET", "")
    SLACK_APP_TOKEN: str = os.getenv("SLACK_APP_TOKEN", "")

    # チャンネル設定（お小遣いの通知先と管理者向け通知先）
    DEFAULT_CHANNEL: str = os.getenv("DEFAULT_CHANNEL", "#family")
    ADMIN_CHANNEL: str = os.getenv("ADMIN_CHANNEL", "#admin")

    # データファイルパス
    DATA_DIR: str = os.getenv("DATA_DIR", "./data")
    DATABASE_FILE: str = os.getenv("DATABASE_FILE", os.path.join(DATA_DIR, "ledger.sqlite3"))

    # 口座・権限設定
    ADMIN_USER_IDS: List[str] = _split_list(os.getenv("ADMIN_USER_IDS", ""))
    ACCOUNT_ALIASES: Dict[str, str] = dict(_split_pairs(os.getenv("ACCOUNT_ALIASES", "")))
    SAVINGS_ACCOUNTS: List[str] = _split_list(os.getenv("SAVINGS_ACCOUNTS", ""))

    # 初期残高（初回起動時のみ発行）
    SEED_ACCOUNTS: List[str] = _split_list(os.getenv("SEED_ACCOUNTS", "")) or list(ADMIN_USER_IDS)
    SEED_AMOUNT: int = int(os.getenv("SEED_AMOUNT", "100000"))
    SEED_MEMO: str = os.getenv("SEED_MEMO", "seed value")

    # 取引履歴の表示件数
    LEDGER_LIMIT: int = int(os.getenv("LEDGER_LIMIT", "5"))

    # お小遣い設定
    TIMEZONE: str = os.getenv("TIMEZONE", "America/Los_Angeles")
    ALLOWANCE_ENABLED: bool = os.getenv("ALLOWANCE_ENABLED", "true").lower() == "true"
    ALLOWANCE_WEEKDAY: int = int(os.getenv("ALLOWANCE_WEEKDAY", "4"))  # 月曜=0, 金曜=4
    ALLOWANCE_HOUR: int = int(os.getenv("ALLOWANCE_HOUR", "9"))
    ALLOWANCE_SOURCE: str = os.getenv("ALLOWANCE_SOURCE", ADMIN_USER_IDS[0] if ADMIN_USER_IDS else "")
    ALLOWANCE_PAYOUTS: List[Tuple[str, int]] = [
        (account, int(amount)) for account, amount in _split_pairs(os.getenv("ALLOWANCE_PAYOUTS", ""))
    ]
    ALLOWANCE_MEMO: str = os.getenv("ALLOWANCE_MEMO", "allowance")
    ALLOWANCE_BUFFER_SECONDS: int = int(os.getenv("ALLOWANCE_BUFFER_SECONDS", "60"))

    # ログ設定
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "allowance_bot.log")

    @classmethod
    def validate_config(cls) -> bool:
        """設定の妥当性チェック"""
        required_vars = [
            ("SLACK_BOT_TOKEN", cls.SLACK_BOT_TOKEN),
            ("SLACK_APP_TOKEN", cls.SLACK_APP_TOKEN),
            ("ADMIN_USER_IDS", cls.ADMIN_USER_IDS),
        ]

        missing_vars = []
        for var_name, var_value in required_vars:
            if not var_value:
                missing_vars.append(var_name)

        if missing_vars:
            print(f"以下の環境変数が設定されていません: {', '.join(missing_vars)}")
            return False

        if cls.ALLOWANCE_ENABLED and cls.ALLOWANCE_SOURCE not in cls.ADMIN_USER_IDS:
            print("ALLOWANCE_SOURCE は ADMIN_USER_IDS のいずれかである必要があります")
            return False

        return True

    @classmethod
    def create_data_directory(cls):
        """データディレクトリが存在しない場合は作成"""
        os.makedirs(cls.DATA_DIR, exist_ok=True)

    @classmethod
    def get_summary(cls) -> dict:
        """設定の概要を取得（機密情報は除く）"""
        return {
            "data_dir": cls.DATA_DIR,
            "database_file": cls.DATABASE_FILE,
            "admin_count": len(cls.ADMIN_USER_IDS),
            "aliases": sorted(cls.ACCOUNT_ALIASES),
            "allowance_enabled": cls.ALLOWANCE_ENABLED,
            "allowance_payouts": len(cls.ALLOWANCE_PAYOUTS),
            "timezone": cls.TIMEZONE,
            "log_level": cls.LOG_LEVEL,
        }
