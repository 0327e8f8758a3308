#!/usr/bin/env python3
"""
Docker ヘルスチェック用スクリプト
"""

import sys
import time
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from allowance_bot.config import Config


def check_health(data_dir: Optional[str] = None, database_file: Optional[str] = None,
                 log_file: Optional[str] = None) -> bool:
    """アプリケーションの健全性をチェック"""
    # 1. データディレクトリの存在確認
    if not Path(data_dir or Config.DATA_DIR).exists():
        print("❌ Data directory does not exist")
        return False

    # 2. データベースの存在と読み込み確認
    db_path = Path(database_file or Config.DATABASE_FILE)
    if not db_path.exists():
        print("❌ Database file does not exist")
        return False

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT COUNT(*) FROM transactions"))
    except SQLAlchemyError as e:
        print(f"❌ Database check failed: {e}")
        return False
    finally:
        engine.dispose()

    # 3. アプリケーションログの最終更新時間をチェック
    log_path = Path(log_file or Config.LOG_FILE)
    if log_path.exists():
        # ログファイルが30分以内に更新されているかチェック
        if time.time() - log_path.stat().st_mtime > 1800:
            print("⚠️  Log file not updated recently")
            # ただし、これだけでは失敗とはしない

    print("✅ Health check passed")
    return True


if __name__ == "__main__":
    if check_health():
        sys.exit(0)
    else:
        sys.exit(1)
