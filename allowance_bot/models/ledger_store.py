"""
台帳ストア - 取引ログ（追記のみ）と最低残高の永続化
"""

import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from sqlalchemy import create_engine, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from allowance_bot.config import Config
from allowance_bot.errors import StoreError
from allowance_bot.models.schema import Base, MinimumBalanceRow, TransactionRow

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Transaction:
    """確定済みの取引（変更不可）"""

    id: int
    sender: Optional[str]
    receiver: str
    amount: int
    timestamp: datetime
    memo: Optional[str] = None

    @classmethod
    def from_row(cls, row: TransactionRow) -> "Transaction":
        return cls(
            id=row.id,
            sender=row.sender,
            receiver=row.receiver,
            amount=row.amount,
            timestamp=row.date.replace(tzinfo=timezone.utc),
            memo=row.memo,
        )


class LedgerStore:
    """
    取引ログ管理クラス

    全ての読み書きは1つの接続と1つの再入可能ロックで直列化される。
    残高チェックから追記までを1つのクリティカルセクションにしたい呼び出し元は
    `with store.lock:` で囲むこと。
    """

    def __init__(
        self,
        database_file: Optional[str] = None,
        seed_accounts: Optional[Iterable[str]] = None,
        seed_amount: Optional[int] = None,
        seed_memo: Optional[str] = None,
        savings_accounts: Optional[Iterable[str]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._lock = threading.RLock()
        self._clock = clock
        self.database_file = database_file or Config.DATABASE_FILE
        self.seed_accounts = list(Config.SEED_ACCOUNTS if seed_accounts is None else seed_accounts)
        self.seed_amount = Config.SEED_AMOUNT if seed_amount is None else seed_amount
        self.seed_memo = seed_memo or Config.SEED_MEMO
        self.savings_accounts = frozenset(Config.SAVINGS_ACCOUNTS if savings_accounts is None else savings_accounts)

        in_memory = self.database_file == IN_MEMORY
        # 初期残高の発行はこのプロセスの起動前にDBが存在しなかった場合のみ
        existed = not in_memory and os.path.exists(self.database_file)
        if not in_memory:
            self._ensure_data_directory()

        url = "sqlite://" if in_memory else f"sqlite:///{self.database_file}"
        self._engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

        self._in_memory = in_memory
        self.created = not existed

        # テーブル作成と初期残高の発行が両方終わるまでは新規DBとして扱わない
        try:
            Base.metadata.create_all(bind=self._engine)
            self._last_timestamp = self._load_last_timestamp()
            if self.created:
                self._seed()
        except SQLAlchemyError as e:
            logger.error(f"データベース初期化中にエラー: {e}")
            self._discard_new_database()
            raise StoreError(f"データベースを開けませんでした: {self.database_file}") from e
        except StoreError:
            self._discard_new_database()
            raise

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def append(
        self,
        sender: Optional[str],
        receiver: str,
        amount: int,
        memo: Optional[str] = None,
    ) -> Transaction:
        """
        取引をログに追加

        Args:
            sender: 送金元（Noneは発行）
            receiver: 送金先
            amount: 金額（セント単位、正の値）
            memo: メモ

        Returns:
            IDとタイムスタンプが付与された取引
        """
        if amount <= 0:
            raise ValueError(f"取引金額は正の値である必要があります: {amount}")
        if not receiver:
            raise ValueError("送金先が指定されていません")

        with self._session() as db:
            timestamp = self._next_timestamp()
            row = TransactionRow(
                sender=sender,
                receiver=receiver,
                amount=amount,
                date=timestamp.replace(tzinfo=None),
                memo=memo,
            )
            db.add(row)
            db.commit()
            self._last_timestamp = timestamp

            transaction = Transaction.from_row(row)
            logger.info(f"取引ログを追加しました: #{transaction.id} {sender} -> {receiver} {amount}")
            return transaction

    def sum_sent(self, account: str) -> int:
        """送金元として記録された金額の合計"""
        with self._session() as db:
            total = db.scalar(
                select(func.coalesce(func.sum(TransactionRow.amount), 0)).where(TransactionRow.sender == account)
            )
            return int(total)

    def sum_received(self, account: str) -> int:
        """送金先として記録された金額の合計"""
        with self._session() as db:
            total = db.scalar(
                select(func.coalesce(func.sum(TransactionRow.amount), 0)).where(TransactionRow.receiver == account)
            )
            return int(total)

    def minimum_balance(self, account: str) -> int:
        """最低残高を取得（未設定の場合は0）"""
        with self._session() as db:
            row = db.get(MinimumBalanceRow, account)
            return row.min_balance if row else 0

    def set_minimum_balance(self, account: str, floor: int) -> None:
        """最低残高を設定（存在しなければ作成）"""
        with self._session() as db:
            row = db.get(MinimumBalanceRow, account)
            if row is None:
                db.add(MinimumBalanceRow(user_id=account, min_balance=floor))
            else:
                row.min_balance = floor
            db.commit()
            logger.info(f"最低残高を設定しました: {account} = {floor}")

    def recent_transactions(self, account: str, limit: int) -> List[Transaction]:
        """
        口座に関係する最近の取引を取得

        Returns:
            取引リスト（新しい順、同時刻はID降順）
        """
        if limit <= 0:
            return []

        with self._session() as db:
            rows = db.scalars(
                select(TransactionRow)
                .where(or_(TransactionRow.sender == account, TransactionRow.receiver == account))
                .order_by(TransactionRow.date.desc(), TransactionRow.id.desc())
                .limit(limit)
            ).all()
            return [Transaction.from_row(row) for row in rows]

    def account_known(self, account: str) -> bool:
        """口座が取引ログに登場するか（貯金口座は常に有効）"""
        if account in self.savings_accounts:
            return True

        with self._session() as db:
            total = db.scalar(
                select(func.count())
                .select_from(TransactionRow)
                .where(or_(TransactionRow.sender == account, TransactionRow.receiver == account))
            )
            return total > 0

    def count(self) -> int:
        """取引の総件数"""
        with self._session() as db:
            return int(db.scalar(select(func.count()).select_from(TransactionRow)))

    def close(self):
        self._engine.dispose()

    @contextmanager
    def _session(self):
        with self._lock:
            session = self._session_factory()
            try:
                yield session
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"データベース操作中にエラー: {e}")
                raise StoreError(f"データベース操作に失敗しました: {e}") from e
            finally:
                session.close()

    def _next_timestamp(self) -> datetime:
        # 壁時計が巻き戻ってもタイムスタンプは減少させない
        now = self._clock()
        if self._last_timestamp is not None and now < self._last_timestamp:
            return self._last_timestamp
        return now

    def _load_last_timestamp(self) -> Optional[datetime]:
        with self._session() as db:
            latest = db.scalar(select(func.max(TransactionRow.date)))
            return latest.replace(tzinfo=timezone.utc) if latest else None

    def _seed(self):
        """
        初期残高の取引を発行（新規DBの場合のみ）
        """
        with self._session() as db:
            timestamp = self._next_timestamp()
            for account in self.seed_accounts:
                db.add(TransactionRow(
                    sender=None,
                    receiver=account,
                    amount=self.seed_amount,
                    date=timestamp.replace(tzinfo=None),
                    memo=self.seed_memo,
                ))
            db.commit()
            if self.seed_accounts:
                self._last_timestamp = timestamp

        logger.info(f"新しいデータベースを初期化しました: {self.database_file}")

    def _discard_new_database(self):
        """
        初期化に失敗した新規DBファイルを削除（次回起動時に初期残高を再発行させる）
        """
        self._engine.dispose()
        if self.created and not self._in_memory and os.path.exists(self.database_file):
            os.remove(self.database_file)
            logger.warning(f"初期化に失敗したデータベースを削除しました: {self.database_file}")

    def _ensure_data_directory(self):
        """
        データディレクトリの存在を確認・作成
        """
        directory = os.path.dirname(os.path.abspath(self.database_file))
        os.makedirs(directory, exist_ok=True)
