"""
お小遣いスケジューラ - 毎週決まった時刻にお小遣いを送金
"""

import logging
from datetime import datetime, time, timedelta, tzinfo
from typing import List, Optional, Sequence, Tuple

import pytz

from allowance_bot.config import Config
from allowance_bot.errors import SchedulingError
from allowance_bot.models.ledger_store import Transaction, utc_now
from allowance_bot.services.transfer_service import TransferService
from allowance_bot.utils.identity import IdentityResolver
from allowance_bot.utils.money import format_money
from allowance_bot.utils.slack_utils import SlackUtils

logger = logging.getLogger(__name__)

JOB_ID = "weekly_allowance"

WAITING = "waiting"
DISBURSING = "disbursing"


def next_allowance_due(now: datetime, tz: tzinfo, weekday: int = 4, hour: int = 9) -> datetime:
    """
    次回のお小遣い送金時刻を計算

    `tz` の現地時刻で次の `weekday`（月曜=0）の `hour` 時ちょうど。当日の
    その時刻を過ぎていれば翌週になる。夏時間の切り替えがあっても現地時刻の
    `hour` 時になるよう、日付を決めてからローカライズする。

    Args:
        now: 現在時刻（タイムゾーン付き）
        tz: pytz のタイムゾーン
        weekday: 曜日
        hour: 時

    Returns:
        タイムゾーン付きの送金予定時刻
    """
    local_now = now.astimezone(tz)
    days_ahead = (weekday - local_now.weekday()) % 7
    target_date = local_now.date() + timedelta(days=days_ahead)

    due = tz.localize(datetime.combine(target_date, time(hour)))
    if due < local_now:
        due = tz.localize(datetime.combine(target_date + timedelta(days=7), time(hour)))

    return due


class AllowanceScheduler:
    """
    お小遣い自動送金クラス

    待機（WAITING）と送金（DISBURSING）を繰り返す。送金や通知に失敗しても
    ログを残して次回の予定を登録し直すため、ループが止まることはない。
    """

    def __init__(
        self,
        transfer_service: TransferService,
        slack_utils: SlackUtils,
        scheduler,
        identity: IdentityResolver,
        source: Optional[str] = None,
        payouts: Optional[Sequence[Tuple[str, int]]] = None,
        channel: Optional[str] = None,
        timezone: Optional[str] = None,
        weekday: Optional[int] = None,
        hour: Optional[int] = None,
        memo: Optional[str] = None,
        buffer_seconds: Optional[int] = None,
        clock=utc_now,
    ):
        self.transfer_service = transfer_service
        self.slack_utils = slack_utils
        self.scheduler = scheduler
        self.identity = identity
        self.source = source or Config.ALLOWANCE_SOURCE
        self.payouts = [
            (identity.resolve(account), amount)
            for account, amount in (Config.ALLOWANCE_PAYOUTS if payouts is None else payouts)
        ]
        self.channel = channel or Config.DEFAULT_CHANNEL
        self.timezone = pytz.timezone(timezone or Config.TIMEZONE)
        self.weekday = Config.ALLOWANCE_WEEKDAY if weekday is None else weekday
        self.hour = Config.ALLOWANCE_HOUR if hour is None else hour
        self.memo = memo or Config.ALLOWANCE_MEMO
        self.buffer = timedelta(seconds=Config.ALLOWANCE_BUFFER_SECONDS if buffer_seconds is None else buffer_seconds)
        self._clock = clock

        self.state = WAITING
        self.next_due_at: Optional[datetime] = None

    def start(self) -> datetime:
        """最初の送金予定を登録"""
        logger.info(f"お小遣いスケジューラを開始します: {len(self.payouts)}件, 送金元: {self.source}")
        return self.schedule_next()

    def stop(self):
        """登録済みの送金予定を削除"""
        if self.scheduler.get_job(JOB_ID):
            self.scheduler.remove_job(JOB_ID)
        self.next_due_at = None
        logger.info("お小遣いスケジューラを停止しました")

    def next_due(self, now: Optional[datetime] = None) -> datetime:
        return next_allowance_due(now or self._clock(), self.timezone, self.weekday, self.hour)

    def schedule_next(self, reference: Optional[datetime] = None) -> datetime:
        """
        次回の送金予定を計算して登録

        Args:
            reference: この時刻以降の予定を探す（省略時は現在時刻）
        """
        now = self._clock()
        due = self.next_due(reference or now)

        self.scheduler.add_job(
            func=self.run_disbursement,
            trigger="date",
            run_date=due,
            id=JOB_ID,
            replace_existing=True,
            misfire_grace_time=None,
        )
        self.state = WAITING
        self.next_due_at = due

        minutes = int((due - now).total_seconds() // 60)
        logger.info(f"次回のお小遣いまで{minutes}分です: {due.isoformat()}")
        return due

    def run_disbursement(self):
        """
        お小遣いを送金して通知し、次回の予定を登録
        """
        self.state = DISBURSING
        try:
            transactions = self.disburse()
            self.announce(transactions)
        except SchedulingError as e:
            # 送金は確定済みなので取り消さない
            logger.error(f"お小遣いの通知に失敗しました（送金は完了済み）: {e}")
        except Exception as e:
            logger.exception(f"お小遣いの送金中にエラー: {e}")
        finally:
            # 同じ時刻を再計算しないよう少し先の時刻を基準にする
            self.schedule_next(self._clock() + self.buffer)

    def disburse(self) -> List[Transaction]:
        """
        設定された全員にお小遣いを送金
        """
        with self.transfer_service.store.lock:
            transactions = [
                self.transfer_service.transfer(
                    actor=self.source,
                    sender=self.source,
                    receiver=receiver,
                    amount=amount,
                    memo=self.memo,
                )
                for receiver, amount in self.payouts
            ]

        logger.info(f"お小遣いを送金しました: {len(transactions)}件")
        return transactions

    def announce(self, transactions: List[Transaction]):
        """
        送金結果をチャンネルに通知

        Raises:
            SchedulingError: 通知の送信に失敗した場合
        """
        if not transactions:
            return

        parts = [
            f"{self.identity.display(transaction.receiver)} に {format_money(transaction.amount)}"
            for transaction in transactions
        ]
        text = f"💸 今週のお小遣いを送金しました: {'、'.join(parts)}。"

        if not self.slack_utils.send_message(self.channel, text):
            raise SchedulingError(f"チャンネル {self.channel} への通知に失敗しました")
