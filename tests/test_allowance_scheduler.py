"""
Tests for the weekly allowance scheduler.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytz

from allowance_bot.errors import StoreError
from allowance_bot.schedulers.allowance_scheduler import (
    DISBURSING,
    JOB_ID,
    WAITING,
    AllowanceScheduler,
    next_allowance_due,
)

from conftest import CHARLIE, CHASE, DAD, TIMEZONE, FakeSlackUtils

PACIFIC = pytz.timezone(TIMEZONE)


def local(*args):
    return PACIFIC.localize(datetime(*args))


class FakeJobScheduler:
    """Records jobs the way BackgroundScheduler.add_job would receive them."""

    def __init__(self):
        self.jobs = {}
        self.added = []

    def add_job(self, func, trigger, run_date, id, replace_existing, misfire_grace_time):
        job = {
            "func": func,
            "trigger": trigger,
            "run_date": run_date,
            "replace_existing": replace_existing,
            "misfire_grace_time": misfire_grace_time,
        }
        self.jobs[id] = job
        self.added.append(job)
        return job

    def get_job(self, job_id):
        return self.jobs.get(job_id)

    def remove_job(self, job_id):
        del self.jobs[job_id]


class TestNextAllowanceDue:
    def test_midweek_rolls_to_coming_friday(self):
        due = next_allowance_due(local(2024, 3, 6, 10, 0), PACIFIC)
        assert due == local(2024, 3, 8, 9, 0)
        assert due.weekday() == 4

    def test_friday_before_nine_is_same_day(self):
        assert next_allowance_due(local(2024, 3, 8, 8, 59), PACIFIC) == local(2024, 3, 8, 9, 0)

    def test_friday_after_nine_is_next_week(self):
        assert next_allowance_due(local(2024, 3, 8, 9, 30), PACIFIC) == local(2024, 3, 15, 9, 0)

    def test_exactly_nine_is_due_now(self):
        assert next_allowance_due(local(2024, 3, 8, 9, 0), PACIFIC) == local(2024, 3, 8, 9, 0)

    def test_saturday_waits_six_days(self):
        assert next_allowance_due(local(2024, 3, 9, 12, 0), PACIFIC) == local(2024, 3, 15, 9, 0)

    def test_utc_input_is_converted_to_local_time(self):
        # 16:30 UTC is 08:30 PST on Friday
        now = datetime(2024, 3, 8, 16, 30, tzinfo=timezone.utc)
        due = next_allowance_due(now, PACIFIC)
        assert due == local(2024, 3, 8, 9, 0)
        assert due.astimezone(timezone.utc) == datetime(2024, 3, 8, 17, 0, tzinfo=timezone.utc)

    def test_utc_date_ahead_of_local_date(self):
        # 03:00 UTC Saturday is still Friday evening in Los Angeles
        now = datetime(2024, 3, 9, 3, 0, tzinfo=timezone.utc)
        assert next_allowance_due(now, PACIFIC) == local(2024, 3, 15, 9, 0)

    def test_daylight_saving_week_still_lands_at_nine(self):
        # DST starts Sunday 2024-03-10
        due = next_allowance_due(local(2024, 3, 8, 10, 0), PACIFIC)
        assert due.hour == 9
        assert due.utcoffset() == timedelta(hours=-7)
        assert due.astimezone(timezone.utc) == datetime(2024, 3, 15, 16, 0, tzinfo=timezone.utc)

    def test_other_weekday_and_hour(self):
        due = next_allowance_due(local(2024, 3, 6, 10, 0), PACIFIC, weekday=0, hour=7)
        assert due == local(2024, 3, 11, 7, 0)


@pytest.fixture
def jobs():
    return FakeJobScheduler()


@pytest.fixture
def slack():
    return FakeSlackUtils()


@pytest.fixture
def make_scheduler(transfer_service, identity, jobs, slack, clock):
    def _make(**overrides):
        options = dict(
            source=DAD,
            payouts=[("chase", 500), (CHARLIE, 300)],
            channel="#family",
            timezone=TIMEZONE,
            weekday=4,
            hour=9,
            memo="allowance",
            buffer_seconds=60,
            clock=clock,
        )
        options.update(overrides)
        return AllowanceScheduler(transfer_service, slack, jobs, identity, **options)

    return _make


class TestAllowanceScheduler:
    def test_payout_aliases_are_resolved(self, make_scheduler):
        scheduler = make_scheduler()
        assert scheduler.payouts == [(CHASE, 500), (CHARLIE, 300)]

    def test_start_registers_one_shot_job(self, make_scheduler, jobs, clock):
        scheduler = make_scheduler()
        due = scheduler.start()

        job = jobs.get_job(JOB_ID)
        assert job["trigger"] == "date"
        assert job["run_date"] == due
        assert job["replace_existing"] is True
        assert job["misfire_grace_time"] is None
        assert job["func"] == scheduler.run_disbursement
        assert due == next_allowance_due(clock(), PACIFIC)
        assert scheduler.state == WAITING
        assert scheduler.next_due_at == due

    def test_disbursement_pays_announces_and_reschedules(
        self, make_scheduler, jobs, slack, clock, balance_manager
    ):
        scheduler = make_scheduler()
        due = scheduler.start()

        clock.now = due.astimezone(timezone.utc)
        scheduler.run_disbursement()

        assert balance_manager.get_balance(CHASE) == 500
        assert balance_manager.get_balance(CHARLIE) == 300
        assert balance_manager.get_balance(DAD) == -800

        [(channel, text)] = slack.sent
        assert channel == "#family"
        assert "<@UCHASE> に $5.00" in text
        assert "<@UCHARLIE> に $3.00" in text

        assert jobs.get_job(JOB_ID)["run_date"] == due + timedelta(days=7)
        assert scheduler.state == WAITING

    def test_transfers_carry_allowance_memo(self, make_scheduler, store, clock):
        scheduler = make_scheduler()
        clock.now = scheduler.start().astimezone(timezone.utc)
        scheduler.run_disbursement()

        [latest] = store.recent_transactions(CHASE, 1)
        assert latest.sender == DAD
        assert latest.memo == "allowance"

    def test_state_is_disbursing_while_paying(self, make_scheduler, transfer_service, monkeypatch):
        scheduler = make_scheduler()
        scheduler.start()
        seen = []
        original = transfer_service.transfer

        def spy(**kwargs):
            seen.append(scheduler.state)
            return original(**kwargs)

        monkeypatch.setattr(transfer_service, "transfer", spy)
        scheduler.run_disbursement()

        assert seen == [DISBURSING, DISBURSING]
        assert scheduler.state == WAITING

    def test_announcement_failure_keeps_transfers_and_loop(
        self, make_scheduler, jobs, slack, clock, balance_manager
    ):
        slack.ok = False
        scheduler = make_scheduler()
        due = scheduler.start()
        clock.now = due.astimezone(timezone.utc)

        scheduler.run_disbursement()

        assert balance_manager.get_balance(CHASE) == 500
        assert jobs.get_job(JOB_ID)["run_date"] == due + timedelta(days=7)

    def test_store_failure_keeps_loop_alive(
        self, make_scheduler, jobs, slack, clock, transfer_service, monkeypatch
    ):
        def broken(**kwargs):
            raise StoreError("disk unavailable")

        monkeypatch.setattr(transfer_service, "transfer", broken)
        scheduler = make_scheduler()
        due = scheduler.start()
        clock.now = due.astimezone(timezone.utc)

        scheduler.run_disbursement()

        assert slack.sent == []
        assert jobs.get_job(JOB_ID)["run_date"] == due + timedelta(days=7)
        assert scheduler.state == WAITING

    def test_unexpected_error_keeps_loop_alive(self, make_scheduler, jobs, clock, transfer_service, monkeypatch):
        def broken(**kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(transfer_service, "transfer", broken)
        scheduler = make_scheduler()
        scheduler.start()

        scheduler.run_disbursement()
        assert JOB_ID in jobs.jobs

    def test_buffer_prevents_same_instant_rerun(self, make_scheduler, jobs, clock):
        scheduler = make_scheduler()
        due = scheduler.start()

        # the job fired a few milliseconds early
        clock.now = (due - timedelta(milliseconds=5)).astimezone(timezone.utc)
        scheduler.run_disbursement()

        assert jobs.get_job(JOB_ID)["run_date"] == due + timedelta(days=7)

    def test_stop_removes_job(self, make_scheduler, jobs):
        scheduler = make_scheduler()
        scheduler.start()
        scheduler.stop()

        assert jobs.get_job(JOB_ID) is None
        assert scheduler.next_due_at is None
