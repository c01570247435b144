import logging
from datetime import datetime, timezone

import pytest
from django.contrib.auth import get_user_model
from django.db import IntegrityError, OperationalError

from learning.models import Notification, TokenLedgerEntry
from tracker.data.models import PayoutRecord, WeeklyLeaderboardEntry
from tracker.domain.enums import PayoutOutcome, PayoutStatus
from tracker.services import payouts
from tracker.services.payouts import pay_owner, run_weekly_payout

logger = logging.getLogger(__name__)

User = get_user_model()

# Monday 2026-02-16 00:00 at UTC+8: the job pays out W2026-07
RUN_AT = datetime(2026, 2, 15, 16, 0, tzinfo=timezone.utc)
LAST_WEEK = "W2026-07"

# Helpers

def rank_entry(owner_id, average, week_id=LAST_WEEK):
    return WeeklyLeaderboardEntry.objects.create(
        week_id=week_id, owner_id=owner_id, attempt_count=1,
        total_score_sum=average, average_score=average,
    )


def learner(username, tokens=0):
    return User.objects.create_user(username, tokens=tokens)


def balance(username):
    return User.objects.get(username=username).tokens


@pytest.fixture
def podium(db):
    for owner_id, average in (("A", 90), ("B", 90), ("C", 80)):
        learner(owner_id, tokens=5)
        rank_entry(owner_id, average)


# Tests

def test_payout_ranks_and_rewards(podium):
    """[A:90, B:90, C:80] pays 10, 9, 8 with ties broken by owner id."""
    report = run_weekly_payout(now=RUN_AT)

    assert report.week_id == LAST_WEEK
    assert report.paid == ["A", "B", "C"]
    assert (balance("A"), balance("B"), balance("C")) == (15, 14, 13)

    fences = {r.owner_id: (r.rank, r.tokens_awarded, r.status) for r in PayoutRecord.objects.all()}
    assert fences == {
        "A": (1, 10, PayoutStatus.PAID.value),
        "B": (2, 9, PayoutStatus.PAID.value),
        "C": (3, 8, PayoutStatus.PAID.value),
    }

    ledger = TokenLedgerEntry.objects.get(user__username="A")
    assert ledger.amount == 10
    assert ledger.balance_after == 15
    assert ledger.reason == "Leaderboard Reward: weekly #1"
    assert ledger.metadata == {"category": "leaderboard", "period": "weekly", "rank": 1, "week_id": LAST_WEEK}

    note = Notification.objects.get(recipient__username="C")
    assert note.type == "leaderboard_reward"
    assert note.preview_text == "Weekly leaderboard #3: +8 tokens"
    logger.info("✓ Passed: payout %s", report)


def test_second_run_is_a_no_op(podium):
    run_weekly_payout(now=RUN_AT)
    report = run_weekly_payout(now=RUN_AT)

    assert report.paid == []
    assert report.already_paid == ["A", "B", "C"]
    assert (balance("A"), balance("B"), balance("C")) == (15, 14, 13)
    assert PayoutRecord.objects.count() == 3
    assert TokenLedgerEntry.objects.count() == 3
    assert Notification.objects.count() == 3
    logger.info("✓ Passed: rerun paid nothing")


def test_in_progress_week_is_not_paid(podium):
    rank_entry("D", 100, week_id="W2026-08")
    learner("D")

    report = run_weekly_payout(now=RUN_AT)

    assert "D" not in report.paid
    assert balance("D") == 0


@pytest.mark.django_db
def test_only_top_ten_are_paid():
    for i in range(12):
        owner_id = f"user{i:02d}"
        learner(owner_id)
        rank_entry(owner_id, 100 - i)

    report = run_weekly_payout(now=RUN_AT)

    assert len(report.paid) == 10
    assert balance("user00") == 10
    assert balance("user09") == 1
    assert balance("user10") == 0
    assert not PayoutRecord.objects.filter(owner_id__in=["user10", "user11"]).exists()


@pytest.mark.django_db
def test_missing_profile_is_fenced_as_skipped():
    rank_entry("ghost", 95)
    learner("B")
    rank_entry("B", 90)

    report = run_weekly_payout(now=RUN_AT)
    assert report.skipped == ["ghost"]
    assert report.paid == ["B"]

    fence = PayoutRecord.objects.get(owner_id="ghost")
    assert fence.status == PayoutStatus.SKIPPED.value
    assert fence.reason == "User profile missing"

    # the profile appearing later does not reopen the payout
    learner("ghost")
    again = run_weekly_payout(now=RUN_AT)
    assert again.already_paid == ["ghost", "B"]
    assert balance("ghost") == 0


def test_one_owner_failing_does_not_block_others(podium, monkeypatch):
    real_credit = payouts._credit_locked

    def credit_failing_for_b(week_id, owner_id, rank, tokens):
        if owner_id == "B":
            raise RuntimeError("profile store unavailable")
        return real_credit(week_id, owner_id, rank, tokens)

    monkeypatch.setattr(payouts, "_credit_locked", credit_failing_for_b)
    report = run_weekly_payout(now=RUN_AT)

    assert report.paid == ["A", "C"]
    assert report.failed == ["B"]
    assert balance("B") == 5
    assert not PayoutRecord.objects.filter(owner_id="B").exists()

    # the retry picks up exactly the missed owner
    monkeypatch.setattr(payouts, "_credit_locked", real_credit)
    retry = run_weekly_payout(now=RUN_AT)
    assert retry.paid == ["B"]
    assert retry.already_paid == ["A", "C"]
    assert balance("B") == 14
    logger.info("✓ Passed: failure isolated and retried")


def test_crash_before_fence_rolls_back_credit(podium, monkeypatch):
    """Tokens and fence commit together: no credit survives a failed fence write."""
    def broken_fence(*args, **kwargs):
        raise RuntimeError("write failed")

    monkeypatch.setattr(payouts, "create_payout_record", broken_fence)
    report = run_weekly_payout(now=RUN_AT)

    assert report.failed == ["A", "B", "C"]
    assert (balance("A"), balance("B"), balance("C")) == (5, 5, 5)
    assert TokenLedgerEntry.objects.count() == 0
    assert Notification.objects.count() == 0


@pytest.mark.django_db
def test_pay_owner_without_reward_is_skipped():
    learner("A")
    assert pay_owner(LAST_WEEK, "A", 11, 0) == PayoutOutcome.NO_REWARD
    assert PayoutRecord.objects.count() == 0


@pytest.mark.django_db
def test_empty_week_pays_nobody():
    report = run_weekly_payout(now=RUN_AT)
    assert (report.paid, report.skipped, report.already_paid, report.failed) == ([], [], [], [])


def test_transient_conflict_is_retried(podium, monkeypatch):
    """A lock conflict on the first attempt is retried; A is paid exactly once."""
    real_lock = payouts.lock_payout_record
    calls = {"n": 0}

    def flaky_lock(week_id, owner_id):
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("database is locked")
        return real_lock(week_id, owner_id)

    monkeypatch.setattr(payouts, "lock_payout_record", flaky_lock)
    report = run_weekly_payout(now=RUN_AT)

    assert report.paid == ["A", "B", "C"]
    assert report.failed == []
    assert balance("A") == 15
    assert TokenLedgerEntry.objects.filter(user__username="A").count() == 1
    logger.info("✓ Passed: conflict retried, payout landed once")


def test_persistent_conflict_counts_as_failed(podium, monkeypatch):
    def always_locked(week_id, owner_id):
        raise OperationalError("database is locked")

    monkeypatch.setattr(payouts, "lock_payout_record", always_locked)
    report = run_weekly_payout(now=RUN_AT)

    assert report.failed == ["A", "B", "C"]
    assert (balance("A"), balance("B"), balance("C")) == (5, 5, 5)


@pytest.mark.django_db
def test_lost_fence_race_rolls_back_and_reports_already_paid(monkeypatch):
    """Another run commits A's fence while this unit is mid-credit."""
    learner("A", tokens=5)
    real_lock = payouts.lock_payout_record
    real_create = payouts.create_payout_record
    race = {"lost": False}

    def racing_create(week_id, owner_id, rank, tokens, status, reason=""):
        if not race["lost"]:
            race["lost"] = True
            raise IntegrityError("UNIQUE constraint failed: tracker_payoutrecord.week_id, owner_id")
        return real_create(week_id, owner_id, rank, tokens, status, reason)

    def lock_after_race(week_id, owner_id):
        if race["lost"] and not PayoutRecord.objects.filter(week_id=week_id, owner_id=owner_id).exists():
            # the winning run's fence, now visible
            real_create(week_id, owner_id, 1, 10, PayoutStatus.PAID.value)
        return real_lock(week_id, owner_id)

    monkeypatch.setattr(payouts, "create_payout_record", racing_create)
    monkeypatch.setattr(payouts, "lock_payout_record", lock_after_race)

    assert pay_owner(LAST_WEEK, "A", 1, 10) == PayoutOutcome.ALREADY_PAID
    assert balance("A") == 5
    assert TokenLedgerEntry.objects.count() == 0
    assert Notification.objects.count() == 0
    assert PayoutRecord.objects.filter(owner_id="A").count() == 1
