from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from django.utils import timezone
import structlog

from learning.models import Notification, TokenLedgerEntry

from ..config import PAYOUT_TOP_N
from ..data.repos import (
    create_payout_record,
    get_profile_for_update,
    lock_payout_record,
    run_atomic,
    top_leaderboard_entries,
)
from ..domain.enums import PayoutOutcome, PayoutStatus
from ..domain.logic import tokens_for_rank
from ..utils.time import previous_week_key, to_reference_iso

logger = structlog.get_logger()

PROFILE_MISSING_REASON = "User profile missing"


@dataclass
class PayoutReport:
    week_id: str
    paid: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    already_paid: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def _credit_locked(week_id, owner_id, rank, tokens) -> PayoutOutcome:
    if lock_payout_record(week_id, owner_id) is not None:
        return PayoutOutcome.ALREADY_PAID

    profile = get_profile_for_update(owner_id)
    if profile is None:
        # fence it anyway so reruns do not keep retrying a payout that cannot land
        create_payout_record(week_id, owner_id, rank, tokens,
                             PayoutStatus.SKIPPED.value, PROFILE_MISSING_REASON)
        return PayoutOutcome.SKIPPED

    profile.tokens += tokens
    profile.save(update_fields=["tokens"])

    TokenLedgerEntry.objects.create(
        user=profile,
        amount=tokens,
        kind=TokenLedgerEntry.GAIN,
        reason=f"Leaderboard Reward: weekly #{rank}",
        balance_after=profile.tokens,
        metadata={"category": "leaderboard", "period": "weekly", "rank": rank, "week_id": week_id},
    )
    Notification.objects.create(
        recipient=profile,
        type="leaderboard_reward",
        preview_text=f"Weekly leaderboard #{rank}: +{tokens} tokens",
        payload={"week_id": week_id, "rank": rank, "tokens": tokens},
    )
    # the fence commits together with the credit or not at all
    create_payout_record(week_id, owner_id, rank, tokens, PayoutStatus.PAID.value)
    return PayoutOutcome.PAID


def pay_owner(week_id, owner_id, rank: int, tokens: int) -> PayoutOutcome:
    if tokens <= 0:
        return PayoutOutcome.NO_REWARD
    # a lost fence race rolls the unit back; the retry then sees the fence
    return run_atomic(_credit_locked, week_id, owner_id, rank, tokens)


def run_weekly_payout(now: Optional[datetime] = None, top_n: int = PAYOUT_TOP_N) -> PayoutReport:
    """
    Pay the just-finished week's top owners. Safe to re-run: every owner
    is fenced by a PayoutRecord written in the same transaction as the
    credit, so a repeated run only observes ALREADY_PAID.
    """
    now = now or timezone.now()
    week_id = previous_week_key(now)
    report = PayoutReport(week_id=week_id)

    entries = top_leaderboard_entries(week_id, top_n)
    logger.info("weekly_payout_started",
        week_id=week_id,
        run_utc=now.isoformat(),
        run_local=to_reference_iso(now),
        ranked=len(entries),
    )

    buckets = {
        PayoutOutcome.PAID: report.paid,
        PayoutOutcome.SKIPPED: report.skipped,
        PayoutOutcome.ALREADY_PAID: report.already_paid,
    }
    for rank, entry in enumerate(entries, start=1):
        tokens = tokens_for_rank(rank)
        try:
            outcome = pay_owner(week_id, entry.owner_id, rank, tokens)
        except Exception:
            # owners are independent units; one failure must not stop the rest
            logger.exception("payout_failed", week_id=week_id, owner_id=entry.owner_id, rank=rank)
            report.failed.append(entry.owner_id)
            continue

        if outcome in buckets:
            buckets[outcome].append(entry.owner_id)
        logger.info("payout_processed",
            week_id=week_id,
            owner_id=entry.owner_id,
            rank=rank,
            tokens=tokens,
            outcome=outcome.value,
        )

    logger.info("weekly_payout_finished",
        week_id=week_id,
        paid=len(report.paid),
        skipped=len(report.skipped),
        already_paid=len(report.already_paid),
        failed=len(report.failed),
    )
    return report
