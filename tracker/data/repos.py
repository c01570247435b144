from django.contrib.auth import get_user_model
from django.db import IntegrityError, OperationalError, transaction
from django.utils import timezone
import structlog

from ..config import TRANSACTION_MAX_ATTEMPTS
from ..domain.errors import RetryableConflict
from .models import (
    Comment,
    CommentQuestionStats,
    DailySummary,
    PayoutRecord,
    ReviewCard,
    WeeklyLeaderboardEntry,
)

logger = structlog.get_logger()


def run_atomic(fn, *args, attempts=TRANSACTION_MAX_ATTEMPTS, **kwargs):
    """
    Run fn inside its own transaction, re-running it on lock or
    first-insert conflicts. fn must be safe to repeat: it re-reads its
    base state on every attempt and applies the same delta.
    """
    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return fn(*args, **kwargs)
        except (OperationalError, IntegrityError) as exc:
            if attempt == attempts:
                raise RetryableConflict(
                    f"{getattr(fn, '__name__', fn)} still conflicting after {attempts} attempts"
                ) from exc
            logger.warning("transaction_conflict_retry",
                operation=getattr(fn, "__name__", str(fn)),
                attempt=attempt,
                error=str(exc),
            )


def get_profile_for_update(owner_id):
    return (get_user_model().objects
            .select_for_update()
            .filter(username=owner_id)
            .first())


def get_profile(owner_id):
    return get_user_model().objects.filter(username=owner_id).first()


# Daily summaries

def lock_daily_summary(owner_id, due_date):
    """Fetch (or lazily create) the summary row and lock it for update."""
    summary, _ = (DailySummary.objects
                  .select_for_update()
                  .get_or_create(owner_id=owner_id, due_date=due_date))
    return summary


def save_daily_summary(summary, due_total, topic_counts, subtopic_counts):
    summary.due_total = due_total
    summary.topic_counts = topic_counts
    summary.subtopic_counts = subtopic_counts
    summary.save(update_fields=["due_total", "topic_counts", "subtopic_counts", "updated_at"])
    return summary


def iter_active_card_pages(owner_id, page_size):
    """
    Yield pages of the owner's active cards in card_id order. The last
    card_id of each page is the cursor for the next query.
    """
    cursor = None
    while True:
        qs = ReviewCard.objects.filter(owner_id=owner_id, is_active=True).order_by("card_id")
        if cursor is not None:
            qs = qs.filter(card_id__gt=cursor)
        page = list(qs[:page_size])
        if not page:
            return
        yield page
        cursor = page[-1].card_id
        if len(page) < page_size:
            return


def overwrite_daily_summaries(owner_id, aggregated, dates, rebuilt_at=None):
    """Set (not increment) the given dates to their rebuilt counts."""
    rebuilt_at = rebuilt_at or timezone.now()
    with transaction.atomic():
        for due_date in dates:
            data = aggregated[due_date]
            DailySummary.objects.update_or_create(
                owner_id=owner_id,
                due_date=due_date,
                defaults={
                    "due_total": data["due_total"],
                    "topic_counts": data["topic_counts"],
                    "subtopic_counts": data["subtopic_counts"],
                    "rebuilt_at": rebuilt_at,
                },
            )
    return len(dates)


def clear_stale_daily_summaries(owner_id, keep_dates, rebuilt_at=None):
    """Zero every non-empty summary of the owner that the rebuild did not touch."""
    rebuilt_at = rebuilt_at or timezone.now()
    stale = (DailySummary.objects
             .filter(owner_id=owner_id, due_total__gt=0)
             .exclude(due_date__in=list(keep_dates)))
    return stale.update(
        due_total=0,
        topic_counts={},
        subtopic_counts={},
        rebuilt_at=rebuilt_at,
        updated_at=rebuilt_at,
    )


# Weekly leaderboard

def lock_leaderboard_entry(week_id, owner_id):
    entry, _ = (WeeklyLeaderboardEntry.objects
                .select_for_update()
                .get_or_create(week_id=week_id, owner_id=owner_id))
    return entry


def top_leaderboard_entries(week_id, limit):
    # owner_id makes the order of equal averages deterministic
    return list(
        WeeklyLeaderboardEntry.objects
        .filter(week_id=week_id)
        .order_by("-average_score", "owner_id")[:limit]
    )


# Payout fence

def lock_payout_record(week_id, owner_id):
    return (PayoutRecord.objects
            .select_for_update()
            .filter(week_id=week_id, owner_id=owner_id)
            .first())


def create_payout_record(week_id, owner_id, rank, tokens, status, reason=""):
    return PayoutRecord.objects.create(
        week_id=week_id,
        owner_id=owner_id,
        rank=rank,
        tokens_awarded=tokens,
        status=status,
        reason=reason,
    )


# Comment stats

def record_comment_activity(comment: Comment):
    stats, _ = (CommentQuestionStats.objects
                .select_for_update()
                .get_or_create(question_id=comment.question_id))
    stats.comment_count += 1
    if stats.last_activity is None or comment.created_at > stats.last_activity:
        stats.last_activity = comment.created_at
    stats.save(update_fields=["comment_count", "last_activity", "updated_at"])
    return stats
