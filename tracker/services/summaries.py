from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Mapping, Optional

from django.utils import timezone
import structlog

from ..config import REBUILD_PAGE_SIZE, REBUILD_WRITE_BATCH
from ..data.models import DailySummary
from ..data.repos import (
    clear_stale_daily_summaries,
    iter_active_card_pages,
    lock_daily_summary,
    overwrite_daily_summaries,
    run_atomic,
    save_daily_summary,
)
from ..domain.enums import MutationType
from ..domain.errors import InvalidInput
from ..domain.events import CardView, parse_mutation_type, validate_due_date, validate_owner_id
from ..domain.logic import CardDelta, accumulate_card, apply_delta, plan_card_deltas

logger = structlog.get_logger()


@dataclass(frozen=True)
class RebuildResult:
    owner_id: str
    cards_processed: int
    dates_written: int
    dates_cleared: int


def _apply_locked(owner_id, due_date, sign, topic, subtopic):
    summary = lock_daily_summary(owner_id, due_date)
    due_total, topic_counts, subtopic_counts = apply_delta(
        summary.due_total, summary.topic_counts, summary.subtopic_counts,
        sign, topic, subtopic,
    )
    return save_daily_summary(summary, due_total, topic_counts, subtopic_counts)


def apply_card_delta(owner_id, due_date, sign: int, topic="", subtopic=""):
    if sign not in (1, -1):
        raise InvalidInput(f"sign must be +1 or -1, got {sign!r}")
    owner_id = validate_owner_id(owner_id)
    due_date = validate_due_date(due_date)

    summary = run_atomic(_apply_locked, owner_id, due_date, sign, topic or "", subtopic or "")

    logger.info("daily_summary_delta_applied",
        owner_id=owner_id,
        due_date=due_date,
        sign=sign,
        topic=topic,
        subtopic=subtopic,
        due_total=summary.due_total,
    )
    return summary


def handle_card_mutation(kind: MutationType, before: Optional[CardView],
                         after: Optional[CardView]) -> List[CardDelta]:
    deltas = plan_card_deltas(kind, before, after)
    if not deltas:
        card = after or before
        logger.debug("card_mutation_ignored",
            kind=kind.value,
            card_id=card.card_id if card else None,
        )
        return deltas

    # one transaction per delta: the two sides of a move may hit different rows
    for d in deltas:
        apply_card_delta(d.owner_id, d.due_date, d.sign, d.topic, d.subtopic)
    return deltas


def handle_card_event(payload: Mapping) -> List[CardDelta]:
    """Entry point for change-feed payloads shaped {type, before?, after?}."""
    kind = parse_mutation_type(payload.get("type"))
    before = CardView.from_mapping(payload.get("before"))
    after = CardView.from_mapping(payload.get("after"))
    return handle_card_mutation(kind, before, after)


def get_daily_summaries(owner_id, start: Optional[date] = None,
                        end: Optional[date] = None) -> List[DailySummary]:
    owner_id = validate_owner_id(owner_id)
    qs = DailySummary.objects.filter(owner_id=owner_id)
    if start is not None:
        qs = qs.filter(due_date__gte=start.isoformat())
    if end is not None:
        qs = qs.filter(due_date__lte=end.isoformat())
    return list(qs.order_by("due_date"))


def rebuild_daily_summaries(owner_id, page_size: int = REBUILD_PAGE_SIZE,
                            write_batch: int = REBUILD_WRITE_BATCH) -> RebuildResult:
    """
    Recompute every daily summary of one owner from the live card set.

    Summaries for dates that still have active cards are overwritten with
    the recomputed counts. Summaries of this owner that no longer match
    any active card are reset to zero. Rows of other owners are never
    read or written.
    """
    owner_id = validate_owner_id(owner_id)
    logger.info("summary_rebuild_started", owner_id=owner_id)

    aggregated: Dict[str, dict] = {}
    cards_processed = 0
    for page in iter_active_card_pages(owner_id, page_size):
        for card in page:
            accumulate_card(aggregated, CardView.from_card(card))
        cards_processed += len(page)
        logger.debug("summary_rebuild_page",
            owner_id=owner_id,
            page_cards=len(page),
            cursor=str(page[-1].card_id),
        )

    rebuilt_at = timezone.now()
    dates = sorted(aggregated)
    written = 0
    for i in range(0, len(dates), write_batch):
        written += overwrite_daily_summaries(owner_id, aggregated, dates[i:i + write_batch], rebuilt_at)
    cleared = clear_stale_daily_summaries(owner_id, dates, rebuilt_at)

    logger.info("summary_rebuild_finished",
        owner_id=owner_id,
        cards_processed=cards_processed,
        dates_written=written,
        dates_cleared=cleared,
    )
    return RebuildResult(owner_id, cards_processed, written, cleared)
