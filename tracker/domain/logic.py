from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from .enums import MutationType
from .events import CardView
from ..config import PAYOUT_RANK_CEILING

SUBTOPIC_SEPARATOR = "::"
# same unreserved set as JavaScript's encodeURIComponent
_KEY_SAFE_CHARS = "-_.!~*'()"


@dataclass(frozen=True)
class CardDelta:
    owner_id: str
    due_date: str
    sign: int
    topic: str
    subtopic: str


def encode_key(value) -> str:
    return quote("" if value is None else str(value), safe=_KEY_SAFE_CHARS)


def bucket_keys(topic, subtopic) -> Tuple[str, str]:
    """Return (topic_key, compound_subtopic_key); either may be empty."""
    topic_key = encode_key(topic)
    subtopic_key = encode_key(subtopic)
    if topic_key and subtopic_key:
        return topic_key, f"{topic_key}{SUBTOPIC_SEPARATOR}{subtopic_key}"
    # a subtopic without a topic only feeds the date total
    return topic_key, ""


def _bump(counts: Dict[str, int], key: str, sign: int) -> Dict[str, int]:
    if not key:
        return counts
    value = max(0, int(counts.get(key, 0)) + sign)
    if value == 0:
        counts.pop(key, None)
    else:
        counts[key] = value
    return counts


def apply_delta(due_total: int, topic_counts: Optional[dict], subtopic_counts: Optional[dict],
                sign: int, topic, subtopic):
    """Apply a signed unit delta to one summary's counters, clamping at zero."""
    topic_key, compound_key = bucket_keys(topic, subtopic)
    next_total = max(0, int(due_total or 0) + sign)
    next_topics = _bump(dict(topic_counts or {}), topic_key, sign)
    next_subtopics = _bump(dict(subtopic_counts or {}), compound_key, sign)
    return next_total, next_topics, next_subtopics


def plan_card_deltas(kind: MutationType, before: Optional[CardView],
                     after: Optional[CardView]) -> List[CardDelta]:
    """Translate one card mutation into the summary deltas it implies."""
    before_counts = before is not None and before.counts
    after_counts = after is not None and after.counts

    def delta(card: CardView, sign: int) -> CardDelta:
        return CardDelta(card.owner_id, card.due_date, sign, card.topic, card.subtopic)

    if kind == MutationType.CREATED:
        return [delta(after, +1)] if after_counts else []
    if kind == MutationType.DELETED:
        return [delta(before, -1)] if before_counts else []

    if before_counts and not after_counts:
        return [delta(before, -1)]
    if after_counts and not before_counts:
        return [delta(after, +1)]
    if not before_counts:
        return []
    if before.bucket == after.bucket:
        return []
    # old and new buckets may live in different summary rows
    return [delta(before, -1), delta(after, +1)]


def new_summary_bucket() -> dict:
    return {"due_total": 0, "topic_counts": {}, "subtopic_counts": {}}


def accumulate_card(aggregated: Dict[str, dict], card: CardView) -> bool:
    """Count one card into the rebuild map. Returns False if it is outside the due set."""
    if not card.counts:
        return False
    entry = aggregated.setdefault(card.due_date, new_summary_bucket())
    entry["due_total"], entry["topic_counts"], entry["subtopic_counts"] = apply_delta(
        entry["due_total"], entry["topic_counts"], entry["subtopic_counts"],
        +1, card.topic, card.subtopic,
    )
    return True


def average_score(total_score_sum, attempt_count: int) -> int:
    if attempt_count <= 0:
        return 0
    ratio = Decimal(str(total_score_sum)) / Decimal(attempt_count)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def tokens_for_rank(rank: int) -> int:
    if rank is None or rank <= 0:
        return 0
    return max(0, PAYOUT_RANK_CEILING - rank)
