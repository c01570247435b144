"""Engine-side views of the entities carried by the change feed.

Cards and attempts arrive either as ORM rows or as camelCase mappings
from an external document-store trigger. Both are normalised here so the
aggregators only ever see validated, immutable values.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from ..config import SCORE_PERCENT_MAX, SCORE_PERCENT_STEP
from .enums import MutationType
from .errors import InvalidInput

OWNER_ID_RE = re.compile(r"^[A-Za-z0-9_.@+-]{1,128}$")


def _text(value) -> str:
    return "" if value is None else str(value)


def validate_owner_id(owner_id) -> str:
    owner_id = _text(owner_id)
    if not OWNER_ID_RE.match(owner_id):
        raise InvalidInput(f"malformed owner id: {owner_id!r}")
    return owner_id


def is_date_key(value) -> bool:
    """True only for a zero-padded YYYY-MM-DD string, the form summaries are keyed by."""
    value = _text(value)
    try:
        return date.fromisoformat(value).isoformat() == value
    except ValueError:
        return False


def validate_due_date(due_date) -> str:
    due_date = _text(due_date)
    if not is_date_key(due_date):
        raise InvalidInput(f"malformed due date: {due_date!r}")
    return due_date


@dataclass(frozen=True)
class CardView:
    owner_id: str
    card_id: str
    topic: str
    subtopic: str
    due_date: str
    is_active: bool

    @property
    def counts(self) -> bool:
        # cards that could not be keyed into a summary row are outside the due set
        return (self.is_active
                and bool(OWNER_ID_RE.match(self.owner_id))
                and is_date_key(self.due_date))

    @property
    def bucket(self):
        return (self.owner_id, self.due_date, self.topic, self.subtopic)

    @classmethod
    def from_card(cls, card) -> "CardView":
        return cls(
            owner_id=_text(card.owner_id),
            card_id=_text(card.card_id),
            topic=_text(card.topic),
            subtopic=_text(card.subtopic),
            due_date=_text(card.due_date),
            is_active=card.is_active is not False,
        )

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["CardView"]:
        if not data:
            return None
        return cls(
            owner_id=_text(data.get("ownerId")),
            card_id=_text(data.get("cardId") or data.get("id")),
            topic=_text(data.get("topic")),
            subtopic=_text(data.get("subtopic")),
            due_date=_text(data.get("dueDate")),
            is_active=data.get("isActive") is not False,
        )


def parse_mutation_type(value) -> MutationType:
    try:
        return MutationType(_text(value))
    except ValueError:
        raise InvalidInput(f"unknown card mutation type: {value!r}") from None


def _finite_decimal(name: str, value) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number")
    try:
        result = Decimal(str(value if value is not None else 0))
    except InvalidOperation:
        raise InvalidInput(f"{name} must be a number, got {value!r}") from None
    if not result.is_finite() or result < 0:
        raise InvalidInput(f"{name} must be finite and non-negative, got {value!r}")
    return result


def _score(name: str, value) -> Decimal:
    number = _finite_decimal(name, value)
    if number > SCORE_PERCENT_MAX:
        raise InvalidInput(f"{name} must be at most {SCORE_PERCENT_MAX}, got {value!r}")
    return number.quantize(SCORE_PERCENT_STEP, rounding=ROUND_HALF_UP)


def _count(name: str, value) -> int:
    number = _finite_decimal(name, value)
    if number != number.to_integral_value():
        raise InvalidInput(f"{name} must be a whole number, got {value!r}")
    return int(number)


@dataclass(frozen=True)
class AttemptSummary:
    owner_id: str
    timestamp: datetime
    score_percent: Decimal
    total_questions: int
    total_correct: int

    @classmethod
    def build(cls, owner_id, timestamp, score_percent, total_questions, total_correct):
        if isinstance(timestamp, str):
            parsed = parse_datetime(timestamp)
            if parsed is None:
                raise InvalidInput(f"malformed attempt timestamp: {timestamp!r}")
            timestamp = parsed
        return cls(
            owner_id=validate_owner_id(owner_id),
            timestamp=timestamp or timezone.now(),
            score_percent=_score("scorePercent", score_percent),
            total_questions=_count("totalQuestions", total_questions),
            total_correct=_count("totalCorrect", total_correct),
        )

    @classmethod
    def from_attempt(cls, attempt) -> "AttemptSummary":
        return cls.build(
            attempt.owner_id,
            attempt.timestamp,
            attempt.score_percent,
            attempt.total_questions,
            attempt.total_correct,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AttemptSummary":
        return cls.build(
            data.get("ownerId"),
            data.get("timestamp") or data.get("timestampUTC"),
            data.get("scorePercent"),
            data.get("totalQuestions"),
            data.get("totalCorrect"),
        )
