from typing import List, Mapping

import structlog

from ..config import DEFAULT_DISPLAY_NAME, DEFAULT_PROFILE_PIC, DEFAULT_THEME, PAYOUT_TOP_N
from ..data.models import WeeklyLeaderboardEntry
from ..data.repos import get_profile, lock_leaderboard_entry, run_atomic, top_leaderboard_entries
from ..domain.errors import InvalidInput
from ..domain.events import AttemptSummary
from ..domain.logic import average_score
from ..utils.time import iso_week_key, to_reference_iso

logger = structlog.get_logger()


def _snapshot_identity(entry: WeeklyLeaderboardEntry, profile):
    # profile may be stale or absent; the snapshot is best effort
    entry.display_name = getattr(profile, "display_name", "") or DEFAULT_DISPLAY_NAME
    entry.level = getattr(profile, "level", None)
    entry.streak = getattr(profile, "streak", 0) or 0
    entry.equipped_profile_pic = getattr(profile, "equipped_profile_pic", "") or DEFAULT_PROFILE_PIC
    entry.equipped_theme = getattr(profile, "equipped_theme", "") or DEFAULT_THEME


def _apply_attempt_locked(owner_id, week_id, attempt: AttemptSummary):
    entry = lock_leaderboard_entry(week_id, owner_id)
    entry.attempt_count += 1
    entry.total_score_sum += attempt.score_percent
    entry.total_questions += attempt.total_questions
    entry.total_correct += attempt.total_correct
    entry.average_score = average_score(entry.total_score_sum, entry.attempt_count)
    _snapshot_identity(entry, get_profile(owner_id))
    entry.save()
    return entry


def apply_attempt(owner_id, week_id, score_percent, total_questions, total_correct,
                  timestamp=None) -> WeeklyLeaderboardEntry:
    if not week_id:
        raise InvalidInput("week id is required")
    attempt = AttemptSummary.build(owner_id, timestamp, score_percent, total_questions, total_correct)

    entry = run_atomic(_apply_attempt_locked, attempt.owner_id, week_id, attempt)

    logger.info("weekly_leaderboard_updated",
        owner_id=attempt.owner_id,
        week_id=week_id,
        attempt_count=entry.attempt_count,
        average_score=entry.average_score,
    )
    return entry


def handle_attempt_created(attempt: AttemptSummary) -> WeeklyLeaderboardEntry:
    week_id = iso_week_key(attempt.timestamp)
    logger.info("attempt_received",
        owner_id=attempt.owner_id,
        week_id=week_id,
        attempt_utc=attempt.timestamp.isoformat(),
        attempt_local=to_reference_iso(attempt.timestamp),
    )
    return apply_attempt(
        attempt.owner_id,
        week_id,
        attempt.score_percent,
        attempt.total_questions,
        attempt.total_correct,
        timestamp=attempt.timestamp,
    )


def handle_attempt_event(payload: Mapping) -> WeeklyLeaderboardEntry:
    return handle_attempt_created(AttemptSummary.from_mapping(payload))


def get_weekly_top(week_id, limit: int = PAYOUT_TOP_N) -> List[WeeklyLeaderboardEntry]:
    return top_leaderboard_entries(week_id, limit)
