import structlog

from ..data.repos import record_comment_activity, run_atomic

logger = structlog.get_logger()


def handle_comment_created(comment):
    if not comment.question_id:
        return None
    stats = run_atomic(record_comment_activity, comment)
    logger.info("comment_question_stats_updated",
        question_id=stats.question_id,
        comment_count=stats.comment_count,
    )
    return stats
