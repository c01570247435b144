from .data.models import (  # noqa: F401
    Comment,
    CommentQuestionStats,
    DailySummary,
    ForumPost,
    PayoutRecord,
    QuizAttempt,
    ReviewCard,
    WeeklyLeaderboardEntry,
)
