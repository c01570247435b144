import uuid

from django.db import models
from django.utils import timezone

from ..domain.enums import PayoutStatus


class ReviewCard(models.Model):
    owner_id = models.CharField(max_length=128)
    card_id = models.UUIDField(default=uuid.uuid4)
    topic = models.CharField(max_length=200, blank=True, default="")
    subtopic = models.CharField(max_length=200, blank=True, default="")
    due_date = models.CharField(max_length=10, blank=True, default="")  # YYYY-MM-DD, owner-local
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = (("owner_id", "card_id"),)
        indexes = [
            models.Index(fields=["owner_id", "is_active", "card_id"], name="card_owner_active_idx"),
        ]


class DailySummary(models.Model):
    owner_id = models.CharField(max_length=128)
    due_date = models.CharField(max_length=10)
    due_total = models.PositiveIntegerField(default=0)
    topic_counts = models.JSONField(default=dict)
    subtopic_counts = models.JSONField(default=dict)    # "topic::subtopic" -> count
    rebuilt_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = (("owner_id", "due_date"),)


class QuizAttempt(models.Model):
    owner_id = models.CharField(max_length=128)
    timestamp = models.DateTimeField(default=timezone.now)  # UTC
    score_percent = models.DecimalField(max_digits=7, decimal_places=3)
    total_questions = models.PositiveIntegerField(default=0)
    total_correct = models.PositiveIntegerField(default=0)

    class Meta:
        indexes = [
            models.Index(fields=["owner_id", "timestamp"], name="attempt_owner_ts_idx"),
        ]


class WeeklyLeaderboardEntry(models.Model):
    week_id = models.CharField(max_length=16)
    owner_id = models.CharField(max_length=128)
    attempt_count = models.PositiveIntegerField(default=0)
    total_score_sum = models.DecimalField(max_digits=16, decimal_places=4, default=0)
    total_questions = models.PositiveIntegerField(default=0)
    total_correct = models.PositiveIntegerField(default=0)
    average_score = models.IntegerField(default=0)
    # identity snapshot, refreshed on every attempt
    display_name = models.CharField(max_length=150, blank=True, default="")
    level = models.PositiveIntegerField(null=True, blank=True)
    streak = models.PositiveIntegerField(default=0)
    equipped_profile_pic = models.CharField(max_length=64, blank=True, default="")
    equipped_theme = models.CharField(max_length=64, blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = (("week_id", "owner_id"),)
        indexes = [
            models.Index(fields=["week_id", "-average_score", "owner_id"], name="lb_week_avg_idx"),
        ]


class PayoutRecord(models.Model):
    week_id = models.CharField(max_length=16)
    owner_id = models.CharField(max_length=128)
    rank = models.PositiveSmallIntegerField()
    tokens_awarded = models.PositiveIntegerField()
    status = models.CharField(
        max_length=16,
        choices=[(s.value, s.value) for s in PayoutStatus],
        default=PayoutStatus.PAID.value,
    )
    reason = models.CharField(max_length=200, blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = (("week_id", "owner_id"),)


class ForumPost(models.Model):
    post_id = models.UUIDField(default=uuid.uuid4, unique=True)
    user_id = models.CharField(max_length=128)
    user_display_name = models.CharField(max_length=150, blank=True, default="")
    title = models.CharField(max_length=300)
    content = models.TextField(blank=True, default="")
    category = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)


class Comment(models.Model):
    question_id = models.CharField(max_length=64, blank=True, default="")
    author_id = models.CharField(max_length=128)
    body = models.TextField()
    created_at = models.DateTimeField(default=timezone.now)


class CommentQuestionStats(models.Model):
    question_id = models.CharField(max_length=64, unique=True)
    comment_count = models.PositiveIntegerField(default=0)
    last_activity = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)
