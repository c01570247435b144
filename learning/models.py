from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """
    Learner profile. The username doubles as the owner id on every
    tracker entity (cards, summaries, leaderboard rows, payouts).
    """

    display_name = models.CharField(max_length=150, blank=True, default="")
    level = models.PositiveIntegerField(null=True, blank=True)
    streak = models.PositiveIntegerField(default=0)
    tokens = models.PositiveIntegerField(default=0)
    equipped_profile_pic = models.CharField(max_length=64, blank=True, default="")
    equipped_theme = models.CharField(max_length=64, blank=True, default="")


class TokenLedgerEntry(models.Model):
    """Append-only record of every token balance change."""

    GAIN = "gain"
    SPEND = "spend"

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="token_history")
    amount = models.IntegerField()
    kind = models.CharField(max_length=8, choices=[(GAIN, GAIN), (SPEND, SPEND)])
    reason = models.CharField(max_length=200)
    balance_after = models.PositiveIntegerField()
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=["user", "created_at"], name="ledger_user_created_idx"),
        ]


class Notification(models.Model):
    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name="notifications")
    sender_id = models.CharField(max_length=128, default="system")
    sender_display_name = models.CharField(max_length=150, default="System")
    type = models.CharField(max_length=64)
    preview_text = models.CharField(max_length=300)
    payload = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
