import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Comment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("question_id", models.CharField(blank=True, default="", max_length=64)),
                ("author_id", models.CharField(max_length=128)),
                ("body", models.TextField()),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
        ),
        migrations.CreateModel(
            name="CommentQuestionStats",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("question_id", models.CharField(max_length=64, unique=True)),
                ("comment_count", models.PositiveIntegerField(default=0)),
                ("last_activity", models.DateTimeField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="DailySummary",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("owner_id", models.CharField(max_length=128)),
                ("due_date", models.CharField(max_length=10)),
                ("due_total", models.PositiveIntegerField(default=0)),
                ("topic_counts", models.JSONField(default=dict)),
                ("subtopic_counts", models.JSONField(default=dict)),
                ("rebuilt_at", models.DateTimeField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "unique_together": {("owner_id", "due_date")},
            },
        ),
        migrations.CreateModel(
            name="ForumPost",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("post_id", models.UUIDField(default=uuid.uuid4, unique=True)),
                ("user_id", models.CharField(max_length=128)),
                ("user_display_name", models.CharField(blank=True, default="", max_length=150)),
                ("title", models.CharField(max_length=300)),
                ("content", models.TextField(blank=True, default="")),
                ("category", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
        ),
        migrations.CreateModel(
            name="PayoutRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("week_id", models.CharField(max_length=16)),
                ("owner_id", models.CharField(max_length=128)),
                ("rank", models.PositiveSmallIntegerField()),
                ("tokens_awarded", models.PositiveIntegerField()),
                ("status", models.CharField(choices=[("paid", "paid"), ("skipped", "skipped")], default="paid", max_length=16)),
                ("reason", models.CharField(blank=True, default="", max_length=200)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "unique_together": {("week_id", "owner_id")},
            },
        ),
        migrations.CreateModel(
            name="QuizAttempt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("owner_id", models.CharField(max_length=128)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                ("score_percent", models.DecimalField(decimal_places=3, max_digits=7)),
                ("total_questions", models.PositiveIntegerField(default=0)),
                ("total_correct", models.PositiveIntegerField(default=0)),
            ],
            options={
                "indexes": [models.Index(fields=["owner_id", "timestamp"], name="attempt_owner_ts_idx")],
            },
        ),
        migrations.CreateModel(
            name="ReviewCard",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("owner_id", models.CharField(max_length=128)),
                ("card_id", models.UUIDField(default=uuid.uuid4)),
                ("topic", models.CharField(blank=True, default="", max_length=200)),
                ("subtopic", models.CharField(blank=True, default="", max_length=200)),
                ("due_date", models.CharField(blank=True, default="", max_length=10)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [models.Index(fields=["owner_id", "is_active", "card_id"], name="card_owner_active_idx")],
                "unique_together": {("owner_id", "card_id")},
            },
        ),
        migrations.CreateModel(
            name="WeeklyLeaderboardEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("week_id", models.CharField(max_length=16)),
                ("owner_id", models.CharField(max_length=128)),
                ("attempt_count", models.PositiveIntegerField(default=0)),
                ("total_score_sum", models.DecimalField(decimal_places=4, default=0, max_digits=16)),
                ("total_questions", models.PositiveIntegerField(default=0)),
                ("total_correct", models.PositiveIntegerField(default=0)),
                ("average_score", models.IntegerField(default=0)),
                ("display_name", models.CharField(blank=True, default="", max_length=150)),
                ("level", models.PositiveIntegerField(blank=True, null=True)),
                ("streak", models.PositiveIntegerField(default=0)),
                ("equipped_profile_pic", models.CharField(blank=True, default="", max_length=64)),
                ("equipped_theme", models.CharField(blank=True, default="", max_length=64)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [models.Index(fields=["week_id", "-average_score", "owner_id"], name="lb_week_avg_idx")],
                "unique_together": {("week_id", "owner_id")},
            },
        ),
    ]
