from django.urls import path
from .views import DailySummariesView, RebuildSummariesView, WeeklyLeaderboardView

urlpatterns = [
    path("summaries/rebuild", RebuildSummariesView.as_view(), name="summaries-rebuild"),
    path("users/<str:owner_id>/daily-summaries", DailySummariesView.as_view(), name="daily-summaries"),
    path("leaderboards/weekly/<str:week_id>", WeeklyLeaderboardView.as_view(), name="weekly-leaderboard"),
]
