from datetime import date

from django.utils import timezone
from rest_framework import permissions, views, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
import structlog
import uuid

from ..services.leaderboard import get_weekly_top
from ..services.summaries import get_daily_summaries, rebuild_daily_summaries
from ..utils.time import iso_week_key, local_date_key
from .serializers import (
    DailySummaryOutSerializer,
    DailySummaryQuerySerializer,
    LeaderboardEntryOutSerializer,
    LeaderboardQuerySerializer,
    RebuildInSerializer,
)

base_logger = structlog.get_logger()


def _require_owner(request, owner_id):
    if request.user.get_username() != owner_id:
        raise PermissionDenied("Cannot access another user's summaries.")


class RebuildSummariesView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        s = RebuildInSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        owner_id = s.validated_data["owner_id"]
        _require_owner(request, owner_id)

        result = rebuild_daily_summaries(owner_id)

        logger.info(
            "rebuild_api_response",
            owner_id=owner_id,
            cards_processed=result.cards_processed,
            dates_written=result.dates_written,
            dates_cleared=result.dates_cleared,
        )

        return Response(
            {
                "ok": True,
                "owner_id": owner_id,
                "cards_processed": result.cards_processed,
                "dates_written": result.dates_written,
                "dates_cleared": result.dates_cleared,
            },
            status=status.HTTP_200_OK,
        )


class DailySummariesView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, owner_id):
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        _require_owner(request, owner_id)
        today = date.fromisoformat(local_date_key(timezone.now()))
        qs = DailySummaryQuerySerializer(data=request.query_params, context={"today": today})
        qs.is_valid(raise_exception=True)
        start, end = qs.validated_data["start"], qs.validated_data.get("end")

        summaries = get_daily_summaries(owner_id, start, end)

        logger.info(
            "daily_summaries_api_response",
            owner_id=owner_id,
            start=start.isoformat(),
            date_count=len(summaries),
        )

        return Response(
            {
                "owner_id": owner_id,
                "start": start.isoformat(),
                "summaries": DailySummaryOutSerializer(summaries, many=True).data,
            }
        )


class WeeklyLeaderboardView(views.APIView):
    def get(self, request, week_id):
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        qs = LeaderboardQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)
        if week_id == "current":
            week_id = iso_week_key(timezone.now())

        entries = get_weekly_top(week_id, qs.validated_data["limit"])

        logger.info(
            "weekly_leaderboard_api_response",
            week_id=week_id,
            entry_count=len(entries),
        )

        return Response(
            {
                "week_id": week_id,
                "entries": [
                    {"rank": rank, **LeaderboardEntryOutSerializer(entry).data}
                    for rank, entry in enumerate(entries, start=1)
                ],
            }
        )
