from rest_framework import serializers


class RebuildInSerializer(serializers.Serializer):
    owner_id = serializers.CharField(max_length=128)


class DailySummaryQuerySerializer(serializers.Serializer):
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)

    def validate(self, attrs):
        # an open start means "from today" on the reference calendar
        if attrs.get("start") is None and self.context.get("today"):
            attrs["start"] = self.context["today"]
        start, end = attrs.get("start"), attrs.get("end")
        if start and end and start > end:
            raise serializers.ValidationError("start must not be after end")
        return attrs


class DailySummaryOutSerializer(serializers.Serializer):
    due_date = serializers.CharField()
    due_total = serializers.IntegerField()
    topic_counts = serializers.DictField(child=serializers.IntegerField())
    subtopic_counts = serializers.DictField(child=serializers.IntegerField())


class LeaderboardQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=100, default=10)


class LeaderboardEntryOutSerializer(serializers.Serializer):
    owner_id = serializers.CharField()
    display_name = serializers.CharField()
    level = serializers.IntegerField(allow_null=True)
    streak = serializers.IntegerField()
    equipped_profile_pic = serializers.CharField()
    equipped_theme = serializers.CharField()
    attempt_count = serializers.IntegerField()
    average_score = serializers.IntegerField()
    total_questions = serializers.IntegerField()
    total_correct = serializers.IntegerField()
