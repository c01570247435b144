from django.core.management.base import BaseCommand, CommandError

from tracker.domain.errors import InvalidInput
from tracker.services.summaries import rebuild_daily_summaries


class Command(BaseCommand):
    help = "Recompute one owner's daily due-card summaries from their active cards."

    def add_arguments(self, parser):
        parser.add_argument("--owner", required=True, help="Owner id (username) to rebuild")

    def handle(self, *args, **options):
        try:
            result = rebuild_daily_summaries(options["owner"])
        except InvalidInput as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(self.style.SUCCESS(
            f"Rebuilt {result.owner_id}: cards_processed={result.cards_processed} "
            f"dates_written={result.dates_written} dates_cleared={result.dates_cleared}"
        ))
