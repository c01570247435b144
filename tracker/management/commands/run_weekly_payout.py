from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_datetime

from tracker.services.payouts import run_weekly_payout


class Command(BaseCommand):
    help = "Pay out the weekly leaderboard for the week before --now (cron: 0 0 * * 1, UTC+8)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--now", default=None,
            help="ISO-8601 instant to treat as the run time (defaults to the current time)",
        )

    def handle(self, *args, **options):
        now = None
        if options.get("now"):
            now = parse_datetime(options["now"])
            if now is None:
                raise CommandError(f"Invalid --now value: {options['now']}")

        report = run_weekly_payout(now=now)

        self.stdout.write(self.style.SUCCESS(
            f"Week {report.week_id}: paid={len(report.paid)} skipped={len(report.skipped)} "
            f"already_paid={len(report.already_paid)} failed={len(report.failed)}"
        ))
        if report.failed:
            raise CommandError(f"Payout failed for: {', '.join(report.failed)}")
