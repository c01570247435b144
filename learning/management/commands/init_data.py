import json
import os
from django.core.management.base import BaseCommand, CommandError
from learning.models import User


class Command(BaseCommand):
    help = "Reset learner profiles, optionally seeding them from a JSON file."

    def add_arguments(self, parser):
        parser.add_argument(
            "--file", default=None, help="JSON file with a list of {username, display_name, tokens}"
        )

    def handle(self, *args, **options):
        User.objects.all().delete()

        self.stdout.write(self.style.SUCCESS("All existing learner profiles have been deleted"))

        file_name = options.get("file")
        if file_name:
            json_file_path = file_name if os.path.isabs(file_name) else os.path.join(os.getcwd(), file_name)
            try:
                with open(json_file_path) as json_file:
                    learners = json.load(json_file)
            except (OSError, ValueError) as e:
                raise CommandError(f"Error loading data: {e}") from e
        else:
            learners = [
                {"username": f"testuser{i}", "display_name": f"Test User {i}"} for i in range(1, 6)
            ]

        User.objects.create_superuser(
            "testuser", email="testuser@example.com", password="testpassword"
        )
        for learner in learners:
            User.objects.create_user(
                learner["username"],
                email=f"{learner['username']}@example.com",
                password="testpassword",
                display_name=learner.get("display_name", ""),
                tokens=int(learner.get("tokens", 0)),
            )

        self.stdout.write(
            self.style.SUCCESS(f"Seeded {len(learners) + 1} learner profiles")
        )
