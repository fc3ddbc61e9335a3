"""Complete approved enrollments whose course has already ended."""
from __future__ import annotations

import datetime
import logging

from django.core.management.base import BaseCommand, CommandError

from academics.services import complete_ended_enrollments

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Mark approved enrollments in ended courses as Completed, filling in the default grade"

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            help="Treat this ISO date (YYYY-MM-DD) as today instead of the real date",
        )

    def handle(self, *args, **options):
        today = None
        if options.get("date"):
            try:
                today = datetime.date.fromisoformat(options["date"])
            except ValueError as exc:
                raise CommandError(f"Invalid --date value: {options['date']!r}") from exc

        completed = complete_ended_enrollments(today=today)
        logger.info("complete_enrollments finished with %s change(s)", completed)
        self.stdout.write(self.style.SUCCESS(f"Completed {completed} enrollment(s)."))
