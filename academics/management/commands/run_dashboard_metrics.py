"""Periodically publish the dashboard metrics snapshot to the cache."""
from __future__ import annotations

import logging
import time

from django.core.management.base import BaseCommand

from academics.conf import lms_setting
from academics.stats import publish_metrics

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Recompute dashboard metrics every LMS['METRICS_INTERVAL_SECONDS'] seconds"

    sleep = staticmethod(time.sleep)

    def add_arguments(self, parser):
        parser.add_argument("--once", action="store_true", help="Publish a single snapshot and exit")
        parser.add_argument(
            "--iterations",
            type=int,
            default=0,
            help="Stop after this many ticks (0 runs until interrupted)",
        )
        parser.add_argument("--interval", type=float, help="Override the configured interval in seconds")
        parser.add_argument("--warmup", type=float, help="Override the configured warm-up delay in seconds")

    def handle(self, *args, **options):
        interval = options["interval"] if options["interval"] is not None else lms_setting("METRICS_INTERVAL_SECONDS")
        # a snapshot outlives one missed tick, then readers recompute it
        self.ttl = 2 * interval
        if options["once"]:
            self.tick()
            return

        warmup = options["warmup"] if options["warmup"] is not None else lms_setting("METRICS_WARMUP_SECONDS")
        iterations = options["iterations"]

        logger.info("Dashboard metrics loop starting (interval=%ss, warmup=%ss)", interval, warmup)
        self.sleep(warmup)
        ticks = 0
        try:
            while not iterations or ticks < iterations:
                self.tick()
                ticks += 1
                if iterations and ticks >= iterations:
                    break
                self.sleep(interval)
        except KeyboardInterrupt:
            logger.info("Dashboard metrics loop stopped")

    def tick(self) -> bool:
        try:
            snapshot = publish_metrics(ttl=self.ttl)
        except Exception:
            logger.exception("Dashboard metrics update failed; retrying on the next tick")
            return False
        totals = snapshot["totals"]
        self.stdout.write(
            f"[{snapshot['ts']}] students={totals['students']} courses={totals['courses']} "
            f"enrollments={totals['enrollments']} active={totals['active']}"
        )
        return True
