# pool/management/commands/distribute_pools.py
from datetime import date

import redis
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from ledger.errors import LedgerError
from pool import services
from pool.redis_lock import SweepLock



class Command(BaseCommand):
    help = "Distribute every finished day's reward pool that still has unawarded contributors"

    def add_arguments(self, parser):
        parser.add_argument(
            "--day",
            type=str,
            help="Distribute a single day (YYYY-MM-DD) instead of the whole backlog",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List outstanding days without distributing",
        )
        parser.add_argument(
            "--no-lock",
            action="store_true",
            help="Skip the Redis sweep lock",
        )

    def handle(self, *args, **options):
        if options["dry_run"]:
            days = services.outstanding_days()
            if not days:
                self.stdout.write(self.style.SUCCESS("No outstanding pool days."))
                return
            for day in days:
                self.stdout.write(f"  {day.isoformat()}")
            self.stdout.write(self.style.WARNING(f"DRY RUN: {len(days)} day(s) would be distributed"))
            return

        if options["no_lock"]:
            self._sweep(options.get("day"))
            return

        lock = SweepLock("pool:sweep", settings.POOL_SWEEP_LOCK_TTL)
        try:
            acquired = lock.acquire()
        except redis.RedisError as e:
            raise CommandError(f"Redis unavailable for sweep lock: {e}")

        if not acquired:
            self.stdout.write(self.style.WARNING("Another pool sweep is running. Exiting."))
            return

        try:
            self._sweep(options.get("day"))
        finally:
            lock.release()

    def _sweep(self, day_arg):
        if day_arg:
            try:
                day = date.fromisoformat(day_arg)
            except ValueError:
                raise CommandError(f"Invalid day: {day_arg}")
            try:
                results = [services.distribute(day)]
            except LedgerError as e:
                raise CommandError(e.message)
        else:
            results = services.distribute_outstanding()

        if not results:
            self.stdout.write(self.style.SUCCESS("No outstanding pool days."))
            return

        for result in results:
            self.stdout.write(
                f"  {result.day.isoformat()} | total {result.day_total:8d} | "
                f"awarded {len(result.awarded):4d} | skipped {len(result.skipped):4d} | "
                f"credited {result.total_credited}/{result.pool_size}"
            )
        self.stdout.write(self.style.SUCCESS(f"Distributed {len(results)} day(s)"))
