from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ...models import ActivityLog


class Command(BaseCommand):
    help = "Delete activity log entries older than the retention window"

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=getattr(settings, "MENTORING_ACTIVITY_LOG_RETENTION_DAYS", 90),
            help="Keep entries newer than this many days.",
        )
        parser.add_argument("--batch-size", type=int, default=5000)

    def handle(self, *args, **options):
        days = options["days"]
        if days < 0:
            raise CommandError("--days must not be negative")
        cutoff = timezone.now() - timedelta(days=days)
        batch_size = options["batch_size"]

        total_deleted = 0
        while True:
            ids = list(ActivityLog.objects.filter(timestamp__lt=cutoff).values_list("pk", flat=True)[:batch_size])
            if not ids:
                break
            deleted, _ = ActivityLog.objects.filter(pk__in=ids).delete()
            total_deleted += deleted

        self.stdout.write(self.style.SUCCESS(
            f"Deleted {total_deleted} old activity logs"
        ))
