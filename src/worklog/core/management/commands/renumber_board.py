from django.core.management.base import BaseCommand, CommandError

from worklog.core.store import ItemStore
from worklog.core.types import COLUMNS


class Command(BaseCommand):
    help = "Close position gaps in every research board column"

    def add_arguments(self, parser):
        parser.add_argument(
            "--check",
            action="store_true",
            help="Only report columns that are out of order, and fail if any are",
        )

    def handle(self, *args, **options):
        store = ItemStore()
        broken = store.gaps()

        if options["check"]:
            if broken:
                raise CommandError(
                    f"Columns out of order: {', '.join(sorted(broken))}"
                )
            self.stdout.write(self.style.SUCCESS("All columns are in order."))
            return

        for column in COLUMNS:
            if column not in broken:
                self.stdout.write(f"  {column}: in order")
                continue
            renumbered = store.renumber_column(column)
            self.stdout.write(
                self.style.SUCCESS(f"  {column}: renumbered {renumbered} item(s)")
            )

        self.stdout.write(self.style.SUCCESS("\nRenumbering completed successfully!"))
