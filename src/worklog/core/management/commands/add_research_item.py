from django.core.management.base import BaseCommand, CommandError

from worklog.core.exceptions import BoardError
from worklog.core.store import ItemStore
from worklog.core.types import COLUMNS, DEFAULT_COLUMN, IssueReference


class Command(BaseCommand):
    help = "Append an issue to the end of a research board column"

    def add_arguments(self, parser):
        parser.add_argument("identifier", type=str, help="Issue identifier, e.g. ENG-123")
        parser.add_argument("title", type=str, help="Issue title")
        parser.add_argument("url", type=str, help="Issue URL")
        parser.add_argument(
            "--issue-id",
            type=str,
            default=None,
            help="Tracker-internal issue id (default: the identifier)",
        )
        parser.add_argument(
            "--column",
            type=str,
            default=DEFAULT_COLUMN,
            choices=COLUMNS,
            help=f"Column to add the item to (default: '{DEFAULT_COLUMN}')",
        )

    def handle(self, *args, **options):
        reference = IssueReference(
            issue_id=options["issue_id"] or options["identifier"],
            identifier=options["identifier"],
            title=options["title"],
            url=options["url"],
        )
        try:
            item = ItemStore().add_item(reference, column=options["column"])
        except BoardError as e:
            raise CommandError(str(e)) from e

        self.stdout.write(
            self.style.SUCCESS(
                f"Added {item.issue_identifier} to {item.column} at position {item.position}"
            )
        )
