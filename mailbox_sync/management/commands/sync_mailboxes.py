from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from mailbox_sync.services.router import build_router


class Command(BaseCommand):
    help = "Run a mailbox sync for one account and print the run log"

    def add_arguments(self, parser):
        parser.add_argument(
            "--account", type=str, help="Email address of the account to sync",
        )

        parser.add_argument(
            "--account-id", type=int, help="ID of the account to sync",
        )

        parser.add_argument(
            "--mailbox-id",
            type=int,
            action="append",
            dest="mailbox_ids",
            help="Mailbox to sync; repeat for several (default: the inbox)",
        )

        parser.add_argument(
            "--upload",
            action="store_true",
            help="Only push pending local changes to the server",
        )

        parser.add_argument(
            "--expedited",
            action="store_true",
            help="Treat the sync as user-initiated",
        )

        parser.add_argument(
            "--delta",
            type=int,
            default=0,
            help="Extra messages to fetch beyond the default window",
        )

    def handle(self, *args, **options):
        if not options["account"] and not options["account_id"]:
            raise CommandError("Either --account or --account-id is required")

        trigger = {
            "upload": options["upload"],
            "expedited": options["expedited"],
            "delta_message_count": options["delta"],
        }
        if options["account_id"]:
            trigger["account_id"] = options["account_id"]
        else:
            trigger["account"] = options["account"]
        if options["mailbox_ids"]:
            trigger["mailbox_ids"] = options["mailbox_ids"]

        start_time = timezone.now()
        run_log = build_router().handle(trigger)
        duration = (timezone.now() - start_time).total_seconds()

        self.stdout.write("\n--- Sync Results ---")
        self.stdout.write(f"Account: {run_log.account_name or '-'}")
        self.stdout.write(f"Upload: {run_log.upload}")
        self.stdout.write(f"Sync automatically: {run_log.sync_automatically}")
        for entry in run_log.entries:
            line = f"  {entry.mailbox_id} {entry.name or '?'}: {entry.outcome}"
            if entry.failure:
                line = f"{line} ({entry.failure})"
            style = self.style.SUCCESS if entry.succeeded else self.style.WARNING
            self.stdout.write(style(line))
        if run_log.note:
            self.stdout.write(f"Note: {run_log.note}")
        self.stdout.write(f"Duration: {duration:.2f} seconds")

        if run_log.failure:
            self.stdout.write(self.style.ERROR(f"✗ Sync failed: {run_log.failure}"))
        elif all(entry.succeeded for entry in run_log.entries):
            self.stdout.write(self.style.SUCCESS("✓ Sync completed successfully"))
        else:
            self.stdout.write(self.style.WARNING("⚠ Some mailboxes did not sync"))
