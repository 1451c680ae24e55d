"""Send the due-date digest to the configured Telegram chats."""

import datetime

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ardenOrders.utils.reminders import (
    TelegramNotifier,
    build_messages,
    collect_reminders,
    dispatch_reminders,
)


class Command(BaseCommand):
    help = "Post reminders for orders that are due soon, due today or overdue."

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Print the messages instead of sending them.")
        parser.add_argument("--date", type=str, help="Pretend today is this date (YYYY-MM-DD).")

    def handle(self, *args, **opts):
        date_str = opts.get("date")
        if date_str:
            try:
                today = datetime.date.fromisoformat(date_str)
            except ValueError as exc:
                raise CommandError(f"Invalid --date value: {date_str}") from exc
        else:
            today = timezone.localdate()

        entries = collect_reminders(today)
        if not entries:
            self.stdout.write("No orders need a reminder today.")
            return

        if opts["dry_run"]:
            for text, photo in build_messages(entries, today):
                if photo:
                    self.stdout.write(f"[photo] {photo}")
                self.stdout.write(text)
            self.stdout.write(self.style.SUCCESS(f"🧪 {len(entries)} reminder(s) prepared (not sent)."))
            return

        notifier = TelegramNotifier()
        if not notifier.configured:
            raise CommandError("TELEGRAM_TOKEN and TELEGRAM_CHAT_IDS must be set to send reminders.")

        sent = dispatch_reminders(entries, notifier, today)
        self.stdout.write(self.style.SUCCESS(f"✅ Sent {sent} message(s) covering {len(entries)} order(s)."))
