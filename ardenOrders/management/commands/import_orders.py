"""Run the OrderImporter from the command line and log the run."""

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from ardenOrders.errors import ImportFileError
from ardenOrders.utils.import_logs import record_import_log
from importers.order_importer import OrderImporter  # library module, no Django setup inside


class Command(BaseCommand):
    """Import a workshop order spreadsheet (.xlsx or .csv)."""
    help = "Import orders from an Excel/CSV spreadsheet. Supports --dry-run."

    def add_arguments(self, parser):
        parser.add_argument("--file", required=True, help="Path to the .xlsx or .csv file.")
        parser.add_argument("--dry-run", action="store_true", help="Simulate only (no DB writes).")
        parser.add_argument(
            "--workers",
            type=int,
            default=None,
            help="Process order groups on this many threads (default: ORDER_IMPORT_MAX_WORKERS).",
        )

    def handle(self, *args, **opts):
        file_path = Path(opts["file"])
        if not file_path.exists():
            raise CommandError(f"File not found: {file_path}")
        if opts["workers"] is not None and opts["workers"] < 1:
            raise CommandError("--workers must be at least 1")

        importer = OrderImporter(dry_run=opts["dry_run"], max_workers=opts["workers"])
        self.stdout.write(self.style.NOTICE(
            f"📥 Importing {file_path} {'(dry-run)' if opts['dry_run'] else ''}"
        ))
        try:
            output = importer.run_from_file(file_path)
        except ImportFileError as exc:
            raise CommandError(f"Import failed: {exc}") from exc

        if output:
            self.stdout.write(output)

        log = record_import_log(importer, file_path.name)
        report = importer.last_report
        style = self.style.SUCCESS if report and not (report.skipped or report.partial) else self.style.WARNING
        self.stdout.write(style(
            f"✅ Done. {report.imported} imported, {report.partial} partial, "
            f"{report.skipped} skipped (log #{log.pk})."
        ))
