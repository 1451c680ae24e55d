# importers/_base_Importer.py

import csv
import io
import logging
import threading
from pathlib import Path

from django.utils import timezone

logger = logging.getLogger("importers")


class BaseImporter:
    """
    Shared importer plumbing:
    - dry_run flag
    - timestamped, emoji-tagged run log (buffer and optionally console)
    - summary counters for test assertions and ImportLog rows
    - optional CSV report of the counters
    """

    label = "Import"

    def __init__(self, dry_run=False, log_to_console=False, *, report=False, report_dir=None):
        self.dry_run = dry_run
        self.log_to_console = log_to_console
        self.buffer = io.StringIO()
        self._log_lock = threading.Lock()
        self.counters = {
            "rows_processed": 0,
            "groups_found": 0,
            "imported": 0,
            "partial": 0,
            "skipped": 0,
            "errors": 0,
        }
        self.start_time = timezone.now()
        self.finish_time = None
        self._summary_cache = None
        self.report_enabled = report
        self.report_dir = Path(report_dir) if report_dir else Path("archive/reports")
        self.report_date = timezone.localdate()

    # ---------------------------------------------------------------------
    # Logging
    # ---------------------------------------------------------------------
    def log(self, message, emoji="💬"):
        timestamp = timezone.now().strftime("%H:%M:%S")
        prefix = "[Dry Run] " if self.dry_run else ""
        line = f"[{timestamp}] {emoji} {prefix}{message}"
        with self._log_lock:
            self.buffer.write(line + "\n")
        logger.debug(line)
        if self.log_to_console:
            print(line)

    def reset(self):
        """Clear the buffer and counters before a new run."""
        self.buffer = io.StringIO()
        for key in self.counters:
            self.counters[key] = 0
        self.start_time = timezone.now()
        self.finish_time = None
        self._summary_cache = None

    # ---------------------------------------------------------------------
    # Summary
    # ---------------------------------------------------------------------
    def summarize(self):
        if self._summary_cache is not None:
            return self._summary_cache

        end_time = self.finish_time or timezone.now()
        elapsed = (end_time - self.start_time).total_seconds()
        summary = (
            f"\n📊 {self.label} Summary ({'Dry Run' if self.dry_run else 'Committed'})\n"
            f"Rows processed: {self.counters['rows_processed']}\n"
            f"Orders found: {self.counters['groups_found']}\n"
            f"Imported: {self.counters['imported']}\n"
            f"Partial: {self.counters['partial']}\n"
            f"Skipped: {self.counters['skipped']}\n"
            f"Errors: {self.counters['errors']}\n"
            f"Elapsed: {elapsed:.2f}s\n"
        )
        self.log(summary, "✅")
        if self.report_enabled:
            self._write_report(elapsed)
        self._summary_cache = summary
        return summary

    def get_output(self) -> str:
        """Return the collected log as a single string."""
        return self.buffer.getvalue()

    def get_summary(self) -> str:
        """Return the formatted summary (computed once per run)."""
        return self.summarize()

    def get_run_metadata(self) -> dict:
        """Return structured metadata about the most recent run."""
        duration = None
        if self.start_time and self.finish_time:
            duration = (self.finish_time - self.start_time).total_seconds()
        return {
            "started_at": self.start_time,
            "finished_at": self.finish_time,
            "duration_seconds": duration,
            "stats": dict(self.counters),
        }

    # ---------------------------------------------------------------------
    # Reporting helpers
    # ---------------------------------------------------------------------
    def _write_report(self, elapsed_seconds: float) -> None:
        """Persist a simple CSV summary when reporting is enabled."""

        try:
            self.report_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self.log(f"Unable to create report directory {self.report_dir}: {exc}", "⚠️")
            return

        report_date = getattr(self, "report_date", None) or timezone.localdate()
        destination = self.report_dir / f"{report_date.isoformat()}.csv"

        rows = [
            ("run_mode", "dry-run" if self.dry_run else "live"),
            ("started_at", self.start_time.isoformat()),
            ("elapsed_seconds", f"{elapsed_seconds:.2f}"),
        ]
        rows.extend((key, str(value)) for key, value in self.counters.items())

        with destination.open("w", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow(["metric", "value"])
            for metric, value in rows:
                writer.writerow([metric, value])

        self.log(f"Report written to {destination}", "📝")
