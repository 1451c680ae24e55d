from __future__ import annotations

from decimal import Decimal

from ardenOrders.models import ImportLog


def record_import_log(importer, filename: str, uploaded_by=None) -> ImportLog:
    """Persist one ImportLog row for a finished OrderImporter run."""
    metadata = importer.get_run_metadata()
    stats = metadata.get("stats", {})
    duration = metadata.get("duration_seconds")
    duration_decimal = Decimal(str(round(duration, 2))) if duration is not None else None

    return ImportLog.objects.create(
        source=importer.source,
        run_type="dry-run" if importer.dry_run else "live",
        filename=filename,
        started_at=metadata.get("started_at"),
        finished_at=metadata.get("finished_at"),
        duration_seconds=duration_decimal,
        rows_processed=stats.get("rows_processed", 0),
        groups_found=stats.get("groups_found", 0),
        imported_count=stats.get("imported", 0),
        skipped_count=stats.get("skipped", 0),
        partial_count=stats.get("partial", 0),
        summary=importer.get_summary(),
        log_output=importer.get_output(),
        uploaded_by=uploaded_by,
    )
