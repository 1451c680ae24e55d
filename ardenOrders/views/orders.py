"""
Order import upload, bulk status and dashboard endpoints.
"""

import json
import logging
from pathlib import Path

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import permission_required
from django.http import JsonResponse
from django.shortcuts import redirect
from django.utils import timezone
from django.utils.html import format_html
from django.utils.text import slugify
from django.views.decorators.http import require_GET, require_POST

from ardenOrders.errors import ImportFileError, PreconditionError
from ardenOrders.utils.bulk_status import apply_status
from ardenOrders.utils.dashboard_metrics import DEFAULT_PERIOD, get_order_stats
from ardenOrders.utils.import_logs import record_import_log
from importers.order_importer import OrderImporter

logger = logging.getLogger(__name__)

IMPORT_LOG_CHANGELIST = "admin:ardenOrders_importlog_changelist"
ORDER_CHANGELIST = "admin:ardenOrders_order_changelist"


def _save_order_upload(uploaded_file) -> Path:
    """Persist the uploaded spreadsheet into the configured directory."""

    target_dir = Path(settings.ORDER_IMPORT_DIR)
    target_dir.mkdir(parents=True, exist_ok=True)

    original_name = Path(uploaded_file.name or "orders-upload")
    base = slugify(original_name.stem) or "orders-upload"
    timestamp = timezone.now().strftime("%Y%m%d-%H%M%S")
    destination = target_dir / f"{timestamp}-{base}{original_name.suffix.lower()}"

    with destination.open("wb") as handle:
        for chunk in uploaded_file.chunks():
            handle.write(chunk)

    return destination


@permission_required("ardenOrders.add_order", raise_exception=True)
@require_POST
def upload_orders_view(request):
    """Handle spreadsheet upload (supports dry run) and log the run."""

    uploaded_file = request.FILES.get("orders_file")
    dry_run = bool(request.POST.get("dry_run"))

    if not uploaded_file:
        messages.error(request, "No file uploaded.")
        return redirect(ORDER_CHANGELIST)

    saved_path = _save_order_upload(uploaded_file)
    importer = OrderImporter(dry_run=dry_run)

    try:
        importer.run_from_file(saved_path)
    except ImportFileError as exc:
        messages.error(request, f"❌ Could not read {uploaded_file.name}: {exc}")
        return redirect(ORDER_CHANGELIST)

    record_import_log(
        importer,
        saved_path.name,
        uploaded_by=request.user if request.user.is_authenticated else None,
    )

    messages.success(
        request,
        f"{'🧪 Dry-run complete' if dry_run else '✅ Import complete'}: {uploaded_file.name}",
    )
    messages.info(request, format_html("<pre>{}</pre>", importer.get_summary()))
    return redirect(IMPORT_LOG_CHANGELIST)


def _bulk_payload(request) -> tuple[list, str | None]:
    if request.content_type == "application/json":
        try:
            payload = json.loads(request.body or b"{}")
        except json.JSONDecodeError as exc:
            raise PreconditionError(f"invalid JSON body: {exc}") from exc
        if not isinstance(payload, dict):
            raise PreconditionError("JSON body must be an object")
        return payload.get("order_ids") or [], payload.get("status")
    return request.POST.getlist("order_ids"), request.POST.get("status")


@permission_required("ardenOrders.change_order", raise_exception=True)
@require_POST
def bulk_status_view(request):
    """Apply one status to many orders; answers with the per-id result."""

    try:
        order_ids, status = _bulk_payload(request)
        result = apply_status(order_ids, status)
    except PreconditionError as exc:
        return JsonResponse({"ok": False, "error": str(exc)}, status=400)

    return JsonResponse(result.as_dict())


@permission_required("ardenOrders.view_order", raise_exception=True)
@require_GET
def dashboard_view(request):
    """Headline order numbers for ``?period=today|week|month|year``."""

    try:
        stats = get_order_stats(request.GET.get("period") or DEFAULT_PERIOD)
    except PreconditionError as exc:
        return JsonResponse({"ok": False, "error": str(exc)}, status=400)

    return JsonResponse(stats.as_dict())
