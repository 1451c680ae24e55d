"""Admin screens for customers, orders and import runs."""
from datetime import timedelta

from django.contrib import admin, messages
from django.db.models import Q
from django.utils import timezone
from django.utils.html import format_html

from .errors import PreconditionError
from .models import Customer, ImportLog, Order, OrderItem, OrderStatus
from .utils.bulk_status import apply_status
from .utils.order_entry import refresh_order_total, save_new_order
from .utils.order_status import (
    DUE_SOON_DAYS,
    DerivedStatus,
    days_left,
    derive_for_order,
    display_label,
    urgency_band,
)


class CustomerOrderInline(admin.TabularInline):
    """Read-only list of a customer's orders."""
    model = Order
    extra = 0
    fields = ("code", "order_date", "due_date", "status", "total_amount")
    readonly_fields = fields
    can_delete = False
    show_change_link = True


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "code", "order_count", "created_at")
    search_fields = ("name", "phone", "code")
    ordering = ("name",)
    inlines = [CustomerOrderInline]

    def order_count(self, obj):
        return obj.orders.count()

    order_count.short_description = "Orders"


class OrderItemInline(admin.TabularInline):
    """Line items edited under their order."""
    model = OrderItem
    extra = 0
    fields = ("product_name", "color", "size", "quantity", "actual_quantity", "unit_price")


class DerivedStatusFilter(admin.SimpleListFilter):
    """Filter orders by their live (derived) status."""
    title = "Live status"
    parameter_name = "live"

    def lookups(self, request, model_admin):
        return (("urgent", "Needs attention"), *DerivedStatus.choices)

    def queryset(self, request, queryset):
        value = self.value()
        if not value:
            return queryset

        today = timezone.localdate()
        soon = today + timedelta(days=DUE_SOON_DAYS)
        open_orders = queryset.exclude(
            status__in=[OrderStatus.DELIVERED, OrderStatus.CANCELLED]
        ).filter(actual_delivery_date__isnull=True)

        if value == "urgent":
            return open_orders.filter(due_date__lte=soon)
        if value == DerivedStatus.COMPLETE:
            return queryset.filter(
                Q(status=OrderStatus.DELIVERED)
                | (Q(actual_delivery_date__isnull=False) & ~Q(status=OrderStatus.CANCELLED))
            )
        if value == DerivedStatus.CANCELLED:
            return queryset.filter(status=OrderStatus.CANCELLED)
        if value == DerivedStatus.NO_DUE_DATE:
            return open_orders.filter(due_date__isnull=True)
        if value == DerivedStatus.DUE_TODAY:
            return open_orders.filter(due_date=today)
        if value == DerivedStatus.OVERDUE:
            return open_orders.filter(due_date__lt=today)
        if value == DerivedStatus.DUE_SOON:
            return open_orders.filter(due_date__gt=today, due_date__lte=soon)
        if value == DerivedStatus.IN_PROGRESS:
            return open_orders.filter(due_date__gt=soon)
        return queryset


def _status_action(status):
    def action(modeladmin, request, queryset):
        modeladmin.apply_bulk_status(request, queryset, status)

    action.__name__ = f"mark_{status.value.lower()}"
    return admin.action(description=f"Set status: {status.label}")(action)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Orders with live status, days-left highlighting and bulk status actions."""
    list_display = (
        "display_code",
        "customer",
        "order_date",
        "due_date",
        "days_left_display",
        "status",
        "live_status",
        "total_amount",
    )
    list_filter = (DerivedStatusFilter, "status", "due_date")
    search_fields = ("code", "customer__name", "customer__phone")
    list_select_related = ("customer",)
    list_per_page = 25
    autocomplete_fields = ("customer",)
    inlines = [OrderItemInline]
    readonly_fields = ("created_at",)
    ordering = ("due_date", "-created_at")
    actions = [_status_action(status) for status in OrderStatus]

    def display_code(self, obj):
        return obj.display_code

    display_code.short_description = "Code"
    display_code.admin_order_field = "code"

    def live_status(self, obj):
        return display_label(derive_for_order(obj), obj.status)

    live_status.short_description = "Live status"

    def days_left_display(self, obj):
        band = urgency_band(days_left(obj.due_date))
        return format_html('<span class="urgency-{}">{}</span>', band.band, band.text)

    days_left_display.short_description = "Days left"
    days_left_display.admin_order_field = "due_date"

    def save_model(self, request, obj, form, change):
        if change:
            super().save_model(request, obj, form, change)
            return
        code = save_new_order(obj)
        if code != (form.cleaned_data.get("code") or ""):
            self.message_user(request, f"Order saved with code {code}.", level=messages.INFO)

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        refresh_order_total(form.instance)

    def apply_bulk_status(self, request, queryset, status):
        try:
            result = apply_status(list(queryset.values_list("pk", flat=True)), status)
        except PreconditionError as exc:
            self.message_user(request, str(exc), level=messages.WARNING)
            return
        if result.updated:
            self.message_user(
                request,
                f"{len(result.updated)} order(s) set to {OrderStatus(result.status).label}.",
                level=messages.SUCCESS,
            )
        for pk, reason in result.failed.items():
            self.message_user(request, f"Order #{pk} not updated: {reason}", level=messages.ERROR)


@admin.register(ImportLog)
class ImportLogAdmin(admin.ModelAdmin):
    """Show high-level stats for each import run."""
    list_display = (
        "source",
        "run_type",
        "filename",
        "created_at",
        "rows_processed",
        "imported_count",
        "skipped_count",
        "partial_count",
        "short_summary",
    )
    list_filter = ("source", "run_type")
    search_fields = ("filename", "summary", "log_output")
    readonly_fields = (
        "source",
        "run_type",
        "filename",
        "created_at",
        "started_at",
        "finished_at",
        "duration_seconds",
        "rows_processed",
        "groups_found",
        "imported_count",
        "skipped_count",
        "partial_count",
        "summary",
        "log_output",
        "uploaded_by",
    )
    ordering = ("-created_at",)

    def short_summary(self, obj):
        if not obj.summary:
            return "-"
        preview = obj.summary.strip().splitlines()[0]
        return (preview[:75] + "…") if len(preview) > 75 else preview

    short_summary.short_description = "Summary"
