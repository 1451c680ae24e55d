# ardenOrders/models.py

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class OrderStatus(models.TextChoices):
    NEW = "NEW", "New"
    APPROVED = "APPROVED", "Approved"
    CUTTING = "CUTTING", "Cutting"
    SEWING = "SEWING", "Sewing"
    FINISHING = "FINISHING", "Finishing"
    DONE = "DONE", "Done (awaiting delivery)"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


# Orders in these states never show up in urgency highlighting or reminders.
TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


class Customer(models.Model):
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, null=True, blank=True)
    code = models.CharField(max_length=64, null=True, blank=True, help_text="Optional short customer code")
    address = models.CharField(max_length=255, blank=True)
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name", "phone"], name="customer_name_phone_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(name=""),
                name="customer_name_not_blank",
            ),
        ]

    def __str__(self):
        if self.phone:
            return f"{self.name} ({self.phone})"
        return self.name


class Order(models.Model):
    code = models.CharField(
        max_length=64,
        unique=True,
        null=True,
        blank=True,
        help_text="Human-readable code, e.g. ARDEN-18102026-0001",
    )
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="orders")
    order_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    actual_delivery_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=OrderStatus.choices, default=OrderStatus.NEW)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    deposit_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    final_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    main_image_url = models.URLField(max_length=500, null=True, blank=True)
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["due_date", "-created_at"]
        indexes = [
            models.Index(fields=["due_date"], name="order_due_date_idx"),
            models.Index(fields=["status"], name="order_status_idx"),
        ]

    def __str__(self):
        return self.code or f"Order #{self.pk}"

    @property
    def display_code(self) -> str:
        return self.code or str(self.pk)

    @property
    def remaining_amount(self) -> Decimal:
        """Amount still owed after the deposit."""
        billed = self.final_amount if self.final_amount is not None else self.total_amount
        return (billed or Decimal("0.00")) - (self.deposit_amount or Decimal("0.00"))


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product_name = models.CharField(max_length=255)
    color = models.CharField(max_length=64, null=True, blank=True)
    size = models.CharField(max_length=32, null=True, blank=True)
    quantity = models.PositiveIntegerField(help_text="Planned quantity")
    actual_quantity = models.PositiveIntegerField(null=True, blank=True)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="order_item_quantity_positive",
            ),
        ]

    def __str__(self):
        variant = " / ".join(bit for bit in (self.color, self.size) if bit)
        label = f"{self.product_name} [{variant}]" if variant else self.product_name
        return f"{label} x{self.quantity}"

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.quantity) * (self.unit_price or Decimal("0.00"))


class ImportLog(models.Model):
    SOURCE_CHOICES = [
        ("excel", "Excel"),
        ("csv", "CSV"),
    ]
    RUN_TYPE_CHOICES = [
        ("dry-run", "Dry Run"),
        ("live", "Live"),
    ]

    source = models.CharField(max_length=50, choices=SOURCE_CHOICES)
    run_type = models.CharField(max_length=20, choices=RUN_TYPE_CHOICES, default="dry-run")
    filename = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    started_at = models.DateTimeField(null=True, blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)
    duration_seconds = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    rows_processed = models.PositiveIntegerField(default=0)
    groups_found = models.PositiveIntegerField(default=0)
    imported_count = models.PositiveIntegerField(default=0)
    skipped_count = models.PositiveIntegerField(default=0)
    partial_count = models.PositiveIntegerField(default=0)
    summary = models.TextField(blank=True)
    log_output = models.TextField(blank=True, null=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="import_logs",
    )

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):
        timestamp = self.created_at.astimezone(timezone.get_current_timezone()) if self.created_at else None
        ts_display = timestamp.strftime("%Y-%m-%d %H:%M") if timestamp else "pending"
        return f"{self.get_source_display()} {self.get_run_type_display()} @ {ts_display}"
