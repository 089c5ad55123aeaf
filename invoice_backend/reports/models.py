# reports/models.py

"""
======================================================
PATH: reports/models.py
======================================================
REPORT PERIOD + ADVANCE PAYMENT MODELS

ReportPeriod: one row per (month, year), lifecycle draft -> finalized -> submitted.

Audit guarantees:
- snapshot_data and finalized_at are set iff the period is finalized or submitted
- submitted_at implies finalized_at <= submitted_at
- A stored snapshot is never overwritten
- A finalized/submitted period cannot be deleted

AdvancePayment: cash paid before the invoice exists.

Hard rules:
- linked_invoice and linked_at are both set or both null
- An invoice is the link target of at most one advance payment (one-to-one)
- reporting_month is always the 1st of a month
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from ledger.models import Invoice, PaymentType, Vendor

User = settings.AUTH_USER_MODEL


class ReportPeriod(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        FINALIZED = "finalized", "Finalized"
        SUBMITTED = "submitted", "Submitted"

    FROZEN_STATUSES = (Status.FINALIZED, Status.SUBMITTED)

    month = models.PositiveSmallIntegerField()
    year = models.PositiveIntegerField()

    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.DRAFT
    )

    finalized_at = models.DateTimeField(null=True, blank=True)
    finalized_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="finalized_report_periods",
    )

    submitted_at = models.DateTimeField(null=True, blank=True)
    submitted_to = models.CharField(max_length=255, blank=True, default="")

    snapshot_data = models.JSONField(
        null=True,
        blank=True,
        help_text="Frozen report taken at finalization (write-once).",
    )
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-year", "-month"]
        constraints = [
            models.UniqueConstraint(
                fields=["month", "year"],
                name="uniq_report_period_month_year",
            ),
            models.CheckConstraint(
                condition=Q(month__gte=1, month__lte=12),
                name="chk_report_period_month_range",
            ),
            models.CheckConstraint(
                condition=Q(year__gt=0),
                name="chk_report_period_year_positive",
            ),
            models.CheckConstraint(
                condition=(
                    Q(
                        status="draft",
                        snapshot_data__isnull=True,
                        finalized_at__isnull=True,
                    )
                    | Q(
                        status__in=["finalized", "submitted"],
                        snapshot_data__isnull=False,
                        finalized_at__isnull=False,
                    )
                ),
                name="chk_report_period_snapshot_iff_frozen",
            ),
            models.CheckConstraint(
                condition=(
                    Q(
                        status="submitted",
                        submitted_at__isnull=False,
                        submitted_at__gte=F("finalized_at"),
                    )
                    | (~Q(status="submitted") & Q(submitted_at__isnull=True))
                ),
                name="chk_report_period_submitted_after_finalized",
            ),
        ]
        verbose_name = "Report Period"
        verbose_name_plural = "Report Periods"

    def __str__(self):
        return f"{self.year}-{self.month:02d} ({self.status})"

    @property
    def is_frozen(self) -> bool:
        return self.status in self.FROZEN_STATUSES

    def clean(self):
        if self.month is not None and not (1 <= self.month <= 12):
            raise ValidationError({"month": "month must be between 1 and 12"})

        if self.year is not None and self.year <= 0:
            raise ValidationError({"year": "year must be positive"})

        frozen = self.status in self.FROZEN_STATUSES
        if frozen != (self.snapshot_data is not None):
            raise ValidationError(
                {"snapshot_data": "snapshot_data is required iff the period is finalized or submitted"}
            )
        if frozen != (self.finalized_at is not None):
            raise ValidationError(
                {"finalized_at": "finalized_at is required iff the period is finalized or submitted"}
            )

        if self.submitted_at is not None:
            if self.finalized_at is None or self.finalized_at > self.submitted_at:
                raise ValidationError(
                    {"submitted_at": "submitted_at must not precede finalized_at"}
                )

    def save(self, *args, **kwargs):
        if self.pk:
            stored = (
                ReportPeriod.objects.filter(pk=self.pk)
                .values_list("snapshot_data", flat=True)
                .first()
            )
            if stored is not None and stored != self.snapshot_data:
                raise ValidationError("A finalized report snapshot cannot be changed")

        # JSON isnull checks stay in the database; clean() mirrors them.
        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status != self.Status.DRAFT:
            raise ValidationError(
                f"Report period {self} is {self.status} and cannot be deleted"
            )
        return super().delete(*args, **kwargs)


class AdvancePayment(models.Model):
    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.PROTECT,
        related_name="advance_payments",
    )
    payment_type = models.ForeignKey(
        PaymentType,
        on_delete=models.PROTECT,
        related_name="advance_payments",
    )

    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_date = models.DateField()
    payment_reference = models.CharField(max_length=128, blank=True, default="")
    reporting_month = models.DateField(
        help_text="First day of the month whose report shows this payment."
    )

    linked_invoice = models.OneToOneField(
        Invoice,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="linked_advance_payment",
    )
    linked_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="advance_payments_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        indexes = [
            models.Index(fields=["reporting_month"], name="reports_adv_reporti_91c0d2_idx"),
            models.Index(fields=["vendor", "linked_invoice"], name="reports_adv_vendor__5f2e8a_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=Decimal("0.00")),
                name="chk_advance_payment_amount_positive",
            ),
            models.CheckConstraint(
                condition=(
                    Q(linked_invoice__isnull=True, linked_at__isnull=True)
                    | Q(linked_invoice__isnull=False, linked_at__isnull=False)
                ),
                name="chk_advance_payment_link_pair",
            ),
        ]
        verbose_name = "Advance Payment"
        verbose_name_plural = "Advance Payments"

    def __str__(self):
        return f"Advance {self.amount} → {self.vendor_id} ({self.payment_date})"

    @property
    def is_linked(self) -> bool:
        return self.linked_invoice_id is not None

    def clean(self):
        if not (self.description or "").strip():
            raise ValidationError({"description": "description is required"})

        if self.amount is not None and self.amount <= Decimal("0.00"):
            raise ValidationError({"amount": "Amount must be greater than 0"})

        if (self.linked_invoice_id is None) != (self.linked_at is None):
            raise ValidationError(
                "linked_invoice and linked_at must be set or cleared together"
            )

    def save(self, *args, **kwargs):
        if self.reporting_month:
            self.reporting_month = self.reporting_month.replace(day=1)
        self.full_clean()
        return super().save(*args, **kwargs)
