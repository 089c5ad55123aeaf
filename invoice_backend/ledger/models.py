# ledger/models.py

"""
LEDGER STORE

Masters (Vendor, PaymentType) and the recorded facts the monthly report is
built from (Invoice, Payment, CreditNote).

Rules:
- Amounts are stored as positive magnitudes (credit notes included)
- Invoice.reporting_month is always the 1st of a month
- Soft delete via deleted_at; archived invoices stay out of reports
"""

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from ledger.services.tds import payable_amount

User = settings.AUTH_USER_MODEL


class Vendor(models.Model):
    name = models.CharField(max_length=200, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="ledger_vend_is_acti_4c1f0e_idx"),
        ]

    def __str__(self):
        return self.name


class PaymentType(models.Model):
    """
    Cash, bank transfer, UPI, cheque...

    Each active payment type becomes one section of the monthly report.
    """

    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True, default="")
    requires_reference = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Invoice(models.Model):
    STATUS_PENDING_APPROVAL = "pending_approval"
    STATUS_UNPAID = "unpaid"
    STATUS_PARTIAL = "partial"
    STATUS_PAID = "paid"
    STATUS_REJECTED = "rejected"

    STATUSES = [
        (STATUS_PENDING_APPROVAL, "Pending Approval"),
        (STATUS_UNPAID, "Unpaid"),
        (STATUS_PARTIAL, "Partially Paid"),
        (STATUS_PAID, "Paid"),
        (STATUS_REJECTED, "Rejected"),
    ]

    # Never shown in a monthly report
    UNREPORTABLE_STATUSES = (STATUS_PENDING_APPROVAL, STATUS_REJECTED)

    invoice_number = models.CharField(max_length=64)
    invoice_name = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")

    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    invoice_date = models.DateField()
    invoice_received_date = models.DateField(null=True, blank=True)
    reporting_month = models.DateField(
        null=True,
        blank=True,
        help_text="First day of the month whose report this invoice belongs to.",
    )

    invoice_amount = models.DecimalField(max_digits=14, decimal_places=2)
    currency_code = models.CharField(max_length=3, default="INR")

    tds_applicable = models.BooleanField(default=False)
    tds_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True
    )
    tds_rounded = models.BooleanField(default=False)

    status = models.CharField(
        max_length=20, choices=STATUSES, default=STATUS_PENDING_APPROVAL
    )
    is_archived = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-invoice_date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["vendor", "invoice_number"],
                name="uniq_vendor_invoice_number",
            ),
            models.CheckConstraint(
                condition=models.Q(invoice_amount__gt=Decimal("0.00")),
                name="invoice_amount_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["reporting_month"], name="ledger_invo_reporti_8d2a41_idx"),
            models.Index(fields=["invoice_received_date"], name="ledger_invo_invoice_0b7e52_idx"),
            models.Index(fields=["invoice_date"], name="ledger_invo_invoice_6a93cd_idx"),
            models.Index(fields=["status", "is_archived"], name="ledger_invo_status_1f4b77_idx"),
        ]

    def __str__(self):
        return f"{self.invoice_number} ({self.vendor_id})"

    def clean(self):
        if not (self.invoice_number or "").strip():
            raise ValidationError({"invoice_number": "invoice_number is required"})

        if self.invoice_amount is not None and self.invoice_amount <= Decimal("0.00"):
            raise ValidationError({"invoice_amount": "invoice_amount must be > 0"})

        if self.reporting_month and self.reporting_month.day != 1:
            raise ValidationError(
                {"reporting_month": "reporting_month must be the 1st of a month"}
            )

        if self.tds_applicable and self.tds_percentage is not None:
            if not (Decimal("0") <= self.tds_percentage <= Decimal("100")):
                raise ValidationError(
                    {"tds_percentage": "tds_percentage must be between 0 and 100"}
                )

    @property
    def payable_amount(self) -> Decimal:
        return payable_amount(
            amount=self.invoice_amount,
            tds_applicable=self.tds_applicable,
            percentage=self.tds_percentage,
            rounded=self.tds_rounded,
        )

    @property
    def display_name(self) -> str:
        return (
            (self.invoice_name or "").strip()
            or (self.description or "").strip()
            or "Unnamed Invoice"
        )


class Payment(models.Model):
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"

    STATUSES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    payment_type = models.ForeignKey(
        PaymentType,
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )

    amount_paid = models.DecimalField(max_digits=14, decimal_places=2)
    payment_date = models.DateField()
    payment_reference = models.CharField(max_length=128, blank=True, default="")
    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_PENDING)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["payment_date", "id"]
        indexes = [
            models.Index(fields=["invoice", "status"], name="ledger_paym_invoice_5e0c19_idx"),
            models.Index(fields=["payment_date"], name="ledger_paym_payment_a7d3f0_idx"),
        ]

    def __str__(self):
        return f"{self.amount_paid} on {self.payment_date} ({self.status})"


class CreditNote(models.Model):
    """
    Reduction against an issued invoice.

    amount is the positive magnitude; reports render it negative.
    """

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,
        related_name="credit_notes",
    )

    credit_note_number = models.CharField(max_length=64)
    credit_note_date = models.DateField()
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    reason = models.CharField(max_length=255, blank=True, default="")

    tds_applicable = models.BooleanField(default=False)
    tds_amount = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True
    )

    reporting_month = models.DateField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-credit_note_date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["invoice", "credit_note_number"],
                name="uniq_invoice_credit_note_number",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="credit_note_amount_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["reporting_month"], name="ledger_cred_reporti_3b9e6d_idx"),
            models.Index(fields=["credit_note_date"], name="ledger_cred_credit__c2f481_idx"),
        ]

    def __str__(self):
        return f"{self.credit_note_number} → {self.invoice_id}"

    def clean(self):
        if self.reporting_month and self.reporting_month.day != 1:
            raise ValidationError(
                {"reporting_month": "reporting_month must be the 1st of a month"}
            )
