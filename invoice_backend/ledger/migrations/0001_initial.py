"""
======================================================
PATH: ledger/migrations/0001_initial.py
======================================================
MIGRATION: CREATE LEDGER STORE

Vendor, PaymentType, Invoice, Payment, CreditNote.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Vendor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, unique=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["is_active"], name="ledger_vend_is_acti_4c1f0e_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentType",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("requires_reference", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.CharField(max_length=64)),
                ("invoice_name", models.CharField(blank=True, default="", max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("invoice_date", models.DateField()),
                ("invoice_received_date", models.DateField(blank=True, null=True)),
                (
                    "reporting_month",
                    models.DateField(
                        blank=True,
                        help_text="First day of the month whose report this invoice belongs to.",
                        null=True,
                    ),
                ),
                ("invoice_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("currency_code", models.CharField(default="INR", max_length=3)),
                ("tds_applicable", models.BooleanField(default=False)),
                ("tds_percentage", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("tds_rounded", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending_approval", "Pending Approval"),
                            ("unpaid", "Unpaid"),
                            ("partial", "Partially Paid"),
                            ("paid", "Paid"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending_approval",
                        max_length=20,
                    ),
                ),
                ("is_archived", models.BooleanField(default=False)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="invoices_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="ledger.vendor",
                    ),
                ),
            ],
            options={
                "ordering": ["-invoice_date", "-id"],
                "indexes": [
                    models.Index(fields=["reporting_month"], name="ledger_invo_reporti_8d2a41_idx"),
                    models.Index(fields=["invoice_received_date"], name="ledger_invo_invoice_0b7e52_idx"),
                    models.Index(fields=["invoice_date"], name="ledger_invo_invoice_6a93cd_idx"),
                    models.Index(fields=["status", "is_archived"], name="ledger_invo_status_1f4b77_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("vendor", "invoice_number"),
                        name="uniq_vendor_invoice_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("invoice_amount__gt", Decimal("0.00"))),
                        name="invoice_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount_paid", models.DecimalField(decimal_places=2, max_digits=14)),
                ("payment_date", models.DateField()),
                ("payment_reference", models.CharField(blank=True, default="", max_length=128)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="ledger.invoice",
                    ),
                ),
                (
                    "payment_type",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="ledger.paymenttype",
                    ),
                ),
            ],
            options={
                "ordering": ["payment_date", "id"],
                "indexes": [
                    models.Index(fields=["invoice", "status"], name="ledger_paym_invoice_5e0c19_idx"),
                    models.Index(fields=["payment_date"], name="ledger_paym_payment_a7d3f0_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CreditNote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("credit_note_number", models.CharField(max_length=64)),
                ("credit_note_date", models.DateField()),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("reason", models.CharField(blank=True, default="", max_length=255)),
                ("tds_applicable", models.BooleanField(default=False)),
                ("tds_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("reporting_month", models.DateField(blank=True, null=True)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="credit_notes",
                        to="ledger.invoice",
                    ),
                ),
            ],
            options={
                "ordering": ["-credit_note_date", "-id"],
                "indexes": [
                    models.Index(fields=["reporting_month"], name="ledger_cred_reporti_3b9e6d_idx"),
                    models.Index(fields=["credit_note_date"], name="ledger_cred_credit__c2f481_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("invoice", "credit_note_number"),
                        name="uniq_invoice_credit_note_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", Decimal("0.00"))),
                        name="credit_note_amount_positive",
                    ),
                ],
            },
        ),
    ]
