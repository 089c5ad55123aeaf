"""
======================================================
PATH: reports/migrations/0001_initial.py
======================================================
MIGRATION: CREATE ReportPeriod + AdvancePayment

Purpose:
- ReportPeriod: monthly report lifecycle (draft/finalized/submitted) + frozen snapshot
- AdvancePayment: payments made before an invoice exists, optionally linked one-to-one
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("ledger", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ReportPeriod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("month", models.PositiveSmallIntegerField()),
                ("year", models.PositiveIntegerField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("finalized", "Finalized"),
                            ("submitted", "Submitted"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("finalized_at", models.DateTimeField(blank=True, null=True)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("submitted_to", models.CharField(blank=True, default="", max_length=255)),
                (
                    "snapshot_data",
                    models.JSONField(
                        blank=True,
                        help_text="Frozen report taken at finalization (write-once).",
                        null=True,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "finalized_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="finalized_report_periods",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Report Period",
                "verbose_name_plural": "Report Periods",
                "ordering": ["-year", "-month"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("month", "year"),
                        name="uniq_report_period_month_year",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("month__gte", 1), ("month__lte", 12)),
                        name="chk_report_period_month_range",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("year__gt", 0)),
                        name="chk_report_period_year_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("status", "draft"),
                                ("snapshot_data__isnull", True),
                                ("finalized_at__isnull", True),
                            ),
                            models.Q(
                                ("status__in", ["finalized", "submitted"]),
                                ("snapshot_data__isnull", False),
                                ("finalized_at__isnull", False),
                            ),
                            _connector="OR",
                        ),
                        name="chk_report_period_snapshot_iff_frozen",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("status", "submitted"),
                                ("submitted_at__isnull", False),
                                ("submitted_at__gte", models.F("finalized_at")),
                            ),
                            models.Q(
                                models.Q(("status", "submitted"), _negated=True),
                                ("submitted_at__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="chk_report_period_submitted_after_finalized",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AdvancePayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(max_length=255)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("payment_date", models.DateField()),
                ("payment_reference", models.CharField(blank=True, default="", max_length=128)),
                (
                    "reporting_month",
                    models.DateField(
                        help_text="First day of the month whose report shows this payment."
                    ),
                ),
                ("linked_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="advance_payments_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "linked_invoice",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="linked_advance_payment",
                        to="ledger.invoice",
                    ),
                ),
                (
                    "payment_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="advance_payments",
                        to="ledger.paymenttype",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="advance_payments",
                        to="ledger.vendor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Advance Payment",
                "verbose_name_plural": "Advance Payments",
                "ordering": ["-payment_date", "-id"],
                "indexes": [
                    models.Index(fields=["reporting_month"], name="reports_adv_reporti_91c0d2_idx"),
                    models.Index(fields=["vendor", "linked_invoice"], name="reports_adv_vendor__5f2e8a_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", Decimal("0.00"))),
                        name="chk_advance_payment_amount_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("linked_invoice__isnull", True),
                                ("linked_at__isnull", True),
                            ),
                            models.Q(
                                ("linked_invoice__isnull", False),
                                ("linked_at__isnull", False),
                            ),
                            _connector="OR",
                        ),
                        name="chk_advance_payment_link_pair",
                    ),
                ],
            },
        ),
    ]
