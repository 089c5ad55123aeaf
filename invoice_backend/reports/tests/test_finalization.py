# reports/tests/test_finalization.py

from datetime import date
from unittest import mock

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from reports.domain import EntryType
from reports.models import ReportPeriod
from reports.services import finalization_service as service
from reports.services.exceptions import ReportStateConflictError, ReportValidationError
from reports.services.period_lifecycle import (
    DRAFT,
    FINALIZED,
    SUBMITTED,
    can_transition,
    validate_month_year,
    validate_transition,
)
from reports.tests.helpers import LedgerFixtures


class PeriodLifecycleRuleTests(SimpleTestCase):
    def test_forward_only_transitions(self):
        self.assertTrue(can_transition(from_status=DRAFT, to_status=FINALIZED))
        self.assertTrue(can_transition(from_status=FINALIZED, to_status=SUBMITTED))

        self.assertFalse(can_transition(from_status=DRAFT, to_status=SUBMITTED))
        self.assertFalse(can_transition(from_status=FINALIZED, to_status=DRAFT))
        self.assertFalse(can_transition(from_status=SUBMITTED, to_status=FINALIZED))
        self.assertFalse(can_transition(from_status=SUBMITTED, to_status=DRAFT))

    def test_missing_period_is_implicit_draft(self):
        validate_transition(from_status=None, to_status=FINALIZED)

        with self.assertRaises(ReportStateConflictError) as ctx:
            validate_transition(from_status=None, to_status=SUBMITTED)
        self.assertEqual(ctx.exception.state, DRAFT)

    def test_month_year_validation(self):
        self.assertEqual(validate_month_year("3", "2026"), (3, 2026))

        for month, year in ((0, 2026), (13, 2026), (1, 0), ("x", 2026)):
            with self.assertRaises(ReportValidationError):
                validate_month_year(month, year)


class FinalizationTests(LedgerFixtures, TestCase):
    """
    draft -> finalized -> submitted

    GUARANTEES:
    - Snapshot frozen at finalize, untouched by submit
    - Later ledger changes move the live view only
    - No skipping, no repeating, no going back
    """

    def setUp(self):
        self.make_users()
        self.vendor = self.make_vendor()
        self.bank = self.make_payment_type("Bank Transfer")

        self.january_invoice = self.make_invoice(
            self.vendor, "INV-J", "1000.00", date(2026, 1, 10)
        )
        self.make_payment(self.january_invoice, "400.00", date(2026, 1, 20), self.bank)

    def _grand_total(self, view):
        return service.resolve_report(month=1, year=2026, view=view)["report_data"]["grand_total"]

    def test_finalize_stores_snapshot(self):
        period = service.finalize_report(
            month=1, year=2026, actor=self.admin, notes="January close"
        )

        self.assertEqual(period.status, ReportPeriod.Status.FINALIZED)
        self.assertIsNotNone(period.finalized_at)
        self.assertEqual(period.finalized_by, self.admin)
        self.assertEqual(period.notes, "January close")
        self.assertEqual(period.snapshot_data["version"], 1)
        self.assertEqual(period.snapshot_data["finalized_by_name"], "Asha Rao")
        self.assertEqual(period.snapshot_data["report_data"]["grand_total"], "400.00")

    def test_late_payment_moves_live_total_but_not_submitted_view(self):
        service.finalize_report(month=1, year=2026, actor=self.admin)
        frozen_total = self._grand_total("submitted")

        self.make_payment(self.january_invoice, "300.00", date(2026, 2, 5), self.bank)

        self.assertEqual(frozen_total, "400.00")
        self.assertEqual(self._grand_total("live"), "700.00")
        self.assertEqual(self._grand_total("submitted"), "400.00")
        self.assertEqual(self._grand_total("reported"), "400.00")

        live = service.resolve_report(month=1, year=2026, view="live")["report_data"]
        entry_types = [e["entry_type"] for s in live["sections"] for e in s["entries"]]
        self.assertIn(EntryType.LATE_PAYMENT.value, entry_types)

    def test_credit_note_moves_live_total_but_not_submitted_view(self):
        service.finalize_report(month=1, year=2026, actor=self.admin)

        self.make_credit_note(self.january_invoice, "CN-J", "150.00", date(2026, 1, 25))

        self.assertEqual(self._grand_total("live"), "250.00")
        self.assertEqual(self._grand_total("submitted"), "400.00")
        self.assertEqual(self._grand_total("reported"), "400.00")

    def test_submitted_view_falls_back_to_live_when_never_finalized(self):
        result = service.resolve_report(month=1, year=2026, view="submitted")

        self.assertFalse(result["is_snapshot"])
        self.assertIsNone(result["report_period"])
        self.assertEqual(result["report_data"]["grand_total"], "400.00")

    def test_unknown_view_is_rejected(self):
        with self.assertRaises(ReportValidationError):
            service.resolve_report(month=1, year=2026, view="draft")

    def test_finalize_twice_conflicts(self):
        service.finalize_report(month=1, year=2026, actor=self.admin)

        with self.assertRaises(ReportStateConflictError) as ctx:
            service.finalize_report(month=1, year=2026, actor=self.admin)
        self.assertEqual(ctx.exception.state, FINALIZED)

    def test_submit_before_finalize_conflicts(self):
        with self.assertRaises(ReportStateConflictError):
            service.submit_report(
                month=1, year=2026, submitted_to="Head Office", actor=self.admin
            )

        # the failed transition rolls back the implicit draft row too
        self.assertIsNone(service.get_report_period(month=1, year=2026))

    def test_submit_keeps_snapshot_and_is_terminal(self):
        finalized = service.finalize_report(month=1, year=2026, actor=self.admin)
        snapshot = finalized.snapshot_data

        submitted = service.submit_report(
            month=1, year=2026, submitted_to="Head Office", actor=self.admin
        )

        self.assertEqual(submitted.status, ReportPeriod.Status.SUBMITTED)
        self.assertEqual(submitted.submitted_to, "Head Office")
        self.assertGreaterEqual(submitted.submitted_at, submitted.finalized_at)
        self.assertEqual(submitted.snapshot_data, snapshot)

        with self.assertRaises(ReportStateConflictError):
            service.submit_report(
                month=1, year=2026, submitted_to="Head Office", actor=self.admin
            )
        with self.assertRaises(ReportStateConflictError):
            service.finalize_report(month=1, year=2026, actor=self.admin)

    def test_submit_requires_recipient(self):
        service.finalize_report(month=1, year=2026, actor=self.admin)

        with self.assertRaises(ReportValidationError):
            service.submit_report(month=1, year=2026, submitted_to="  ", actor=self.admin)

    def test_snapshot_cannot_be_overwritten(self):
        period = service.finalize_report(month=1, year=2026, actor=self.admin)

        period.snapshot_data = {"version": 1, "report_data": {}}
        with self.assertRaises(ValidationError):
            period.save()

    def test_frozen_period_cannot_be_deleted(self):
        period = service.finalize_report(month=1, year=2026, actor=self.admin)

        with self.assertRaises(ValidationError):
            period.delete()

    def test_periods_listed_newest_first(self):
        service.finalize_report(month=1, year=2026, actor=self.admin)
        service.finalize_report(month=12, year=2025, actor=self.admin)
        service.finalize_report(month=2, year=2026, actor=self.admin)

        periods = service.list_report_periods()
        self.assertEqual(
            [(p.year, p.month) for p in periods], [(2026, 2), (2026, 1), (2025, 12)]
        )
        self.assertEqual(len(service.list_report_periods(year=2025)), 1)
        self.assertIsNone(service.get_report_period(month=3, year=2026))

    def test_set_invoice_reporting_month_moves_invoice(self):
        result = service.set_invoice_reporting_month(
            invoice_id=self.january_invoice.id, month=2, year=2026, actor=self.admin
        )

        self.assertEqual(result["reporting_month"], "2026-02-01")
        self.assertEqual(self._grand_total("live"), "0.00")

        february = service.resolve_report(month=2, year=2026, view="live")["report_data"]
        [entry] = [e for s in february["sections"] for e in s["entries"]]
        self.assertEqual(entry["entry_type"], EntryType.LATE_INVOICE.value)

    # --------------------------------------------------
    # Concurrent transitions between the lock and the write
    # --------------------------------------------------

    def _transition_then(self, write):
        """Let the transition check pass, then run write() before the update."""

        def check(**kwargs):
            validate_transition(**kwargs)
            write()

        return mock.patch.object(service, "validate_transition", side_effect=check)

    def test_concurrent_finalize_conflicts(self):
        def finalize_elsewhere():
            ReportPeriod.objects.filter(month=1, year=2026).update(
                status=FINALIZED,
                snapshot_data={"version": 1, "report_data": {}},
                finalized_at=timezone.now(),
            )

        with self._transition_then(finalize_elsewhere):
            with self.assertRaises(ReportStateConflictError) as ctx:
                service.finalize_report(month=1, year=2026, actor=self.admin)

        self.assertEqual(ctx.exception.state, FINALIZED)
        self.assertIsNone(service.get_report_period(month=1, year=2026))

    def test_concurrent_submit_conflicts(self):
        service.finalize_report(month=1, year=2026, actor=self.admin)

        def submit_elsewhere():
            ReportPeriod.objects.filter(month=1, year=2026).update(
                status=SUBMITTED,
                submitted_at=timezone.now(),
                submitted_to="Branch Office",
            )

        with self._transition_then(submit_elsewhere):
            with self.assertRaises(ReportStateConflictError) as ctx:
                service.submit_report(
                    month=1, year=2026, submitted_to="Head Office", actor=self.admin
                )

        self.assertEqual(ctx.exception.state, SUBMITTED)
        period = service.get_report_period(month=1, year=2026)
        self.assertEqual(period.status, ReportPeriod.Status.FINALIZED)
        self.assertIsNone(period.submitted_at)
        self.assertEqual(period.submitted_to, "")


class ConsolidatedReportTests(LedgerFixtures, TestCase):
    """
    Consolidated view: invoices dated in the month plus payments made in the
    month against invoices dated in other months.

    GUARANTEES:
    - A carried payment is a late_invoice line of the month it was paid in
    - finalize(consolidated=True) freezes the consolidated report
    """

    def setUp(self):
        self.make_users()
        self.vendor = self.make_vendor()
        self.bank = self.make_payment_type("Bank Transfer")

        january = self.make_invoice(self.vendor, "INV-J", "1000.00", date(2026, 1, 10))
        self.make_payment(january, "400.00", date(2026, 1, 20), self.bank)
        self.make_payment(january, "600.00", date(2026, 2, 3), self.bank)

        february = self.make_invoice(self.vendor, "INV-F", "300.00", date(2026, 2, 12))
        self.make_payment(february, "300.00", date(2026, 2, 15), self.bank)

    def _entries(self, report_data):
        return [
            (e["invoice_number"], e["entry_type"], e["status"], e["payment_amount"])
            for s in report_data["sections"]
            for e in s["entries"]
        ]

    def test_consolidated_view_adds_payments_made_in_month(self):
        result = service.resolve_report(month=2, year=2026, view="consolidated")

        self.assertFalse(result["is_snapshot"])
        self.assertEqual(result["view"], "consolidated")
        self.assertEqual(
            self._entries(result["report_data"]),
            [
                ("INV-J", EntryType.LATE_INVOICE.value, "PAID_PARTIAL", "600.00"),
                ("INV-F", EntryType.STANDARD.value, "PAID", "300.00"),
            ],
        )
        self.assertEqual(result["report_data"]["grand_total"], "900.00")

    def test_live_view_leaves_carried_payments_out(self):
        live = service.resolve_report(month=2, year=2026, view="live")["report_data"]

        self.assertEqual(live["grand_total"], "300.00")

    def test_finalize_consolidated_snapshot(self):
        period = service.finalize_report(
            month=2, year=2026, actor=self.admin, consolidated=True
        )

        self.assertEqual(period.snapshot_data["attribution"], "consolidated")
        self.assertEqual(period.snapshot_data["report_data"]["grand_total"], "900.00")
        self.assertEqual(
            service.period_to_dict(period)["snapshot_attribution"], "consolidated"
        )

        reported = service.resolve_report(month=2, year=2026, view="reported")
        self.assertTrue(reported["is_snapshot"])
        self.assertEqual(reported["report_data"]["grand_total"], "900.00")

    def test_default_finalize_snapshot_is_reporting(self):
        period = service.finalize_report(month=2, year=2026, actor=self.admin)

        self.assertEqual(period.snapshot_data["attribution"], "reporting")
        self.assertEqual(period.snapshot_data["report_data"]["grand_total"], "300.00")
