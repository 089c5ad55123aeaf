# reports/tests/test_advance_payments.py

from datetime import date
from decimal import Decimal
from unittest import mock

from django.test import TestCase
from django.utils import timezone

from reports.domain import EntryStatus, EntryType
from reports.models import AdvancePayment
from reports.services import advance_payment_service as service
from reports.services.exceptions import (
    ReportNotFoundError,
    ReportStateConflictError,
    ReportValidationError,
)
from reports.services.report_assembler import generate_live_report
from reports.tests.helpers import LedgerFixtures


class AdvancePaymentTests(LedgerFixtures, TestCase):
    """
    Advance payments + one-to-one invoice linking.

    GUARANTEES:
    - Reported in their own reporting_month only
    - linked_invoice and linked_at move together
    - No advance payment links twice, no invoice is claimed twice
    """

    def setUp(self):
        self.make_users()
        self.vendor_x = self.make_vendor("Vendor X")
        self.vendor_y = self.make_vendor("Vendor Y")
        self.cash = self.make_payment_type("Cash")
        self.cheque = self.make_payment_type("Cheque", requires_reference=True)

        self.invoice_y = self.make_invoice(self.vendor_x, "INV-Y", "1000.00", date(2026, 3, 4))
        self.other_invoice = self.make_invoice(
            self.vendor_x, "INV-Z", "600.00", date(2026, 3, 6)
        )
        self.foreign_invoice = self.make_invoice(
            self.vendor_y, "INV-F", "100.00", date(2026, 3, 6)
        )

    def _create(self, **overrides):
        data = {
            "vendor_id": self.vendor_x.id,
            "payment_type_id": self.cash.id,
            "description": "Advance for March delivery",
            "amount": "300.00",
            "payment_date": date(2026, 2, 14),
            "reporting_month": "2026-02",
        }
        data.update(overrides)
        return service.create_advance_payment(data=data, actor=self.admin)

    # --------------------------------------------------
    # Create / read
    # --------------------------------------------------

    def test_create_normalizes_reporting_month(self):
        ap = self._create(reporting_month="2026-02-20")

        self.assertEqual(ap.reporting_month, date(2026, 2, 1))
        self.assertEqual(ap.amount, Decimal("300.00"))
        self.assertEqual(ap.created_by, self.admin)
        self.assertFalse(ap.is_linked)

    def test_create_rejects_non_positive_amount(self):
        with self.assertRaises(ReportValidationError):
            self._create(amount="0")

    def test_create_requires_reference_when_payment_type_does(self):
        with self.assertRaises(ReportValidationError):
            self._create(payment_type_id=self.cheque.id)

        ap = self._create(payment_type_id=self.cheque.id, payment_reference="CHQ-0091")
        self.assertEqual(ap.payment_reference, "CHQ-0091")

    def test_create_with_unknown_vendor_is_not_found(self):
        with self.assertRaises(ReportNotFoundError):
            self._create(vendor_id=999999)

    def test_appears_only_in_its_reporting_month(self):
        ap = self._create()

        february = generate_live_report(month=2, year=2026)
        march = generate_live_report(month=3, year=2026)

        advance_lines = [
            e for s in february.sections for e in s.entries if e.is_advance_payment
        ]
        self.assertEqual(len(advance_lines), 1)
        self.assertEqual(advance_lines[0].status, EntryStatus.ADVANCE)
        self.assertEqual(advance_lines[0].entry_type, EntryType.ADVANCE_PAYMENT)
        self.assertEqual(advance_lines[0].advance_payment_id, ap.id)

        self.assertFalse(
            any(e.is_advance_payment for s in march.sections for e in s.entries)
        )

    # --------------------------------------------------
    # Linking
    # --------------------------------------------------

    def test_link_sets_invoice_and_timestamp_together(self):
        ap = self._create()

        linked = service.link_advance_payment(
            advance_payment_id=ap.id, invoice_id=self.invoice_y.id, actor=self.admin
        )

        self.assertEqual(linked.linked_invoice_id, self.invoice_y.id)
        self.assertIsNotNone(linked.linked_at)

    def test_second_link_on_same_advance_payment_fails_without_side_effects(self):
        ap = self._create()
        service.link_advance_payment(
            advance_payment_id=ap.id, invoice_id=self.invoice_y.id, actor=self.admin
        )
        linked_at = AdvancePayment.objects.get(pk=ap.id).linked_at

        with self.assertRaises(ReportStateConflictError) as ctx:
            service.link_advance_payment(
                advance_payment_id=ap.id,
                invoice_id=self.other_invoice.id,
                actor=self.admin,
            )

        self.assertEqual(ctx.exception.state, "linked")
        ap.refresh_from_db()
        self.assertEqual(ap.linked_invoice_id, self.invoice_y.id)
        self.assertEqual(ap.linked_at, linked_at)

    def test_invoice_cannot_be_claimed_twice(self):
        first = self._create()
        second = self._create(description="Second advance")
        service.link_advance_payment(
            advance_payment_id=first.id, invoice_id=self.invoice_y.id, actor=self.admin
        )

        with self.assertRaises(ReportStateConflictError):
            service.link_advance_payment(
                advance_payment_id=second.id,
                invoice_id=self.invoice_y.id,
                actor=self.admin,
            )

        second.refresh_from_db()
        self.assertIsNone(second.linked_invoice_id)
        self.assertIsNone(second.linked_at)

    def test_vendor_mismatch_is_rejected(self):
        ap = self._create()

        with self.assertRaises(ReportValidationError):
            service.link_advance_payment(
                advance_payment_id=ap.id,
                invoice_id=self.foreign_invoice.id,
                actor=self.admin,
            )

    def test_link_unknown_invoice_is_not_found(self):
        ap = self._create()

        with self.assertRaises(ReportNotFoundError):
            service.link_advance_payment(
                advance_payment_id=ap.id, invoice_id=999999, actor=self.admin
            )

    # --------------------------------------------------
    # Concurrent writers between the checks and the write
    # --------------------------------------------------

    def _write_before_link(self, write):
        """Run write() right after the link checks pass, before the update."""

        def now():
            write()
            return timezone.now()

        clock = mock.Mock()
        clock.now.side_effect = now
        return mock.patch.object(service, "timezone", clock)

    def test_invoice_claimed_by_concurrent_link_conflicts(self):
        ap = self._create()
        rival = self._create(description="Rival advance")

        def claim():
            AdvancePayment.objects.filter(pk=rival.pk).update(
                linked_invoice=self.invoice_y, linked_at=timezone.now()
            )

        with self._write_before_link(claim):
            with self.assertRaises(ReportStateConflictError) as ctx:
                service.link_advance_payment(
                    advance_payment_id=ap.id,
                    invoice_id=self.invoice_y.id,
                    actor=self.admin,
                )

        self.assertEqual(ctx.exception.state, "invoice_claimed")
        ap.refresh_from_db()
        self.assertIsNone(ap.linked_invoice_id)
        self.assertIsNone(ap.linked_at)

    def test_advance_payment_linked_concurrently_conflicts(self):
        ap = self._create()

        def link_elsewhere():
            AdvancePayment.objects.filter(pk=ap.pk).update(
                linked_invoice=self.other_invoice, linked_at=timezone.now()
            )

        with self._write_before_link(link_elsewhere):
            with self.assertRaises(ReportStateConflictError) as ctx:
                service.link_advance_payment(
                    advance_payment_id=ap.id,
                    invoice_id=self.invoice_y.id,
                    actor=self.admin,
                )

        self.assertEqual(ctx.exception.state, "linked")
        ap.refresh_from_db()
        self.assertIsNone(ap.linked_invoice_id)
        self.assertFalse(AdvancePayment.objects.filter(linked_invoice=self.invoice_y).exists())

    def test_unlink_clears_both_fields(self):
        ap = self._create()
        service.link_advance_payment(
            advance_payment_id=ap.id, invoice_id=self.invoice_y.id, actor=self.admin
        )

        unlinked = service.unlink_advance_payment(advance_payment_id=ap.id, actor=self.admin)

        self.assertIsNone(unlinked.linked_invoice_id)
        self.assertIsNone(unlinked.linked_at)

        with self.assertRaises(ReportStateConflictError):
            service.unlink_advance_payment(advance_payment_id=ap.id, actor=self.admin)

    def test_linked_advance_reduces_invoice_unpaid_line(self):
        ap = self._create(amount="250.00")
        service.link_advance_payment(
            advance_payment_id=ap.id, invoice_id=self.invoice_y.id, actor=self.admin
        )

        march = generate_live_report(month=3, year=2026)
        [line] = [
            e
            for s in march.sections
            for e in s.entries
            if e.invoice_number == "INV-Y" and not e.is_advance_payment
        ]

        self.assertEqual(line.status, EntryStatus.PARTIALLY_PAID)
        self.assertEqual(line.status_percentage, 25)

    # --------------------------------------------------
    # Update / delete
    # --------------------------------------------------

    def test_update_changes_fields(self):
        ap = self._create()

        updated = service.update_advance_payment(
            advance_payment_id=ap.id,
            changes={"amount": "350.00", "reporting_month": date(2026, 3, 9)},
            actor=self.admin,
        )

        self.assertEqual(updated.amount, Decimal("350.00"))
        self.assertEqual(updated.reporting_month, date(2026, 3, 1))

    def test_update_rejects_unknown_fields(self):
        ap = self._create()

        with self.assertRaises(ReportValidationError):
            service.update_advance_payment(
                advance_payment_id=ap.id,
                changes={"linked_invoice_id": self.invoice_y.id},
                actor=self.admin,
            )

    def test_linked_advance_payment_cannot_be_edited_or_deleted(self):
        ap = self._create()
        service.link_advance_payment(
            advance_payment_id=ap.id, invoice_id=self.invoice_y.id, actor=self.admin
        )

        with self.assertRaises(ReportStateConflictError):
            service.update_advance_payment(
                advance_payment_id=ap.id, changes={"amount": "1.00"}, actor=self.admin
            )
        with self.assertRaises(ReportStateConflictError):
            service.delete_advance_payment(advance_payment_id=ap.id, actor=self.admin)

    def test_delete_unlinked(self):
        ap = self._create()

        service.delete_advance_payment(advance_payment_id=ap.id, actor=self.admin)

        self.assertFalse(AdvancePayment.objects.filter(pk=ap.id).exists())

    # --------------------------------------------------
    # Listing
    # --------------------------------------------------

    def test_list_filters_and_paginates(self):
        first = self._create(payment_date=date(2026, 2, 1))
        second = self._create(payment_date=date(2026, 2, 10), description="B")
        self._create(payment_date=date(2026, 3, 3), reporting_month="2026-03", description="C")
        service.link_advance_payment(
            advance_payment_id=first.id, invoice_id=self.invoice_y.id, actor=self.admin
        )

        page = service.list_advance_payments(
            filters={"reporting_month": "2026-02", "linked": "false"}, page=1, per_page=10
        )
        self.assertEqual(page["total"], 1)
        self.assertEqual(page["advance_payments"][0]["id"], second.id)

        paged = service.list_advance_payments(filters={}, page=2, per_page=2)
        self.assertEqual(paged["total"], 3)
        self.assertEqual(paged["total_pages"], 2)
        self.assertEqual([a["id"] for a in paged["advance_payments"]], [first.id])

    def test_list_accepts_boolean_linked_filter(self):
        ap = self._create()
        service.link_advance_payment(
            advance_payment_id=ap.id, invoice_id=self.invoice_y.id, actor=self.admin
        )
        self._create(description="Still open")

        page = service.list_advance_payments(filters={"linked": True})

        self.assertEqual([a["id"] for a in page["advance_payments"]], [ap.id])
        self.assertEqual(page["advance_payments"][0]["linked_invoice_number"], "INV-Y")

    def test_list_unlinked_for_vendor(self):
        open_ap = self._create()
        linked_ap = self._create(description="Linked")
        service.link_advance_payment(
            advance_payment_id=linked_ap.id, invoice_id=self.invoice_y.id, actor=self.admin
        )

        unlinked = service.list_unlinked_advance_payments(vendor_id=self.vendor_x.id)

        self.assertEqual([ap.id for ap in unlinked], [open_ap.id])
