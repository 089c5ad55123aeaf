# reports/tests/test_ledger_reader.py

from datetime import date
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from ledger.models import Invoice, Payment
from reports.domain import Attribution
from reports.models import AdvancePayment
from reports.services.ledger_reader import LedgerReader
from reports.tests.helpers import LedgerFixtures


class LedgerReaderTests(LedgerFixtures, TestCase):
    """
    What a month's report reads from the ledger.

    GUARANTEES:
    - reporting_month > invoice_received_date > invoice_date attribution
    - Unapproved, deleted and archived rows never reach the report
    - Credit notes come back negative with their TDS reversal
    """

    def setUp(self):
        self.vendor = self.make_vendor()
        self.bank = self.make_payment_type("Bank Transfer")

        self.in_month = self.make_invoice(
            self.vendor,
            "INV-A",
            "1000.00",
            date(2026, 3, 5),
            tds_applicable=True,
            tds_percentage=Decimal("10"),
        )
        self.received_in_month = self.make_invoice(
            self.vendor,
            "INV-B",
            "400.00",
            date(2026, 2, 10),
            invoice_received_date=date(2026, 3, 2),
        )
        self.moved_to_april = self.make_invoice(
            self.vendor,
            "INV-C",
            "250.00",
            date(2026, 3, 8),
            reporting_month=date(2026, 4, 1),
        )
        self.make_invoice(
            self.vendor,
            "INV-PENDING",
            "90.00",
            date(2026, 3, 9),
            status=Invoice.STATUS_PENDING_APPROVAL,
        )
        self.make_invoice(
            self.vendor, "INV-DELETED", "80.00", date(2026, 3, 9), deleted_at=timezone.now()
        )
        self.make_invoice(
            self.vendor, "INV-ARCHIVED", "70.00", date(2026, 3, 9), is_archived=True
        )

        self.make_payment(self.in_month, "500.00", date(2026, 3, 20), self.bank)
        self.make_payment(
            self.in_month,
            "400.00",
            date(2026, 3, 21),
            self.bank,
            status=Payment.STATUS_PENDING,
        )

    def _numbers(self, ledger):
        return sorted(i.invoice_number for i in ledger.invoices)

    def test_reporting_attribution_cascade(self):
        march = LedgerReader(month=3, year=2026).read()
        april = LedgerReader(month=4, year=2026).read()

        self.assertEqual(self._numbers(march), ["INV-A", "INV-B"])
        self.assertEqual(self._numbers(april), ["INV-C"])

    def test_invoice_date_attribution(self):
        march = LedgerReader(
            month=3, year=2026, attribution=Attribution.INVOICE_DATE
        ).read()

        self.assertEqual(self._numbers(march), ["INV-A", "INV-C"])

    def test_only_approved_payments_are_read(self):
        [record] = [
            i for i in LedgerReader(month=3, year=2026).invoices() if i.invoice_number == "INV-A"
        ]

        self.assertEqual([p.amount for p in record.payments], [Decimal("500.00")])
        self.assertEqual(record.payments[0].payment_type_name, "Bank Transfer")
        self.assertEqual(record.payable_amount, Decimal("900.00"))

    def test_credit_note_is_negated_with_tds_reversal(self):
        self.make_credit_note(
            self.in_month, "CN-1", "150.00", date(2026, 3, 25), tds_applicable=True
        )

        [cn] = LedgerReader(month=3, year=2026).credit_notes()

        self.assertEqual(cn.amount, Decimal("-150.00"))
        self.assertEqual(cn.tds_reversal_amount, Decimal("15.00"))
        self.assertEqual(cn.parent_invoice_number, "INV-A")
        self.assertEqual(cn.payment_type_id, self.bank.id)

    def test_deleted_credit_notes_are_skipped(self):
        self.make_credit_note(
            self.in_month, "CN-2", "50.00", date(2026, 3, 25), deleted_at=timezone.now()
        )

        self.assertEqual(LedgerReader(month=3, year=2026).credit_notes(), ())

    def test_credit_note_count_and_linked_advance_are_annotated(self):
        self.make_credit_note(self.in_month, "CN-1", "150.00", date(2026, 3, 25))
        AdvancePayment.objects.create(
            vendor=self.vendor,
            payment_type=self.bank,
            description="Deposit",
            amount=Decimal("100.00"),
            payment_date=date(2026, 2, 1),
            reporting_month=date(2026, 2, 1),
            linked_invoice=self.in_month,
            linked_at=timezone.now(),
        )

        [record] = [
            i for i in LedgerReader(month=3, year=2026).invoices() if i.invoice_number == "INV-A"
        ]

        self.assertEqual(record.credit_note_count, 1)
        self.assertEqual(record.linked_advance_amount, Decimal("100.00"))

    def test_advance_payments_read_by_reporting_month(self):
        AdvancePayment.objects.create(
            vendor=self.vendor,
            payment_type=self.bank,
            description="Deposit",
            amount=Decimal("300.00"),
            payment_date=date(2026, 2, 14),
            reporting_month=date(2026, 2, 20),
        )

        self.assertEqual(len(LedgerReader(month=2, year=2026).advance_payments()), 1)
        self.assertEqual(LedgerReader(month=3, year=2026).advance_payments(), ())


class ConsolidatedLedgerReaderTests(LedgerFixtures, TestCase):
    """
    Consolidated reads: invoices dated in the month plus payments made in the
    month against invoices dated elsewhere.

    GUARANTEES:
    - Carried payments only in consolidated mode
    - paid_before sums earlier approved payments and the linked advance
    - Payments on invoices dated in the month are never carried
    """

    def setUp(self):
        self.vendor = self.make_vendor()
        self.bank = self.make_payment_type("Bank Transfer")

        self.january = self.make_invoice(self.vendor, "INV-JAN", "1000.00", date(2026, 1, 20))
        self.make_payment(self.january, "200.00", date(2026, 1, 28), self.bank)
        self.make_payment(self.january, "300.00", date(2026, 3, 4), self.bank)
        self.make_payment(
            self.january, "50.00", date(2026, 3, 6), self.bank, status=Payment.STATUS_PENDING
        )

        self.march = self.make_invoice(self.vendor, "INV-MAR", "400.00", date(2026, 3, 2))
        self.make_payment(self.march, "400.00", date(2026, 3, 10), self.bank)

        archived = self.make_invoice(
            self.vendor, "INV-OLD", "90.00", date(2026, 1, 3), is_archived=True
        )
        self.make_payment(archived, "90.00", date(2026, 3, 8), self.bank)

    def test_carried_payments_only_in_consolidated_mode(self):
        self.assertEqual(LedgerReader(month=3, year=2026).carried_payments(), ())
        self.assertEqual(
            LedgerReader(
                month=3, year=2026, attribution=Attribution.INVOICE_DATE
            ).carried_payments(),
            (),
        )

    def test_consolidated_read(self):
        ledger = LedgerReader(
            month=3, year=2026, attribution=Attribution.CONSOLIDATED
        ).read()

        self.assertEqual([i.invoice_number for i in ledger.invoices], ["INV-MAR"])

        [carried] = ledger.carried_payments
        self.assertEqual(carried.invoice.invoice_number, "INV-JAN")
        self.assertEqual(carried.invoice.payments, ())
        self.assertEqual(carried.payment.amount, Decimal("300.00"))
        self.assertEqual(carried.paid_before, Decimal("200.00"))

    def test_linked_advance_counts_as_paid_before(self):
        AdvancePayment.objects.create(
            vendor=self.vendor,
            payment_type=self.bank,
            description="Deposit",
            amount=Decimal("100.00"),
            payment_date=date(2026, 1, 5),
            reporting_month=date(2026, 1, 1),
            linked_invoice=self.january,
            linked_at=timezone.now(),
        )

        [carried] = LedgerReader(
            month=3, year=2026, attribution=Attribution.CONSOLIDATED
        ).carried_payments()

        self.assertEqual(carried.paid_before, Decimal("300.00"))
        self.assertEqual(carried.invoice.linked_advance_amount, Decimal("100.00"))
