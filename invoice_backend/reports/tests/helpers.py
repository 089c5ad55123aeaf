# reports/tests/helpers.py

"""
Shared fixtures for report tests.

LedgerFixtures builds ledger rows (vendors, payment types, approved
invoices, payments, credit notes) and users with the two report roles.
"""

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model

from ledger.models import CreditNote, Invoice, Payment, PaymentType, Vendor
from reports.domain import InvoiceRecord, PaymentRecord

User = get_user_model()


class LedgerFixtures:
    def make_users(self):
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="pw12345!",
            full_name="Asha Rao",
            role=User.ROLE_ADMIN,
        )
        self.clerk = User.objects.create_user(
            email="clerk@example.com",
            password="pw12345!",
            role=User.ROLE_STANDARD,
        )

    def make_vendor(self, name="Acme Supplies"):
        return Vendor.objects.create(name=name)

    def make_payment_type(self, name="Bank Transfer", requires_reference=False):
        return PaymentType.objects.create(name=name, requires_reference=requires_reference)

    def make_invoice(self, vendor, number, amount, invoice_date, **extra):
        extra.setdefault("status", Invoice.STATUS_UNPAID)
        return Invoice.objects.create(
            invoice_number=number,
            invoice_name=extra.pop("invoice_name", f"Invoice {number}"),
            vendor=vendor,
            invoice_date=invoice_date,
            invoice_amount=Decimal(amount),
            **extra,
        )

    def make_payment(self, invoice, amount, payment_date, payment_type=None, **extra):
        extra.setdefault("status", Payment.STATUS_APPROVED)
        return Payment.objects.create(
            invoice=invoice,
            payment_type=payment_type,
            amount_paid=Decimal(amount),
            payment_date=payment_date,
            **extra,
        )

    def make_credit_note(self, invoice, number, amount, credit_note_date, **extra):
        return CreditNote.objects.create(
            invoice=invoice,
            credit_note_number=number,
            credit_note_date=credit_note_date,
            amount=Decimal(amount),
            **extra,
        )


def invoice_record(
    *,
    record_id=1,
    number="INV-1",
    amount="1000.00",
    payable=None,
    invoice_date=date(2026, 3, 5),
    payments=(),
    linked_advance_amount="0.00",
    credit_note_count=0,
):
    return InvoiceRecord(
        id=record_id,
        invoice_number=number,
        invoice_name=f"Invoice {number}",
        vendor_name="Acme Supplies",
        invoice_date=invoice_date,
        invoice_amount=Decimal(amount),
        payable_amount=Decimal(payable if payable is not None else amount),
        currency_code="INR",
        payments=tuple(payments),
        credit_note_count=credit_note_count,
        linked_advance_amount=Decimal(linked_advance_amount),
    )


def payment_record(
    *,
    record_id=1,
    amount="1000.00",
    payment_date=date(2026, 3, 20),
    payment_type_id=1,
    payment_type_name="Bank Transfer",
    created_at=None,
):
    return PaymentRecord(
        id=record_id,
        amount=Decimal(amount),
        payment_date=payment_date,
        payment_reference=f"REF-{record_id}",
        payment_type_id=payment_type_id,
        payment_type_name=payment_type_name,
        created_at=created_at,
    )
