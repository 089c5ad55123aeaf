# PATH: reports/services/classifier.py

"""
ENTRY CLASSIFIER

Turns ledger read models into ReportEntry lines, one pure function per origin:
- classify_invoice        -> standard / late_invoice / late_payment lines
- classify_carried_payment -> late_invoice line for a payment made in the month
                             against an invoice dated in another month
- classify_advance_payment -> advance_payment line (status ADVANCE)
- classify_credit_note    -> credit_note line (status CREDIT_NOTE, negative amount)

Status (against payable = invoice amount net of TDS):
- no payment amount                         -> UNPAID
  (always in the Unpaid section, whatever the payment type)
- paid to date >= payable, this one covers  -> PAID
- paid to date >= payable, this one doesn't -> PAID_PARTIAL  (this payment's %)
- otherwise                                 -> PARTIALLY_PAID (paid-to-date %)

Percentages round half-up to an integer.

No database access here; every function is deterministic for its inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple

from reports.domain import (
    ZERO,
    AdvancePaymentRecord,
    Attribution,
    CarriedPaymentRecord,
    CreditNoteRecord,
    EntryStatus,
    EntryType,
    InvoiceRecord,
    PaymentRecord,
    ReportEntry,
    month_end,
    month_key,
)
from reports.services.exceptions import ReportDataError, ReportValidationError

HUNDRED = Decimal("100")

# Tie-break between origins sharing a date
ORIGIN_INVOICE = 0
ORIGIN_ADVANCE = 1
ORIGIN_CREDIT_NOTE = 2


@dataclass(frozen=True)
class ClassifiedEntry:
    """
    A report line before grouping.

    section_key: payment type id, None for the Unpaid section
    sort_key: (date, origin, record id, payment id)
    """

    entry: ReportEntry
    section_key: Optional[int]
    section_name: Optional[str]
    sort_key: Tuple


# ============================================================
# STATUS
# ============================================================


def percentage_of(amount: Decimal, payable: Decimal) -> int:
    if payable is None or payable <= ZERO:
        raise ReportDataError(
            f"Cannot compute a payment percentage against payable amount {payable}"
        )
    pct = (Decimal(amount) / Decimal(payable) * HUNDRED).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return int(pct)


def derive_payment_status(
    *,
    payment_amount: Optional[Decimal],
    payable: Decimal,
    paid_before: Decimal = ZERO,
) -> Tuple[EntryStatus, Optional[int]]:
    """
    Status + percentage for one payment line.

    paid_before includes earlier payments and any linked advance payment.
    """
    if payment_amount is None or payment_amount == ZERO:
        return EntryStatus.UNPAID, None

    if payable is None or payable <= ZERO:
        raise ReportDataError(f"Invoice payable amount must be > 0 (got {payable})")

    paid_after = paid_before + payment_amount

    if paid_after >= payable:
        if payment_amount >= payable:
            return EntryStatus.PAID, None
        return EntryStatus.PAID_PARTIAL, percentage_of(payment_amount, payable)

    return EntryStatus.PARTIALLY_PAID, percentage_of(paid_after, payable)


def _base_invoice_entry_type(
    record: InvoiceRecord, *, month: int, year: int, attribution: Attribution
) -> EntryType:
    if attribution in (Attribution.INVOICE_DATE, Attribution.CONSOLIDATED):
        return EntryType.STANDARD
    # calendar-month boundary; no grace window
    if month_key(record.invoice_date) < (year, month):
        return EntryType.LATE_INVOICE
    return EntryType.STANDARD


def _is_late_payment(
    payment: PaymentRecord,
    *,
    month: int,
    year: int,
    finalized_at: Optional[datetime],
) -> bool:
    if payment.payment_date > month_end(month, year):
        return True
    if finalized_at is not None and payment.created_at is not None:
        return payment.created_at > finalized_at
    return False


# ============================================================
# INVOICES
# ============================================================


def _validate_invoice(record: InvoiceRecord) -> None:
    if record.invoice_amount is None or record.invoice_amount < ZERO:
        raise ReportValidationError(
            f"Invoice {record.invoice_number} has a negative amount ({record.invoice_amount})"
        )
    for p in record.payments:
        if p.amount is None or p.amount < ZERO:
            raise ReportValidationError(
                f"Payment {p.id} on invoice {record.invoice_number} has a negative amount ({p.amount})"
            )
    if record.linked_advance_amount < ZERO:
        raise ReportValidationError(
            f"Advance payment linked to invoice {record.invoice_number} has a negative amount"
        )


def _invoice_entry(record: InvoiceRecord, **overrides) -> ReportEntry:
    fields = dict(
        serial=0,
        invoice_id=record.id,
        invoice_number=record.invoice_number,
        invoice_name=record.invoice_name,
        vendor_name=record.vendor_name,
        invoice_date=record.invoice_date,
        invoice_amount=record.invoice_amount,
        currency_code=record.currency_code,
        linked_credit_note_count=record.credit_note_count,
    )
    fields.update(overrides)
    return ReportEntry(**fields)


def classify_invoice(
    record: InvoiceRecord,
    *,
    month: int,
    year: int,
    attribution: Attribution = Attribution.REPORTING,
    finalized_at: Optional[datetime] = None,
) -> List[ClassifiedEntry]:
    """
    One line per approved payment, in the payment type's section (Unpaid for a
    zero payment).

    Without payments:
    - nothing linked        -> one UNPAID line in Unpaid
    - advance covers part   -> one PARTIALLY_PAID line in Unpaid
    - advance covers it all -> no line (the advance payment line carries the cash)
    """
    _validate_invoice(record)

    base_type = _base_invoice_entry_type(
        record, month=month, year=year, attribution=attribution
    )
    payable = record.payable_amount
    advance = record.linked_advance_amount or ZERO

    if not record.payments:
        if advance == ZERO:
            entry = _invoice_entry(
                record, entry_type=base_type, status=EntryStatus.UNPAID
            )
        elif advance >= payable:
            return []
        else:
            entry = _invoice_entry(
                record,
                entry_type=base_type,
                status=EntryStatus.PARTIALLY_PAID,
                status_percentage=percentage_of(advance, payable),
            )
        return [
            ClassifiedEntry(
                entry=entry,
                section_key=None,
                section_name=None,
                sort_key=(record.invoice_date, ORIGIN_INVOICE, record.id, 0),
            )
        ]

    out: List[ClassifiedEntry] = []
    paid_before = advance

    for payment in sorted(record.payments, key=lambda p: (p.payment_date, p.id)):
        status, pct = derive_payment_status(
            payment_amount=payment.amount,
            payable=payable,
            paid_before=paid_before,
        )
        paid_before += payment.amount

        entry_type = (
            EntryType.LATE_PAYMENT
            if _is_late_payment(
                payment, month=month, year=year, finalized_at=finalized_at
            )
            else base_type
        )
        out.append(
            _payment_line(
                record, payment, entry_type=entry_type, status=status, percentage=pct
            )
        )

    return out


def _payment_line(
    record: InvoiceRecord,
    payment: PaymentRecord,
    *,
    entry_type: EntryType,
    status: EntryStatus,
    percentage: Optional[int],
) -> ClassifiedEntry:
    entry = _invoice_entry(
        record,
        entry_type=entry_type,
        status=status,
        status_percentage=percentage,
        payment_amount=payment.amount,
        payment_date=payment.payment_date,
        payment_reference=payment.payment_reference or None,
    )
    # a zero payment leaves the invoice unpaid; it never sits under a payment type
    if status == EntryStatus.UNPAID:
        section_key, section_name = None, None
    else:
        section_key, section_name = payment.payment_type_id, payment.payment_type_name

    return ClassifiedEntry(
        entry=entry,
        section_key=section_key,
        section_name=section_name,
        sort_key=(payment.payment_date, ORIGIN_INVOICE, record.id, payment.id),
    )


def classify_carried_payment(record: CarriedPaymentRecord) -> ClassifiedEntry:
    """
    Consolidated view only: a payment made in the month against an invoice
    dated in another month becomes a late_invoice line of this month.
    """
    invoice, payment = record.invoice, record.payment
    _validate_invoice(replace(invoice, payments=(payment,)))
    if record.paid_before < ZERO:
        raise ReportValidationError(
            f"Invoice {invoice.invoice_number} has a negative paid-to-date amount"
        )

    status, pct = derive_payment_status(
        payment_amount=payment.amount,
        payable=invoice.payable_amount,
        paid_before=record.paid_before,
    )
    return _payment_line(
        invoice,
        payment,
        entry_type=EntryType.LATE_INVOICE,
        status=status,
        percentage=pct,
    )


# ============================================================
# ADVANCE PAYMENTS
# ============================================================


def classify_advance_payment(record: AdvancePaymentRecord) -> ClassifiedEntry:
    """Always reported in its own reporting month, linked or not."""
    if record.amount is None or record.amount <= ZERO:
        raise ReportValidationError(
            f"Advance payment {record.id} must have a positive amount (got {record.amount})"
        )

    entry = ReportEntry(
        serial=0,
        entry_type=EntryType.ADVANCE_PAYMENT,
        status=EntryStatus.ADVANCE,
        invoice_id=record.linked_invoice_id,
        invoice_number=record.linked_invoice_number,
        invoice_name=record.description,
        vendor_name=record.vendor_name,
        invoice_amount=record.amount,
        payment_amount=record.amount,
        payment_date=record.payment_date,
        payment_reference=record.payment_reference or None,
        currency_code=record.currency_code,
        is_advance_payment=True,
        advance_payment_id=record.id,
    )
    return ClassifiedEntry(
        entry=entry,
        section_key=record.payment_type_id,
        section_name=record.payment_type_name,
        sort_key=(record.payment_date, ORIGIN_ADVANCE, record.id, 0),
    )


# ============================================================
# CREDIT NOTES
# ============================================================


def classify_credit_note(record: CreditNoteRecord) -> ClassifiedEntry:
    """
    Negative invoice_amount, never a payment_amount.

    Lands in the section of the parent invoice's last approved payment type.
    """
    if record.amount is None or record.amount >= ZERO:
        raise ReportValidationError(
            f"Credit note {record.credit_note_number} must carry a negative amount (got {record.amount})"
        )
    if record.parent_invoice_id is None:
        raise ReportDataError(
            f"Credit note {record.credit_note_number} references a missing invoice"
        )

    entry = ReportEntry(
        serial=0,
        entry_type=EntryType.CREDIT_NOTE,
        status=EntryStatus.CREDIT_NOTE,
        invoice_id=record.parent_invoice_id,
        invoice_number=record.credit_note_number,
        invoice_name=record.parent_invoice_name or None,
        vendor_name=record.vendor_name,
        invoice_amount=record.amount,
        currency_code=record.currency_code,
        is_credit_note=True,
        credit_note_id=record.id,
        credit_note_number=record.credit_note_number,
        credit_note_date=record.credit_note_date,
        tds_reversal_amount=record.tds_reversal_amount,
        parent_invoice_number=record.parent_invoice_number,
    )
    return ClassifiedEntry(
        entry=entry,
        section_key=record.payment_type_id,
        section_name=record.payment_type_name,
        sort_key=(record.credit_note_date, ORIGIN_CREDIT_NOTE, record.id, 0),
    )
