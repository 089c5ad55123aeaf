# reports/domain.py

"""
PATH: reports/domain.py

MONTHLY REPORT DOMAIN (FRAMEWORK-AGNOSTIC)

Purpose:
- Shared report types: ReportEntry, ReportSection, MonthlyReportData, ReportSnapshot
- Ledger read models handed from the LedgerReader to the classifier
- Month/money helpers

Rules:
- Money is Decimal, 2dp, ROUND_HALF_UP
- JSON renders money as fixed-point strings and sorts keys, so the same
  report always serializes to the same bytes
- invoice_amount is negative only on credit-note entries
"""

from __future__ import annotations

import calendar
import json
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Tuple

MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    return Decimal(str(value or "0.00")).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def _money_or_none(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(money(value))


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ============================================================
# MONTH HELPERS
# ============================================================


def month_start(month: int, year: int) -> date:
    return date(year, month, 1)


def month_end(month: int, year: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def period_label(month: int, year: int) -> str:
    """January-2026"""
    return f"{calendar.month_name[month]}-{year}"


def month_key(d: date) -> Tuple[int, int]:
    return (d.year, d.month)


# ============================================================
# ENUMS
# ============================================================


class EntryStatus(str, Enum):
    PAID = "PAID"
    PAID_PARTIAL = "PAID_PARTIAL"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    UNPAID = "UNPAID"
    ADVANCE = "ADVANCE"
    CREDIT_NOTE = "CREDIT_NOTE"


# status_percentage is only carried by these
PERCENTAGE_STATUSES = frozenset({EntryStatus.PAID_PARTIAL, EntryStatus.PARTIALLY_PAID})


class EntryType(str, Enum):
    STANDARD = "standard"
    LATE_INVOICE = "late_invoice"
    LATE_PAYMENT = "late_payment"
    ADVANCE_PAYMENT = "advance_payment"
    CREDIT_NOTE = "credit_note"


class Attribution(str, Enum):
    # reporting_month, else invoice_received_date, else invoice_date
    REPORTING = "reporting"
    # strictly invoice_date
    INVOICE_DATE = "invoice_date"
    # invoice_date, plus payments made in the month against other months' invoices
    CONSOLIDATED = "consolidated"


class ReportView(str, Enum):
    LIVE = "live"
    INVOICE_DATE = "invoice_date"
    CONSOLIDATED = "consolidated"
    SUBMITTED = "submitted"
    REPORTED = "reported"

    @property
    def is_frozen(self) -> bool:
        return self in (ReportView.SUBMITTED, ReportView.REPORTED)


# ============================================================
# LEDGER READ MODELS
# ============================================================


@dataclass(frozen=True)
class PaymentRecord:
    id: int
    amount: Decimal
    payment_date: date
    payment_reference: str
    payment_type_id: Optional[int]
    payment_type_name: Optional[str]
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class InvoiceRecord:
    """
    An invoice attributed to the reporting month.

    payments: every approved payment, any date, ordered by (payment_date, id)
    linked_advance_amount: amount of the advance payment linked to it, if any
    """

    id: int
    invoice_number: str
    invoice_name: str
    vendor_name: str
    invoice_date: date
    invoice_amount: Decimal
    payable_amount: Decimal
    currency_code: str
    payments: Tuple[PaymentRecord, ...] = ()
    credit_note_count: int = 0
    linked_advance_amount: Decimal = ZERO


@dataclass(frozen=True)
class CreditNoteRecord:
    """
    amount is signed (negative) by the reader.

    payment_type_*: last approved payment type of the parent invoice, if any.
    """

    id: int
    credit_note_number: str
    credit_note_date: date
    amount: Decimal
    currency_code: str
    parent_invoice_id: Optional[int]
    parent_invoice_number: Optional[str]
    parent_invoice_name: str = ""
    vendor_name: str = ""
    tds_reversal_amount: Optional[Decimal] = None
    payment_type_id: Optional[int] = None
    payment_type_name: Optional[str] = None


@dataclass(frozen=True)
class AdvancePaymentRecord:
    id: int
    description: str
    vendor_name: str
    amount: Decimal
    payment_date: date
    payment_reference: str
    payment_type_id: int
    payment_type_name: str
    currency_code: str
    linked_invoice_id: Optional[int] = None
    linked_invoice_number: Optional[str] = None


@dataclass(frozen=True)
class CarriedPaymentRecord:
    """
    A payment made in the month against an invoice dated in another month.

    invoice.payments is empty; paid_before covers the approved payments on the
    same invoice ordered before this one, plus any linked advance payment.
    """

    invoice: InvoiceRecord
    payment: PaymentRecord
    paid_before: Decimal = ZERO


@dataclass(frozen=True)
class MonthLedger:
    """Everything the assembler needs for one (month, year)."""

    month: int
    year: int
    attribution: Attribution
    invoices: Tuple[InvoiceRecord, ...] = ()
    credit_notes: Tuple[CreditNoteRecord, ...] = ()
    advance_payments: Tuple[AdvancePaymentRecord, ...] = ()
    carried_payments: Tuple[CarriedPaymentRecord, ...] = ()
    finalized_at: Optional[datetime] = None


# ============================================================
# REPORT TYPES
# ============================================================


@dataclass(frozen=True)
class ReportEntry:
    serial: int
    entry_type: EntryType
    status: EntryStatus
    invoice_amount: Decimal
    currency_code: str
    vendor_name: str
    invoice_id: Optional[int] = None
    invoice_number: Optional[str] = None
    invoice_name: Optional[str] = None
    invoice_date: Optional[date] = None
    payment_amount: Optional[Decimal] = None
    payment_date: Optional[date] = None
    payment_reference: Optional[str] = None
    status_percentage: Optional[int] = None
    is_advance_payment: bool = False
    advance_payment_id: Optional[int] = None
    is_credit_note: bool = False
    credit_note_id: Optional[int] = None
    credit_note_number: Optional[str] = None
    credit_note_date: Optional[date] = None
    tds_reversal_amount: Optional[Decimal] = None
    parent_invoice_number: Optional[str] = None
    linked_credit_note_count: Optional[int] = None

    @property
    def amount(self) -> Decimal:
        """What this line contributes to its section subtotal."""
        return self.payment_amount if self.payment_amount is not None else self.invoice_amount

    def to_dict(self) -> dict:
        return {
            "serial": self.serial,
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice_number,
            "invoice_name": self.invoice_name,
            "vendor_name": self.vendor_name,
            "invoice_date": _iso(self.invoice_date),
            "invoice_amount": _money_or_none(self.invoice_amount),
            "payment_amount": _money_or_none(self.payment_amount),
            "payment_date": _iso(self.payment_date),
            "payment_reference": self.payment_reference,
            "status": self.status.value,
            "status_percentage": self.status_percentage,
            "currency_code": self.currency_code,
            "entry_type": self.entry_type.value,
            "is_advance_payment": self.is_advance_payment,
            "advance_payment_id": self.advance_payment_id,
            "is_credit_note": self.is_credit_note,
            "credit_note_id": self.credit_note_id,
            "credit_note_number": self.credit_note_number,
            "credit_note_date": _iso(self.credit_note_date),
            "tds_reversal_amount": _money_or_none(self.tds_reversal_amount),
            "parent_invoice_number": self.parent_invoice_number,
            "linked_credit_note_count": self.linked_credit_note_count,
        }


@dataclass(frozen=True)
class ReportSection:
    payment_type_id: Optional[int]
    payment_type_name: str
    entries: Tuple[ReportEntry, ...] = ()
    subtotal: Decimal = ZERO

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def is_unpaid(self) -> bool:
        return self.payment_type_id is None

    def to_dict(self) -> dict:
        return {
            "payment_type_id": self.payment_type_id,
            "payment_type_name": self.payment_type_name,
            "entries": [e.to_dict() for e in self.entries],
            "subtotal": str(money(self.subtotal)),
            "entry_count": self.entry_count,
        }


@dataclass(frozen=True)
class MonthlyReportData:
    month: int
    year: int
    label: str
    generated_at: datetime
    sections: Tuple[ReportSection, ...] = ()
    grand_total: Decimal = ZERO
    total_entries: int = 0

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "year": self.year,
            "label": self.label,
            "sections": [s.to_dict() for s in self.sections],
            "grand_total": str(money(self.grand_total)),
            "total_entries": self.total_entries,
            "generated_at": _iso(self.generated_at),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True)
class ReportSnapshot:
    """Write-once copy of a report taken at finalization."""

    version: int
    report_data: MonthlyReportData
    finalized_at: datetime
    finalized_by_name: str
    attribution: Attribution = Attribution.REPORTING

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "report_data": self.report_data.to_dict(),
            "finalized_at": _iso(self.finalized_at),
            "finalized_by_name": self.finalized_by_name,
            "attribution": self.attribution.value,
        }
