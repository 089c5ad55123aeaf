# PATH: reports/services/ledger_reader.py

"""
LEDGER READER

Fetches everything one reporting month needs and hands it over as frozen
read models (reports.domain), so classification and grouping never touch
the ORM.

Invoice attribution:
- REPORTING (default): reporting_month, else invoice_received_date, else invoice_date
- INVOICE_DATE: invoice_date only
- CONSOLIDATED: invoice_date, plus approved payments dated in the month whose
  invoice is dated in another month (carried payments)

Always excluded:
- soft-deleted or archived invoices
- invoices pending approval or rejected
- payments that are not approved
- soft-deleted credit notes

Read-only: no locks, safe to run concurrently.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Tuple

from django.conf import settings
from django.db.models import (
    Count,
    DecimalField,
    IntegerField,
    OuterRef,
    Prefetch,
    Q,
    Subquery,
    Sum,
    Value,
)
from django.db.models.functions import Coalesce

from ledger.models import CreditNote, Invoice, Payment
from ledger.services.tds import calculate_tds
from reports.domain import (
    ZERO,
    AdvancePaymentRecord,
    Attribution,
    CarriedPaymentRecord,
    CreditNoteRecord,
    InvoiceRecord,
    MonthLedger,
    PaymentRecord,
    money,
    month_end,
    month_start,
)
from reports.models import AdvancePayment, ReportPeriod

logger = logging.getLogger(__name__)

BY_INVOICE_DATE = frozenset({Attribution.INVOICE_DATE, Attribution.CONSOLIDATED})


def _money_field():
    return DecimalField(max_digits=14, decimal_places=2)


def _approved_payments():
    return (
        Payment.objects.filter(status=Payment.STATUS_APPROVED)
        .select_related("payment_type")
        .order_by("payment_date", "id")
    )


def _payment_record(p: Payment) -> PaymentRecord:
    return PaymentRecord(
        id=p.id,
        amount=p.amount_paid,
        payment_date=p.payment_date,
        payment_reference=p.payment_reference,
        payment_type_id=p.payment_type_id,
        payment_type_name=p.payment_type.name if p.payment_type_id else None,
        created_at=p.created_at,
    )


def _invoice_record(
    inv: Invoice,
    *,
    payments: Tuple[PaymentRecord, ...] = (),
    credit_note_count: int = 0,
    linked_advance_amount: Optional[Decimal] = None,
) -> InvoiceRecord:
    return InvoiceRecord(
        id=inv.id,
        invoice_number=inv.invoice_number,
        invoice_name=inv.display_name,
        vendor_name=inv.vendor.name,
        invoice_date=inv.invoice_date,
        invoice_amount=inv.invoice_amount,
        payable_amount=inv.payable_amount,
        currency_code=inv.currency_code or settings.REPORT_DEFAULT_CURRENCY,
        payments=payments,
        credit_note_count=credit_note_count,
        linked_advance_amount=linked_advance_amount or ZERO,
    )


class LedgerReader:
    def __init__(
        self,
        *,
        month: int,
        year: int,
        attribution: Attribution = Attribution.REPORTING,
    ):
        self.month = month
        self.year = year
        self.attribution = Attribution(attribution)
        self.start = month_start(month, year)
        self.end = month_end(month, year)

    # ---------------- public ----------------

    def read(self) -> MonthLedger:
        ledger = MonthLedger(
            month=self.month,
            year=self.year,
            attribution=self.attribution,
            invoices=self.invoices(),
            credit_notes=self.credit_notes(),
            advance_payments=self.advance_payments(),
            carried_payments=self.carried_payments(),
            finalized_at=self.finalized_at(),
        )
        logger.debug(
            "Ledger read",
            extra={
                "month": self.month,
                "year": self.year,
                "attribution": self.attribution.value,
                "invoices": len(ledger.invoices),
                "credit_notes": len(ledger.credit_notes),
                "advance_payments": len(ledger.advance_payments),
                "carried_payments": len(ledger.carried_payments),
            },
        )
        return ledger

    # ---------------- invoices ----------------

    def _invoice_month_filter(self) -> Q:
        by_invoice_date = Q(invoice_date__range=(self.start, self.end))

        if self.attribution in BY_INVOICE_DATE:
            return by_invoice_date

        return (
            Q(reporting_month__range=(self.start, self.end))
            | Q(
                reporting_month__isnull=True,
                invoice_received_date__range=(self.start, self.end),
            )
            | (
                Q(reporting_month__isnull=True, invoice_received_date__isnull=True)
                & by_invoice_date
            )
        )

    def invoice_queryset(self):
        credit_note_count = (
            CreditNote.objects.filter(invoice=OuterRef("pk"), deleted_at__isnull=True)
            .order_by()
            .values("invoice")
            .annotate(c=Count("id"))
            .values("c")
        )
        linked_advance_amount = AdvancePayment.objects.filter(
            linked_invoice=OuterRef("pk")
        ).values("amount")[:1]

        return (
            Invoice.objects.filter(self._invoice_month_filter())
            .filter(deleted_at__isnull=True, is_archived=False)
            .exclude(status__in=Invoice.UNREPORTABLE_STATUSES)
            .select_related("vendor")
            .prefetch_related(
                Prefetch("payments", queryset=_approved_payments(), to_attr="approved_payments")
            )
            .annotate(
                credit_note_count=Coalesce(
                    Subquery(credit_note_count, output_field=IntegerField()), 0
                ),
                linked_advance_amount=Subquery(linked_advance_amount),
            )
            .order_by("invoice_date", "id")
        )

    def invoices(self) -> Tuple[InvoiceRecord, ...]:
        return tuple(
            _invoice_record(
                inv,
                payments=tuple(_payment_record(p) for p in inv.approved_payments),
                credit_note_count=inv.credit_note_count,
                linked_advance_amount=inv.linked_advance_amount,
            )
            for inv in self.invoice_queryset()
        )

    # ---------------- carried payments (consolidated) ----------------

    def carried_payment_queryset(self):
        earlier = (
            Payment.objects.filter(
                invoice=OuterRef("invoice"), status=Payment.STATUS_APPROVED
            )
            .filter(
                Q(payment_date__lt=OuterRef("payment_date"))
                | Q(payment_date=OuterRef("payment_date"), id__lt=OuterRef("id"))
            )
            .order_by()
            .values("invoice")
            .annotate(total=Sum("amount_paid"))
            .values("total")
        )
        credit_note_count = (
            CreditNote.objects.filter(invoice=OuterRef("invoice"), deleted_at__isnull=True)
            .order_by()
            .values("invoice")
            .annotate(c=Count("id"))
            .values("c")
        )
        linked_advance_amount = AdvancePayment.objects.filter(
            linked_invoice=OuterRef("invoice")
        ).values("amount")[:1]

        return (
            _approved_payments()
            .filter(
                payment_date__range=(self.start, self.end),
                invoice__deleted_at__isnull=True,
                invoice__is_archived=False,
            )
            .exclude(invoice__invoice_date__range=(self.start, self.end))
            .exclude(invoice__status__in=Invoice.UNREPORTABLE_STATUSES)
            .select_related("invoice", "invoice__vendor")
            .annotate(
                paid_earlier=Coalesce(
                    Subquery(earlier, output_field=_money_field()),
                    Value(ZERO),
                    output_field=_money_field(),
                ),
                credit_note_count=Coalesce(
                    Subquery(credit_note_count, output_field=IntegerField()), 0
                ),
                linked_advance_amount=Subquery(linked_advance_amount),
            )
        )

    def carried_payments(self) -> Tuple[CarriedPaymentRecord, ...]:
        if self.attribution != Attribution.CONSOLIDATED:
            return ()

        records = []
        for p in self.carried_payment_queryset():
            advance = p.linked_advance_amount or ZERO
            records.append(
                CarriedPaymentRecord(
                    invoice=_invoice_record(
                        p.invoice,
                        credit_note_count=p.credit_note_count,
                        linked_advance_amount=advance,
                    ),
                    payment=_payment_record(p),
                    paid_before=money(p.paid_earlier) + advance,
                )
            )
        return tuple(records)

    # ---------------- credit notes ----------------

    def credit_notes(self) -> Tuple[CreditNoteRecord, ...]:
        last_payment = (
            Payment.objects.filter(
                invoice=OuterRef("invoice"), status=Payment.STATUS_APPROVED
            )
            .order_by("-payment_date", "-id")
        )

        if self.attribution in BY_INVOICE_DATE:
            month_filter = Q(credit_note_date__range=(self.start, self.end))
        else:
            month_filter = Q(reporting_month__range=(self.start, self.end)) | Q(
                reporting_month__isnull=True,
                credit_note_date__range=(self.start, self.end),
            )

        qs = (
            CreditNote.objects.filter(month_filter, deleted_at__isnull=True)
            .select_related("invoice", "invoice__vendor")
            .annotate(
                parent_payment_type_id=Subquery(last_payment.values("payment_type_id")[:1]),
                parent_payment_type_name=Subquery(
                    last_payment.values("payment_type__name")[:1]
                ),
            )
            .order_by("credit_note_date", "id")
        )

        records = []
        for cn in qs:
            parent = cn.invoice
            records.append(
                CreditNoteRecord(
                    id=cn.id,
                    credit_note_number=cn.credit_note_number,
                    credit_note_date=cn.credit_note_date,
                    amount=-money(cn.amount),
                    currency_code=parent.currency_code or settings.REPORT_DEFAULT_CURRENCY,
                    parent_invoice_id=parent.id,
                    parent_invoice_number=parent.invoice_number,
                    parent_invoice_name=parent.display_name,
                    vendor_name=parent.vendor.name,
                    tds_reversal_amount=self._tds_reversal(cn),
                    payment_type_id=cn.parent_payment_type_id,
                    payment_type_name=cn.parent_payment_type_name,
                )
            )
        return tuple(records)

    @staticmethod
    def _tds_reversal(cn: CreditNote) -> Optional[Decimal]:
        if not cn.tds_applicable:
            return None
        if cn.tds_amount is not None:
            return money(cn.tds_amount)
        parent = cn.invoice
        if not (parent.tds_applicable and parent.tds_percentage):
            return None
        return calculate_tds(
            amount=cn.amount,
            percentage=parent.tds_percentage,
            rounded=parent.tds_rounded,
        ).tds_amount

    # ---------------- advance payments ----------------

    def advance_payments(self) -> Tuple[AdvancePaymentRecord, ...]:
        qs = (
            AdvancePayment.objects.filter(reporting_month__range=(self.start, self.end))
            .select_related("vendor", "payment_type", "linked_invoice")
            .order_by("payment_date", "id")
        )
        return tuple(
            AdvancePaymentRecord(
                id=ap.id,
                description=ap.description,
                vendor_name=ap.vendor.name,
                amount=ap.amount,
                payment_date=ap.payment_date,
                payment_reference=ap.payment_reference,
                payment_type_id=ap.payment_type_id,
                payment_type_name=ap.payment_type.name,
                currency_code=(
                    ap.linked_invoice.currency_code
                    if ap.linked_invoice_id
                    else settings.REPORT_DEFAULT_CURRENCY
                ),
                linked_invoice_id=ap.linked_invoice_id,
                linked_invoice_number=(
                    ap.linked_invoice.invoice_number if ap.linked_invoice_id else None
                ),
            )
            for ap in qs
        )

    # ---------------- period ----------------

    def finalized_at(self):
        return (
            ReportPeriod.objects.filter(
                month=self.month,
                year=self.year,
                status__in=ReportPeriod.FROZEN_STATUSES,
            )
            .values_list("finalized_at", flat=True)
            .first()
        )
