# PATH: reports/services/report_assembler.py

"""
REPORT ASSEMBLER

LedgerReader -> classifier -> grouper -> MonthlyReportData

Guarantees:
- grand_total == sum(section.subtotal), total_entries == sum(section.entry_count)
- Same ledger + same generated_at -> byte-identical to_json()
- Any classification error fails the whole report (no partial totals)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Set

from django.conf import settings
from django.utils import timezone

from reports.domain import Attribution, MonthLedger, MonthlyReportData, period_label
from reports.services.classifier import (
    ClassifiedEntry,
    classify_advance_payment,
    classify_carried_payment,
    classify_credit_note,
    classify_invoice,
)
from reports.services.grouping import group_entries, summarize
from reports.services.ledger_reader import LedgerReader
from reports.services.period_lifecycle import validate_month_year

logger = logging.getLogger(__name__)


def classify_ledger(ledger: MonthLedger) -> List[ClassifiedEntry]:
    classified: List[ClassifiedEntry] = []
    # payment ids already on the report; a payment is listed at most once
    seen_payments: Set[int] = set()

    for invoice in ledger.invoices:
        classified.extend(
            classify_invoice(
                invoice,
                month=ledger.month,
                year=ledger.year,
                attribution=ledger.attribution,
                finalized_at=ledger.finalized_at,
            )
        )
        seen_payments.update(p.id for p in invoice.payments)

    for carried in ledger.carried_payments:
        if carried.payment.id in seen_payments:
            continue
        classified.append(classify_carried_payment(carried))
        seen_payments.add(carried.payment.id)

    for advance in ledger.advance_payments:
        classified.append(classify_advance_payment(advance))

    for credit_note in ledger.credit_notes:
        classified.append(classify_credit_note(credit_note))

    return classified


def assemble_report(
    ledger: MonthLedger,
    *,
    generated_at: datetime,
    unpaid_section_name: Optional[str] = None,
) -> MonthlyReportData:
    """Pure: builds the report from an already-read ledger."""
    sections = group_entries(
        classify_ledger(ledger),
        unpaid_section_name=unpaid_section_name or settings.REPORT_UNPAID_SECTION_NAME,
    )
    grand_total, total_entries = summarize(sections)

    return MonthlyReportData(
        month=ledger.month,
        year=ledger.year,
        label=period_label(ledger.month, ledger.year),
        generated_at=generated_at,
        sections=tuple(sections),
        grand_total=grand_total,
        total_entries=total_entries,
    )


def generate_live_report(
    *,
    month,
    year,
    attribution: Attribution = Attribution.REPORTING,
    generated_at: Optional[datetime] = None,
) -> MonthlyReportData:
    month, year = validate_month_year(month, year)
    ledger = LedgerReader(month=month, year=year, attribution=attribution).read()

    report = assemble_report(ledger, generated_at=generated_at or timezone.now())

    logger.info(
        "Monthly report generated",
        extra={
            "month": month,
            "year": year,
            "attribution": Attribution(attribution).value,
            "sections": len(report.sections),
            "total_entries": report.total_entries,
            "grand_total": str(report.grand_total),
        },
    )
    return report
