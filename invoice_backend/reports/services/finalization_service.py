# PATH: reports/services/finalization_service.py

"""
REPORT FINALIZATION SERVICE

draft -> finalized -> submitted, plus view resolution on read.

Guarantees:
- Finalize recomputes the live report and freezes it as a ReportSnapshot
- The snapshot is written once; submit never touches it
- Every transition holds a row lock AND a conditional update on the previous
  status, so two concurrent calls cannot both succeed
- submitted/reported views return the snapshot, or live data when the period
  was never finalized
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ledger.models import Invoice
from reports.domain import Attribution, ReportSnapshot, ReportView, month_start, period_label
from reports.models import ReportPeriod
from reports.services.exceptions import (
    ReportNotFoundError,
    ReportStateConflictError,
    ReportValidationError,
)
from reports.services.period_lifecycle import (
    DRAFT,
    FINALIZED,
    SUBMITTED,
    validate_month_year,
    validate_transition,
)
from reports.services.report_assembler import generate_live_report

logger = logging.getLogger(__name__)

VIEW_ATTRIBUTION = {
    ReportView.LIVE: Attribution.REPORTING,
    ReportView.INVOICE_DATE: Attribution.INVOICE_DATE,
    ReportView.CONSOLIDATED: Attribution.CONSOLIDATED,
}


def _actor_name(actor) -> str:
    return getattr(actor, "display_name", None) or str(actor or "")


def _actor_or_none(actor):
    return actor if getattr(actor, "pk", None) else None


# ============================================================
# SERIALIZATION
# ============================================================


def period_to_dict(period: ReportPeriod) -> dict:
    snapshot = period.snapshot_data or {}
    return {
        "id": period.id,
        "month": period.month,
        "year": period.year,
        "label": period_label(period.month, period.year),
        "status": period.status,
        "finalized_at": period.finalized_at.isoformat() if period.finalized_at else None,
        "finalized_by_id": str(period.finalized_by_id) if period.finalized_by_id else None,
        "finalized_by_name": snapshot.get("finalized_by_name"),
        "submitted_at": period.submitted_at.isoformat() if period.submitted_at else None,
        "submitted_to": period.submitted_to or None,
        "notes": period.notes or None,
        "has_snapshot": period.snapshot_data is not None,
        "snapshot_version": snapshot.get("version"),
        "snapshot_attribution": snapshot.get("attribution"),
        "created_at": period.created_at.isoformat() if period.created_at else None,
        "updated_at": period.updated_at.isoformat() if period.updated_at else None,
    }


# ============================================================
# READ
# ============================================================


def get_report_period(*, month, year) -> ReportPeriod | None:
    """None when the period was never touched (implicit draft)."""
    month, year = validate_month_year(month, year)
    return ReportPeriod.objects.filter(month=month, year=year).first()


def list_report_periods(*, year=None) -> list[ReportPeriod]:
    qs = ReportPeriod.objects.all()
    if year not in (None, ""):
        try:
            year = int(year)
        except (TypeError, ValueError) as exc:
            raise ReportValidationError(f"year must be an integer (got {year!r})") from exc
        if year <= 0:
            raise ReportValidationError(f"year must be positive (got {year})")
        qs = qs.filter(year=year)
    return list(qs.order_by("-year", "-month"))


def resolve_report(*, month, year, view=ReportView.LIVE) -> dict:
    """
    {report_period, report_data, view, is_snapshot}

    - live: recomputed from the ledger
    - invoice_date: recomputed, invoices attributed by invoice_date
    - consolidated: recomputed, invoices dated in the month plus payments made
      in the month against other months' invoices
    - submitted / reported: frozen snapshot, live fallback when never finalized
    """
    month, year = validate_month_year(month, year)
    try:
        view = ReportView(view or ReportView.LIVE)
    except ValueError as exc:
        choices = ", ".join(v.value for v in ReportView)
        raise ReportValidationError(f"view must be one of: {choices}") from exc

    period = ReportPeriod.objects.filter(month=month, year=year).first()

    if view.is_frozen and period is not None and period.snapshot_data is not None:
        return {
            "report_period": period_to_dict(period),
            "report_data": period.snapshot_data["report_data"],
            "view": view.value,
            "is_snapshot": True,
        }

    attribution = VIEW_ATTRIBUTION.get(view, Attribution.REPORTING)
    report = generate_live_report(month=month, year=year, attribution=attribution)

    return {
        "report_period": period_to_dict(period) if period else None,
        "report_data": report.to_dict(),
        "view": view.value,
        "is_snapshot": False,
    }


# ============================================================
# TRANSITIONS
# ============================================================


def _lock_period(month: int, year: int) -> ReportPeriod:
    period, _ = ReportPeriod.objects.get_or_create(month=month, year=year)
    return ReportPeriod.objects.select_for_update().get(pk=period.pk)


@transaction.atomic
def finalize_report(*, month, year, actor, notes=None, consolidated=False) -> ReportPeriod:
    """
    Freeze the live report, or the consolidated one when consolidated=True.
    """
    month, year = validate_month_year(month, year)
    attribution = Attribution.CONSOLIDATED if consolidated else Attribution.REPORTING
    period = _lock_period(month, year)

    validate_transition(from_status=period.status, to_status=FINALIZED)

    now = timezone.now()
    report = generate_live_report(
        month=month, year=year, attribution=attribution, generated_at=now
    )
    snapshot = ReportSnapshot(
        version=settings.REPORT_SNAPSHOT_VERSION,
        report_data=report,
        finalized_at=now,
        finalized_by_name=_actor_name(actor),
        attribution=attribution,
    )

    changes = {
        "status": FINALIZED,
        "snapshot_data": snapshot.to_dict(),
        "finalized_at": now,
        "finalized_by": _actor_or_none(actor),
        "updated_at": now,
    }
    if notes is not None:
        changes["notes"] = str(notes).strip()

    updated = ReportPeriod.objects.filter(pk=period.pk, status=DRAFT).update(**changes)
    if updated != 1:
        raise ReportStateConflictError("Report is already finalized", state=FINALIZED)

    period.refresh_from_db()

    logger.info(
        "Report finalized",
        extra={
            "month": month,
            "year": year,
            "grand_total": str(report.grand_total),
            "total_entries": report.total_entries,
            "attribution": attribution.value,
            "actor_id": str(getattr(actor, "pk", "") or ""),
        },
    )
    return period


@transaction.atomic
def submit_report(*, month, year, submitted_to, actor=None) -> ReportPeriod:
    month, year = validate_month_year(month, year)

    submitted_to = (submitted_to or "").strip()
    if not submitted_to:
        raise ReportValidationError("submitted_to is required")

    period = _lock_period(month, year)
    validate_transition(from_status=period.status, to_status=SUBMITTED)

    now = timezone.now()
    updated = ReportPeriod.objects.filter(pk=period.pk, status=FINALIZED).update(
        status=SUBMITTED,
        submitted_at=now,
        submitted_to=submitted_to,
        updated_at=now,
    )
    if updated != 1:
        raise ReportStateConflictError("Report is already submitted", state=SUBMITTED)

    period.refresh_from_db()

    logger.info(
        "Report submitted",
        extra={
            "month": month,
            "year": year,
            "submitted_to": submitted_to,
            "actor_id": str(getattr(actor, "pk", "") or ""),
        },
    )
    return period


# ============================================================
# LATE INVOICE ATTRIBUTION
# ============================================================


@transaction.atomic
def set_invoice_reporting_month(*, invoice_id, month, year, actor=None) -> dict:
    """Attribute an invoice to the given month's report."""
    month, year = validate_month_year(month, year)

    try:
        invoice = Invoice.objects.select_for_update().get(
            pk=int(invoice_id), deleted_at__isnull=True
        )
    except (TypeError, ValueError) as exc:
        raise ReportValidationError("invoice_id must be an integer id") from exc
    except Invoice.DoesNotExist as exc:
        raise ReportNotFoundError("Invoice not found") from exc

    previous = invoice.reporting_month
    invoice.reporting_month = month_start(month, year)
    invoice.save(update_fields=["reporting_month", "updated_at"])

    logger.info(
        "Invoice reporting month set",
        extra={
            "invoice_id": invoice.id,
            "previous": previous.isoformat() if previous else None,
            "reporting_month": invoice.reporting_month.isoformat(),
            "actor_id": str(getattr(actor, "pk", "") or ""),
        },
    )
    return {
        "invoice_id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "reporting_month": invoice.reporting_month.isoformat(),
        "label": period_label(month, year),
    }
