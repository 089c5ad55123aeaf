# PATH: reports/services/actions.py

"""
REPORTING OPERATIONS (CALLER BOUNDARY)

Every operation returns an ActionResult and never raises:
- success=True  -> data
- success=False -> error (human-readable) + error_type

error_type: validation | conflict | data | not_found | permission | internal

Permissions:
- reads and advance payment creation: any active authenticated user
- edits, links, lifecycle transitions: report admins only
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from django.core.exceptions import ValidationError

from reports.domain import ReportView
from reports.services import advance_payment_service, finalization_service
from reports.services.exceptions import (
    ReportDataError,
    ReportingServiceError,
    ReportPermissionError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error, "error_type": self.error_type}


def _run(operation: str, fn: Callable[[], Any]) -> ActionResult:
    try:
        return ActionResult(success=True, data=fn())
    except ReportDataError as exc:
        logger.error(
            "Report data error",
            extra={"operation": operation, "error": str(exc)},
        )
        return ActionResult(success=False, error=str(exc), error_type=exc.error_type)
    except ReportingServiceError as exc:
        logger.info(
            "Reporting operation rejected",
            extra={"operation": operation, "error_type": exc.error_type, "error": str(exc)},
        )
        return ActionResult(success=False, error=str(exc), error_type=exc.error_type)
    except ValidationError as exc:
        return ActionResult(
            success=False, error="; ".join(exc.messages), error_type="validation"
        )
    except Exception:
        logger.exception("Reporting operation failed", extra={"operation": operation})
        return ActionResult(
            success=False,
            error="An unexpected error occurred",
            error_type="internal",
        )


def _require_actor(actor) -> None:
    if actor is None or not getattr(actor, "is_authenticated", False):
        raise ReportPermissionError("Authentication required")
    if not getattr(actor, "is_active", False):
        raise ReportPermissionError("User account is inactive")


def _require_admin(actor) -> None:
    _require_actor(actor)
    if not getattr(actor, "is_report_admin", False):
        raise ReportPermissionError("Only report admins can perform this action")


# ============================================================
# REPORTS
# ============================================================


def generate_report(month, year, view=ReportView.LIVE, actor=None) -> ActionResult:
    def op():
        _require_actor(actor)
        return finalization_service.resolve_report(month=month, year=year, view=view)

    return _run("generate_report", op)


# ============================================================
# ADVANCE PAYMENTS
# ============================================================


def create_advance_payment(form: dict, actor=None) -> ActionResult:
    def op():
        _require_actor(actor)
        ap = advance_payment_service.create_advance_payment(data=form or {}, actor=actor)
        ap = advance_payment_service.get_advance_payment(advance_payment_id=ap.id)
        return advance_payment_service.advance_payment_to_dict(ap)

    return _run("create_advance_payment", op)


def get_advance_payment(advance_payment_id, actor=None) -> ActionResult:
    def op():
        _require_actor(actor)
        ap = advance_payment_service.get_advance_payment(
            advance_payment_id=advance_payment_id
        )
        return advance_payment_service.advance_payment_to_dict(ap)

    return _run("get_advance_payment", op)


def list_advance_payments(filters: Optional[dict] = None, actor=None) -> ActionResult:
    def op():
        _require_actor(actor)
        params = dict(filters or {})
        page = params.pop("page", 1)
        per_page = params.pop("per_page", advance_payment_service.DEFAULT_PER_PAGE)
        return advance_payment_service.list_advance_payments(
            filters=params, page=page, per_page=per_page
        )

    return _run("list_advance_payments", op)


def list_unlinked_advance_payments(vendor_id, actor=None) -> ActionResult:
    def op():
        _require_actor(actor)
        return [
            advance_payment_service.advance_payment_to_dict(ap)
            for ap in advance_payment_service.list_unlinked_advance_payments(
                vendor_id=vendor_id
            )
        ]

    return _run("list_unlinked_advance_payments", op)


def update_advance_payment(advance_payment_id, changes: dict, actor=None) -> ActionResult:
    def op():
        _require_admin(actor)
        ap = advance_payment_service.update_advance_payment(
            advance_payment_id=advance_payment_id,
            changes=changes or {},
            actor=actor,
        )
        return advance_payment_service.advance_payment_to_dict(ap)

    return _run("update_advance_payment", op)


def delete_advance_payment(advance_payment_id, actor=None) -> ActionResult:
    def op():
        _require_admin(actor)
        deleted_id = advance_payment_service.delete_advance_payment(
            advance_payment_id=advance_payment_id, actor=actor
        )
        return {"id": deleted_id, "deleted": True}

    return _run("delete_advance_payment", op)


def link_advance_payment(advance_payment_id, invoice_id, actor=None) -> ActionResult:
    def op():
        _require_admin(actor)
        ap = advance_payment_service.link_advance_payment(
            advance_payment_id=advance_payment_id,
            invoice_id=invoice_id,
            actor=actor,
        )
        return advance_payment_service.advance_payment_to_dict(ap)

    return _run("link_advance_payment", op)


def unlink_advance_payment(advance_payment_id, actor=None) -> ActionResult:
    def op():
        _require_admin(actor)
        ap = advance_payment_service.unlink_advance_payment(
            advance_payment_id=advance_payment_id, actor=actor
        )
        return advance_payment_service.advance_payment_to_dict(ap)

    return _run("unlink_advance_payment", op)


# ============================================================
# REPORT PERIODS
# ============================================================


def finalize_report(month, year, actor=None, notes=None, consolidated=False) -> ActionResult:
    def op():
        _require_admin(actor)
        period = finalization_service.finalize_report(
            month=month,
            year=year,
            actor=actor,
            notes=notes,
            consolidated=bool(consolidated),
        )
        return finalization_service.period_to_dict(period)

    return _run("finalize_report", op)


def submit_report(month, year, submitted_to, actor=None) -> ActionResult:
    def op():
        _require_admin(actor)
        period = finalization_service.submit_report(
            month=month, year=year, submitted_to=submitted_to, actor=actor
        )
        return finalization_service.period_to_dict(period)

    return _run("submit_report", op)


def get_report_period(month, year, actor=None) -> ActionResult:
    def op():
        _require_actor(actor)
        period = finalization_service.get_report_period(month=month, year=year)
        return finalization_service.period_to_dict(period) if period else None

    return _run("get_report_period", op)


def list_report_periods(actor=None, year=None) -> ActionResult:
    def op():
        _require_actor(actor)
        return [
            finalization_service.period_to_dict(p)
            for p in finalization_service.list_report_periods(year=year)
        ]

    return _run("list_report_periods", op)


def set_invoice_reporting_month(invoice_id, month, year, actor=None) -> ActionResult:
    def op():
        _require_admin(actor)
        return finalization_service.set_invoice_reporting_month(
            invoice_id=invoice_id, month=month, year=year, actor=actor
        )

    return _run("set_invoice_reporting_month", op)
