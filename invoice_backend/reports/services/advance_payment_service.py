# PATH: reports/services/advance_payment_service.py

"""
ADVANCE PAYMENT SERVICE

Advance payments are cash paid to a vendor before the invoice exists. They are
reported in their own reporting_month and can later be linked to the invoice
that justifies them.

Linking guarantees:
- Atomic: checks + write run in one transaction holding row locks
  (advance payment, then invoice)
- One-to-one: an advance payment links to at most one invoice and an invoice
  is claimed by at most one advance payment (DB unique constraint backs it)
- Never silently relinked: linking an already-linked advance payment fails
- linked_invoice and linked_at are always written together

Editing:
- Linked advance payments cannot be edited or deleted (unlink first)
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from ledger.models import Invoice, PaymentType, Vendor
from reports.domain import money
from reports.filters import AdvancePaymentFilter
from reports.models import AdvancePayment
from reports.services.exceptions import (
    ReportNotFoundError,
    ReportStateConflictError,
    ReportValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100

EDITABLE_FIELDS = (
    "vendor_id",
    "payment_type_id",
    "description",
    "amount",
    "payment_date",
    "payment_reference",
    "reporting_month",
    "notes",
)


# ============================================================
# COERCION
# ============================================================


def _to_id(value, *, field: str) -> int:
    if isinstance(value, bool):
        raise ReportValidationError(f"{field} must be an integer id")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ReportValidationError(f"{field} must be an integer id") from exc


def _to_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ReportValidationError(f"Invalid amount: {value!r}") from exc

    if not amount.is_finite() or amount <= 0:
        raise ReportValidationError("Amount must be greater than 0")
    return money(amount)


def _to_date(value, *, field: str) -> date:
    if isinstance(value, date):
        return value
    raw = str(value or "").strip()
    # "2026-02" means the month
    if len(raw) == 7:
        raw = f"{raw}-01"
    try:
        parsed = parse_date(raw)
    except ValueError as exc:
        raise ReportValidationError(f"{field} is not a valid date: {value!r}") from exc
    if parsed is None:
        raise ReportValidationError(f"{field} is not a valid date: {value!r}")
    return parsed


def _get_vendor(vendor_id) -> Vendor:
    try:
        return Vendor.objects.get(pk=_to_id(vendor_id, field="vendor_id"))
    except Vendor.DoesNotExist as exc:
        raise ReportNotFoundError("Vendor not found") from exc


def _get_payment_type(payment_type_id) -> PaymentType:
    try:
        return PaymentType.objects.get(
            pk=_to_id(payment_type_id, field="payment_type_id")
        )
    except PaymentType.DoesNotExist as exc:
        raise ReportNotFoundError("Payment type not found") from exc


def _check_reference(payment_type: PaymentType, reference: str) -> None:
    if payment_type.requires_reference and not (reference or "").strip():
        raise ReportValidationError(
            f"Payment type '{payment_type.name}' requires a payment reference"
        )


def _full_clean_or_raise(ap: AdvancePayment) -> None:
    try:
        ap.full_clean()
    except ValidationError as exc:
        raise ReportValidationError("; ".join(exc.messages)) from exc


# ============================================================
# SERIALIZATION
# ============================================================


def advance_payment_to_dict(ap: AdvancePayment) -> dict:
    linked = ap.linked_invoice if ap.linked_invoice_id else None
    return {
        "id": ap.id,
        "vendor_id": ap.vendor_id,
        "vendor_name": ap.vendor.name,
        "payment_type_id": ap.payment_type_id,
        "payment_type_name": ap.payment_type.name,
        "description": ap.description,
        "amount": str(money(ap.amount)),
        "payment_date": ap.payment_date.isoformat(),
        "payment_reference": ap.payment_reference or None,
        "reporting_month": ap.reporting_month.isoformat(),
        "linked_invoice_id": ap.linked_invoice_id,
        "linked_invoice_number": linked.invoice_number if linked else None,
        "linked_at": ap.linked_at.isoformat() if ap.linked_at else None,
        "is_linked": ap.is_linked,
        "notes": ap.notes or None,
        "created_by_id": str(ap.created_by_id) if ap.created_by_id else None,
        "created_at": ap.created_at.isoformat() if ap.created_at else None,
        "updated_at": ap.updated_at.isoformat() if ap.updated_at else None,
    }


def _queryset():
    return AdvancePayment.objects.select_related(
        "vendor", "payment_type", "linked_invoice"
    )


def _lock(advance_payment_id) -> AdvancePayment:
    try:
        return (
            AdvancePayment.objects.select_for_update()
            .get(pk=_to_id(advance_payment_id, field="advance_payment_id"))
        )
    except AdvancePayment.DoesNotExist as exc:
        raise ReportNotFoundError("Advance payment not found") from exc


# ============================================================
# CREATE / READ
# ============================================================


@transaction.atomic
def create_advance_payment(*, data: dict, actor=None) -> AdvancePayment:
    vendor = _get_vendor(data.get("vendor_id"))
    payment_type = _get_payment_type(data.get("payment_type_id"))
    amount = _to_amount(data.get("amount"))
    reference = (data.get("payment_reference") or "").strip()
    _check_reference(payment_type, reference)

    reporting_month = data.get("reporting_month")
    if reporting_month in (None, ""):
        raise ReportValidationError("reporting_month is required")

    ap = AdvancePayment(
        vendor=vendor,
        payment_type=payment_type,
        description=(data.get("description") or "").strip(),
        amount=amount,
        payment_date=_to_date(data.get("payment_date"), field="payment_date"),
        payment_reference=reference,
        reporting_month=_to_date(reporting_month, field="reporting_month").replace(day=1),
        notes=(data.get("notes") or "").strip(),
        created_by=actor if getattr(actor, "pk", None) else None,
    )
    _full_clean_or_raise(ap)
    ap.save()

    logger.info(
        "Advance payment created",
        extra={
            "advance_payment_id": ap.id,
            "vendor_id": vendor.id,
            "amount": str(amount),
            "reporting_month": ap.reporting_month.isoformat(),
        },
    )
    return ap


def get_advance_payment(*, advance_payment_id) -> AdvancePayment:
    try:
        return _queryset().get(pk=_to_id(advance_payment_id, field="advance_payment_id"))
    except AdvancePayment.DoesNotExist as exc:
        raise ReportNotFoundError("Advance payment not found") from exc


def list_advance_payments(*, filters: dict | None = None, page=1, per_page=DEFAULT_PER_PAGE) -> dict:
    """
    Paged list ordered by payment_date desc, id desc.

    Returns {advance_payments, total, page, per_page, total_pages}.
    """
    filters = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
    if "reporting_month" in filters:
        filters["reporting_month"] = _to_date(
            filters["reporting_month"], field="reporting_month"
        ).isoformat()
    if isinstance(filters.get("linked"), bool):
        filters["linked"] = "true" if filters["linked"] else "false"

    page = _to_id(page or 1, field="page")
    per_page = _to_id(per_page or DEFAULT_PER_PAGE, field="per_page")
    if page < 1:
        raise ReportValidationError("page must be >= 1")
    if not (1 <= per_page <= MAX_PER_PAGE):
        raise ReportValidationError(f"per_page must be between 1 and {MAX_PER_PAGE}")

    filterset = AdvancePaymentFilter(
        data=filters, queryset=_queryset().order_by("-payment_date", "-id")
    )
    if not filterset.is_valid():
        raise ReportValidationError(
            "; ".join(f"{k}: {' '.join(v)}" for k, v in filterset.errors.items())
        )

    paginator = Paginator(filterset.qs, per_page)
    items = paginator.page(page).object_list if page <= paginator.num_pages else []

    return {
        "advance_payments": [advance_payment_to_dict(ap) for ap in items],
        "total": paginator.count,
        "page": page,
        "per_page": per_page,
        "total_pages": paginator.num_pages if paginator.count else 0,
    }


def list_unlinked_advance_payments(*, vendor_id) -> list[AdvancePayment]:
    vendor = _get_vendor(vendor_id)
    return list(
        _queryset()
        .filter(vendor=vendor, linked_invoice__isnull=True)
        .order_by("-payment_date", "-id")
    )


# ============================================================
# UPDATE / DELETE
# ============================================================


@transaction.atomic
def update_advance_payment(*, advance_payment_id, changes: dict, actor=None) -> AdvancePayment:
    ap = _lock(advance_payment_id)

    if ap.is_linked:
        raise ReportStateConflictError(
            "Linked advance payments cannot be edited; unlink it first",
            state="linked",
        )

    unknown = set(changes or {}) - set(EDITABLE_FIELDS)
    if unknown:
        raise ReportValidationError(
            f"Unsupported fields: {', '.join(sorted(unknown))}"
        )

    changes = changes or {}
    if "vendor_id" in changes:
        ap.vendor = _get_vendor(changes["vendor_id"])
    if "payment_type_id" in changes:
        ap.payment_type = _get_payment_type(changes["payment_type_id"])
    if "description" in changes:
        ap.description = (changes["description"] or "").strip()
    if "amount" in changes:
        ap.amount = _to_amount(changes["amount"])
    if "payment_date" in changes:
        ap.payment_date = _to_date(changes["payment_date"], field="payment_date")
    if "payment_reference" in changes:
        ap.payment_reference = (changes["payment_reference"] or "").strip()
    if "reporting_month" in changes:
        ap.reporting_month = _to_date(
            changes["reporting_month"], field="reporting_month"
        ).replace(day=1)
    if "notes" in changes:
        ap.notes = (changes["notes"] or "").strip()

    _check_reference(ap.payment_type, ap.payment_reference)
    _full_clean_or_raise(ap)
    ap.save()

    logger.info(
        "Advance payment updated",
        extra={
            "advance_payment_id": ap.id,
            "fields": sorted(changes),
            "actor_id": str(getattr(actor, "pk", "") or ""),
        },
    )
    return get_advance_payment(advance_payment_id=ap.id)


@transaction.atomic
def delete_advance_payment(*, advance_payment_id, actor=None) -> int:
    ap = _lock(advance_payment_id)

    if ap.is_linked:
        raise ReportStateConflictError(
            "Linked advance payments cannot be deleted; unlink it first",
            state="linked",
        )

    deleted_id = ap.id
    ap.delete()

    logger.info(
        "Advance payment deleted",
        extra={
            "advance_payment_id": deleted_id,
            "actor_id": str(getattr(actor, "pk", "") or ""),
        },
    )
    return deleted_id


# ============================================================
# LINK / UNLINK
# ============================================================


@transaction.atomic
def link_advance_payment(*, advance_payment_id, invoice_id, actor=None) -> AdvancePayment:
    ap = _lock(advance_payment_id)

    if ap.is_linked:
        raise ReportStateConflictError(
            "Advance payment is already linked to an invoice",
            state="linked",
        )

    try:
        invoice = (
            Invoice.objects.select_for_update()
            .get(pk=_to_id(invoice_id, field="invoice_id"), deleted_at__isnull=True)
        )
    except Invoice.DoesNotExist as exc:
        raise ReportNotFoundError("Invoice not found") from exc

    if invoice.vendor_id != ap.vendor_id:
        raise ReportValidationError("Invoice vendor must match advance payment vendor")

    if AdvancePayment.objects.filter(linked_invoice=invoice).exclude(pk=ap.pk).exists():
        raise ReportStateConflictError(
            "Invoice already has a linked advance payment",
            state="invoice_claimed",
        )

    now = timezone.now()
    try:
        with transaction.atomic():
            updated = AdvancePayment.objects.filter(
                pk=ap.pk, linked_invoice__isnull=True
            ).update(linked_invoice=invoice, linked_at=now, updated_at=now)
    except IntegrityError as exc:
        raise ReportStateConflictError(
            "Invoice already has a linked advance payment",
            state="invoice_claimed",
        ) from exc

    if updated != 1:
        raise ReportStateConflictError(
            "Advance payment is already linked to an invoice",
            state="linked",
        )

    logger.info(
        "Advance payment linked",
        extra={
            "advance_payment_id": ap.id,
            "invoice_id": invoice.id,
            "actor_id": str(getattr(actor, "pk", "") or ""),
        },
    )
    return get_advance_payment(advance_payment_id=ap.id)


@transaction.atomic
def unlink_advance_payment(*, advance_payment_id, actor=None) -> AdvancePayment:
    ap = _lock(advance_payment_id)

    if not ap.is_linked:
        raise ReportStateConflictError(
            "Advance payment is not linked to any invoice",
            state="unlinked",
        )

    previous_invoice_id = ap.linked_invoice_id
    now = timezone.now()
    AdvancePayment.objects.filter(
        pk=ap.pk, linked_invoice_id=previous_invoice_id
    ).update(linked_invoice=None, linked_at=None, updated_at=now)

    logger.info(
        "Advance payment unlinked",
        extra={
            "advance_payment_id": ap.id,
            "invoice_id": previous_invoice_id,
            "actor_id": str(getattr(actor, "pk", "") or ""),
        },
    )
    return get_advance_payment(advance_payment_id=ap.id)
