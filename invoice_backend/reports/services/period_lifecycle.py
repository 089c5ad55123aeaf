"""
REPORT PERIOD LIFECYCLE RULES

This module defines the ONLY allowed lifecycle transitions
for ReportPeriod entities:

    draft -> finalized -> submitted

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Submitted is terminal (no unfinalize, no amend)
- A missing period is an implicit draft
"""

from __future__ import annotations

from reports.models import ReportPeriod
from reports.services.exceptions import ReportStateConflictError, ReportValidationError

DRAFT = ReportPeriod.Status.DRAFT.value
FINALIZED = ReportPeriod.Status.FINALIZED.value
SUBMITTED = ReportPeriod.Status.SUBMITTED.value

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    SUBMITTED,
}

ALLOWED_TRANSITIONS = {
    DRAFT: {
        FINALIZED,
    },
    FINALIZED: {
        SUBMITTED,
    },
}

_CONFLICT_MESSAGES = {
    (FINALIZED, FINALIZED): "Report is already finalized",
    (SUBMITTED, FINALIZED): "Report is already submitted",
    (DRAFT, SUBMITTED): "Report must be finalized before submitting",
    (SUBMITTED, SUBMITTED): "Report is already submitted",
}


# ============================================================
# DOMAIN RULES
# ============================================================


def validate_month_year(month, year) -> tuple[int, int]:
    try:
        month = int(month)
        year = int(year)
    except (TypeError, ValueError) as exc:
        raise ReportValidationError(
            f"month and year must be integers (got month={month!r}, year={year!r})"
        ) from exc

    if not (1 <= month <= 12):
        raise ReportValidationError(f"month must be between 1 and 12 (got {month})")
    if year <= 0:
        raise ReportValidationError(f"year must be positive (got {year})")
    return month, year


def can_transition(*, from_status: str, to_status: str) -> bool:
    from_status, to_status = str(from_status), str(to_status)

    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, from_status: str | None, to_status: str) -> None:
    from_status = str(from_status or DRAFT)
    to_status = str(to_status)

    if not can_transition(from_status=from_status, to_status=to_status):
        message = _CONFLICT_MESSAGES.get(
            (from_status, to_status),
            f"Report cannot transition from '{from_status}' to '{to_status}'",
        )
        raise ReportStateConflictError(message, state=from_status)
