# reports/services/exceptions.py

"""
REPORTING SERVICE ERRORS

Centralized domain errors for the monthly report engine.

Each error carries an error_type used by the operation boundary
(reports/services/actions.py) and the HTTP layer to pick a status code.
"""


class ReportingServiceError(Exception):
    """Base exception for all reporting service failures."""

    error_type = "error"


class ReportValidationError(ReportingServiceError):
    """Malformed month/year, negative amounts, positive credit-note amounts."""

    error_type = "validation"


class ReportStateConflictError(ReportingServiceError):
    """Operation not allowed in the current state (finalized twice, double link...)."""

    error_type = "conflict"

    def __init__(self, message: str, *, state: str | None = None):
        super().__init__(message)
        self.state = state


class ReportDataError(ReportingServiceError):
    """Ledger data that cannot produce a correct report (zero payable, orphan credit note)."""

    error_type = "data"


class ReportNotFoundError(ReportingServiceError):
    """Unknown advance payment, invoice, vendor or payment type."""

    error_type = "not_found"


class ReportPermissionError(ReportingServiceError):
    """Actor is missing or lacks the admin role for a mutating operation."""

    error_type = "permission"
