# reports/api/responses.py

"""
ActionResult -> DRF Response.

Success bodies are the result data; failures are {"detail", "error_type"}.
"""

from rest_framework import status
from rest_framework.response import Response

from reports.services.actions import ActionResult

ERROR_STATUS = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "data": status.HTTP_400_BAD_REQUEST,
    "permission": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
}


def action_response(result: ActionResult, *, success_status=status.HTTP_200_OK) -> Response:
    if result.success:
        return Response(result.data, status=success_status)

    return Response(
        {"detail": result.error, "error_type": result.error_type},
        status=ERROR_STATUS.get(result.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )
