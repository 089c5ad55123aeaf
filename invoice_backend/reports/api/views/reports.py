"""
PATH: reports/api/views/reports.py

MONTHLY REPORT + REPORT PERIOD API

Endpoints:
- GET  monthly/?month=&year=&view=            live / invoice_date / consolidated / submitted / reported
- GET  periods/?year=
- GET  periods/<year>/<month>/
- POST periods/<year>/<month>/finalize/       admin only; {"consolidated": true} freezes the consolidated report
- POST periods/<year>/<month>/submit/         admin only
- POST invoices/<pk>/reporting-month/         admin only

Admin-only routes are gated by users.permissions.IsReportAdmin; the
operations in reports.services.actions check roles again for non-HTTP callers.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from reports.api.responses import action_response
from reports.api.serializers.reports import (
    FinalizeReportSerializer,
    InvoiceReportingMonthSerializer,
    MonthlyReportQuerySerializer,
    ReportPeriodListQuerySerializer,
    SubmitReportSerializer,
)
from reports.services import actions
from users.permissions import IsReportAdmin


@extend_schema(
    tags=["reports"],
    parameters=[
        OpenApiParameter(name="month", type=int, location=OpenApiParameter.QUERY, required=True),
        OpenApiParameter(name="year", type=int, location=OpenApiParameter.QUERY, required=True),
        OpenApiParameter(
            name="view",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="live (default), invoice_date, consolidated, submitted or reported.",
        ),
    ],
    responses={200: dict, 400: dict, 403: dict},
)
class MonthlyReportView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = MonthlyReportQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params.dict())
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = actions.generate_report(
            data["month"], data["year"], view=data["view"], actor=request.user
        )
        return action_response(result)


@extend_schema(
    tags=["reports"],
    parameters=[
        OpenApiParameter(name="year", type=int, location=OpenApiParameter.QUERY, required=False),
    ],
    responses={200: dict},
)
class ReportPeriodListView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ReportPeriodListQuerySerializer

    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params.dict())
        serializer.is_valid(raise_exception=True)

        result = actions.list_report_periods(
            actor=request.user, year=serializer.validated_data.get("year")
        )
        return action_response(result)


class ReportPeriodDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["reports"], responses={200: dict, 404: dict})
    def get(self, request, year: int, month: int, *args, **kwargs):
        result = actions.get_report_period(month, year, actor=request.user)
        if result.success and result.data is None:
            return Response(
                {"detail": "Report period not found", "error_type": "not_found"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return action_response(result)


class FinalizeReportView(GenericAPIView):
    permission_classes = [IsAuthenticated, IsReportAdmin]
    serializer_class = FinalizeReportSerializer

    @extend_schema(
        tags=["reports"],
        request=FinalizeReportSerializer,
        responses={200: dict, 400: dict, 403: dict, 409: dict},
    )
    def post(self, request, year: int, month: int, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = actions.finalize_report(
            month,
            year,
            actor=request.user,
            notes=serializer.validated_data.get("notes"),
            consolidated=serializer.validated_data.get("consolidated", False),
        )
        return action_response(result)


class SubmitReportView(GenericAPIView):
    permission_classes = [IsAuthenticated, IsReportAdmin]
    serializer_class = SubmitReportSerializer

    @extend_schema(
        tags=["reports"],
        request=SubmitReportSerializer,
        responses={200: dict, 400: dict, 403: dict, 409: dict},
    )
    def post(self, request, year: int, month: int, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = actions.submit_report(
            month,
            year,
            serializer.validated_data["submitted_to"],
            actor=request.user,
        )
        return action_response(result)


class InvoiceReportingMonthView(GenericAPIView):
    permission_classes = [IsAuthenticated, IsReportAdmin]
    serializer_class = InvoiceReportingMonthSerializer

    @extend_schema(
        tags=["reports"],
        request=InvoiceReportingMonthSerializer,
        responses={200: dict, 400: dict, 403: dict, 404: dict},
    )
    def post(self, request, pk: int, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = actions.set_invoice_reporting_month(
            pk, data["month"], data["year"], actor=request.user
        )
        return action_response(result)
