"""
PATH: reports/api/views/advance_payments.py

ADVANCE PAYMENT API

Endpoints:
- GET    advance-payments/?vendor_id=&payment_type_id=&reporting_month=&linked=&page=&per_page=
- POST   advance-payments/
- GET    advance-payments/unlinked/?vendor_id=
- GET    advance-payments/<pk>/
- PATCH  advance-payments/<pk>/               admin only, unlinked only
- DELETE advance-payments/<pk>/               admin only, unlinked only
- POST   advance-payments/<pk>/link/          admin only
- POST   advance-payments/<pk>/unlink/        admin only
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated

from reports.api.responses import action_response
from reports.api.serializers.advance_payments import (
    AdvancePaymentWriteSerializer,
    LinkAdvancePaymentSerializer,
    UnlinkedAdvancePaymentQuerySerializer,
)
from reports.services import actions
from users.permissions import IsReportAdmin, IsReportAdminOrReadOnly


class AdvancePaymentListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AdvancePaymentWriteSerializer

    @extend_schema(
        tags=["reports"],
        parameters=[
            OpenApiParameter(name="vendor_id", type=int, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="payment_type_id", type=int, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="reporting_month",
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description="YYYY-MM or YYYY-MM-DD.",
            ),
            OpenApiParameter(name="linked", type=bool, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="page", type=int, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="per_page", type=int, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: dict, 400: dict},
    )
    def get(self, request, *args, **kwargs):
        result = actions.list_advance_payments(
            request.query_params.dict(), actor=request.user
        )
        return action_response(result)

    @extend_schema(
        tags=["reports"],
        request=AdvancePaymentWriteSerializer,
        responses={201: dict, 400: dict, 404: dict},
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = actions.create_advance_payment(
            dict(serializer.validated_data), actor=request.user
        )
        return action_response(result, success_status=status.HTTP_201_CREATED)


class UnlinkedAdvancePaymentListView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = UnlinkedAdvancePaymentQuerySerializer

    @extend_schema(
        tags=["reports"],
        parameters=[
            OpenApiParameter(name="vendor_id", type=int, location=OpenApiParameter.QUERY, required=True),
        ],
        responses={200: dict, 400: dict, 404: dict},
    )
    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.query_params.dict())
        serializer.is_valid(raise_exception=True)

        result = actions.list_unlinked_advance_payments(
            serializer.validated_data["vendor_id"], actor=request.user
        )
        return action_response(result)


class AdvancePaymentDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated, IsReportAdminOrReadOnly]
    serializer_class = AdvancePaymentWriteSerializer

    @extend_schema(tags=["reports"], responses={200: dict, 404: dict})
    def get(self, request, pk: int, *args, **kwargs):
        return action_response(actions.get_advance_payment(pk, actor=request.user))

    @extend_schema(
        tags=["reports"],
        request=AdvancePaymentWriteSerializer,
        responses={200: dict, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def patch(self, request, pk: int, *args, **kwargs):
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = actions.update_advance_payment(
            pk, dict(serializer.validated_data), actor=request.user
        )
        return action_response(result)

    @extend_schema(tags=["reports"], responses={200: dict, 403: dict, 404: dict, 409: dict})
    def delete(self, request, pk: int, *args, **kwargs):
        return action_response(actions.delete_advance_payment(pk, actor=request.user))


class LinkAdvancePaymentView(GenericAPIView):
    permission_classes = [IsAuthenticated, IsReportAdmin]
    serializer_class = LinkAdvancePaymentSerializer

    @extend_schema(
        tags=["reports"],
        request=LinkAdvancePaymentSerializer,
        responses={200: dict, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, pk: int, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = actions.link_advance_payment(
            pk, serializer.validated_data["invoice_id"], actor=request.user
        )
        return action_response(result)


class UnlinkAdvancePaymentView(GenericAPIView):
    permission_classes = [IsAuthenticated, IsReportAdmin]

    @extend_schema(tags=["reports"], request=None, responses={200: dict, 403: dict, 404: dict, 409: dict})
    def post(self, request, pk: int, *args, **kwargs):
        return action_response(actions.unlink_advance_payment(pk, actor=request.user))
