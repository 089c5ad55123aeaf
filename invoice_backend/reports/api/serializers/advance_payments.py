# reports/api/serializers/advance_payments.py

"""
======================================================
PATH: reports/api/serializers/advance_payments.py
======================================================
ADVANCE PAYMENT SERIALIZERS

Rules:
- amount must be > 0
- reporting_month accepts YYYY-MM-DD or YYYY-MM (stored as the 1st)
- partial=True is used for updates (only sent fields are validated)
"""

from decimal import Decimal

from rest_framework import serializers

MONTH_INPUT_FORMATS = ["%Y-%m-%d", "%Y-%m"]


class AdvancePaymentWriteSerializer(serializers.Serializer):
    vendor_id = serializers.IntegerField(min_value=1)
    payment_type_id = serializers.IntegerField(min_value=1)
    description = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_date = serializers.DateField()
    payment_reference = serializers.CharField(
        max_length=128, required=False, allow_blank=True, allow_null=True
    )
    reporting_month = serializers.DateField(input_formats=MONTH_INPUT_FORMATS)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_amount(self, value):
        if value <= Decimal("0.00"):
            raise serializers.ValidationError("Amount must be greater than 0")
        return value

    def validate_reporting_month(self, value):
        return value.replace(day=1)


class LinkAdvancePaymentSerializer(serializers.Serializer):
    invoice_id = serializers.IntegerField(min_value=1)


class UnlinkedAdvancePaymentQuerySerializer(serializers.Serializer):
    vendor_id = serializers.IntegerField(min_value=1)
