# reports/api/serializers/reports.py

"""
======================================================
PATH: reports/api/serializers/reports.py
======================================================
MONTHLY REPORT + REPORT PERIOD SERIALIZERS

Input validation only; results come back as plain dicts from
reports.services.actions.

Rules:
- month is 1..12, year is positive
- view defaults to "live"
- submitted_to is required and non-blank
- notes is optional; blank -> None
"""

from rest_framework import serializers

from reports.domain import ReportView


class MonthYearSerializer(serializers.Serializer):
    month = serializers.IntegerField(min_value=1, max_value=12)
    year = serializers.IntegerField(min_value=1)


class MonthlyReportQuerySerializer(MonthYearSerializer):
    view = serializers.ChoiceField(
        choices=[v.value for v in ReportView],
        required=False,
        default=ReportView.LIVE.value,
    )


class ReportPeriodListQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=1, required=False)


class FinalizeReportSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    consolidated = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        notes = attrs.get("notes")
        if notes is not None and str(notes).strip() == "":
            attrs["notes"] = None
        return attrs


class SubmitReportSerializer(serializers.Serializer):
    submitted_to = serializers.CharField(max_length=255)

    def validate_submitted_to(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("submitted_to is required")
        return value


class InvoiceReportingMonthSerializer(MonthYearSerializer):
    pass
