# reports/admin.py

from django.contrib import admin

from reports.models import AdvancePayment, ReportPeriod


@admin.register(ReportPeriod)
class ReportPeriodAdmin(admin.ModelAdmin):
    list_display = ("year", "month", "status", "finalized_at", "submitted_at", "submitted_to")
    list_filter = ("status", "year")
    ordering = ("-year", "-month")

    # Lifecycle changes go through the finalize/submit API only.
    readonly_fields = (
        "status",
        "finalized_at",
        "finalized_by",
        "submitted_at",
        "submitted_to",
        "snapshot_data",
        "created_at",
        "updated_at",
    )

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_frozen:
            return False
        return super().has_delete_permission(request, obj)


@admin.register(AdvancePayment)
class AdvancePaymentAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "vendor",
        "payment_type",
        "amount",
        "payment_date",
        "reporting_month",
        "linked_invoice",
    )
    list_filter = ("payment_type", "reporting_month")
    search_fields = ("description", "payment_reference", "vendor__name")
    readonly_fields = ("linked_invoice", "linked_at", "created_by", "created_at", "updated_at")
