# reports/filters.py

from django_filters import rest_framework as filters

from reports.models import AdvancePayment


class AdvancePaymentFilter(filters.FilterSet):
    """
    vendor_id / payment_type_id: exact
    reporting_month: any date inside the month (normalised to the 1st)
    linked: true/1 -> linked to an invoice, false/0 -> still unlinked
    """

    vendor_id = filters.NumberFilter(field_name="vendor_id")
    payment_type_id = filters.NumberFilter(field_name="payment_type_id")
    reporting_month = filters.DateFilter(method="filter_reporting_month")
    linked = filters.BooleanFilter(method="filter_linked")

    class Meta:
        model = AdvancePayment
        fields = []

    def filter_reporting_month(self, queryset, name, value):
        return queryset.filter(reporting_month=value.replace(day=1))

    def filter_linked(self, queryset, name, value):
        return queryset.filter(linked_invoice__isnull=not value)
