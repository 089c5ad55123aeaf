# reports/api/urls.py

from django.urls import path

from reports.api.views.advance_payments import (
    AdvancePaymentDetailView,
    AdvancePaymentListCreateView,
    LinkAdvancePaymentView,
    UnlinkAdvancePaymentView,
    UnlinkedAdvancePaymentListView,
)
from reports.api.views.reports import (
    FinalizeReportView,
    InvoiceReportingMonthView,
    MonthlyReportView,
    ReportPeriodDetailView,
    ReportPeriodListView,
    SubmitReportView,
)

app_name = "reports"

urlpatterns = [
    # Reports
    path("monthly/", MonthlyReportView.as_view(), name="monthly-report"),
    # Report periods (lifecycle)
    path("periods/", ReportPeriodListView.as_view(), name="period-list"),
    path(
        "periods/<int:year>/<int:month>/",
        ReportPeriodDetailView.as_view(),
        name="period-detail",
    ),
    path(
        "periods/<int:year>/<int:month>/finalize/",
        FinalizeReportView.as_view(),
        name="period-finalize",
    ),
    path(
        "periods/<int:year>/<int:month>/submit/",
        SubmitReportView.as_view(),
        name="period-submit",
    ),
    # Advance payments
    path(
        "advance-payments/",
        AdvancePaymentListCreateView.as_view(),
        name="advance-payment-list",
    ),
    path(
        "advance-payments/unlinked/",
        UnlinkedAdvancePaymentListView.as_view(),
        name="advance-payment-unlinked",
    ),
    path(
        "advance-payments/<int:pk>/",
        AdvancePaymentDetailView.as_view(),
        name="advance-payment-detail",
    ),
    path(
        "advance-payments/<int:pk>/link/",
        LinkAdvancePaymentView.as_view(),
        name="advance-payment-link",
    ),
    path(
        "advance-payments/<int:pk>/unlink/",
        UnlinkAdvancePaymentView.as_view(),
        name="advance-payment-unlink",
    ),
    # Late invoice attribution
    path(
        "invoices/<int:pk>/reporting-month/",
        InvoiceReportingMonthView.as_view(),
        name="invoice-reporting-month",
    ),
]
