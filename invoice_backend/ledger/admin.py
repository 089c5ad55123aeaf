# ledger/admin.py

from django.contrib import admin

from ledger.models import CreditNote, Invoice, Payment, PaymentType, Vendor


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(PaymentType)
class PaymentTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "requires_reference", "is_active")
    list_filter = ("is_active", "requires_reference")
    search_fields = ("name",)


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ("payment_type", "amount_paid", "payment_date", "payment_reference", "status")


class CreditNoteInline(admin.TabularInline):
    model = CreditNote
    extra = 0
    fields = ("credit_note_number", "credit_note_date", "amount", "reporting_month", "deleted_at")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "vendor",
        "invoice_date",
        "reporting_month",
        "invoice_amount",
        "currency_code",
        "status",
        "is_archived",
    )
    list_filter = ("status", "is_archived", "tds_applicable", "currency_code")
    search_fields = ("invoice_number", "invoice_name", "vendor__name")
    date_hierarchy = "invoice_date"
    readonly_fields = ("created_at", "updated_at")
    inlines = [PaymentInline, CreditNoteInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("invoice", "payment_type", "amount_paid", "payment_date", "status")
    list_filter = ("status", "payment_type")
    search_fields = ("invoice__invoice_number", "payment_reference")


@admin.register(CreditNote)
class CreditNoteAdmin(admin.ModelAdmin):
    list_display = ("credit_note_number", "invoice", "credit_note_date", "amount")
    search_fields = ("credit_note_number", "invoice__invoice_number")
