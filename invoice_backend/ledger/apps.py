# ledger/apps.py

"""
LEDGER APP CONFIG

Vendor / payment-type masters plus invoices, payments and credit notes.
The monthly report engine reads these tables; it never changes invoice or
payment status.
"""

from django.apps import AppConfig


class LedgerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ledger"
    verbose_name = "Invoice Ledger"
