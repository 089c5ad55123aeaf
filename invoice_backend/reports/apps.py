# reports/apps.py

"""
REPORTS APP CONFIG

Monthly report reconciliation engine:
- Live report generation (classify -> group -> assemble)
- Advance payments + invoice linking
- Finalize / submit lifecycle with frozen snapshots
"""

from django.apps import AppConfig


class ReportsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "reports"
    verbose_name = "Monthly Reports"
