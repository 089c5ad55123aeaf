# PATH: reports/services/grouping.py

"""
PAYMENT-TYPE GROUPER

Buckets classified entries into ReportSections.

Guarantees:
- One section per payment type that has entries; empty sections are dropped
- Sections ordered by payment type name; the Unpaid section (payment_type_id=None) is last
- Entries ordered by their sort key (date, origin, record id, payment id)
- serial restarts at 1 in every section
- subtotal = sum of payment_amount, or invoice_amount where there is no payment
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from reports.domain import ZERO, ReportSection, money
from reports.services.classifier import ClassifiedEntry


def _section_order(key: Optional[int], name: str) -> Tuple:
    if key is None:
        return (1, "", 0)
    return (0, name.casefold(), key)


def group_entries(
    classified: Iterable[ClassifiedEntry], *, unpaid_section_name: str = "Unpaid"
) -> List[ReportSection]:
    buckets: Dict[Optional[int], List[ClassifiedEntry]] = {}
    names: Dict[Optional[int], str] = {None: unpaid_section_name}

    for item in classified:
        buckets.setdefault(item.section_key, []).append(item)
        if item.section_key is not None:
            names.setdefault(item.section_key, item.section_name or f"Payment type {item.section_key}")

    sections: List[ReportSection] = []
    for key in sorted(buckets, key=lambda k: _section_order(k, names[k])):
        ordered = sorted(buckets[key], key=lambda c: c.sort_key)
        entries = tuple(
            replace(c.entry, serial=index) for index, c in enumerate(ordered, start=1)
        )
        if not entries:
            continue
        subtotal = money(sum((e.amount for e in entries), ZERO))
        sections.append(
            ReportSection(
                payment_type_id=key,
                payment_type_name=names[key],
                entries=entries,
                subtotal=subtotal,
            )
        )

    return sections


def summarize(sections: Iterable[ReportSection]) -> Tuple[Decimal, int]:
    """(grand_total, total_entries) across sections."""
    sections = list(sections)
    grand_total = money(sum((s.subtotal for s in sections), ZERO))
    total_entries = sum(s.entry_count for s in sections)
    return grand_total, total_entries
