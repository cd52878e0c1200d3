# backend/configurator/summary.py
from typing import Iterable, List, Optional, Sequence

from config import settings
from configurator.catalog import CatalogIndex
from configurator.ledger import SelectionLedger, SelectionLine
from configurator.slots import ConfigurationSlot
from schemas.summary import SelectionSummary, SummaryLine
from utils.formatters import cta_label, display_title, money, sized_image_url

SUMMARY_IMAGE_SIZE = 120


def _ordered_lines(lines: List[SelectionLine], role_order: Sequence[str]) -> List[SelectionLine]:
    ordered = []
    for role in role_order:
        ordered.extend(line for line in lines if line.role == role)
    # Roles outside the canonical order follow in insertion order
    ordered.extend(line for line in lines if line.role not in role_order)
    return ordered


def project_summary(
    slots: Iterable[ConfigurationSlot],
    ledger: SelectionLedger,
    catalog: CatalogIndex,
    role_order: Optional[Sequence[str]] = None,
) -> SelectionSummary:
    """Derive the summary from scratch; never kept as running totals."""
    role_order = list(role_order if role_order is not None else settings.ROLE_ORDER)
    slots = list(slots)

    out: List[SummaryLine] = []
    item_count = 0
    total = 0

    for line in _ordered_lines(ledger.lines(), role_order):
        line_total = line.unit_price * line.quantity
        item_count += line.quantity
        total += line_total
        out.append(SummaryLine(
            key=line.variant_id,
            kind="line",
            variant_id=line.variant_id,
            role=line.role,
            title=display_title(line.title, line.product_title),
            image_url=sized_image_url(line.image, SUMMARY_IMAGE_SIZE),
            unit_price=line.unit_price,
            quantity=line.quantity,
            line_total=line_total,
            price_label=money(line.unit_price),
            line_total_label=money(line_total),
            is_available=line.is_available,
            slot_ids=[s.slot_id for s in slots if s.offers(line.variant_id)],
        ))

    # Add-ons follow in catalog order and count once each
    for item in catalog.standalone_items():
        if not ledger.is_standalone_selected(item.block_id):
            continue
        item_count += 1
        total += item.price
        out.append(SummaryLine(
            key=f"accessory-{item.block_id}",
            kind="standalone",
            variant_id=item.id,
            item_id=item.block_id,
            title=display_title(item.title, item.product_title),
            image_url=sized_image_url(item.image, SUMMARY_IMAGE_SIZE),
            unit_price=item.price,
            quantity=1,
            line_total=item.price,
            price_label=money(item.price),
            line_total_label=money(item.price),
            is_available=item.available,
        ))

    has_selection = bool(out)
    return SelectionSummary(
        lines=out,
        item_count=item_count,
        total=total,
        total_label=money(total),
        is_empty=not has_selection,
        has_selection=has_selection,
        cta_label=cta_label(item_count) if item_count > 0 else None,
    )
