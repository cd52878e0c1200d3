# backend/schemas/summary.py
from pydantic import BaseModel
from typing import List, Literal, Optional


# Response schema for a single summary line (configured variant or add-on)
class SummaryLine(BaseModel):
    key: str
    kind: Literal["line", "standalone"]
    variant_id: str
    item_id: Optional[str] = None
    role: Optional[str] = None
    title: str
    image_url: str = ""
    unit_price: int
    quantity: int
    line_total: int
    price_label: str
    line_total_label: str
    is_available: bool = True
    slot_ids: List[str] = []


# Rendering-ready aggregate of the whole selection
class SelectionSummary(BaseModel):
    lines: List[SummaryLine]
    item_count: int
    total: int
    total_label: str
    is_empty: bool
    has_selection: bool
    cta_label: Optional[str] = None
