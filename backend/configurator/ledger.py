# backend/configurator/ledger.py
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from configurator.errors import Unavailable
from schemas.catalog import StandaloneItem, Variant

logger = logging.getLogger(__name__)


# One chosen variant with its quantity; catalog fields are copied at selection time
class SelectionLine(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    variant_id: str
    quantity: int = Field(default=1, ge=1)
    role: Optional[str] = None
    title: str = ""
    product_title: Optional[str] = None
    unit_price: int = Field(default=0, ge=0)
    image: Optional[str] = None
    is_available: bool = True

    @classmethod
    def from_variant(cls, variant: Variant, role: Optional[str] = None) -> "SelectionLine":
        return cls(
            variant_id=variant.id,
            quantity=1,
            role=role,
            title=variant.title,
            product_title=variant.product_title,
            unit_price=variant.price,
            image=variant.image,
            is_available=variant.available,
        )

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


class SelectionLedger:
    """
    Selected cart lines keyed by variant id, plus boolean add-on selections.

    Holds at most one line per variant id. A line exists only while its
    quantity is at least 1. Lines keep insertion order.
    """

    def __init__(self):
        self._lines: Dict[str, SelectionLine] = {}
        self._standalone: Dict[str, bool] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, variant_id: str) -> bool:
        return variant_id in self._lines

    def line(self, variant_id: str) -> Optional[SelectionLine]:
        return self._lines.get(variant_id)

    def lines(self) -> List[SelectionLine]:
        return list(self._lines.values())

    def quantity_of(self, variant_id: str) -> int:
        line = self._lines.get(variant_id)
        return line.quantity if line else 0

    def add_or_increment(self, variant: Variant, role: Optional[str] = None) -> SelectionLine:
        line = self._lines.get(variant.id)
        if line is not None:
            line.quantity += 1
            return line

        if not variant.available:
            logger.info(f"Rejected selection of unavailable variant {variant.id}")
            raise Unavailable(variant.id)

        line = SelectionLine.from_variant(variant, role)
        self._lines[variant.id] = line
        return line

    def change_quantity(self, variant_id: str, delta: int) -> Optional[SelectionLine]:
        line = self._lines.get(variant_id)
        if line is None:
            return None
        new_quantity = line.quantity + delta
        if new_quantity <= 0:
            del self._lines[variant_id]
            return None
        line.quantity = new_quantity
        return line

    def remove(self, variant_id: str) -> bool:
        return self._lines.pop(variant_id, None) is not None

    # --- standalone add-ons ---

    def is_standalone_selected(self, item_id: str) -> bool:
        return self._standalone.get(item_id, False)

    def selected_standalone_ids(self) -> List[str]:
        return [item_id for item_id, selected in self._standalone.items() if selected]

    def toggle_standalone(self, item: StandaloneItem) -> bool:
        selected = self._standalone.get(item.block_id, False)
        if not selected and not item.available:
            logger.info(f"Rejected selection of unavailable add-on {item.block_id}")
            raise Unavailable(item.block_id)
        self._standalone[item.block_id] = not selected
        return not selected

    def deselect_standalone(self, item_id: str) -> bool:
        if not self._standalone.get(item_id):
            return False
        self._standalone[item_id] = False
        return True

    def clear(self) -> None:
        self._lines.clear()
        self._standalone.clear()

    def is_empty(self) -> bool:
        return not self._lines and not any(self._standalone.values())
