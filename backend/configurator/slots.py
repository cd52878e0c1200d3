# backend/configurator/slots.py
import logging
from typing import Dict, List, Optional, Set

from configurator.catalog import CatalogIndex
from configurator.errors import DuplicateSlot, SlotLimitReached, UnknownSlot
from configurator.ledger import SelectionLedger
from schemas.catalog import DeviceModel, Variant

logger = logging.getLogger(__name__)


class ConfigurationSlot:
    """One brand -> model -> variants sequence."""

    def __init__(self, slot_id: str, family: Optional[str] = None):
        self.slot_id = slot_id
        self.family = family
        self.chosen_brand: Optional[str] = None
        self.chosen_model: Optional[str] = None
        self.resolved_variants: Dict[str, Optional[Variant]] = {}
        # Variant ids the shopper added to the ledger from this slot
        self.introduced: Set[str] = set()

    def choose_brand(self, catalog: CatalogIndex, brand_handle: str) -> List[DeviceModel]:
        """Select a brand and return the models the next step should offer."""
        self.chosen_brand = brand_handle
        self.chosen_model = None
        self.resolved_variants = {}
        return catalog.models_for_brand(brand_handle)

    def choose_model(self, catalog: CatalogIndex, model_handle: str) -> Optional[Dict[str, Optional[Variant]]]:
        # A model is only meaningful once a brand is chosen
        if self.chosen_brand is None:
            return None
        model = catalog.model(self.chosen_brand, model_handle)
        if model is None:
            logger.info(f"Model {model_handle} is not offered for brand {self.chosen_brand}")
            return None
        self.chosen_model = model_handle
        self.resolved_variants = catalog.variants_for_model(model_handle, self.chosen_brand)
        return self.resolved_variants

    def resolved_variant_ids(self) -> Set[str]:
        return {v.id for v in self.resolved_variants.values() if v is not None}

    def offers(self, variant_id: str) -> Optional[str]:
        """Role under which this slot currently offers the variant, if any."""
        for role, variant in self.resolved_variants.items():
            if variant is not None and variant.id == variant_id:
                return role
        return None

    def clone(self, slot_id: str) -> "ConfigurationSlot":
        copy = ConfigurationSlot(slot_id, self.family)
        copy.chosen_brand = self.chosen_brand
        copy.chosen_model = self.chosen_model
        copy.resolved_variants = dict(self.resolved_variants)
        return copy


class SlotRegistry:
    def __init__(self, max_slots: int):
        self.max_slots = max_slots
        self._slots: Dict[str, ConfigurationSlot] = {}
        self._counter = 0

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self):
        return iter(list(self._slots.values()))

    def get(self, slot_id: str) -> ConfigurationSlot:
        slot = self._slots.get(slot_id)
        if slot is None:
            raise UnknownSlot(slot_id)
        return slot

    def _next_id(self) -> str:
        while True:
            self._counter += 1
            candidate = f"slot-{self._counter}"
            if candidate not in self._slots:
                return candidate

    def add(
        self,
        slot_id: Optional[str] = None,
        family: Optional[str] = None,
        template_id: Optional[str] = None,
    ) -> ConfigurationSlot:
        if len(self._slots) >= self.max_slots:
            logger.info(f"Slot limit of {self.max_slots} reached")
            raise SlotLimitReached(self.max_slots)
        if slot_id is not None and slot_id in self._slots:
            raise DuplicateSlot(slot_id)
        slot_id = slot_id or self._next_id()

        if template_id is not None:
            slot = self.get(template_id).clone(slot_id)
        else:
            slot = ConfigurationSlot(slot_id, family)
        self._slots[slot_id] = slot
        return slot

    def remove(self, slot_id: str) -> ConfigurationSlot:
        slot = self.get(slot_id)
        del self._slots[slot_id]
        return slot

    def clear(self) -> None:
        self._slots.clear()


def release_slot_lines(
    slot: ConfigurationSlot,
    remaining: List[ConfigurationSlot],
    ledger: SelectionLedger,
    catalog: CatalogIndex,
) -> List[str]:
    """
    Remove the lines a destroyed slot introduced.

    A line survives while another slot still resolves its variant, it is an
    always-offered variant, or it backs a selected add-on.
    """
    still_referenced: Set[str] = set()
    for other in remaining:
        still_referenced |= other.resolved_variant_ids()
    still_referenced |= {v.id for v in catalog.fixed_variants().values()}
    for item_id in ledger.selected_standalone_ids():
        item = catalog.standalone(item_id)
        if item is not None:
            still_referenced.add(item.id)

    removed = []
    for variant_id in sorted(slot.introduced):
        if variant_id not in still_referenced and ledger.remove(variant_id):
            removed.append(variant_id)
    return removed
