# backend/configurator/actions.py
import enum
import logging
from typing import Optional

from pydantic import BaseModel, model_validator

from config import settings
from configurator.catalog import CatalogIndex
from configurator.errors import UnknownVariant
from configurator.ledger import SelectionLedger
from configurator.slots import SlotRegistry, release_slot_lines

logger = logging.getLogger(__name__)


class ActionType(str, enum.Enum):
    ADD_SLOT = "add_slot"
    REMOVE_SLOT = "remove_slot"
    CHOOSE_BRAND = "choose_brand"
    CHOOSE_MODEL = "choose_model"
    ADD_VARIANT = "add_variant"
    CHANGE_QUANTITY = "change_quantity"
    REMOVE_LINE = "remove_line"
    TOGGLE_STANDALONE = "toggle_standalone"
    REMOVE_STANDALONE = "remove_standalone"
    RESET = "reset"


# Fields each action type cannot do without
REQUIRED_FIELDS = {
    ActionType.ADD_SLOT: (),
    ActionType.REMOVE_SLOT: ("slot_id",),
    ActionType.CHOOSE_BRAND: ("slot_id", "brand_handle"),
    ActionType.CHOOSE_MODEL: ("slot_id", "model_handle"),
    ActionType.ADD_VARIANT: ("variant_id",),
    ActionType.CHANGE_QUANTITY: ("variant_id", "delta"),
    ActionType.REMOVE_LINE: ("variant_id",),
    ActionType.TOGGLE_STANDALONE: ("item_id",),
    ActionType.REMOVE_STANDALONE: ("item_id",),
    ActionType.RESET: (),
}


class Action(BaseModel):
    type: ActionType
    slot_id: Optional[str] = None
    family: Optional[str] = None
    template_id: Optional[str] = None
    brand_handle: Optional[str] = None
    model_handle: Optional[str] = None
    variant_id: Optional[str] = None
    role: Optional[str] = None
    item_id: Optional[str] = None
    delta: Optional[int] = None
    cascade: Optional[bool] = None

    @model_validator(mode="after")
    def _check_required(self):
        missing = [f for f in REQUIRED_FIELDS[self.type] if getattr(self, f) is None]
        if missing:
            raise ValueError(f"{self.type.value} requires: {', '.join(missing)}")
        return self


class ConfiguratorState:
    """Slots plus ledger for one configurator embedding."""

    def __init__(self, max_slots: Optional[int] = None):
        self.slots = SlotRegistry(max_slots if max_slots is not None else settings.MAX_SLOTS)
        self.ledger = SelectionLedger()


def _add_variant(state: ConfiguratorState, action: Action, catalog: CatalogIndex) -> None:
    if action.slot_id is not None:
        slot = state.slots.get(action.slot_id)
        role = slot.offers(action.variant_id)
        if role is None:
            raise UnknownVariant(action.variant_id)
        state.ledger.add_or_increment(slot.resolved_variants[role], role)
        slot.introduced.add(action.variant_id)
        return

    variant = catalog.variant(action.variant_id)
    if variant is None:
        raise UnknownVariant(action.variant_id)
    state.ledger.add_or_increment(variant, action.role or catalog.role_of(action.variant_id))


def apply(state: ConfiguratorState, action: Action, catalog: CatalogIndex) -> ConfiguratorState:
    """
    Apply one action to the state in place and return it.

    Raises Unavailable, SlotLimitReached, UnknownSlot, UnknownVariant or
    DuplicateSlot; on error the state is left exactly as it was.
    """
    kind = action.type

    if kind is ActionType.ADD_SLOT:
        state.slots.add(action.slot_id, action.family, action.template_id)

    elif kind is ActionType.REMOVE_SLOT:
        slot = state.slots.remove(action.slot_id)
        cascade = settings.CASCADE_SLOT_REMOVAL if action.cascade is None else action.cascade
        if cascade:
            removed = release_slot_lines(slot, list(state.slots), state.ledger, catalog)
            if removed:
                logger.info(f"Removed lines {removed} with configuration {slot.slot_id}")

    elif kind is ActionType.CHOOSE_BRAND:
        state.slots.get(action.slot_id).choose_brand(catalog, action.brand_handle)

    elif kind is ActionType.CHOOSE_MODEL:
        state.slots.get(action.slot_id).choose_model(catalog, action.model_handle)

    elif kind is ActionType.ADD_VARIANT:
        _add_variant(state, action, catalog)

    elif kind is ActionType.CHANGE_QUANTITY:
        state.ledger.change_quantity(action.variant_id, action.delta)

    elif kind is ActionType.REMOVE_LINE:
        state.ledger.remove(action.variant_id)

    elif kind is ActionType.TOGGLE_STANDALONE:
        item = catalog.standalone(action.item_id)
        if item is None:
            raise UnknownVariant(action.item_id)
        state.ledger.toggle_standalone(item)

    elif kind is ActionType.REMOVE_STANDALONE:
        state.ledger.deselect_standalone(action.item_id)

    elif kind is ActionType.RESET:
        state.ledger.clear()

    return state
