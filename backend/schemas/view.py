# backend/schemas/view.py
from pydantic import BaseModel
from typing import List, Optional

from schemas.cart import CheckoutStatusOut
from schemas.summary import SelectionSummary


class ChipOut(BaseModel):
    handle: str
    name: str
    selected: bool = False


# Product card for a resolved role; variant fields are empty when nothing is compatible
class VariantCard(BaseModel):
    role: Optional[str] = None
    variant_id: Optional[str] = None
    title: str = "No compatible product found."
    price_label: str = ""
    image_url: str = ""
    is_available: bool = False
    is_selected: bool = False
    quantity: int = 0


class StandaloneCard(BaseModel):
    item_id: str
    variant_id: str
    title: str
    price_label: str
    image_url: str = ""
    is_available: bool
    is_selected: bool


class SlotView(BaseModel):
    slot_id: str
    family: Optional[str] = None
    brands: List[ChipOut]
    chosen_brand: Optional[str] = None
    chosen_model: Optional[str] = None
    show_models: bool
    models: List[ChipOut]
    model_image: Optional[str] = None
    product_notice: Optional[str] = None
    show_variants: bool
    variants: List[VariantCard]


class NoticeOut(BaseModel):
    kind: str
    target: Optional[str] = None
    message: str


# Full post-mutation snapshot handed to the rendering layer
class ConfiguratorView(BaseModel):
    session_id: str
    slots: List[SlotView]
    can_add_slot: bool
    fixed: List[VariantCard]
    standalone: List[StandaloneCard]
    selected_variant_ids: List[str]
    summary: SelectionSummary
    notices: List[NoticeOut]
    checkout: CheckoutStatusOut
