from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

# Request schema for one entry of the batched add-items call
class CartAddItem(BaseModel):
    id: str
    quantity: int = Field(gt=0)

# Request body sent to the cart service add endpoint
class CartAddRequest(BaseModel):
    items: List[CartAddItem]

# Subset of the cart service read response the configurator relies on
class CartState(BaseModel):
    model_config = ConfigDict(extra="allow")

    item_count: int = Field(ge=0)
    total_price: Optional[int] = None

# Response schema for a checkout attempt
class CheckoutStatusOut(BaseModel):
    state: str
    reason: Optional[str] = None
    message: Optional[str] = None
    button_disabled: bool
    shake_ids: List[str] = []
    cart_item_count: Optional[int] = None
