# backend/schemas/catalog.py
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional


# Legacy storefront fields that map onto variant roles
LEGACY_ROLE_FIELDS = {
    "ringMount": "ring-mount",
    "magRing": "mag-ring",
    "phoneCase": "phone-case",
}


# Base configuration for camelCase catalog payloads
class CatalogBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# Smallest purchasable unit; its id is the cart line item id
class Variant(CatalogBase):
    id: str
    title: str = ""
    product_title: Optional[str] = Field(default=None, alias="productTitle")
    price: int = Field(default=0, ge=0, description="Unit price in minor units")
    image: Optional[str] = None
    available: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        # Storefront ids arrive as numbers
        if isinstance(v, bool) or v is None:
            raise ValueError("variant id is required")
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("image", mode="before")
    @classmethod
    def _image_src(cls, v):
        # Accept both a plain url and an image object with src
        if isinstance(v, dict):
            return v.get("src") or None
        return v or None

    @field_validator("available", mode="before")
    @classmethod
    def _default_available(cls, v):
        return True if v is None else v


class Brand(CatalogBase):
    handle: str
    name: str
    family: str = "default"


class DeviceModel(CatalogBase):
    handle: str
    name: str
    brand_handle: str = Field(alias="brandHandle")
    model_image: Optional[str] = Field(default=None, alias="modelImage")
    product_notice: Optional[str] = Field(default=None, alias="productNotice")
    variants: Dict[str, Optional[Variant]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_roles(cls, data: Any):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        raw = data.get("variants") or {}
        if not isinstance(raw, dict):
            raise ValueError("variants must be a mapping of role to variant")
        variants = dict(raw)
        for field, role in LEGACY_ROLE_FIELDS.items():
            if field in data:
                variants.setdefault(role, data.pop(field))
        data["variants"] = variants
        return data

    @field_validator("model_image", mode="before")
    @classmethod
    def _image_src(cls, v):
        if isinstance(v, dict):
            return v.get("src") or None
        return v or None


# Add-on item selected independently of any configuration slot
class StandaloneItem(Variant):
    block_id: str = Field(alias="blockId")

    @field_validator("block_id", mode="before")
    @classmethod
    def _coerce_block_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class CatalogPayload(BaseModel):
    brands: List[Brand] = Field(default_factory=list)
    models: List[DeviceModel] = Field(default_factory=list)
    fixed_variants: Dict[str, Variant] = Field(default_factory=dict, alias="fixedVariants")
    standalone: List[StandaloneItem] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


# Read-only catalog views returned by the HTTP layer
class BrandOut(BaseModel):
    handle: str
    name: str
    family: str


class ModelOut(BaseModel):
    handle: str
    name: str
    brand_handle: str
    model_image: Optional[str] = None
    product_notice: Optional[str] = None
    roles: List[str]
