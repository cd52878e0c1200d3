# backend/configurator/catalog.py
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from schemas.catalog import Brand, CatalogPayload, DeviceModel, StandaloneItem, Variant

logger = logging.getLogger(__name__)


class CatalogIndex:
    """
    Read-only lookup over brands, models and the variants they resolve to.

    Lookups never fail: an unknown handle yields an empty list or None.
    Every listing keeps the order in which records were delivered.
    """

    def __init__(
        self,
        brands: Iterable[Brand] = (),
        models: Iterable[DeviceModel] = (),
        fixed_variants: Optional[Dict[str, Variant]] = None,
        standalone: Iterable[StandaloneItem] = (),
    ):
        self._brands: Dict[str, Brand] = {}
        for brand in brands:
            self._brands.setdefault(brand.handle, brand)

        # brand handle -> model handle -> model
        self._models: Dict[str, Dict[str, DeviceModel]] = {}
        for model in models:
            self._models.setdefault(model.brand_handle, {}).setdefault(model.handle, model)

        self._fixed: Dict[str, Variant] = dict(fixed_variants or {})
        self._standalone: Dict[str, StandaloneItem] = {}
        for item in standalone:
            self._standalone.setdefault(item.block_id, item)

        # variant id -> (role, variant); first occurrence wins
        self._variants: Dict[str, Tuple[Optional[str], Variant]] = {}
        for by_model in self._models.values():
            for model in by_model.values():
                for role, variant in model.variants.items():
                    if variant is not None:
                        self._variants.setdefault(variant.id, (role, variant))
        for role, variant in self._fixed.items():
            self._variants.setdefault(variant.id, (role, variant))
        for item in self._standalone.values():
            self._variants.setdefault(item.id, (None, item))

    @classmethod
    def empty(cls) -> "CatalogIndex":
        return cls()

    def brands(self, family: Optional[str] = None) -> List[Brand]:
        return [b for b in self._brands.values() if family is None or b.family == family]

    def brand(self, handle: str) -> Optional[Brand]:
        return self._brands.get(handle)

    def models_for_brand(self, brand_handle: str) -> List[DeviceModel]:
        return list(self._models.get(brand_handle, {}).values())

    def model(self, brand_handle: str, model_handle: str) -> Optional[DeviceModel]:
        return self._models.get(brand_handle, {}).get(model_handle)

    def variants_for_model(
        self, model_handle: str, brand_handle: Optional[str] = None
    ) -> Dict[str, Optional[Variant]]:
        # Model handles are only unique within a brand; without one the first match wins
        if brand_handle is not None:
            model = self.model(brand_handle, model_handle)
            return dict(model.variants) if model else {}
        for by_model in self._models.values():
            if model_handle in by_model:
                return dict(by_model[model_handle].variants)
        return {}

    def variant(self, variant_id: str) -> Optional[Variant]:
        entry = self._variants.get(variant_id)
        return entry[1] if entry else None

    def role_of(self, variant_id: str) -> Optional[str]:
        entry = self._variants.get(variant_id)
        return entry[0] if entry else None

    def fixed_variants(self) -> Dict[str, Variant]:
        return dict(self._fixed)

    def standalone_items(self) -> List[StandaloneItem]:
        return list(self._standalone.values())

    def standalone(self, item_id: str) -> Optional[StandaloneItem]:
        return self._standalone.get(item_id)

    def is_empty(self) -> bool:
        return not self._brands and not self._fixed and not self._standalone


def _parse_records(raw: list, record_type: type, label: str) -> List[BaseModel]:
    parsed = []
    for position, entry in enumerate(raw):
        try:
            parsed.append(record_type.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {label} #{position}: {e.error_count()} error(s)")
    return parsed


def load_catalog(raw: Union[str, bytes, dict, None]) -> CatalogIndex:
    """
    Parse and validate catalog data once at the boundary.

    Malformed records are skipped one by one; input that cannot be read as a
    catalog object at all degrades to an empty catalog.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            logger.error(f"Catalog data is not valid JSON: {e}")
            return CatalogIndex.empty()

    if not isinstance(raw, dict):
        logger.error(f"Catalog data must be an object, got {type(raw).__name__}")
        return CatalogIndex.empty()

    def _list(key: str) -> list:
        value = raw.get(key) or []
        if not isinstance(value, list):
            logger.warning(f"Catalog field '{key}' is not a list, ignoring")
            return []
        return value

    brands = _parse_records(_list("brands"), Brand, "brand")
    models = _parse_records(_list("models"), DeviceModel, "model")
    standalone = _parse_records(_list("standalone"), StandaloneItem, "standalone item")

    fixed: Dict[str, Variant] = {}
    raw_fixed = raw.get("fixedVariants") or {}
    if isinstance(raw_fixed, dict):
        for role, entry in raw_fixed.items():
            if entry is None:
                continue
            try:
                fixed[role] = Variant.model_validate(entry)
            except ValidationError as e:
                logger.warning(f"Skipping malformed fixed variant '{role}': {e.error_count()} error(s)")
    else:
        logger.warning("Catalog field 'fixedVariants' is not an object, ignoring")

    # Round-trip through the payload schema keeps one definition of the shape
    payload = CatalogPayload(brands=brands, models=models, fixed_variants=fixed, standalone=standalone)

    if not payload.brands:
        logger.warning("Catalog has no brands; configuration steps will be empty")

    logger.info(
        f"Catalog loaded: {len(payload.brands)} brands, {len(payload.models)} models, "
        f"{len(payload.fixed_variants)} fixed variants, {len(payload.standalone)} standalone items"
    )
    return CatalogIndex(payload.brands, payload.models, payload.fixed_variants, payload.standalone)


def load_catalog_file(path: Union[str, Path]) -> CatalogIndex:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Cannot read catalog file {path}: {e}")
        return CatalogIndex.empty()
    return load_catalog(text)
