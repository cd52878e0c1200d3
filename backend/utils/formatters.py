# backend/utils/formatters.py
import re
from typing import Optional

from config import settings

DEFAULT_VARIANT_TITLE = "Default Title"

_EXTENSION = re.compile(r"(\.[^./]+)$")


def money(minor_units: int) -> str:
    decimals = max(settings.MONEY_DECIMALS, 0)
    sign = "-" if minor_units < 0 else ""
    major, minor = divmod(abs(minor_units), 10 ** decimals)
    if decimals == 0:
        return f"{sign}{settings.CURRENCY_SYMBOL}{major}"
    return f"{sign}{settings.CURRENCY_SYMBOL}{major}.{minor:0{decimals}d}"


def display_title(title: Optional[str], product_title: Optional[str]) -> str:
    # Single-variant products carry the placeholder title "Default Title"
    if product_title:
        if title and title != DEFAULT_VARIANT_TITLE:
            return f"{product_title} - {title}"
        return product_title
    return title or "Product"


def sized_image_url(url: Optional[str], size: int) -> str:
    if not url:
        return ""
    return _EXTENSION.sub(rf"_{size}x\1", url, count=1)


def cta_label(item_count: int) -> str:
    return f"Add to Cart ({item_count} item{'s' if item_count != 1 else ''})"
