# backend/utils/cart_client.py
import httpx
import logging
from typing import List, Optional
from urllib.parse import urljoin

from pydantic import ValidationError

from config import settings
from schemas.cart import CartAddItem, CartAddRequest, CartState

logger = logging.getLogger(__name__)


class CartServiceError(Exception):
    """Non-2xx reply, transport failure or unreadable body from the cart service."""

    def __init__(self, description: str, status_code: Optional[int] = None):
        super().__init__(description)
        self.description = description
        self.status_code = status_code


def _error_description(response: httpx.Response) -> str:
    # The storefront reports failures as {"description": ..., "message": ...}
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("description") or body.get("message") or "")
    return ""


class CartServiceClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        add_path: Optional[str] = None,
        read_path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Initialize endpoints; transport is replaceable for tests
        self.base_url = base_url or settings.CART_API_URL
        self.add_url = urljoin(self.base_url, add_path or settings.CART_ADD_PATH)
        self.read_url = urljoin(self.base_url, read_path or settings.CART_READ_PATH)
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    async def add_items(self, items: List[CartAddItem]) -> dict:
        # Submit all lines in one batched request
        payload = CartAddRequest(items=items).model_dump()
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        async with self._client() as client:
            try:
                response = await client.post(self.add_url, json=payload, headers=headers)
            except httpx.RequestError as e:
                logger.error(f"Cart add transport error: {e}")
                raise CartServiceError(str(e) or "Cart service unreachable") from e

            if response.status_code >= 300:
                description = _error_description(response)
                logger.error(f"Cart add rejected ({response.status_code}): {description}")
                raise CartServiceError(description, response.status_code)

            try:
                return response.json()
            except ValueError as e:
                logger.error(f"Cart add returned malformed JSON: {response.text[:200]}")
                raise CartServiceError("Malformed cart response", response.status_code) from e

    async def read_cart(self) -> CartState:
        # Fetch the cart to learn the updated item count
        async with self._client() as client:
            try:
                response = await client.get(self.read_url, headers={"Accept": "application/json"})
                response.raise_for_status()
                return CartState.model_validate(response.json())
            except httpx.HTTPStatusError as e:
                logger.warning(f"Cart read rejected ({e.response.status_code})")
                raise CartServiceError(_error_description(e.response), e.response.status_code) from e
            except httpx.RequestError as e:
                logger.warning(f"Cart read transport error: {e}")
                raise CartServiceError(str(e) or "Cart service unreachable") from e
            except (ValueError, ValidationError) as e:
                logger.warning(f"Cart read returned malformed data: {e}")
                raise CartServiceError("Malformed cart response") from e
