# backend/configurator/checkout.py
import enum
import logging
import re
import time
from typing import Callable, Dict, List, Optional

from config import settings
from configurator.catalog import CatalogIndex
from configurator.ledger import SelectionLedger
from schemas.cart import CartAddItem, CheckoutStatusOut
from utils.cart_client import CartServiceClient, CartServiceError

logger = logging.getLogger(__name__)

OUT_OF_STOCK_PHRASES = ("out of stock", "not available", "inventory")

# Button texts shown while a transient status is displayed
MSG_SUBMITTING = "Adding..."
MSG_SUCCEEDED = "Added!"
MSG_NOTHING_SELECTED = "Select products first"
MSG_OUT_OF_STOCK = "Some items are out of stock"
MSG_SERVICE_ERROR = "Error - Try Again"
MAX_SERVICE_MESSAGE_LENGTH = 30


class CheckoutState(str, enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureReason(str, enum.Enum):
    NOTHING_SELECTED = "nothing_selected"
    OUT_OF_STOCK = "out_of_stock"
    SERVICE_ERROR = "service_error"


def classify_failure(description: Optional[str]) -> FailureReason:
    text = (description or "").lower()
    if any(phrase in text for phrase in OUT_OF_STOCK_PHRASES):
        return FailureReason.OUT_OF_STOCK
    return FailureReason.SERVICE_ERROR


def serialize_selection(ledger: SelectionLedger, catalog: CatalogIndex) -> List[CartAddItem]:
    """Ledger lines then selected add-ons as {id, quantity}; repeated ids are merged."""
    quantities: Dict[str, int] = {}
    for line in ledger.lines():
        quantities[line.variant_id] = quantities.get(line.variant_id, 0) + line.quantity
    for item_id in ledger.selected_standalone_ids():
        item = catalog.standalone(item_id)
        if item is None:
            continue
        quantities[item.id] = quantities.get(item.id, 0) + 1
    return [CartAddItem(id=variant_id, quantity=qty) for variant_id, qty in quantities.items()]


def _mentions(description: Optional[str], variant_id: str) -> bool:
    # Whole-token match so "1" is not found inside "12"
    return re.search(rf"(?<!\w){re.escape(variant_id)}(?!\w)", description or "") is not None


class CartCountBroadcaster:
    """Fire-and-forget fan-out of the cart item count to header badges and the like."""

    def __init__(self):
        self._listeners: List[Callable[[int, dict], None]] = []

    def subscribe(self, listener: Callable[[int, dict], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def publish(self, item_count: int, cart: dict) -> None:
        for listener in list(self._listeners):
            try:
                listener(item_count, cart)
            except Exception:
                logger.exception("Cart count listener failed")


class CheckoutSubmitter:
    """
    Idle -> Submitting -> Succeeded | Failed, each outcome reverting to Idle
    after its display duration.

    The button stays disabled for any non-Idle state, which is the only guard
    against duplicate submissions. There are no retries.
    """

    def __init__(
        self,
        client: CartServiceClient,
        broadcaster: Optional[CartCountBroadcaster] = None,
        clock: Callable[[], float] = time.monotonic,
        clear_on_success: Optional[bool] = None,
    ):
        self.client = client
        self.broadcaster = broadcaster or CartCountBroadcaster()
        self.clock = clock
        self.clear_on_success = (
            settings.CLEAR_SELECTION_ON_SUCCESS if clear_on_success is None else clear_on_success
        )
        self.cart_item_count: Optional[int] = None
        self._state = CheckoutState.IDLE
        self._reason: Optional[FailureReason] = None
        self._message: Optional[str] = None
        self._shake_ids: List[str] = []
        self._until: Optional[float] = None

    def _show(self, state, reason=None, message=None, seconds=None, shake_ids=None):
        self._state = state
        self._reason = reason
        self._message = message
        self._shake_ids = list(shake_ids or [])
        self._until = self.clock() + seconds if seconds is not None else None

    def _expire(self) -> None:
        if self._until is not None and self.clock() >= self._until:
            self._show(CheckoutState.IDLE)

    @property
    def state(self) -> CheckoutState:
        self._expire()
        return self._state

    def status(self) -> CheckoutStatusOut:
        self._expire()
        return CheckoutStatusOut(
            state=self._state.value,
            reason=self._reason.value if self._reason else None,
            message=self._message,
            button_disabled=self._state is not CheckoutState.IDLE,
            shake_ids=self._shake_ids,
            cart_item_count=self.cart_item_count,
        )

    async def submit(self, ledger: SelectionLedger, catalog: CatalogIndex) -> CheckoutStatusOut:
        if self.state is not CheckoutState.IDLE:
            logger.info(f"Submit ignored while {self._state.value}")
            return self.status()

        items = serialize_selection(ledger, catalog)
        if not items:
            logger.warning("Submit attempted with nothing selected")
            self._show(
                CheckoutState.IDLE,
                FailureReason.NOTHING_SELECTED,
                MSG_NOTHING_SELECTED,
                settings.NOTICE_DISPLAY_SECONDS,
            )
            return self.status()

        self._show(CheckoutState.SUBMITTING, message=MSG_SUBMITTING)
        try:
            await self.client.add_items(items)
        except CartServiceError as e:
            self._fail(e, items)
            return self.status()

        # The add already succeeded; a failed refresh only leaves the count stale
        cart = None
        try:
            cart = await self.client.read_cart()
        except CartServiceError as e:
            logger.warning(f"Items added but cart count refresh failed: {e.description}")

        if cart is not None:
            self.cart_item_count = cart.item_count
            self.broadcaster.publish(cart.item_count, cart.model_dump())

        if self.clear_on_success:
            ledger.clear()

        logger.info(f"Added {sum(i.quantity for i in items)} item(s) to cart")
        self._show(
            CheckoutState.SUCCEEDED,
            message=MSG_SUCCEEDED,
            seconds=settings.SUCCESS_DISPLAY_SECONDS,
        )
        return self.status()

    def _fail(self, error: CartServiceError, items: List[CartAddItem]) -> None:
        reason = classify_failure(error.description)
        logger.error(f"Add to cart failed ({reason.value}): {error.description}")

        shake_ids: List[str] = []
        if reason is FailureReason.OUT_OF_STOCK:
            message = MSG_OUT_OF_STOCK
            mentioned = [i.id for i in items if _mentions(error.description, i.id)]
            shake_ids = mentioned or [i.id for i in items]
        elif error.description and len(error.description) <= MAX_SERVICE_MESSAGE_LENGTH:
            message = error.description
        else:
            message = MSG_SERVICE_ERROR

        self._show(
            CheckoutState.FAILED,
            reason,
            message,
            settings.ERROR_DISPLAY_SECONDS,
            shake_ids,
        )
