# backend/configurator/session.py
import logging
import time
import uuid
from typing import Callable, Dict, Iterable, List, Optional

from config import settings
from configurator.actions import Action, ConfiguratorState, apply
from configurator.catalog import CatalogIndex
from configurator.checkout import (
    MSG_NOTHING_SELECTED, CartCountBroadcaster, CheckoutSubmitter, FailureReason
)
from configurator.errors import SlotLimitReached, Unavailable
from configurator.slots import ConfigurationSlot
from configurator.summary import project_summary
from schemas.cart import CheckoutStatusOut
from schemas.catalog import Variant
from schemas.view import (
    ChipOut, ConfiguratorView, NoticeOut, SlotView, StandaloneCard, VariantCard
)
from utils.cart_client import CartServiceClient
from utils.formatters import display_title, money, sized_image_url

logger = logging.getLogger(__name__)

CARD_IMAGE_SIZE = 200


class NoticeBoard:
    """Transient notices keyed by (kind, target); each clears itself after a fixed time."""

    def __init__(self, clock: Callable[[], float], seconds: Optional[float] = None):
        self.clock = clock
        self.seconds = settings.NOTICE_DISPLAY_SECONDS if seconds is None else seconds
        self._notices: Dict[tuple, tuple] = {}

    def post(self, kind: str, target: Optional[str], message: str) -> None:
        self._notices[(kind, target)] = (message, self.clock() + self.seconds)

    def active(self) -> List[NoticeOut]:
        now = self.clock()
        self._notices = {k: v for k, v in self._notices.items() if v[1] > now}
        return [NoticeOut(kind=k[0], target=k[1], message=v[0]) for k, v in self._notices.items()]


class ConfiguratorSession:
    def __init__(
        self,
        catalog: CatalogIndex,
        session_id: Optional[str] = None,
        client: Optional[CartServiceClient] = None,
        broadcaster: Optional[CartCountBroadcaster] = None,
        clock: Callable[[], float] = time.monotonic,
        max_slots: Optional[int] = None,
        families: Iterable[Optional[str]] = (),
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.catalog = catalog
        self.state = ConfiguratorState(max_slots)
        self.notices = NoticeBoard(clock)
        self.submitter = CheckoutSubmitter(client or CartServiceClient(), broadcaster, clock)
        self._subscribers: List[Callable[[ConfiguratorView], None]] = []
        for family in families:
            self.state.slots.add(family=family)

    def subscribe(self, listener: Callable[[ConfiguratorView], None]) -> Callable[[], None]:
        self._subscribers.append(listener)

        def unsubscribe():
            if listener in self._subscribers:
                self._subscribers.remove(listener)
        return unsubscribe

    def _publish(self) -> ConfiguratorView:
        view = self.view()
        for listener in list(self._subscribers):
            try:
                listener(view)
            except Exception:
                logger.exception(f"View subscriber failed for session {self.session_id}")
        return view

    def dispatch(self, action: Action) -> ConfiguratorView:
        try:
            apply(self.state, action, self.catalog)
        except Unavailable as e:
            self.notices.post("unavailable", e.item_id, "This item is currently out of stock")
        except SlotLimitReached as e:
            self.notices.post("slot_limit", None, str(e))
        return self._publish()

    async def submit(self) -> CheckoutStatusOut:
        status = await self.submitter.submit(self.state.ledger, self.catalog)
        if status.reason == FailureReason.NOTHING_SELECTED.value:
            self.notices.post("nothing_selected", None, MSG_NOTHING_SELECTED)
        self._publish()
        return status

    # --- view state ---

    def _card(self, role: Optional[str], variant: Optional[Variant]) -> VariantCard:
        if variant is None:
            return VariantCard(role=role)
        ledger = self.state.ledger
        return VariantCard(
            role=role,
            variant_id=variant.id,
            title=display_title(variant.title, variant.product_title),
            price_label=money(variant.price),
            image_url=sized_image_url(variant.image, CARD_IMAGE_SIZE),
            is_available=variant.available,
            is_selected=variant.id in ledger,
            quantity=ledger.quantity_of(variant.id),
        )

    def _slot_view(self, slot: ConfigurationSlot) -> SlotView:
        model = None
        if slot.chosen_brand and slot.chosen_model:
            model = self.catalog.model(slot.chosen_brand, slot.chosen_model)
        return SlotView(
            slot_id=slot.slot_id,
            family=slot.family,
            brands=[
                ChipOut(handle=b.handle, name=b.name, selected=b.handle == slot.chosen_brand)
                for b in self.catalog.brands(slot.family)
            ],
            chosen_brand=slot.chosen_brand,
            chosen_model=slot.chosen_model,
            show_models=slot.chosen_brand is not None,
            models=[
                ChipOut(handle=m.handle, name=m.name, selected=m.handle == slot.chosen_model)
                for m in (self.catalog.models_for_brand(slot.chosen_brand) if slot.chosen_brand else [])
            ],
            model_image=model.model_image if model else None,
            product_notice=model.product_notice if model else None,
            show_variants=slot.chosen_model is not None,
            variants=[self._card(role, v) for role, v in slot.resolved_variants.items()],
        )

    def view(self) -> ConfiguratorView:
        ledger = self.state.ledger
        slots = list(self.state.slots)
        standalone = [
            StandaloneCard(
                item_id=item.block_id,
                variant_id=item.id,
                title=display_title(item.title, item.product_title),
                price_label=money(item.price),
                image_url=sized_image_url(item.image, CARD_IMAGE_SIZE),
                is_available=item.available,
                is_selected=ledger.is_standalone_selected(item.block_id),
            )
            for item in self.catalog.standalone_items()
        ]
        return ConfiguratorView(
            session_id=self.session_id,
            slots=[self._slot_view(s) for s in slots],
            can_add_slot=len(slots) < self.state.slots.max_slots,
            fixed=[self._card(role, v) for role, v in self.catalog.fixed_variants().items()],
            standalone=standalone,
            selected_variant_ids=[line.variant_id for line in ledger.lines()],
            summary=project_summary(slots, ledger, self.catalog),
            notices=self.notices.active(),
            checkout=self.submitter.status(),
        )


class SessionStore:
    """In-memory sessions; everything is lost on restart.

    Sessions left alone for longer than ``idle_seconds`` are evicted the next
    time the store is used.
    """

    def __init__(
        self,
        catalog: CatalogIndex,
        client_factory: Optional[Callable[[], CartServiceClient]] = None,
        clock: Callable[[], float] = time.monotonic,
        idle_seconds: Optional[float] = None,
    ):
        self.catalog = catalog
        self.client_factory = client_factory or CartServiceClient
        self.clock = clock
        self.idle_seconds = settings.SESSION_IDLE_SECONDS if idle_seconds is None else idle_seconds
        self.broadcaster = CartCountBroadcaster()
        self._sessions: Dict[str, ConfiguratorSession] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict_idle(self) -> None:
        cutoff = self.clock() - self.idle_seconds
        for session_id in [s for s, seen in self._last_seen.items() if seen <= cutoff]:
            self.drop(session_id)
            logger.info(f"Configurator session {session_id} expired")

    def create(self, families: Iterable[Optional[str]] = ()) -> ConfiguratorSession:
        self._evict_idle()
        session = ConfiguratorSession(
            self.catalog,
            client=self.client_factory(),
            broadcaster=self.broadcaster,
            clock=self.clock,
            families=families,
        )
        self._sessions[session.session_id] = session
        self._last_seen[session.session_id] = self.clock()
        logger.info(f"Configurator session {session.session_id} created")
        return session

    def get(self, session_id: str) -> Optional[ConfiguratorSession]:
        self._evict_idle()
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_seen[session_id] = self.clock()
        return session

    def drop(self, session_id: str) -> bool:
        self._last_seen.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None
