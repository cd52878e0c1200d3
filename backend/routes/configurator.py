# backend/routes/configurator.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from configurator.actions import Action
from configurator.errors import DuplicateSlot, SlotLimitReached, UnknownSlot, UnknownVariant
from configurator.session import ConfiguratorSession, SessionStore
from configurator.checkout import CheckoutState, serialize_selection
from schemas.cart import CheckoutStatusOut
from schemas.catalog import BrandOut, ModelOut
from schemas.view import ConfiguratorView
from utils.audit import write_log

router = APIRouter(prefix="/configurator", tags=["Configurator"])
logger = logging.getLogger(__name__)


# Request schema for opening a session with one slot per listed family
class SessionCreate(BaseModel):
    families: List[Optional[str]] = []


def get_store(request: Request) -> SessionStore:
    return request.app.state.sessions

def _get_session(session_id: str, store: SessionStore) -> ConfiguratorSession:
    session = store.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.get("/catalog/brands", response_model=List[BrandOut])
def list_brands(
    family: Optional[str] = Query(None, description="Filter by brand family"),
    store: SessionStore = Depends(get_store),
):
    return [BrandOut(handle=b.handle, name=b.name, family=b.family) for b in store.catalog.brands(family)]

@router.get("/catalog/brands/{brand_handle}/models", response_model=List[ModelOut])
def list_models(brand_handle: str, store: SessionStore = Depends(get_store)):
    # Unknown brands simply have no models
    return [
        ModelOut(
            handle=m.handle,
            name=m.name,
            brand_handle=m.brand_handle,
            model_image=m.model_image,
            product_notice=m.product_notice,
            roles=list(m.variants.keys()),
        )
        for m in store.catalog.models_for_brand(brand_handle)
    ]


@router.post("/sessions", response_model=ConfiguratorView, status_code=status.HTTP_201_CREATED)
def create_session(payload: SessionCreate, store: SessionStore = Depends(get_store)):
    try:
        session = store.create(payload.families)
    except SlotLimitReached as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.view()

@router.get("/sessions/{session_id}", response_model=ConfiguratorView)
def get_session(session_id: str, store: SessionStore = Depends(get_store)):
    return _get_session(session_id, store).view()

@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(session_id: str, store: SessionStore = Depends(get_store)):
    if not store.drop(session_id):
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/sessions/{session_id}/actions", response_model=ConfiguratorView)
def dispatch_action(session_id: str, action: Action, store: SessionStore = Depends(get_store)):
    session = _get_session(session_id, store)
    try:
        return session.dispatch(action)
    except (UnknownSlot, UnknownVariant) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateSlot as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/sessions/{session_id}/submit", response_model=CheckoutStatusOut)
async def submit_session(
    session_id: str,
    store: SessionStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    session = _get_session(session_id, store)
    items = serialize_selection(session.state.ledger, session.catalog)
    was_idle = session.submitter.state is CheckoutState.IDLE
    result = await session.submit()

    # Record only attempts that reached the cart service
    if was_idle and result.state in (CheckoutState.SUCCEEDED.value, CheckoutState.FAILED.value):
        write_log(
            db,
            session_id=session.session_id,
            action="CHECKOUT_SUBMIT",
            resource="cart",
            status="SUCCESS" if result.state == CheckoutState.SUCCEEDED.value else "FAIL",
            meta={
                "items": [i.model_dump() for i in items],
                "reason": result.reason,
                "cart_item_count": result.cart_item_count,
            },
        )
    return result
