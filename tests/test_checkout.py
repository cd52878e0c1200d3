"""
Tests for the checkout submitter state machine against a fake cart service.
"""

import asyncio

import httpx
import pytest

from config import settings
from configurator.checkout import (
    CartCountBroadcaster, CheckoutState, CheckoutSubmitter, FailureReason,
    classify_failure, serialize_selection,
)
from configurator.ledger import SelectionLedger
from schemas.catalog import Variant


@pytest.fixture
def ledger(catalog):
    ledger = SelectionLedger()
    ledger.add_or_increment(catalog.variant("V1"), "ring-mount")
    ledger.add_or_increment(catalog.variant("V2"), "mag-ring")
    ledger.add_or_increment(catalog.variant("V2"), "mag-ring")
    return ledger


@pytest.fixture
def submitter(cart_service, clock):
    return CheckoutSubmitter(cart_service.client(), clock=clock, clear_on_success=False)


@pytest.mark.parametrize("description, expected", [
    ("Product is Out of Stock", FailureReason.OUT_OF_STOCK),
    ("The variant is not available", FailureReason.OUT_OF_STOCK),
    ("All 3 in INVENTORY are in carts", FailureReason.OUT_OF_STOCK),
    ("Cart error", FailureReason.SERVICE_ERROR),
    ("", FailureReason.SERVICE_ERROR),
    (None, FailureReason.SERVICE_ERROR),
])
def test_classify_failure(description, expected):
    assert classify_failure(description) is expected


def test_serialize_selection_merges_duplicate_ids(catalog):
    ledger = SelectionLedger()
    ledger.add_or_increment(catalog.variant("S1"))
    ledger.add_or_increment(catalog.variant("V1"), "ring-mount")
    ledger.toggle_standalone(catalog.standalone("cloth"))
    items = serialize_selection(ledger, catalog)
    assert [(i.id, i.quantity) for i in items] == [("S1", 2), ("V1", 1)]


def test_empty_submit_makes_no_network_call(submitter, cart_service, catalog, clock):
    status = asyncio.run(submitter.submit(SelectionLedger(), catalog))

    assert cart_service.requests == []
    assert status.state == "idle"
    assert status.reason == "nothing_selected"
    assert status.message == "Select products first"
    assert status.button_disabled is False

    clock.advance(settings.NOTICE_DISPLAY_SECONDS)
    assert submitter.status().message is None


def test_successful_submit(submitter, cart_service, ledger, catalog, clock):
    cart_service.read_body = {"item_count": 7, "total_price": 2000}
    seen = []
    submitter.broadcaster.subscribe(lambda count, cart: seen.append((count, cart["total_price"])))

    status = asyncio.run(submitter.submit(ledger, catalog))

    assert cart_service.add_payloads == [{"items": [{"id": "V1", "quantity": 1}, {"id": "V2", "quantity": 2}]}]
    assert status.state == "succeeded"
    assert status.message == "Added!"
    assert status.button_disabled is True
    assert status.cart_item_count == 7
    assert seen == [(7, 2000)]
    # Selection is kept after a successful add
    assert len(ledger) == 2

    clock.advance(settings.SUCCESS_DISPLAY_SECONDS)
    assert submitter.state is CheckoutState.IDLE
    assert submitter.status().button_disabled is False


def test_clear_on_success(cart_service, ledger, catalog, clock):
    submitter = CheckoutSubmitter(cart_service.client(), clock=clock, clear_on_success=True)
    asyncio.run(submitter.submit(ledger, catalog))
    assert ledger.is_empty()


def test_count_refresh_failure_still_succeeds_with_stale_count(submitter, cart_service, ledger, catalog, clock):
    cart_service.read_body = {"item_count": 3}
    asyncio.run(submitter.submit(ledger, catalog))
    clock.advance(settings.SUCCESS_DISPLAY_SECONDS)

    seen = []
    submitter.broadcaster.subscribe(lambda count, cart: seen.append(count))
    cart_service.read_status = 500
    cart_service.read_body = {"description": "boom"}

    status = asyncio.run(submitter.submit(ledger, catalog))

    assert status.state == "succeeded"
    assert status.reason is None
    assert status.cart_item_count == 3
    assert seen == []


def test_out_of_stock_failure_marks_offending_lines(submitter, cart_service, ledger, catalog, clock):
    cart_service.add_status = 422
    cart_service.add_body = {"status": 422, "description": "V2 is out of stock"}

    status = asyncio.run(submitter.submit(ledger, catalog))

    assert status.state == "failed"
    assert status.reason == "out_of_stock"
    assert status.message == "Some items are out of stock"
    assert status.shake_ids == ["V2"]
    # Ledger is never touched by a failed submit
    assert [(l.variant_id, l.quantity) for l in ledger.lines()] == [("V1", 1), ("V2", 2)]
    # No cart read after a rejected add
    assert [r.url.path for r in cart_service.requests] == ["/cart/add.js"]

    clock.advance(settings.ERROR_DISPLAY_SECONDS)
    assert submitter.status().state == "idle"
    assert submitter.status().shake_ids == []


def test_out_of_stock_without_ids_shakes_everything(submitter, cart_service, ledger, catalog):
    cart_service.add_status = 422
    cart_service.add_body = {"description": "Requested quantity not available"}
    status = asyncio.run(submitter.submit(ledger, catalog))
    assert status.shake_ids == ["V1", "V2"]


def test_out_of_stock_matches_whole_ids_only(submitter, cart_service, catalog):
    ledger = SelectionLedger()
    ledger.add_or_increment(Variant(id="1", price=100), "ring-mount")
    ledger.add_or_increment(Variant(id="12", price=200), "mag-ring")
    cart_service.add_status = 422
    cart_service.add_body = {"description": "Variant 12 is out of stock"}

    status = asyncio.run(submitter.submit(ledger, catalog))

    assert status.reason == "out_of_stock"
    assert status.shake_ids == ["12"]


def test_service_error_short_message_is_shown(submitter, cart_service, ledger, catalog):
    cart_service.add_status = 400
    cart_service.add_body = {"message": "Cart error"}
    status = asyncio.run(submitter.submit(ledger, catalog))
    assert status.reason == "service_error"
    assert status.message == "Cart error"


def test_service_error_long_message_is_generic(submitter, cart_service, ledger, catalog):
    cart_service.add_status = 500
    cart_service.add_body = {"description": "An unexpected internal error happened while processing"}
    status = asyncio.run(submitter.submit(ledger, catalog))
    assert status.reason == "service_error"
    assert status.message == "Error - Try Again"


def test_transport_failure_is_service_error(submitter, cart_service, ledger, catalog):
    cart_service.add_error = httpx.ConnectError("connection refused while contacting the cart service")
    status = asyncio.run(submitter.submit(ledger, catalog))
    assert status.state == "failed"
    assert status.reason == "service_error"
    assert status.message == "Error - Try Again"


def test_submit_ignored_while_status_is_displayed(submitter, cart_service, ledger, catalog, clock):
    asyncio.run(submitter.submit(ledger, catalog))
    asyncio.run(submitter.submit(ledger, catalog))
    assert len(cart_service.add_payloads) == 1

    clock.advance(settings.SUCCESS_DISPLAY_SECONDS)
    asyncio.run(submitter.submit(ledger, catalog))
    assert len(cart_service.add_payloads) == 2


def test_broadcaster_isolates_failing_listeners():
    broadcaster = CartCountBroadcaster()
    seen = []

    def broken(count, cart):
        raise RuntimeError("badge gone")

    broadcaster.subscribe(broken)
    unsubscribe = broadcaster.subscribe(lambda count, cart: seen.append(count))
    broadcaster.publish(4, {})
    unsubscribe()
    broadcaster.publish(5, {})
    assert seen == [4]
