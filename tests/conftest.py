import json
import sys
from pathlib import Path

import httpx
import pytest

# Add backend to sys.path so flat modules (config, configurator, ...) import
BACKEND_PATH = Path(__file__).resolve().parent.parent / "backend"
if BACKEND_PATH.as_posix() not in sys.path:
    sys.path.insert(0, BACKEND_PATH.as_posix())

from configurator.catalog import load_catalog  # noqa: E402
from utils.cart_client import CartServiceClient  # noqa: E402


RAW_CATALOG = {
    "brands": [
        {"handle": "acme", "name": "Acme", "family": "optic"},
        {"handle": "globex", "name": "Globex", "family": "optic"},
        {"handle": "pixel", "name": "Pixel", "family": "phone"},
    ],
    "models": [
        {
            "handle": "m1",
            "name": "Model One",
            "brandHandle": "acme",
            "modelImage": "https://cdn.test/m1.png",
            "variants": {
                "ring-mount": {"id": "V1", "title": "40mm", "productTitle": "Ring Mount", "price": 1000},
                "mag-ring": {"id": "V2", "title": "Default Title", "productTitle": "Mag Ring", "price": 500},
            },
        },
        {
            "handle": "m2",
            "name": "Model Two",
            "brandHandle": "acme",
            "productNotice": "Check your rail size first.",
            "variants": {
                "ring-mount": {"id": "V3", "title": "44mm", "productTitle": "Ring Mount", "price": 1200, "available": False},
                "mag-ring": {"id": "V2", "title": "Default Title", "productTitle": "Mag Ring", "price": 500},
            },
        },
        {
            "handle": "g1",
            "name": "Globex One",
            "brandHandle": "globex",
            "ringMount": {"id": "V4", "title": "30mm", "productTitle": "Ring Mount", "price": 800},
            "magRing": None,
        },
        {
            "handle": "p1",
            "name": "Pixel 9",
            "brandHandle": "pixel",
            "phoneCase": {"id": 55101, "title": "Default Title", "productTitle": "Pixel 9 Case", "price": 2500},
        },
    ],
    "fixedVariants": {
        "adapter": {"id": "A1", "title": "Default Title", "productTitle": "Adapter", "price": 700},
    },
    "standalone": [
        {"blockId": "cloth", "id": "S1", "title": "Default Title", "productTitle": "Lens Cloth", "price": 300},
        {"blockId": "tripod", "id": "S2", "title": "Carbon", "productTitle": "Tripod", "price": 9000, "available": False},
    ],
}


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCartService:
    """Stands in for the storefront cart endpoints behind httpx.MockTransport."""

    def __init__(self):
        self.add_status = 200
        self.add_body = {"items": []}
        self.read_status = 200
        self.read_body = {"item_count": 0, "total_price": 0}
        self.add_error = None
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/cart/add.js":
            if self.add_error is not None:
                raise self.add_error
            return httpx.Response(self.add_status, json=self.add_body)
        if request.url.path == "/cart.js":
            return httpx.Response(self.read_status, json=self.read_body)
        return httpx.Response(404, json={"description": "Not found"})

    @property
    def add_payloads(self):
        return [json.loads(r.content) for r in self.requests if r.url.path == "/cart/add.js"]

    def client(self) -> CartServiceClient:
        return CartServiceClient(base_url="http://shop.test", transport=httpx.MockTransport(self.handler))


@pytest.fixture
def raw_catalog():
    return json.loads(json.dumps(RAW_CATALOG))


@pytest.fixture
def catalog(raw_catalog):
    return load_catalog(raw_catalog)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cart_service():
    return FakeCartService()
