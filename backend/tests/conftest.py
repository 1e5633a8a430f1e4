"""
Pytest configuration and shared fixtures for the quoting engine tests.
"""

import json
import threading

import pytest
import requests

from rateshop.schemas.quote import Quote, QuoteCarrier
from rateshop.schemas.shipment import ShipmentRecord
from rateshop.services.token_manager import Project44Credentials


def build_response(status_code=200, body=None, url="https://api.test/endpoint"):
    """Build a real requests.Response carrying a JSON (or raw text) body."""
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    if body is None:
        response._content = b""
    elif isinstance(body, (bytes, str)):
        response._content = body.encode() if isinstance(body, str) else body
    else:
        response._content = json.dumps(body).encode()
    response.encoding = "utf-8"
    return response


class FakeHttp:
    """
    Stand-in for requests.Session.

    Routes are matched by (method, url suffix); each route holds either a
    response, a list of responses served in order, or a callable.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self._lock = threading.Lock()

    def add(self, method, suffix, response):
        self.routes[(method, suffix)] = response

    def calls_to(self, suffix):
        return [c for c in self.calls if c["url"].split("?")[0].endswith(suffix)]

    def request(self, method, url, **kwargs):
        with self._lock:
            self.calls.append({"method": method, "url": url, **kwargs})
        path = url.split("?")[0]
        for (route_method, suffix), handler in self.routes.items():
            if route_method == method and path.endswith(suffix):
                if callable(handler):
                    return handler(method, url, **kwargs)
                if isinstance(handler, list):
                    with self._lock:
                        return handler.pop(0) if len(handler) > 1 else handler[0]
                return handler
        return build_response(404, {"error": "not found"}, url=url)


@pytest.fixture
def fake_http():
    return FakeHttp()


@pytest.fixture
def credentials():
    return Project44Credentials(client_id="client-id", client_secret="client-secret")


@pytest.fixture
def token_body():
    return {"access_token": "token-1", "token_type": "Bearer", "expires_in": 3600}


@pytest.fixture
def make_shipment():
    """Factory for valid shipments; keyword overrides win."""
    def _make(**overrides):
        data = {
            "from_date": "2025-03-10",
            "from_zip": "60601",
            "to_zip": "30301",
            "pallets": 3,
            "gross_weight": 2000,
            "is_stackable": True,
        }
        data.update(overrides)
        return ShipmentRecord(**data)
    return _make


@pytest.fixture
def make_quote():
    def _make(carrier="Test Carrier", total=500.0, carrier_code="TEST", **overrides):
        data = {
            "quote_id": 1,
            "carrier": QuoteCarrier(name=carrier, scac=carrier_code),
            "carrier_code": carrier_code,
            "total": total,
            "submitted_by": "Project44 Standard LTL",
            "submission_datetime": "2025-03-10T12:00:00Z",
        }
        data.update(overrides)
        return Quote(**data)
    return _make


@pytest.fixture
def rate_quote():
    """Raw Project44 rate quote dict."""
    def _make(carrier_code="ODFL", service="STD", total=100.0, charges=None, **extra):
        quote = {
            "id": f"{carrier_code}-{service}-{total}",
            "carrierCode": carrier_code,
            "serviceLevel": {"code": service, "description": f"{service} service"},
            "transitDays": 3,
            "currencyCode": "USD",
            "rateQuoteDetail": {"total": total, "charges": charges or []},
        }
        quote.update(extra)
        return quote
    return _make
