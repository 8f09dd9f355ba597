"""Shared test fixtures and helpers."""

import os

# Settings are read at import time
os.environ.setdefault("SQUARE_ACCESS_TOKEN", "test-token")
os.environ.setdefault("SQUARE_LOCATION_ID", "test-location-id")
os.environ.setdefault("AUTH_TOKEN", "test-auth-token")
os.environ.setdefault("SQUARE_API_VERSION", "2025-04-16")
os.environ.setdefault("ENV", "test")

from typing import Any, Optional

import pytest

from app.core.exceptions import UpstreamError


def make_item(
    item_id: str,
    name: str,
    variation_id: Optional[str] = "V1",
    team_member_ids: Optional[list[str]] = None,
    amount: int = 2500,
    currency: str = "CAD",
    version: Optional[int] = 1700000000000,
    product_type: str = "APPOINTMENTS_SERVICE",
) -> dict[str, Any]:
    """Build a Square catalog ITEM with a single variation."""
    variation: dict[str, Any] = {
        "type": "ITEM_VARIATION",
        "item_variation_data": {
            "item_id": item_id,
            "name": "Regular",
            "pricing_type": "FIXED_PRICING",
            "price_money": {"amount": amount, "currency": currency},
            "team_member_ids": team_member_ids if team_member_ids is not None else ["T1", "T2"],
        },
    }
    if variation_id:
        variation["id"] = variation_id
    item: dict[str, Any] = {
        "type": "ITEM",
        "id": item_id,
        "item_data": {
            "name": name,
            "description": f"{name} description",
            "product_type": product_type,
            "variations": [variation],
        },
    }
    if version is not None:
        item["version"] = version
    return item


def make_slot(start_at: str, team_member_id: str = "T1", variation_id: str = "V1") -> dict[str, Any]:
    return {
        "start_at": start_at,
        "location_id": "test-location-id",
        "appointment_segments": [
            {
                "duration_minutes": 60,
                "team_member_id": team_member_id,
                "service_variation_id": variation_id,
                "service_variation_version": 1700000000000,
            }
        ],
    }


class FakeSquareClient:
    """In-memory stand-in for SquareClient that records every call."""

    def __init__(
        self,
        items: Optional[list[dict[str, Any]]] = None,
        team_members: Optional[list[dict[str, Any]]] = None,
        availabilities: Optional[list[dict[str, Any]]] = None,
        customers: Optional[list[dict[str, Any]]] = None,
        related: Optional[dict[str, list[dict[str, Any]]]] = None,
    ) -> None:
        self.items = items or []
        self.team_members = team_members or []
        self.availabilities = availabilities or []
        self.customers = customers or []
        self.related = related or {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_with: dict[str, UpstreamError] = {}

    def _record(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if name in self.fail_with:
            raise self.fail_with[name]

    def called(self, name: str) -> list[Any]:
        return [arg for call, arg in self.calls if call == name]

    async def list_catalog_items(self, types: str = "ITEM", product_types: str = "APPOINTMENTS_SERVICE"):
        self._record("list_catalog_items", (types, product_types))
        return self.items

    async def get_catalog_item_with_related(self, item_id: str):
        self._record("get_catalog_item_with_related", item_id)
        return {"object": {"id": item_id}, "related_objects": self.related.get(item_id, [])}

    async def search_team_members(self, query=None):
        self._record("search_team_members", query)
        return self.team_members

    async def search_customers(self, query):
        self._record("search_customers", query)
        return self.customers

    async def create_customer(self, fields):
        self._record("create_customer", fields)
        return {"id": "C-NEW", **fields}

    async def search_availability(self, filter):
        self._record("search_availability", filter)
        return self.availabilities

    async def create_booking(self, booking, idempotency_key):
        self._record("create_booking", {"booking": booking, "idempotency_key": idempotency_key})
        return {"id": "B-1", "status": "ACCEPTED", **booking}


@pytest.fixture
def haircut_client():
    """Catalog with one 'Haircut' service (V1, T1/T2) and Alice Smith as T1."""
    return FakeSquareClient(
        items=[make_item("ITEM-1", "Haircut", "V1", ["T1", "T2"])],
        team_members=[
            {"id": "T1", "given_name": "Alice", "family_name": "Smith"},
            {"id": "T2", "given_name": "Bob"},
        ],
    )
