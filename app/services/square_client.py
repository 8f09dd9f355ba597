import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_upstream(model: type[ModelT], data: Any, what: str) -> ModelT:
    """Validate a Square payload fragment, raising UpstreamError if it is malformed."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("Malformed %s from Square: %s", what, e)
        raise UpstreamError(f"Square returned a malformed {what}")


class SquareClient:
    """Thin async wrapper over the Square REST API.

    Every non-2xx response, transport failure or non-JSON body is raised as
    UpstreamError carrying Square's status and error details.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    @staticmethod
    def create_http_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
        if transport is None:
            transport = httpx.AsyncHTTPTransport(retries=settings.square_connect_retries)
        return httpx.AsyncClient(
            base_url=settings.square_api_base_url,
            headers={
                "Content-Type": "application/json",
                "Square-Version": settings.square_api_version,
                "Authorization": f"Bearer {settings.square_access_token}",
            },
            timeout=settings.square_timeout_seconds,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            resp = await self._http.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.warning("Square request %s %s failed: %s", method, path, e)
            raise UpstreamError(f"Square API request failed: {path}")
        try:
            payload = resp.json()
        except ValueError:
            logger.warning(
                "Square returned non-JSON body: %s %s status=%s body=%s",
                method, path, resp.status_code, resp.text[:500],
            )
            if resp.is_success:
                raise UpstreamError(f"Square API returned an invalid response: {path}")
            raise UpstreamError(f"Square API request failed: {path}", resp.status_code)
        if not resp.is_success:
            errors = payload.get("errors") if isinstance(payload, dict) else None
            details = [e.get("detail", "") for e in errors or [] if isinstance(e, dict)]
            message = "; ".join(d for d in details if d) or f"Square API request failed: {path}"
            logger.warning("Square %s %s -> %s: %s", method, path, resp.status_code, message)
            raise UpstreamError(message, resp.status_code)
        if not isinstance(payload, dict):
            raise UpstreamError(f"Square API returned an invalid response: {path}")
        return payload

    async def list_catalog_items(
        self, types: str = "ITEM", product_types: str = "APPOINTMENTS_SERVICE"
    ) -> list[dict[str, Any]]:
        objects: list[dict[str, Any]] = []
        params: dict[str, Any] = {"types": types, "product_types": product_types}
        while True:
            payload = await self._request("GET", "/catalog/list", params=params)
            objects.extend(payload.get("objects") or [])
            cursor = payload.get("cursor")
            if not cursor:
                return objects
            params = {**params, "cursor": cursor}

    async def get_catalog_item_with_related(self, item_id: str) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/catalog/object/{item_id}",
            params={
                "include_related_objects": "true",
                "include_category_path_to_root": "false",
            },
        )

    async def search_team_members(self, query: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        members: list[dict[str, Any]] = []
        body: dict[str, Any] = {"query": query or {}}
        while True:
            payload = await self._request("POST", "/team-members/search", json=body)
            members.extend(payload.get("team_members") or [])
            cursor = payload.get("cursor")
            if not cursor:
                return members
            body = {**body, "cursor": cursor}

    async def search_customers(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        payload = await self._request("POST", "/customers/search", json={"query": query})
        return payload.get("customers") or []

    async def create_customer(self, fields: dict[str, Any]) -> dict[str, Any]:
        payload = await self._request("POST", "/customers", json=fields)
        return payload.get("customer") or {}

    async def search_availability(self, filter: dict[str, Any]) -> list[dict[str, Any]]:
        payload = await self._request(
            "POST", "/bookings/availability/search", json={"query": {"filter": filter}}
        )
        return payload.get("availabilities") or []

    async def create_booking(self, booking: dict[str, Any], idempotency_key: str) -> dict[str, Any]:
        payload = await self._request(
            "POST",
            "/bookings",
            json={"idempotency_key": idempotency_key, "booking": booking},
        )
        return payload.get("booking") or {}
