import logging
from collections.abc import Iterator
from typing import Any, Generic, TypeVar

from app.core.concurrency import gather_fail_fast
from app.core.exceptions import UpstreamError
from app.models.catalog import Service, TeamMember
from app.services.square_client import SquareClient, parse_upstream

logger = logging.getLogger(__name__)

APPOINTMENTS_SERVICE = "APPOINTMENTS_SERVICE"

T = TypeVar("T")


class NameIndex(Generic[T]):
    """Case-insensitive name -> value index.

    A repeated name replaces the earlier entry (last write wins), but the clash
    is logged and kept in `duplicates` so bad catalog data is visible.
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._items: dict[str, T] = {}
        self.duplicates: list[str] = []

    @staticmethod
    def normalize(name: str) -> str:
        return name.strip().lower()

    def add(self, name: str, value: T) -> None:
        key = self.normalize(name)
        if key in self._items:
            logger.warning("Duplicate %s name %r in Square data; later entry wins", self.kind, key)
            self.duplicates.append(key)
        self._items[key] = value

    def get(self, name: str) -> T | None:
        return self._items.get(self.normalize(name))

    def values(self) -> list[T]:
        return list(self._items.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.normalize(name) in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)


def _first_image_url(related_objects: list[dict[str, Any]]) -> str:
    for obj in related_objects or []:
        if obj.get("type") == "IMAGE":
            return (obj.get("image_data") or {}).get("url") or ""
    return ""


async def _load_image_urls(client: SquareClient, item_ids: list[str]) -> dict[str, str]:
    results = await gather_fail_fast(
        *(client.get_catalog_item_with_related(item_id) for item_id in item_ids)
    )
    return {
        item_id: _first_image_url(detail.get("related_objects") or [])
        for item_id, detail in zip(item_ids, results)
    }


def _to_service(obj: dict[str, Any], image_url: str) -> Service | None:
    item_data = obj.get("item_data") or {}
    variations = item_data.get("variations") or []
    variation = variations[0] if variations else {}
    variation_data = variation.get("item_variation_data") or {}
    variation_id = variation.get("id")
    team_ids = variation_data.get("team_member_ids") or []
    if not variation_id or not team_ids:
        logger.debug("Skipping service %s: no bookable variation or team members", obj.get("id"))
        return None
    fields = {
        "id": obj.get("id"),
        "variation_id": variation_id,
        "version": obj.get("version") or 0,
        "name": item_data.get("name") or "",
        "description": item_data.get("description"),
        "pricing_type": variation_data.get("pricing_type"),
        "price": variation_data.get("price_money") or None,
        "image_url": image_url,
        "team_member_ids": team_ids,
    }
    return parse_upstream(Service, fields, "catalog item")


async def list_services(client: SquareClient, include_images: bool = False) -> NameIndex[Service]:
    """Load bookable appointment services keyed by lower-cased name."""
    objects = await client.list_catalog_items()
    items = [
        obj
        for obj in objects
        if obj.get("type") == "ITEM"
        and (obj.get("item_data") or {}).get("product_type") == APPOINTMENTS_SERVICE
    ]
    if any(not obj.get("id") for obj in items):
        raise UpstreamError("Square returned a catalog item without an id")
    image_urls: dict[str, str] = {}
    if include_images and items:
        image_urls = await _load_image_urls(client, [obj["id"] for obj in items])

    index: NameIndex[Service] = NameIndex("service")
    for obj in items:
        service = _to_service(obj, image_urls.get(obj["id"], ""))
        if service is not None:
            index.add(service.name, service)
    return index


async def list_team_members(client: SquareClient) -> NameIndex[TeamMember]:
    """Load team members keyed by lower-cased 'given family' name."""
    members = await client.search_team_members()
    index: NameIndex[TeamMember] = NameIndex("team member")
    for raw in members:
        member = parse_upstream(TeamMember, raw, "team member")
        index.add(member.display_name, member)
    return index


async def load_catalog(
    client: SquareClient, include_images: bool = False
) -> tuple[NameIndex[Service], NameIndex[TeamMember]]:
    """Services and team members, fetched concurrently."""
    services, members = await gather_fail_fast(
        list_services(client, include_images),
        list_team_members(client),
    )
    return services, members
