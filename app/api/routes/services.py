from fastapi import APIRouter, Depends

from app.api.deps import get_square_client
from app.api.schemas.booking import Envelope, Provider, ServiceInfo, ServiceList, ServiceNames, TeamMemberInfo
from app.models.catalog import Service, TeamMember
from app.services.catalog_service import NameIndex, list_services, list_team_members, load_catalog
from app.services.square_client import SquareClient

router = APIRouter(tags=["catalog"])


def _to_service_info(svc: Service, members: NameIndex[TeamMember]) -> ServiceInfo:
    given_names = {tm.id: tm.given_name for tm in members.values()}
    return ServiceInfo(
        id=svc.id,
        service_variation_id=svc.variation_id,
        name=svc.name,
        pricing_type=svc.pricing_type,
        pricing_currency=svc.price.currency if svc.price else None,
        description=svc.description or " ",
        image_url=svc.image_url,
        pricing_amount=svc.price.major_amount if svc.price else 0.0,
        providers=[Provider(id=tid, name=given_names.get(tid) or "Unknown") for tid in svc.team_member_ids],
    )


@router.get("/services", response_model=Envelope[ServiceList], response_model_exclude_none=True)
async def get_services(client: SquareClient = Depends(get_square_client)) -> Envelope[ServiceList]:
    """All bookable services with prices, image and providers, sorted by name."""
    services, members = await load_catalog(client, include_images=True)
    infos = sorted((_to_service_info(s, members) for s in services.values()), key=lambda s: s.name.lower())
    return Envelope(data=ServiceList(services=infos), count=len(infos))


@router.get("/services/names", response_model=Envelope[ServiceNames], response_model_exclude_none=True)
async def get_service_names(client: SquareClient = Depends(get_square_client)) -> Envelope[ServiceNames]:
    services = await list_services(client)
    names = [s.name for s in services.values() if s.name]
    return Envelope(data=ServiceNames(services=names), count=len(names))


@router.get("/team-members", response_model=Envelope[list[TeamMemberInfo]], response_model_exclude_none=True)
async def get_team_members(client: SquareClient = Depends(get_square_client)) -> Envelope[list[TeamMemberInfo]]:
    members = await list_team_members(client)
    infos = [TeamMemberInfo(id=tm.id, name=tm.display_name) for tm in members.values()]
    return Envelope(data=infos, count=len(infos))
