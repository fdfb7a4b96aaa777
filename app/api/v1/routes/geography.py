"""Zone, province and district routes."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from app.core.deps import AdminUser, Audit, CurrentUser, DbSession
from app.schemas.geography import (
    DistrictCreate,
    DistrictResponse,
    ProvinceCreate,
    ProvinceResponse,
    ZoneCreate,
    ZoneResponse,
)
from app.services import geography as geography_service

router = APIRouter(prefix="/geography", tags=["Geography"])


# ============== Endpoints ==============


@router.get("/zones", response_model=list[ZoneResponse])
async def list_zones(db: DbSession, current_user: CurrentUser) -> list[ZoneResponse]:
    """List all zones."""
    zones = await geography_service.get_zones(db)
    return [ZoneResponse.model_validate(z) for z in zones]


@router.post("/zones", response_model=ZoneResponse, status_code=status.HTTP_201_CREATED)
async def create_zone(
    zone_data: ZoneCreate,
    db: DbSession,
    admin: AdminUser,
    ctx: Audit,
) -> ZoneResponse:
    """Create a zone (admin only)."""
    if await geography_service.get_zone_by_name(db, zone_data.name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Zone already exists",
        )
    zone = await geography_service.create_zone(db, ctx, zone_data)
    return ZoneResponse.model_validate(zone)


@router.get("/provinces", response_model=list[ProvinceResponse])
async def list_provinces(
    db: DbSession,
    current_user: CurrentUser,
    zone_id: UUID | None = Query(None, description="Filter by zone"),
) -> list[ProvinceResponse]:
    """List provinces."""
    provinces = await geography_service.get_provinces(db, zone_id)
    return [ProvinceResponse.model_validate(p) for p in provinces]


@router.post("/provinces", response_model=ProvinceResponse, status_code=status.HTTP_201_CREATED)
async def create_province(
    province_data: ProvinceCreate,
    db: DbSession,
    admin: AdminUser,
    ctx: Audit,
) -> ProvinceResponse:
    """Create a province (admin only)."""
    province = await geography_service.create_province(db, ctx, province_data)
    return ProvinceResponse.model_validate(province)


@router.get("/districts", response_model=list[DistrictResponse])
async def list_districts(
    db: DbSession,
    current_user: CurrentUser,
    province_id: UUID | None = Query(None, description="Filter by province"),
) -> list[DistrictResponse]:
    """List districts."""
    districts = await geography_service.get_districts(db, province_id)
    return [DistrictResponse.model_validate(d) for d in districts]


@router.post("/districts", response_model=DistrictResponse, status_code=status.HTTP_201_CREATED)
async def create_district(
    district_data: DistrictCreate,
    db: DbSession,
    admin: AdminUser,
    ctx: Audit,
) -> DistrictResponse:
    """Create a district (admin only)."""
    if not await geography_service.get_province_by_id(db, district_data.province_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Province not found",
        )
    district = await geography_service.create_district(db, ctx, district_data)
    return DistrictResponse.model_validate(district)
