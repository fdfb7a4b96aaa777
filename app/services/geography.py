"""Zones, provinces and districts."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import atomic
from app.core.permissions import AuditAction
from app.models.geography import District, Province, Zone
from app.schemas.geography import DistrictCreate, ProvinceCreate, ZoneCreate
from app.services import audit as audit_service
from app.services.audit import AuditContext


async def get_zones(db: AsyncSession) -> list[Zone]:
    result = await db.execute(select(Zone).order_by(Zone.name))
    return list(result.scalars().all())


async def get_provinces(db: AsyncSession, zone_id: UUID | None = None) -> list[Province]:
    query = select(Province)
    if zone_id is not None:
        query = query.where(Province.zone_id == zone_id)
    result = await db.execute(query.order_by(Province.name))
    return list(result.scalars().all())


async def get_districts(db: AsyncSession, province_id: UUID | None = None) -> list[District]:
    query = select(District)
    if province_id is not None:
        query = query.where(District.province_id == province_id)
    result = await db.execute(query.order_by(District.name))
    return list(result.scalars().all())


async def get_zone_by_name(db: AsyncSession, name: str) -> Zone | None:
    result = await db.execute(select(Zone).where(Zone.name == name))
    return result.scalar_one_or_none()


async def get_province_by_id(db: AsyncSession, province_id: UUID) -> Province | None:
    result = await db.execute(select(Province).where(Province.id == province_id))
    return result.scalar_one_or_none()


async def _create(db: AsyncSession, ctx: AuditContext, node, summary: str):
    async with atomic(db):
        db.add(node)
        await db.flush()
        await audit_service.log(
            db,
            ctx,
            AuditAction.CREATE,
            node.__tablename__,
            node.id,
            new_data=audit_service.snapshot(node),
            summary=summary,
        )
    return node


async def create_zone(db: AsyncSession, ctx: AuditContext, data: ZoneCreate) -> Zone:
    return await _create(db, ctx, Zone(name=data.name), f"Created zone {data.name}")


async def create_province(db: AsyncSession, ctx: AuditContext, data: ProvinceCreate) -> Province:
    return await _create(
        db, ctx, Province(zone_id=data.zone_id, name=data.name), f"Created province {data.name}"
    )


async def create_district(db: AsyncSession, ctx: AuditContext, data: DistrictCreate) -> District:
    return await _create(
        db,
        ctx,
        District(province_id=data.province_id, name=data.name),
        f"Created district {data.name}",
    )
