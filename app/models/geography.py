"""Geographic hierarchy: zone > province > district."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import BaseModel


class Zone(BaseModel):
    __tablename__ = "zones"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class Province(BaseModel):
    __tablename__ = "provinces"

    zone_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("zones.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class District(BaseModel):
    __tablename__ = "districts"

    province_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("provinces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
