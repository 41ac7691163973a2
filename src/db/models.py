"""SQLAlchemy declarative base for all ORM models."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class OwnedCosmeticModel(Base):
    """ORM model for owned cosmetic instances."""

    __tablename__ = "owned_cosmetics"

    instance_id: Mapped[str] = mapped_column(String, primary_key=True)
    template_id: Mapped[str] = mapped_column(String, nullable=False)
    owner_id: Mapped[str] = mapped_column(String, nullable=False)

    # ledger mint address; NULL = not tokenized
    token_ref: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)

    acquisition_method: Mapped[str] = mapped_column(String, nullable=False, default="gacha")
    acquisition_price: Mapped[int | None] = mapped_column(Integer, nullable=True)

    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    serial_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    acquired_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_cosmetic_owner", "owner_id"),
        Index("idx_cosmetic_template", "template_id"),
    )
