"""Cosmetic record store: OwnershipRecord <-> owned_cosmetics table

Every operation opens its own short-lived session, so one store instance
can be shared by request handlers and the background sweep thread.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from src.core.logging import get_logger
from src.core.ownership.models import AcquisitionMethod, OwnershipRecord
from src.db.models import OwnedCosmeticModel

logger = get_logger(__name__)


class CosmeticRecordStore:
    """CRUD over owned cosmetics plus one conditional transfer."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    # === Queries ===

    def find_by_id(self, instance_id: str) -> Optional[OwnershipRecord]:
        with self._session_factory() as session:
            orm = session.get(OwnedCosmeticModel, instance_id)
            return self._to_core(orm) if orm is not None else None

    def find_by_owner(
        self, owner_id: str, tokenized_only: bool = True
    ) -> list[OwnershipRecord]:
        stmt = select(OwnedCosmeticModel).where(OwnedCosmeticModel.owner_id == owner_id)
        if tokenized_only:
            stmt = stmt.where(OwnedCosmeticModel.token_ref.is_not(None))
        stmt = stmt.order_by(OwnedCosmeticModel.instance_id)
        with self._session_factory() as session:
            return [self._to_core(r) for r in session.scalars(stmt)]

    def find_all_tokenized(self) -> list[OwnershipRecord]:
        stmt = (
            select(OwnedCosmeticModel)
            .where(OwnedCosmeticModel.token_ref.is_not(None))
            .order_by(OwnedCosmeticModel.instance_id)
        )
        with self._session_factory() as session:
            return [self._to_core(r) for r in session.scalars(stmt)]

    # === Mutations ===

    def add(self, record: OwnershipRecord) -> OwnershipRecord:
        """Insert a record. Minting lives elsewhere; used for seeding."""
        with self._session_factory() as session:
            orm = OwnedCosmeticModel(
                instance_id=record.instance_id,
                template_id=record.template_id,
                owner_id=record.owner_id,
                token_ref=record.token_ref,
                acquisition_method=AcquisitionMethod(record.acquisition_method).value,
                acquisition_price=record.acquisition_price,
                name=record.name,
                serial_number=record.serial_number,
            )
            if record.acquired_at is not None:
                orm.acquired_at = record.acquired_at
            session.add(orm)
            session.commit()
            session.refresh(orm)
            return self._to_core(orm)

    def transfer_if_token_ref_unchanged(
        self,
        instance_id: str,
        token_ref: str,
        expected_owner: str,
        new_owner: str,
        method: AcquisitionMethod,
        price: Optional[int] = None,
    ) -> Optional[OwnershipRecord]:
        """Compare-and-swap ownership transfer.

        Applies only if the row still references token_ref and is still owned
        by expected_owner. Returns the updated record, or None when another
        writer got there first (or the row is gone).
        """
        stmt = (
            update(OwnedCosmeticModel)
            .where(
                OwnedCosmeticModel.instance_id == instance_id,
                OwnedCosmeticModel.token_ref == token_ref,
                OwnedCosmeticModel.owner_id == expected_owner,
            )
            .values(
                owner_id=new_owner,
                acquisition_method=AcquisitionMethod(method).value,
                acquisition_price=price,
            )
            .execution_options(synchronize_session=False)
        )
        with self._session_factory() as session:
            result = session.execute(stmt)
            if result.rowcount != 1:
                session.rollback()
                logger.debug(
                    "Conditional transfer of %s rejected (rows=%s)",
                    instance_id,
                    result.rowcount,
                )
                return None
            session.commit()
            orm = session.get(OwnedCosmeticModel, instance_id)
            return self._to_core(orm) if orm is not None else None

    # === Mapping ===

    @staticmethod
    def _to_core(orm: OwnedCosmeticModel) -> OwnershipRecord:
        return OwnershipRecord(
            instance_id=orm.instance_id,
            template_id=orm.template_id,
            owner_id=orm.owner_id,
            token_ref=orm.token_ref,
            acquisition_method=AcquisitionMethod(orm.acquisition_method),
            acquisition_price=orm.acquisition_price,
            name=orm.name,
            serial_number=orm.serial_number,
            acquired_at=orm.acquired_at,
        )
