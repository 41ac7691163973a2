"""Ownership Service: ledger-derived ownership for tokenized cosmetics

Ownership of an NFT-minted cosmetic follows the ledger. When an NFT is sold
on an external marketplace the buyer gets the cosmetic and the seller loses
it. Sync happens:
- before a privileged action (equipping), via can_act
- on login, via sync_user
- periodically, via sweep_all (see src/engine/sweep_scheduler.py)

Every path funnels into _reconcile_record, the single place where the
conditional transfer is issued.
"""

import time
from typing import Callable, Optional

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.core.ownership.address import short_address
from src.core.ownership.cache import OwnershipCache
from src.core.ownership.models import (
    AcquisitionMethod,
    ActionDecision,
    ChangeDescriptor,
    OwnershipRecord,
    SweepReport,
    SyncReason,
    UserSyncReport,
)
from src.services.record_store import CosmeticRecordStore

logger = get_logger(__name__)

SOURCE = "ownership_service"

DEFAULT_BATCH_SIZE = 50
DEFAULT_BATCH_DELAY_SECONDS = 1.0

# reconcile outcomes a sweep counts as errors
_SWEEP_ERROR_REASONS = {SyncReason.VERIFICATION_FAILED, SyncReason.TRANSFER_FAILED}


class OwnershipService:
    """Reconciles local cosmetic ownership with the ledger."""

    def __init__(
        self,
        store: CosmeticRecordStore,
        cache: OwnershipCache,
        event_bus: EventBus,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        self._store = store
        self._cache = cache
        self._bus = event_bus
        self._sleep = sleep

    # === Holder resolution ===

    def resolve_holder(self, token_ref: str) -> Optional[str]:
        """Current on-ledger holder, served from cache when fresh."""
        return self._cache.resolve(token_ref)

    def verify_ownership(self, owner_id: str, token_ref: str) -> bool:
        """True only if the ledger positively reports owner_id as holder."""
        return self.resolve_holder(token_ref) == owner_id

    def clear_cache(self) -> int:
        return self._cache.clear()

    def prune_cache(self) -> int:
        """Drop expired holder entries. Returns the number dropped."""
        pruned = self._cache.prune()
        if pruned:
            logger.debug("Pruned %d expired ownership cache entries", pruned)
        return pruned

    # === Single instance ===

    def reconcile_one(
        self,
        instance_id: str,
        method: AcquisitionMethod = AcquisitionMethod.NFT_SALE,
        trigger: str = "manual",
    ) -> ChangeDescriptor:
        """Bring one instance in line with the ledger.

        NOT_FOUND / NOT_TOKENIZED / VERIFICATION_FAILED / UNCHANGED leave the
        record untouched. A mismatch is committed with a conditional write;
        losing that race yields TRANSFER_FAILED.
        """
        record = self._store.find_by_id(instance_id)
        if record is None:
            return ChangeDescriptor(instance_id, changed=False, reason=SyncReason.NOT_FOUND)
        try:
            return self._reconcile_record(record, method=method, trigger=trigger)
        finally:
            self._bus.reset_chain()

    def _reconcile_record(
        self,
        record: OwnershipRecord,
        method: AcquisitionMethod,
        trigger: str,
        holder: Optional[str] = None,
    ) -> ChangeDescriptor:
        if not record.is_tokenized:
            return ChangeDescriptor.for_record(
                record, changed=False, reason=SyncReason.NOT_TOKENIZED
            )
        assert record.token_ref is not None

        if holder is None:
            holder = self.resolve_holder(record.token_ref)
        if holder is None:
            self._emit_verification_failed(record)
            return ChangeDescriptor.for_record(
                record, changed=False, reason=SyncReason.VERIFICATION_FAILED
            )

        if holder == record.owner_id:
            return ChangeDescriptor.for_record(
                record,
                changed=False,
                reason=SyncReason.UNCHANGED,
                previous_owner=record.owner_id,
                new_owner=record.owner_id,
            )

        # off-platform consideration is unobservable, so no price
        updated = self._store.transfer_if_token_ref_unchanged(
            record.instance_id,
            token_ref=record.token_ref,
            expected_owner=record.owner_id,
            new_owner=holder,
            method=method,
            price=None,
        )
        if updated is None:
            logger.info(
                "Transfer of %s lost a race or was rejected, will retry next sweep",
                record.instance_id,
            )
            return ChangeDescriptor.for_record(
                record,
                changed=False,
                reason=SyncReason.TRANSFER_FAILED,
                previous_owner=record.owner_id,
                new_owner=holder,
            )

        logger.info(
            "NFT ownership changed for %s #%s: %s -> %s (%s, %s)",
            record.name or record.template_id,
            record.serial_number,
            short_address(record.owner_id),
            short_address(holder),
            method.value,
            trigger,
        )
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.COSMETIC_OWNERSHIP_CHANGED,
                data={
                    "instance_id": record.instance_id,
                    "template_id": record.template_id,
                    "previous_owner": record.owner_id,
                    "new_owner": holder,
                    "acquisition_method": method.value,
                    "trigger": trigger,
                },
                source=SOURCE,
                subject=record.instance_id,
            )
        )
        return ChangeDescriptor.for_record(
            record,
            changed=True,
            reason=SyncReason.TRANSFERRED,
            previous_owner=record.owner_id,
            new_owner=holder,
        )

    def _emit_verification_failed(self, record: OwnershipRecord) -> None:
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.COSMETIC_VERIFICATION_FAILED,
                data={"instance_id": record.instance_id, "token_ref": record.token_ref},
                source=SOURCE,
                subject=record.instance_id,
            )
        )

    # === Pre-action check ===

    def can_act(self, owner_id: str, instance_id: str) -> ActionDecision:
        """May owner_id use (equip) instance_id right now?

        Fails closed: a tokenized instance is only permitted when the ledger
        positively names owner_id as holder.
        """
        record = self._store.find_by_id(instance_id)
        if record is None:
            return ActionDecision(False, SyncReason.NOT_FOUND, instance_id)

        if not record.is_tokenized:
            if record.owner_id == owner_id:
                return ActionDecision(True, SyncReason.OK, instance_id)
            return ActionDecision(False, SyncReason.NOT_OWNER, instance_id)
        assert record.token_ref is not None

        holder = self.resolve_holder(record.token_ref)
        # requester holds it but the store lags behind: record as a sync
        method = (
            AcquisitionMethod.NFT_SYNC if holder == owner_id else AcquisitionMethod.NFT_SALE
        )
        try:
            result = self._reconcile_record(
                record, method=method, trigger="pre_action", holder=holder
            )
        finally:
            self._bus.reset_chain()

        if result.reason == SyncReason.VERIFICATION_FAILED:
            return ActionDecision(False, SyncReason.VERIFICATION_FAILED, instance_id)
        if result.reason == SyncReason.TRANSFER_FAILED:
            return ActionDecision(False, SyncReason.TRANSFER_FAILED, instance_id)
        if result.new_owner == owner_id:
            return ActionDecision(True, SyncReason.OK, instance_id)
        return ActionDecision(False, SyncReason.LEDGER_MISMATCH, instance_id)

    # === Login sweep ===

    def sync_user(self, owner_id: str) -> UserSyncReport:
        """Reconcile everything owner_id holds locally or on the ledger.

        Pass A checks the wallet's tokenized records (sold items -> lost).
        Pass B scans every other tokenized record for ones the wallet now
        holds on the ledger (bought items -> gained).
        """
        report = UserSyncReport(owner_id=owner_id)
        try:
            owned = self._store.find_by_owner(owner_id, tokenized_only=True)
            owned_ids = {r.instance_id for r in owned}

            for record in owned:
                try:
                    result = self._reconcile_record(
                        record, method=AcquisitionMethod.NFT_SALE, trigger="login"
                    )
                except Exception as exc:
                    logger.exception("Login sync failed for %s", record.instance_id)
                    report.errors.append({"instance_id": record.instance_id, "error": str(exc)})
                    continue

                if result.changed:
                    report.lost.append(result)
                    logger.info(
                        "%s lost %s #%s (sold NFT)",
                        short_address(owner_id),
                        record.name or record.template_id,
                        record.serial_number,
                    )
                elif result.reason == SyncReason.UNCHANGED:
                    report.unchanged += 1
                else:
                    report.errors.append(
                        {"instance_id": record.instance_id, "error": result.reason.value}
                    )

            for record in self._store.find_all_tokenized():
                if record.instance_id in owned_ids or record.owner_id == owner_id:
                    continue
                try:
                    self._scan_for_gain(owner_id, record, report)
                except Exception as exc:
                    logger.exception("Catalog scan failed for %s", record.instance_id)
                    report.errors.append({"instance_id": record.instance_id, "error": str(exc)})
        finally:
            self._bus.reset_chain()

        logger.info(
            "Login sync for %s: +%d -%d =%d errors=%d",
            short_address(owner_id),
            len(report.gained),
            len(report.lost),
            report.unchanged,
            len(report.errors),
        )
        return report

    def _scan_for_gain(
        self, owner_id: str, record: OwnershipRecord, report: UserSyncReport
    ) -> None:
        assert record.token_ref is not None
        holder = self.resolve_holder(record.token_ref)
        if holder is None:
            logger.debug("Skipping %s during catalog scan: unresolved", record.instance_id)
            return

        acquired = holder == owner_id
        method = AcquisitionMethod.NFT_PURCHASE if acquired else AcquisitionMethod.NFT_SALE
        result = self._reconcile_record(record, method=method, trigger="login", holder=holder)

        if not acquired:
            return
        if result.changed:
            report.gained.append(result)
            logger.info(
                "%s gained %s #%s (bought NFT)",
                short_address(owner_id),
                record.name or record.template_id,
                record.serial_number,
            )
        elif result.reason == SyncReason.TRANSFER_FAILED:
            report.errors.append(
                {"instance_id": record.instance_id, "error": result.reason.value}
            )

    # === Background sweep ===

    def sweep_all(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        inter_batch_delay: float = DEFAULT_BATCH_DELAY_SECONDS,
        should_stop: Optional[Callable[[], bool]] = None,
        sleep: Optional[Callable[[float], object]] = None,
    ) -> SweepReport:
        """Reconcile every tokenized instance in fixed-size batches.

        Pauses inter_batch_delay between batches (not after the last).
        should_stop is checked between batches; an abort never interrupts an
        item mid-reconcile.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1: {batch_size}")
        if inter_batch_delay < 0:
            raise ValueError(f"inter_batch_delay must be >= 0: {inter_batch_delay}")
        pause = sleep or self._sleep

        logger.info("Starting NFT ownership background sync...")
        instance_ids = [r.instance_id for r in self._store.find_all_tokenized()]
        report = SweepReport()

        try:
            for start in range(0, len(instance_ids), batch_size):
                if start > 0:
                    if should_stop is not None and should_stop():
                        report.aborted = True
                        break
                    pause(inter_batch_delay)
                    if should_stop is not None and should_stop():
                        report.aborted = True
                        break

                report.batches += 1
                for instance_id in instance_ids[start : start + batch_size]:
                    self._sweep_item(instance_id, report)
        finally:
            self._bus.reset_chain()

        if report.aborted:
            logger.info(
                "NFT sync aborted after %d batches: %d checked", report.batches, report.checked
            )
        else:
            logger.info(
                "NFT sync complete: %d checked, %d ownership changes, %d errors",
                report.checked,
                report.changed,
                report.errors,
            )

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.OWNERSHIP_SWEEP_COMPLETED,
                data=report.to_dict(),
                source=SOURCE,
            )
        )
        self._bus.reset_chain()
        return report

    def _sweep_item(self, instance_id: str, report: SweepReport) -> None:
        report.checked += 1
        try:
            record = self._store.find_by_id(instance_id)
            if record is None:
                return
            result = self._reconcile_record(
                record, method=AcquisitionMethod.NFT_SALE, trigger="sweep"
            )
        except Exception:
            logger.exception("Sweep failed for %s", instance_id)
            report.errors += 1
            return
        finally:
            self._bus.reset_chain()

        if result.changed:
            report.changed += 1
        elif result.reason in _SWEEP_ERROR_REASONS:
            report.errors += 1
