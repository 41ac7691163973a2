"""Ownership domain models (DB independent)"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class AcquisitionMethod(str, Enum):
    """How the current owner came to hold an instance."""

    MINT = "mint"
    GACHA = "gacha"
    MARKETPLACE_SALE = "marketplace_sale"
    NFT_SALE = "nft_sale"  # sold off-platform, seen from the previous owner
    NFT_PURCHASE = "nft_purchase"  # bought off-platform, seen from the new owner
    NFT_SYNC = "nft_sync"  # corrected during a pre-action check


class SyncReason(str, Enum):
    """Outcome codes of one reconciliation or permission check."""

    OK = "OK"
    NOT_OWNER = "NOT_OWNER"
    NOT_FOUND = "NOT_FOUND"
    NOT_TOKENIZED = "NOT_TOKENIZED"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    UNCHANGED = "UNCHANGED"
    LEDGER_MISMATCH = "LEDGER_MISMATCH"
    TRANSFER_FAILED = "TRANSFER_FAILED"
    TRANSFERRED = "TRANSFERRED"


@dataclass
class OwnershipRecord:
    """One owned cosmetic instance. token_ref=None means not tokenized."""

    instance_id: str
    template_id: str
    owner_id: str  # wallet address

    token_ref: Optional[str] = None  # ledger mint address
    acquisition_method: AcquisitionMethod = AcquisitionMethod.GACHA
    acquisition_price: Optional[int] = None

    # display
    name: str = ""
    serial_number: Optional[int] = None
    acquired_at: Optional[datetime] = None

    @property
    def is_tokenized(self) -> bool:
        return bool(self.token_ref)


@dataclass
class ChangeDescriptor:
    """Result of one reconcile attempt."""

    instance_id: str
    changed: bool
    reason: SyncReason
    previous_owner: Optional[str] = None
    new_owner: Optional[str] = None

    template_id: Optional[str] = None
    name: Optional[str] = None
    serial_number: Optional[int] = None

    @classmethod
    def for_record(
        cls,
        record: OwnershipRecord,
        changed: bool,
        reason: SyncReason,
        previous_owner: Optional[str] = None,
        new_owner: Optional[str] = None,
    ) -> ChangeDescriptor:
        return cls(
            instance_id=record.instance_id,
            changed=changed,
            reason=reason,
            previous_owner=previous_owner,
            new_owner=new_owner,
            template_id=record.template_id,
            name=record.name,
            serial_number=record.serial_number,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["reason"] = self.reason.value
        return data


@dataclass
class UserSyncReport:
    """Login sweep result for one wallet."""

    owner_id: str
    gained: list[ChangeDescriptor] = field(default_factory=list)
    lost: list[ChangeDescriptor] = field(default_factory=list)
    unchanged: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "gained": [c.to_dict() for c in self.gained],
            "lost": [c.to_dict() for c in self.lost],
            "unchanged": self.unchanged,
            "errors": list(self.errors),
        }


@dataclass
class SweepReport:
    """Background sweep counters."""

    checked: int = 0
    changed: int = 0
    errors: int = 0
    batches: int = 0
    aborted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ActionDecision:
    """Pre-action permission verdict. Denials carry a reason code."""

    allowed: bool
    reason: SyncReason
    instance_id: str
