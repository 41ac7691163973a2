"""Ownership reconciliation Core: pure Python, DB independent"""

from .address import is_valid_address, short_address
from .cache import OwnershipCache
from .errors import LedgerConfigError, LedgerError
from .models import (
    AcquisitionMethod,
    ActionDecision,
    ChangeDescriptor,
    OwnershipRecord,
    SweepReport,
    SyncReason,
    UserSyncReport,
)

__all__ = [
    "AcquisitionMethod",
    "ActionDecision",
    "ChangeDescriptor",
    "LedgerConfigError",
    "LedgerError",
    "OwnershipCache",
    "OwnershipRecord",
    "SweepReport",
    "SyncReason",
    "UserSyncReport",
    "is_valid_address",
    "short_address",
]
