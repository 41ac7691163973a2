"""API request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field


# === Request Schemas ===


class CanActRequest(BaseModel):
    """Pre-action (equip) ownership check"""

    owner_id: str = Field(..., min_length=1, description="Requesting wallet address")
    instance_id: str = Field(..., min_length=1, description="Cosmetic instance ID")


class SweepRequest(BaseModel):
    """Manual full-catalog sweep"""

    batch_size: int = Field(50, ge=1, le=1000, description="Instances per batch")
    inter_batch_delay: float = Field(
        1.0, ge=0.0, le=60.0, description="Pause between batches (seconds)"
    )


# === Response Schemas ===


class ActionDecisionResponse(BaseModel):
    allowed: bool
    reason: str
    instance_id: str


class ChangeDescriptorResponse(BaseModel):
    instance_id: str
    changed: bool
    reason: str
    previous_owner: Optional[str] = None
    new_owner: Optional[str] = None
    template_id: Optional[str] = None
    name: Optional[str] = None
    serial_number: Optional[int] = None


class SyncErrorInfo(BaseModel):
    instance_id: str
    error: str


class UserSyncResponse(BaseModel):
    owner_id: str
    gained: list[ChangeDescriptorResponse] = []
    lost: list[ChangeDescriptorResponse] = []
    unchanged: int = 0
    errors: list[SyncErrorInfo] = []


class SweepResponse(BaseModel):
    checked: int
    changed: int
    errors: int
    batches: int
    aborted: bool


class CacheClearResponse(BaseModel):
    cleared: int
