"""Ownership API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from src.api.schemas import (
    ActionDecisionResponse,
    CacheClearResponse,
    CanActRequest,
    ChangeDescriptorResponse,
    SweepRequest,
    SweepResponse,
    UserSyncResponse,
)
from src.core.logging import get_logger
from src.engine.sweep_scheduler import SweepScheduler
from src.services.ownership_service import OwnershipService

logger = get_logger(__name__)

router = APIRouter(prefix="/ownership", tags=["ownership"])


def get_ownership_service(request: Request) -> OwnershipService:
    """OwnershipService instance (dependency injection)"""
    service: OwnershipService = request.app.state.ownership_service
    return service


def get_sweep_scheduler(request: Request) -> Optional[SweepScheduler]:
    """Background sweep scheduler, or None when periodic sweeps are disabled"""
    return getattr(request.app.state, "sweep_scheduler", None)


@router.post("/can-act", response_model=ActionDecisionResponse)
def can_act(
    body: CanActRequest,
    service: OwnershipService = Depends(get_ownership_service),
) -> ActionDecisionResponse:
    """Verify ownership before equipping. Denials carry a reason code."""
    decision = service.can_act(body.owner_id, body.instance_id)
    return ActionDecisionResponse(
        allowed=decision.allowed,
        reason=decision.reason.value,
        instance_id=decision.instance_id,
    )


@router.post("/reconcile/{instance_id}", response_model=ChangeDescriptorResponse)
def reconcile_instance(
    instance_id: str,
    service: OwnershipService = Depends(get_ownership_service),
) -> ChangeDescriptorResponse:
    result = service.reconcile_one(instance_id)
    return ChangeDescriptorResponse(**result.to_dict())


@router.post("/sync/{owner_id}", response_model=UserSyncResponse)
def sync_user(
    owner_id: str,
    service: OwnershipService = Depends(get_ownership_service),
) -> UserSyncResponse:
    """Login-time sync of a wallet's tokenized cosmetics."""
    report = service.sync_user(owner_id)
    return UserSyncResponse(**report.to_dict())


@router.post("/sweep", response_model=SweepResponse)
def sweep(
    body: SweepRequest,
    service: OwnershipService = Depends(get_ownership_service),
    scheduler: Optional[SweepScheduler] = Depends(get_sweep_scheduler),
) -> SweepResponse:
    """Run a sweep now. Waits for a scheduled sweep in progress to finish."""
    logger.info(
        "Manual sweep requested (batch_size=%d, delay=%.2fs)",
        body.batch_size,
        body.inter_batch_delay,
    )
    if scheduler is not None:
        report = scheduler.run_once(
            batch_size=body.batch_size, batch_delay=body.inter_batch_delay
        )
    else:
        report = service.sweep_all(
            batch_size=body.batch_size, inter_batch_delay=body.inter_batch_delay
        )
    return SweepResponse(**report.to_dict())


@router.delete("/cache", response_model=CacheClearResponse)
def clear_cache(
    service: OwnershipService = Depends(get_ownership_service),
) -> CacheClearResponse:
    return CacheClearResponse(cleared=service.clear_cache())
