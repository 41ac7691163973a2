"""Event type constants"""


class EventTypes:
    """Event type string constants"""

    # ownership reconciliation
    COSMETIC_OWNERSHIP_CHANGED = "cosmetic_ownership_changed"
    COSMETIC_VERIFICATION_FAILED = "cosmetic_verification_failed"

    # sweeps
    OWNERSHIP_SWEEP_COMPLETED = "ownership_sweep_completed"
