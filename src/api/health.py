"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.orm import Session

from src.db.database import get_db

router = APIRouter()


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)) -> dict[str, str]:
    """Return database and ledger oracle status.

    The oracle is only checked for configuration; probing it here would spend
    RPC quota on every health poll.
    """
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except Exception:
        database = "disconnected"

    oracle = getattr(request.app.state, "ledger_oracle", None)
    ledger = oracle.name if oracle is not None and oracle.is_available() else "unavailable"

    status = "ok" if database == "connected" and ledger != "unavailable" else "error"
    return {"status": status, "database": database, "ledger": ledger}
