"""
FastAPI application for the debt settlement engine.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
import structlog

from . import __version__
from .config import get_settings
from .models import UnbalancedLedgerError
from .solver import SettlementOrchestrator

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Debt Settlement API")
    yield
    logger.info("Shutting down Debt Settlement API")


app = FastAPI(
    title="Debt Settlement Engine",
    description="Minimum-transaction settlement plans for group balances",
    version=__version__,
    lifespan=lifespan,
)


# Request/Response models
class SettlementRequest(BaseModel):
    balances: Dict[str, int]
    epsilon: Optional[int] = Field(default=None, gt=0)
    time_budget_seconds: Optional[float] = Field(default=None, gt=0)


class TransferResponse(BaseModel):
    payer: str
    payee: str
    amount: int


class PersonResponse(BaseModel):
    name: str
    remaining: int
    transactions: List[Dict[str, Any]]


class SettlementResponse(BaseModel):
    id: str
    status: str
    found: bool
    transaction_count: int
    epsilon: int
    transfers: List[TransferResponse]
    people: List[PersonResponse]
    elapsed_seconds: float
    audit: Dict[str, Any]


# API Endpoints
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "ok",
        "version": __version__,
        "epsilon_cents": settings.epsilon_cents,
        "time_budget_seconds": settings.time_budget_seconds,
    }


@app.post("/api/settlements", response_model=SettlementResponse)
def create_settlement(request: SettlementRequest):
    """Compute a settlement plan for the submitted balances."""
    orchestrator = SettlementOrchestrator()

    try:
        plan = orchestrator.settle(
            request.balances,
            epsilon=request.epsilon,
            time_budget_seconds=request.time_budget_seconds,
        )
    except UnbalancedLedgerError as e:
        raise HTTPException(
            422,
            {"message": str(e), "total": e.total, "epsilon": e.epsilon},
        )

    data = plan.to_dict()
    logger.info(
        "Settlement computed",
        plan_id=plan.id,
        status=plan.status.value,
        transaction_count=plan.transaction_count,
    )

    return SettlementResponse(
        id=data["id"],
        status=data["status"],
        found=data["found"],
        transaction_count=data["transaction_count"],
        epsilon=data["epsilon"],
        transfers=data["transfers"],
        people=data["people"],
        elapsed_seconds=data["stats"]["elapsed_seconds"],
        audit=data["audit"],
    )
