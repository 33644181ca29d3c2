"""Health check router for Game Arena."""

from fastapi import APIRouter, Depends

from arena.config import settings
from arena.dependencies import get_engine
from arena.models.responses import HealthResponse
from arena.services.matchmaking_service import PairingEngine

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(engine: PairingEngine = Depends(get_engine)):
    """Health check endpoint."""
    return HealthResponse(status="ok", env=settings.app_env, version=settings.app_version, store=engine.store.name)
