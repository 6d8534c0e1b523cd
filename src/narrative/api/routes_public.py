# src/narrative/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from narrative.api.routes_public_parts.calls import router as calls_router
from narrative.api.routes_public_parts.health import router as health_router
from narrative.api.routes_public_parts.metrics import router as metrics_router
from narrative.api.routes_public_parts.stories import router as stories_router
from narrative.api.routes_public_parts.treasury import router as treasury_router

public_router = APIRouter()

public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(stories_router, prefix="/v1", tags=["stories"])
public_router.include_router(treasury_router, prefix="/v1", tags=["treasury"])
public_router.include_router(calls_router, prefix="/v1", tags=["calls"])

# Ops
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])
