"""
Main API Router - Consolidates all module routes
"""

from fastapi import APIRouter
from fishstocking.api.v1 import fish_stockings, public, reference, settings
from fishstocking.schemas.common import ErrorResponse

# Documented error bodies, as produced by the application exception handler
ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing rights"},
    404: {"model": ErrorResponse, "description": "Not found"},
    409: {"model": ErrorResponse, "description": "Concurrent modification"},
    422: {"model": ErrorResponse, "description": "Validation error"},
}

api_router = APIRouter()

# Fish stocking lifecycle routes
api_router.include_router(
    fish_stockings.router, prefix="/fish-stockings", tags=["fish-stockings"], responses=ERROR_RESPONSES
)

# Configuration routes
api_router.include_router(
    settings.router, prefix="/settings", tags=["settings"], responses=ERROR_RESPONSES
)

# Public routes
api_router.include_router(public.router, prefix="/public", tags=["public"])

# Reference data routes
api_router.include_router(reference.router, tags=["reference-data"])
