from fastapi import APIRouter

from app.api.v1.endpoints import (
    offboardings,
)

api_router = APIRouter()

# Include routers from endpoints
api_router.include_router(offboardings.router, prefix="/offboardings", tags=["offboardings"])
