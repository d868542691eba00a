from fastapi import APIRouter

from .endpoints import health, sources

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(sources.router, prefix="/s", tags=["sources"])
