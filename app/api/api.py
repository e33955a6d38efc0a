"""
API router aggregation
Combines all route handlers into a single router
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
from fastapi import APIRouter

from app.api.routes import health, todos
from app.core.config import settings


# Create main API router
# All routes will be prefixed with /api
api_router = APIRouter(prefix=settings.API_PREFIX)

# Include route modules
# Each route module is added as a sub-router
api_router.include_router(todos.router)
api_router.include_router(health.router)
