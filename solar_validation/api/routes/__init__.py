"""
API route modules.

Provides FastAPI routers for different API endpoints.
"""

from solar_validation.api.routes.health import router as health_router
from solar_validation.api.routes.validation import router as validation_router


__all__ = [
    "health_router",
    "validation_router",
]
