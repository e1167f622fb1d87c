"""Routers package."""
from app.routers.auth_router import router as auth_router, set_auth_dependencies
from app.routers.business_router import router as business_router, set_business_handler
from app.routers.automation_router import (
    router as automation_router,
    set_automation_dependencies,
)

__all__ = [
    "auth_router",
    "set_auth_dependencies",
    "business_router",
    "set_business_handler",
    "automation_router",
    "set_automation_dependencies",
]
