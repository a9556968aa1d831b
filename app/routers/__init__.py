# Routers package
from . import auth_router
from . import admin_router
from . import wardens_router
from . import warranty_router
from . import teams_router

__all__ = [
    "auth_router",
    "admin_router",
    "wardens_router",
    "warranty_router",
    "teams_router",
]
