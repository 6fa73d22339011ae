"""HTTP routers, one per domain; mounted by api_main."""
from .admin import router as admin_router
from .analyzers import router as analyzers_router
from .care import router as care_router
from .clinic import router as clinic_router
from .pharmacy import router as pharmacy_router
from .wellness import router as wellness_router

ROUTERS = [
    pharmacy_router,
    clinic_router,
    care_router,
    wellness_router,
    analyzers_router,
    admin_router,
]
