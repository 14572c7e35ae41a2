from fastapi import APIRouter
from fliq.api.v1.routes.auth import router as auth_router
from fliq.api.v1.routes.public import router as public_router
from fliq.api.v1.routes.providers import router as providers_router
from fliq.api.v1.routes.bookings import router as bookings_router
from fliq.api.v1.routes.admin import router as admin_router
from fliq.api.v1.routes.payments import router as payments_router
from fliq.api.v1.routes.uploads import router as uploads_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(public_router)
api_router.include_router(providers_router)
api_router.include_router(bookings_router)
api_router.include_router(admin_router)
api_router.include_router(payments_router)
api_router.include_router(uploads_router)
