from fastapi import APIRouter

from src.api.routes.channels import router as channels_router
from src.api.routes.ops import router as ops_router
from src.api.routes.partners import router as partners_router
from src.api.routes.registrations import router as registrations_router
from src.api.routes.visits import router as visits_router

api_router = APIRouter()
api_router.include_router(registrations_router, prefix="/registrations", tags=["registrations"])
api_router.include_router(partners_router, prefix="/partners", tags=["partners"])
api_router.include_router(visits_router, prefix="/visits", tags=["visits"])
api_router.include_router(channels_router, prefix="/channels", tags=["channels"])
api_router.include_router(ops_router, prefix="/ops", tags=["ops"])
