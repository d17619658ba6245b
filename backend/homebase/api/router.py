from fastapi import APIRouter

from homebase.api.auth import router as auth_router
from homebase.api.bills import router as bills_router
from homebase.api.chores import router as chores_router
from homebase.api.events import router as events_router
from homebase.api.households import router as households_router
from homebase.api.overview import router as overview_router
from homebase.api.realtime import router as realtime_router
from homebase.api.shopping import router as shopping_router
from homebase.api.users import router as users_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(households_router)
api_router.include_router(users_router)
api_router.include_router(chores_router)
api_router.include_router(events_router)
api_router.include_router(bills_router)
api_router.include_router(shopping_router)
api_router.include_router(overview_router)
api_router.include_router(realtime_router)
