from fastapi import APIRouter

from src.assignx.api.v1 import auth, blacklist, earnings, notifications, payments, projects, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(projects.router)
api_router.include_router(payments.router)
api_router.include_router(blacklist.router)
api_router.include_router(notifications.router)
api_router.include_router(earnings.router)
