# app/api/v1/api.py

from fastapi import APIRouter
from app.api.v1.endpoints import (
    about,
    admin,
    events,
    payments,
    posts,
    profiles,
    registrations,
)

# Main router for the v1 API; every endpoint router is included here.
api_router = APIRouter()

api_router.include_router(posts.router)
api_router.include_router(events.router)
api_router.include_router(about.router)
api_router.include_router(registrations.router)
api_router.include_router(payments.router)
api_router.include_router(profiles.router)
api_router.include_router(admin.router)
