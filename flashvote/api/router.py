"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from flashvote.api.routes import events, items, subjects, locations, votes, public

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(events.router)
api_router.include_router(items.router)
api_router.include_router(subjects.router)
api_router.include_router(locations.router)
api_router.include_router(votes.router)
api_router.include_router(public.router)
