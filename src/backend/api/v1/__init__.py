"""
API v1 router aggregating all endpoints.
"""

from fastapi import APIRouter

from api.v1.analytics import router as analytics_router
from api.v1.messages import router as messages_router
from api.v1.polls import router as polls_router
from api.v1.profiles import router as profiles_router

router = APIRouter()

router.include_router(profiles_router, prefix="/profiles", tags=["Profiles"])
router.include_router(messages_router, prefix="/messages", tags=["Messages"])
router.include_router(polls_router, prefix="/polls", tags=["Polls"])
router.include_router(analytics_router, prefix="/analytics", tags=["Analytics"])
