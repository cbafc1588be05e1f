"""
Inbox analytics endpoint.
"""

from fastapi import APIRouter, Depends

from api.deps import CurrentProfileId, get_analytics_service
from schemas.analytics import AnalyticsSummary
from services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/summary", response_model=AnalyticsSummary)
async def get_summary(
    profile_id: CurrentProfileId,
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsSummary:
    """
    Message counts for the caller.

    Week totals use calendar weeks in the configured timezone; the
    day-of-week histogram covers the last 7 days.
    """
    snapshot = await service.summarize(profile_id)
    return AnalyticsSummary(**snapshot.to_dict())
