"""
Analytics Pydantic schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class AnalyticsSummary(BaseModel):
    """
    Inbox statistics.

    messages_this_week / messages_last_week are calendar-week totals;
    by_day_of_week covers the rolling 7 days before computed_at. The two
    windows differ and their numbers are not meant to match.
    """

    total_messages: int
    messages_this_week: int
    messages_last_week: int
    growth_percent: int = Field(..., description="100 when last week had no messages")
    by_day_of_week: list[int] = Field(..., min_length=7, max_length=7)
    day_labels: list[str]
    total_polls: int
    total_poll_responses: int
    week_start: datetime
    computed_at: datetime
