"""
Inbox analytics for a recipient's dashboard.

Pull-only and stateless: every call recomputes from message timestamps, so
it is safe to run concurrently and repeatedly.

Two different windows are used, on purpose:

- weekly totals compare the current calendar week (day index 0 at 00:00
  local time, up to now) with the full calendar week before it;
- the day-of-week histogram covers the rolling 7 days before now.

They answer different questions and are not expected to add up to the same
numbers. Keep them in separate functions.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import as_utc, utc_now
from core.config import settings
from core.exceptions import UnknownRecipient
from repositories.message_repository import MessageRepository
from repositories.poll_repository import PollRepository
from repositories.profile_repository import ProfileRepository
from repositories.vote_repository import VoteRepository
from services.vote_aggregator import round_half_up

logger = structlog.get_logger(__name__)

DAYS_IN_WEEK = 7
# Growth reported when last week had no messages at all
NEW_ACTIVITY_GROWTH = 100


@dataclass(frozen=True)
class WeeklyWindows:
    """Calendar-week windows, all bounds inclusive and in UTC."""

    this_week_start: datetime
    this_week_end: datetime
    last_week_start: datetime
    last_week_end: datetime


@dataclass
class AnalyticsSnapshot:
    """Derived view over a recipient's messages. Never persisted."""

    total_messages: int
    messages_this_week: int
    messages_last_week: int
    growth_percent: int
    by_day_of_week: list[int]
    total_polls: int
    total_poll_responses: int
    week_start: datetime
    computed_at: datetime
    day_labels: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_messages": self.total_messages,
            "messages_this_week": self.messages_this_week,
            "messages_last_week": self.messages_last_week,
            "growth_percent": self.growth_percent,
            "by_day_of_week": list(self.by_day_of_week),
            "day_labels": list(self.day_labels),
            "total_polls": self.total_polls,
            "total_poll_responses": self.total_poll_responses,
            "week_start": self.week_start.isoformat(),
            "computed_at": self.computed_at.isoformat(),
        }


def _local_midnight(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def day_index(moment: datetime, tz: ZoneInfo, week_start_day: int) -> int:
    """Position of moment's local calendar day in the week (0 = first day)."""
    local = as_utc(moment).astimezone(tz)
    return (local.weekday() - week_start_day) % DAYS_IN_WEEK


def weekly_windows(now: datetime, tz: ZoneInfo, week_start_day: int) -> WeeklyWindows:
    """
    This week: day index 0 at 00:00:00 local time, up to now.
    Last week: the 7 calendar days before that, ending 1 second before this
    week starts.
    """
    local_today = as_utc(now).astimezone(tz).date()
    days_into_week = (local_today.weekday() - week_start_day) % DAYS_IN_WEEK

    this_week_day = local_today - timedelta(days=days_into_week)
    last_week_day = this_week_day - timedelta(days=DAYS_IN_WEEK)

    this_week_start = _local_midnight(this_week_day, tz).astimezone(timezone.utc)
    last_week_start = _local_midnight(last_week_day, tz).astimezone(timezone.utc)

    return WeeklyWindows(
        this_week_start=this_week_start,
        this_week_end=as_utc(now),
        last_week_start=last_week_start,
        last_week_end=this_week_start - timedelta(seconds=1),
    )


def rolling_week_window(now: datetime) -> tuple[datetime, datetime]:
    """The 7 days immediately preceding now."""
    end = as_utc(now)
    return end - timedelta(days=DAYS_IN_WEEK), end


def growth_percent(this_week: int, last_week: int) -> int:
    """Week-over-week growth; 100 when there is nothing to compare against."""
    if last_week == 0:
        return NEW_ACTIVITY_GROWTH
    return round_half_up((this_week - last_week) / last_week * 100)


def day_of_week_histogram(
    timestamps: list[datetime],
    tz: ZoneInfo,
    week_start_day: int,
) -> list[int]:
    """Bucket timestamps by local day-of-week index."""
    buckets = [0] * DAYS_IN_WEEK
    for created_at in timestamps:
        buckets[day_index(created_at, tz, week_start_day)] += 1
    return buckets


def day_labels(week_start_day: int) -> list[str]:
    names = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    return [names[(week_start_day + offset) % DAYS_IN_WEEK] for offset in range(DAYS_IN_WEEK)]


class AnalyticsService:
    """Computes AnalyticsSnapshot on demand."""

    def __init__(
        self,
        db: AsyncSession,
        timezone_name: Optional[str] = None,
        week_start_day: Optional[int] = None,
    ):
        self.db = db
        self.tz = ZoneInfo(timezone_name or settings.ANALYTICS_TIMEZONE)
        self.week_start_day = (
            settings.WEEK_START_DAY if week_start_day is None else week_start_day
        )
        self.message_repo = MessageRepository(db)
        self.poll_repo = PollRepository(db)
        self.profile_repo = ProfileRepository(db)
        self.vote_repo = VoteRepository(db)

    async def summarize(self, recipient_id: str, now: Optional[datetime] = None) -> AnalyticsSnapshot:
        """
        Summarize a recipient's inbox as of `now` (defaults to the current time).

        Raises:
            UnknownRecipient: if the profile does not exist
        """
        if await self.profile_repo.get_by_id(recipient_id) is None:
            raise UnknownRecipient()

        now = as_utc(now) if now else utc_now()

        windows = weekly_windows(now, self.tz, self.week_start_day)
        this_week, last_week = await self._weekly_counts(recipient_id, windows)
        histogram = await self._day_of_week_counts(recipient_id, now)

        snapshot = AnalyticsSnapshot(
            total_messages=await self.message_repo.count_for_recipient(recipient_id),
            messages_this_week=this_week,
            messages_last_week=last_week,
            growth_percent=growth_percent(this_week, last_week),
            by_day_of_week=histogram,
            total_polls=await self.poll_repo.count_by_user(recipient_id),
            total_poll_responses=await self.vote_repo.count_for_poll_owner(recipient_id),
            week_start=windows.this_week_start,
            computed_at=now,
            day_labels=day_labels(self.week_start_day),
        )

        logger.debug(
            "analytics_summarized",
            recipient_id=recipient_id,
            messages_this_week=this_week,
            messages_last_week=last_week,
        )
        return snapshot

    async def _weekly_counts(self, recipient_id: str, windows: WeeklyWindows) -> tuple[int, int]:
        """Calendar-week totals: (this week so far, previous full week)."""
        this_week = await self.message_repo.count_between(
            recipient_id, windows.this_week_start, windows.this_week_end
        )
        last_week = await self.message_repo.count_between(
            recipient_id, windows.last_week_start, windows.last_week_end
        )
        return this_week, last_week

    async def _day_of_week_counts(self, recipient_id: str, now: datetime) -> list[int]:
        """Rolling 7-day histogram by local day-of-week index."""
        start, end = rolling_week_window(now)
        timestamps = await self.message_repo.timestamps_between(recipient_id, start, end)
        return day_of_week_histogram(timestamps, self.tz, self.week_start_day)
