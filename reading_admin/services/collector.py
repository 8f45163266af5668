"""
Builds MetricsSnapshot / MemberReadingSnapshot records from the database.

All counts of one snapshot are taken relative to a single `now`, which is
stored on the snapshot as `sampled_at` and later used by the scoring engine
as its clock.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import select, func, distinct
from sqlalchemy.ext.asyncio import AsyncSession
from reading_admin.models.member import Member
from reading_admin.models.reading import ReadingHistory, MemberReadingStatistics
from reading_admin.models.story import Story, StoryView, StoryRating, StoryInteraction
from reading_admin.models.timestamps import utcnow, as_utc
from reading_admin.schemas.metrics import ActivityPoint, MetricsSnapshot
from reading_admin.schemas.analytics import DailyReading, MemberReadingSnapshot, ReadingPeriod

logger = logging.getLogger(__name__)

COMPLETED_PROGRESS = 100


def count_by_timestamp(timestamps: Iterable[datetime]) -> Tuple[ActivityPoint, ...]:
    """Merge identical instants only; each point keeps its exact age."""
    counts = Counter(as_utc(ts) for ts in timestamps)
    return tuple(
        ActivityPoint(timestamp=ts, count=count) for ts, count in sorted(counts.items())
    )


async def _count(db: AsyncSession, stmt) -> int:
    result = await db.execute(stmt)
    return result.scalar_one() or 0


async def collect_story_snapshot(
    db: AsyncSession,
    story_id: int,
    now: Optional[datetime] = None,
    trending_window_days: int = 14,
    bounce_threshold: float = 10.0,
) -> Optional[MetricsSnapshot]:
    story = await db.get(Story, story_id)
    if story is None:
        return None

    now = as_utc(now) if now else utcnow()
    # same bound as the engine: a point exactly window_days old is out
    window_start = now - timedelta(days=trending_window_days)
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    view_count = await _count(
        db,
        select(func.count(StoryView.id))
        .where(StoryView.story_id == story_id)
        .where(StoryView.viewed_at <= now),
    )

    total_readers = await _count(
        db,
        select(func.count(distinct(ReadingHistory.member_id)))
        .where(ReadingHistory.story_id == story_id),
    )
    completed_readers = await _count(
        db,
        select(func.count(distinct(ReadingHistory.member_id)))
        .where(ReadingHistory.story_id == story_id)
        .where(ReadingHistory.reading_progress >= COMPLETED_PROGRESS),
    )
    short_sessions = await _count(
        db,
        select(func.count(ReadingHistory.id))
        .where(ReadingHistory.story_id == story_id)
        .where(ReadingHistory.reading_progress < bounce_threshold),
    )

    rating_row = (await db.execute(
        select(func.avg(StoryRating.rating), func.count(StoryRating.id))
        .where(StoryRating.story_id == story_id)
    )).one()
    average_rating = round(float(rating_row[0]), 2) if rating_row[0] is not None else 0.0
    total_ratings = rating_row[1] or 0

    interactions = await db.execute(
        select(StoryInteraction.action, func.count(StoryInteraction.id))
        .where(StoryInteraction.story_id == story_id)
        .group_by(StoryInteraction.action)
    )
    actions: Dict[str, int] = {action: count for action, count in interactions.all()}

    recent_views = await db.execute(
        select(StoryView.viewed_at)
        .where(StoryView.story_id == story_id)
        .where(StoryView.viewed_at > window_start)
        .where(StoryView.viewed_at <= now)
    )
    recent_ratings = await db.execute(
        select(StoryRating.created_at)
        .where(StoryRating.story_id == story_id)
        .where(StoryRating.created_at > window_start)
        .where(StoryRating.created_at <= now)
    )

    current_week_views = await _count(
        db,
        select(func.count(StoryView.id))
        .where(StoryView.story_id == story_id)
        .where(StoryView.viewed_at >= week_ago)
        .where(StoryView.viewed_at <= now),
    )
    previous_week_views = await _count(
        db,
        select(func.count(StoryView.id))
        .where(StoryView.story_id == story_id)
        .where(StoryView.viewed_at >= two_weeks_ago)
        .where(StoryView.viewed_at < week_ago),
    )

    published = as_utc(story.published_at or story.created_at)
    days_since_published = max((now - published).days, 0)

    logger.debug("Collected metrics for story %s (%d views)", story_id, view_count)

    return MetricsSnapshot(
        entity_type="story",
        entity_id=story_id,
        sampled_at=now,
        view_count=view_count,
        total_readers=total_readers,
        completed_readers=completed_readers,
        average_rating=average_rating,
        total_ratings=total_ratings,
        word_count=story.word_count or 0,
        days_since_published=days_since_published,
        recent_view_counts=count_by_timestamp(recent_views.scalars().all()),
        recent_rating_counts=count_by_timestamp(recent_ratings.scalars().all()),
        bookmark_count=actions.get("bookmark", 0),
        share_count=actions.get("share", 0),
        short_sessions=short_sessions,
        current_week_views=current_week_views,
        previous_week_views=previous_week_views,
    )


async def collect_member_snapshot(
    db: AsyncSession,
    member_id: int,
    period: ReadingPeriod,
    now: Optional[datetime] = None,
) -> Optional[MemberReadingSnapshot]:
    member = await db.get(Member, member_id)
    if member is None:
        return None

    now = as_utc(now) if now else utcnow()
    start = now - timedelta(days=period.days)

    stories_started = await _count(
        db,
        select(func.count(ReadingHistory.id))
        .where(ReadingHistory.member_id == member_id)
        .where(ReadingHistory.last_read_at >= start),
    )
    stories_completed = await _count(
        db,
        select(func.count(ReadingHistory.id))
        .where(ReadingHistory.member_id == member_id)
        .where(ReadingHistory.last_read_at >= start)
        .where(ReadingHistory.reading_progress >= COMPLETED_PROGRESS),
    )

    interactions = await _count(
        db,
        select(func.count(StoryInteraction.id))
        .where(StoryInteraction.member_id == member_id)
        .where(StoryInteraction.created_at >= start),
    )
    interactions += await _count(
        db,
        select(func.count(StoryRating.id))
        .where(StoryRating.member_id == member_id)
        .where(StoryRating.created_at >= start),
    )

    stats = await db.execute(
        select(MemberReadingStatistics)
        .where(MemberReadingStatistics.member_id == member_id)
        .where(MemberReadingStatistics.date >= start.date())
        .where(MemberReadingStatistics.date <= now.date())
        .order_by(MemberReadingStatistics.date)
    )
    daily = tuple(
        DailyReading(
            date=row.date,
            words_read=row.words_read,
            stories_completed=row.stories_completed,
            reading_time_minutes=row.reading_time_minutes,
        )
        for row in stats.scalars().all()
    )

    reading_dates = await db.execute(
        select(MemberReadingStatistics.date)
        .where(MemberReadingStatistics.member_id == member_id)
        .where(MemberReadingStatistics.words_read > 0)
        .where(MemberReadingStatistics.date <= now.date())
    )

    return MemberReadingSnapshot(
        member_id=member_id,
        period=period,
        sampled_at=now,
        stories_started=stories_started,
        stories_completed=stories_completed,
        interactions=interactions,
        daily=daily,
        reading_dates=tuple(reading_dates.scalars().all()),
    )


async def list_active_stories(db: AsyncSession) -> List[Tuple[int, str]]:
    result = await db.execute(
        select(Story.id, Story.title).where(Story.active.is_(True)).order_by(Story.id)
    )
    return [(row.id, row.title) for row in result.all()]


async def count_platform_totals(db: AsyncSession) -> Dict[str, int]:
    return {
        "views": await _count(db, select(func.count(StoryView.id))),
        "ratings": await _count(db, select(func.count(StoryRating.id))),
        "interactions": await _count(db, select(func.count(StoryInteraction.id))),
    }
