import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from reading_admin.database import get_db
from reading_admin.core.auth import get_current_editor
from reading_admin.models.member import Member
from reading_admin.models.reading import ReadingHistory, MemberReadingStatistics
from reading_admin.models.story import Story, StoryView
from reading_admin.models.timestamps import utcnow
from reading_admin.schemas.reading import (
    ReadingProgressUpdate,
    ReadingHistoryResponse,
    StoryViewCreate,
    StoryViewResponse,
)
from reading_admin.services.cache import ScoreCache, get_score_cache, on_entity_mutated

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reading", tags=["reading"])


async def _daily_statistics(db: AsyncSession, member_id: int, day) -> MemberReadingStatistics:
    result = await db.execute(
        select(MemberReadingStatistics)
        .where(MemberReadingStatistics.member_id == member_id)
        .where(MemberReadingStatistics.date == day)
    )
    stats = result.scalar_one_or_none()
    if stats is None:
        stats = MemberReadingStatistics(
            member_id=member_id,
            date=day,
            words_read=0,
            stories_completed=0,
            reading_time_minutes=0,
        )
        db.add(stats)
    return stats


def session_minutes(seconds: int) -> int:
    """Whole minutes for a session; any time spent reading counts as at least one."""
    if seconds <= 0:
        return 0
    return max(1, round(seconds / 60))


@router.post("/progress", response_model=ReadingHistoryResponse)
async def record_progress(
    progress_in: ReadingProgressUpdate,
    db: AsyncSession = Depends(get_db),
    cache: ScoreCache = Depends(get_score_cache),
    current_user = Depends(get_current_editor)
):
    if await db.get(Story, progress_in.story_id) is None:
        raise HTTPException(404, "Story not found")
    if await db.get(Member, progress_in.member_id) is None:
        raise HTTPException(404, "Member not found")

    result = await db.execute(
        select(ReadingHistory)
        .where(ReadingHistory.member_id == progress_in.member_id)
        .where(ReadingHistory.story_id == progress_in.story_id)
    )
    history = result.scalar_one_or_none()
    now = utcnow()

    if history is None:
        history = ReadingHistory(
            member_id=progress_in.member_id,
            story_id=progress_in.story_id,
            reading_progress=0.0,
            time_spent=0,
            words_read=0,
        )
        db.add(history)

    was_completed = history.completed_at is not None
    # Progress never moves backwards once recorded
    history.reading_progress = max(history.reading_progress or 0.0, progress_in.reading_progress)
    history.time_spent = (history.time_spent or 0) + progress_in.time_spent
    history.words_read = (history.words_read or 0) + progress_in.words_read
    history.last_read_at = now

    just_completed = not was_completed and history.reading_progress >= 100
    if just_completed:
        history.completed_at = now

    stats = await _daily_statistics(db, progress_in.member_id, now.date())
    stats.words_read += progress_in.words_read
    stats.reading_time_minutes += session_minutes(progress_in.time_spent)
    if just_completed:
        stats.stories_completed += 1

    await db.commit()
    await db.refresh(history)

    if just_completed:
        logger.info("Member %s completed story %s", progress_in.member_id, progress_in.story_id)
        on_entity_mutated(cache, "story", progress_in.story_id)
        on_entity_mutated(cache, "member", progress_in.member_id)

    response = ReadingHistoryResponse.model_validate(history)
    response.just_completed = just_completed
    return response


@router.post("/stories/{story_id}/views", response_model=StoryViewResponse, status_code=201)
async def record_view(
    story_id: int,
    view_in: StoryViewCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_editor)
):
    story = await db.get(Story, story_id)
    if not story:
        raise HTTPException(404, "Story not found")

    # Views are not invalidated: the drift is bounded by the cache TTL
    db.add(StoryView(story_id=story_id, member_id=view_in.member_id))
    story.views = (story.views or 0) + 1
    await db.commit()

    return StoryViewResponse(story_id=story_id, views=story.views)
