from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from reading_admin.database import get_db
from reading_admin.core.auth import get_current_editor
from reading_admin.models.member import Member
from reading_admin.models.story import Story, StoryRating
from reading_admin.schemas.rating import RatingCreate, RatingUpdate, RatingResponse
from reading_admin.services.cache import ScoreCache, get_score_cache, on_entity_mutated

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post("", response_model=RatingResponse, status_code=201)
async def create_rating(
    rating_in: RatingCreate,
    db: AsyncSession = Depends(get_db),
    cache: ScoreCache = Depends(get_score_cache),
    current_user = Depends(get_current_editor)
):
    if await db.get(Story, rating_in.story_id) is None:
        raise HTTPException(404, "Story not found")
    if await db.get(Member, rating_in.member_id) is None:
        raise HTTPException(404, "Member not found")

    existing = await db.execute(
        select(StoryRating)
        .where(StoryRating.story_id == rating_in.story_id)
        .where(StoryRating.member_id == rating_in.member_id)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(400, "Member has already rated this story.")

    rating = StoryRating(
        story_id=rating_in.story_id,
        member_id=rating_in.member_id,
        rating=rating_in.rating,
    )
    db.add(rating)
    await db.commit()
    await db.refresh(rating)

    on_entity_mutated(cache, "story", rating.story_id)
    on_entity_mutated(cache, "member", rating.member_id)
    return rating


@router.put("/{rating_id}", response_model=RatingResponse)
async def update_rating(
    rating_id: int,
    rating_in: RatingUpdate,
    db: AsyncSession = Depends(get_db),
    cache: ScoreCache = Depends(get_score_cache),
    current_user = Depends(get_current_editor)
):
    rating = await db.get(StoryRating, rating_id)
    if not rating:
        raise HTTPException(404, "Rating not found")

    rating.rating = rating_in.rating
    db.add(rating)
    await db.commit()
    await db.refresh(rating)

    on_entity_mutated(cache, "story", rating.story_id)
    on_entity_mutated(cache, "member", rating.member_id)
    return rating


@router.delete("/{rating_id}", status_code=204)
async def delete_rating(
    rating_id: int,
    db: AsyncSession = Depends(get_db),
    cache: ScoreCache = Depends(get_score_cache),
    current_user = Depends(get_current_editor)
):
    rating = await db.get(StoryRating, rating_id)
    if not rating:
        raise HTTPException(404, "Rating not found")

    story_id, member_id = rating.story_id, rating.member_id
    await db.delete(rating)
    await db.commit()

    on_entity_mutated(cache, "story", story_id)
    on_entity_mutated(cache, "member", member_id)
