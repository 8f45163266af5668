import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from reading_admin.database import get_db
from reading_admin.core.auth import get_current_editor
from reading_admin.models.story import Story
from reading_admin.schemas.story import (
    ContentAnalysis,
    ContentAnalysisRequest,
    StoryCreate,
    StoryResponse,
    StoryUpdate,
)
from reading_admin.services.cache import ScoreCache, get_score_cache, on_entity_mutated
from reading_admin.services.word_count import analyze_content, apply_content_metrics, calculate_content_progress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stories", tags=["stories"])


@router.post("", response_model=StoryResponse, status_code=201)
async def create_story(
    story_in: StoryCreate,
    db: AsyncSession = Depends(get_db),
    cache: ScoreCache = Depends(get_score_cache),
    current_user = Depends(get_current_editor)
):
    story = Story(**story_in.model_dump())
    apply_content_metrics(story)
    db.add(story)
    await db.commit()
    await db.refresh(story)

    logger.info("Created story %s (%d words)", story.id, story.word_count)
    # a new active story changes every ranking
    on_entity_mutated(cache, "story", story.id)
    return story


@router.put("/{story_id}", response_model=StoryResponse)
async def update_story(
    story_id: int,
    story_in: StoryUpdate,
    db: AsyncSession = Depends(get_db),
    cache: ScoreCache = Depends(get_score_cache),
    current_user = Depends(get_current_editor)
):
    story = await db.get(Story, story_id)
    if not story:
        raise HTTPException(404, "Story not found")

    changes = story_in.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(story, field, value)
    if "content" in changes:
        apply_content_metrics(story)

    await db.commit()
    await db.refresh(story)

    on_entity_mutated(cache, "story", story.id)
    return story


@router.post("/analyze", response_model=ContentAnalysis)
async def analyze_story_content(
    request: ContentAnalysisRequest,
    current_user = Depends(get_current_editor)
):
    """Live metrics for the editor; nothing is stored."""
    analysis = analyze_content(request.content)
    if request.target_words:
        analysis.progress = calculate_content_progress(analysis.word_count, request.target_words)
    return analysis
