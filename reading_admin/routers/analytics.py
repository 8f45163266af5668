from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from reading_admin.config import settings
from reading_admin.database import get_db
from reading_admin.core.auth import get_current_admin
from reading_admin.schemas.analytics import (
    MemberAnalytics,
    PlatformStatistics,
    ReadingPeriod,
    StoryAttentionItem,
    StoryPerformanceReport,
    StoryRankingItem,
)
from reading_admin.services.performance import PerformanceMetricsService, get_performance_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


# Fixed paths first so they are not captured by /stories/{story_id}
@router.get("/stories/top-performing", response_model=List[StoryRankingItem])
async def top_performing_stories(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    service: PerformanceMetricsService = Depends(get_performance_service),
    admin = Depends(get_current_admin)
):
    return await service.get_top_performing(db, limit or settings.DEFAULT_LEADERBOARD_LIMIT)


@router.get("/stories/trending", response_model=List[StoryRankingItem])
async def trending_stories(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    service: PerformanceMetricsService = Depends(get_performance_service),
    admin = Depends(get_current_admin)
):
    return await service.get_trending(db, limit or settings.DEFAULT_LEADERBOARD_LIMIT)


@router.get("/stories/needing-attention", response_model=List[StoryAttentionItem])
async def stories_needing_attention(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    service: PerformanceMetricsService = Depends(get_performance_service),
    admin = Depends(get_current_admin)
):
    return await service.get_needing_attention(db, limit or settings.DEFAULT_LEADERBOARD_LIMIT)


@router.get("/stories/{story_id}", response_model=StoryPerformanceReport)
async def story_performance(
    story_id: int,
    db: AsyncSession = Depends(get_db),
    service: PerformanceMetricsService = Depends(get_performance_service),
    admin = Depends(get_current_admin)
):
    report = await service.get_story_report(db, story_id)
    if report is None:
        raise HTTPException(404, "Story not found")
    return report


@router.get("/platform", response_model=PlatformStatistics)
async def platform_statistics(
    db: AsyncSession = Depends(get_db),
    service: PerformanceMetricsService = Depends(get_performance_service),
    admin = Depends(get_current_admin)
):
    return await service.get_platform_statistics(db)


@router.get("/members/{member_id}", response_model=MemberAnalytics)
async def member_analytics(
    member_id: int,
    period: ReadingPeriod = ReadingPeriod.MONTH,
    db: AsyncSession = Depends(get_db),
    service: PerformanceMetricsService = Depends(get_performance_service),
    admin = Depends(get_current_admin)
):
    analytics = await service.get_member_analytics(db, member_id, period)
    if analytics is None:
        raise HTTPException(404, "Member not found")
    return analytics
