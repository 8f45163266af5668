import logging
from datetime import datetime
from typing import List, Optional, Tuple
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from reading_admin.config import Settings, settings as default_settings
from reading_admin.schemas.analytics import (
    MemberAnalytics,
    PlatformStatistics,
    ReadingPeriod,
    StoryAttentionItem,
    StoryPerformanceReport,
    StoryRankingItem,
)
from reading_admin.schemas.metrics import PerformanceLevel
from reading_admin.services import collector, scoring
from reading_admin.services.cache import (
    PLATFORM_STATS_KEY,
    ScoreCache,
    entity_key,
    get_score_cache,
    needing_attention_key,
    top_performing_key,
    trending_key,
)
from reading_admin.services.reading_stats import summarize_member

logger = logging.getLogger(__name__)


class PerformanceMetricsService:
    """Story and member analytics, computed on demand and cached per entity."""

    def __init__(self, cache: ScoreCache, settings: Settings = default_settings):
        self.cache = cache
        self.settings = settings

    @property
    def ttl(self) -> int:
        return self.settings.CACHE_TTL_SECONDS

    def build_story_report(self, snapshot) -> StoryPerformanceReport:
        performance = scoring.score_snapshot(snapshot)
        completion_rate = scoring.calculate_completion_rate(
            snapshot.total_readers, snapshot.completed_readers
        )
        engagement_rate = scoring.calculate_engagement_rate(
            snapshot.view_count,
            snapshot.total_ratings,
            snapshot.bookmark_count,
            snapshot.share_count,
        )
        trending = scoring.trending_score_for(
            snapshot,
            window_days=self.settings.TRENDING_WINDOW_DAYS,
            half_life_days=self.settings.TRENDING_HALF_LIFE_DAYS,
        )

        return StoryPerformanceReport(
            story_id=snapshot.entity_id,
            sampled_at=snapshot.sampled_at,
            views=snapshot.view_count,
            word_count=snapshot.word_count,
            average_rating=snapshot.average_rating,
            total_ratings=snapshot.total_ratings,
            total_readers=snapshot.total_readers,
            completed_readers=snapshot.completed_readers,
            performance=performance,
            completion_rate=completion_rate,
            engagement_rate=engagement_rate,
            bounce_rate=scoring.calculate_bounce_rate(snapshot.view_count, snapshot.short_sessions),
            trending_score=round(trending, 2),
            is_trending=scoring.is_trending(trending, self.settings.TRENDING_THRESHOLD),
            momentum=scoring.calculate_momentum(
                snapshot.current_week_views, snapshot.previous_week_views
            ),
            recommendations=scoring.build_recommendations(
                snapshot.view_count, snapshot.average_rating, completion_rate, engagement_rate
            ),
        )

    async def get_story_report(
        self, db: AsyncSession, story_id: int, now: Optional[datetime] = None
    ) -> Optional[StoryPerformanceReport]:
        key = entity_key("story", story_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        snapshot = await collector.collect_story_snapshot(
            db,
            story_id,
            now=now,
            trending_window_days=self.settings.TRENDING_WINDOW_DAYS,
            bounce_threshold=self.settings.BOUNCE_PROGRESS_THRESHOLD,
        )
        if snapshot is None:
            return None

        report = self.build_story_report(snapshot)
        logger.debug("Computed performance for story %s: %s", story_id, report.performance.score)
        self.cache.put(key, report, self.ttl)
        return report

    async def _active_reports(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> List[Tuple[str, StoryPerformanceReport]]:
        reports = []
        for story_id, title in await collector.list_active_stories(db):
            report = await self.get_story_report(db, story_id, now=now)
            if report is not None:
                reports.append((title, report))
        return reports

    async def _rank_stories(self, db: AsyncSession, now: Optional[datetime] = None) -> List[StoryRankingItem]:
        reports = await self._active_reports(db, now)
        all_scores = [report.performance.score for _, report in reports]
        return [
            StoryRankingItem(
                story_id=report.story_id,
                title=title,
                score=report.performance.score,
                level=report.performance.level.value,
                badge=report.performance.badge.value,
                trending_score=report.trending_score,
                percentile_rank=scoring.calculate_percentile_rank(report.performance.score, all_scores),
            )
            for title, report in reports
        ]

    async def get_top_performing(
        self, db: AsyncSession, limit: int, now: Optional[datetime] = None
    ) -> List[StoryRankingItem]:
        key = top_performing_key(limit)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        ranked = sorted(await self._rank_stories(db, now), key=lambda item: (-item.score, item.story_id))
        top = ranked[:limit]
        self.cache.put(key, top, self.ttl)
        return top

    async def get_trending(
        self, db: AsyncSession, limit: int, now: Optional[datetime] = None
    ) -> List[StoryRankingItem]:
        key = trending_key(limit)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        ranked = [item for item in await self._rank_stories(db, now) if item.trending_score > 0]
        ranked.sort(key=lambda item: (-item.trending_score, item.story_id))
        top = ranked[:limit]
        self.cache.put(key, top, self.ttl)
        return top

    async def get_needing_attention(
        self, db: AsyncSession, limit: int, now: Optional[datetime] = None
    ) -> List[StoryAttentionItem]:
        """Low scorers and stories with a high-priority recommendation, worst first."""
        key = needing_attention_key(limit)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        flagged = [
            StoryAttentionItem(
                story_id=report.story_id,
                title=title,
                score=report.performance.score,
                level=report.performance.level.value,
                recommendations=report.recommendations,
            )
            for title, report in await self._active_reports(db, now)
            if scoring.needs_attention(report.performance.score, report.recommendations)
        ]
        flagged.sort(key=lambda item: (item.score, item.story_id))
        top = flagged[:limit]
        self.cache.put(key, top, self.ttl)
        return top

    async def get_platform_statistics(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> PlatformStatistics:
        cached = self.cache.get(PLATFORM_STATS_KEY)
        if cached is not None:
            return cached

        distribution = {level.value: 0 for level in PerformanceLevel}
        total_score = 0.0
        total_completion = 0.0
        total_engagement = 0.0
        total_stories = 0

        for story_id, _ in await collector.list_active_stories(db):
            report = await self.get_story_report(db, story_id, now=now)
            if report is None:
                continue
            total_stories += 1
            distribution[report.performance.level.value] += 1
            total_score += report.performance.score
            total_completion += report.completion_rate
            total_engagement += report.engagement_rate

        def _average(total: float) -> float:
            return round(total / total_stories, 2) if total_stories > 0 else 0.0

        stats = PlatformStatistics(
            total_stories=total_stories,
            performance_distribution=distribution,
            averages={
                "performance_score": _average(total_score),
                "completion_rate": _average(total_completion),
                "engagement_rate": _average(total_engagement),
            },
            totals=await collector.count_platform_totals(db),
        )
        self.cache.put(PLATFORM_STATS_KEY, stats, self.ttl)
        return stats

    async def get_member_analytics(
        self,
        db: AsyncSession,
        member_id: int,
        period: ReadingPeriod = ReadingPeriod.MONTH,
        now: Optional[datetime] = None,
    ) -> Optional[MemberAnalytics]:
        key = entity_key("member", member_id, period.value)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        snapshot = await collector.collect_member_snapshot(db, member_id, period, now=now)
        if snapshot is None:
            return None

        analytics = summarize_member(snapshot)
        self.cache.put(key, analytics, self.ttl)
        return analytics


def get_performance_service(cache: ScoreCache = Depends(get_score_cache)) -> PerformanceMetricsService:
    return PerformanceMetricsService(cache)
