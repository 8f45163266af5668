from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, Field
from .metrics import PerformanceScore


class Momentum(str, Enum):
    ACCELERATING = "accelerating"
    GROWING = "growing"
    STABLE = "stable"
    DECLINING = "declining"
    STAGNANT = "stagnant"


class Recommendation(BaseModel):
    type: str  # views, rating, completion, engagement
    priority: str  # high, medium
    message: str
    action: str

    model_config = {"frozen": True}


class StoryPerformanceReport(BaseModel):
    story_id: int
    sampled_at: datetime
    views: int
    word_count: int
    average_rating: float
    total_ratings: int
    total_readers: int
    completed_readers: int
    performance: PerformanceScore
    completion_rate: float
    engagement_rate: float
    bounce_rate: float
    trending_score: float
    is_trending: bool
    momentum: Momentum
    recommendations: List[Recommendation] = []


class StoryRankingItem(BaseModel):
    story_id: int
    title: str
    score: int
    level: str
    badge: str
    trending_score: float
    percentile_rank: int


class StoryAttentionItem(BaseModel):
    story_id: int
    title: str
    score: int
    level: str
    recommendations: List[Recommendation] = []


class PlatformStatistics(BaseModel):
    total_stories: int
    performance_distribution: Dict[str, int]
    averages: Dict[str, float]
    totals: Dict[str, int]


class ReadingPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def days(self) -> int:
        return _PERIOD_DAYS[self]


_PERIOD_DAYS = {
    ReadingPeriod.DAY: 1,
    ReadingPeriod.WEEK: 7,
    ReadingPeriod.MONTH: 30,
    ReadingPeriod.QUARTER: 90,
    ReadingPeriod.YEAR: 365,
}


class DailyReading(BaseModel):
    date: date
    words_read: int = Field(0, ge=0)
    stories_completed: int = Field(0, ge=0)
    reading_time_minutes: int = Field(0, ge=0)

    model_config = {"frozen": True}


class MemberReadingSnapshot(BaseModel):
    """Member-side counterpart of MetricsSnapshot, sampled for one period."""
    member_id: int
    period: ReadingPeriod
    sampled_at: datetime
    stories_started: int = Field(0, ge=0)
    stories_completed: int = Field(0, ge=0)
    interactions: int = Field(0, ge=0)
    daily: Tuple[DailyReading, ...] = ()
    # All days with reading, not only the period, so streaks can span periods
    reading_dates: Tuple[date, ...] = ()

    model_config = {"frozen": True}


class StreakMilestone(BaseModel):
    days: int
    achievement: str
    days_remaining: int
    progress_percentage: float


class MemberAnalytics(BaseModel):
    member_id: int
    period: ReadingPeriod
    total_words: int
    total_stories: int
    total_time_minutes: int
    reading_days: int
    daily_average: int
    completion_rate: float
    current_streak: int
    longest_streak: int
    next_milestone: Optional[StreakMilestone] = None
    engagement_score: float
    engagement_level: str
    words_per_minute: int
    reading_speed: str
    words_trend: float
