from datetime import datetime
from enum import Enum
from typing import Tuple
from pydantic import BaseModel, Field


class ActivityPoint(BaseModel):
    """Number of events (views, ratings) recorded at one instant."""
    timestamp: datetime
    count: int = Field(..., ge=0)

    model_config = {"frozen": True}


class MetricsSnapshot(BaseModel):
    """
    Raw counts for one entity, all sampled at `sampled_at`.

    Every field has an explicit default so a collector that has no data for a
    dimension passes the zero on purpose rather than by omission.
    """
    entity_type: str = "story"
    entity_id: int
    sampled_at: datetime

    view_count: int = Field(0, ge=0)
    total_readers: int = Field(0, ge=0)
    completed_readers: int = Field(0, ge=0)
    average_rating: float = Field(0.0, ge=0.0, le=5.0)
    total_ratings: int = Field(0, ge=0)
    word_count: int = Field(0, ge=0)
    days_since_published: int = Field(0, ge=0)

    recent_view_counts: Tuple[ActivityPoint, ...] = ()
    recent_rating_counts: Tuple[ActivityPoint, ...] = ()

    bookmark_count: int = Field(0, ge=0)
    share_count: int = Field(0, ge=0)
    short_sessions: int = Field(0, ge=0)

    current_week_views: int = Field(0, ge=0)
    previous_week_views: int = Field(0, ge=0)

    model_config = {"frozen": True}


class PerformanceLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


class PerformanceBadge(str, Enum):
    FIRE = "fire"
    CHART_UP = "chart-up"
    CHART_FLAT = "chart-flat"
    CHART_DOWN = "chart-down"

    @property
    def emoji(self) -> str:
        return _BADGE_EMOJI[self]


_BADGE_EMOJI = {
    PerformanceBadge.FIRE: "🔥",
    PerformanceBadge.CHART_UP: "📈",
    PerformanceBadge.CHART_FLAT: "📊",
    PerformanceBadge.CHART_DOWN: "📉",
}


class ComponentScores(BaseModel):
    views: float
    completion: float
    rating: float
    rating_popularity: float
    freshness: float

    model_config = {"frozen": True}

    @property
    def total(self) -> float:
        return self.views + self.completion + self.rating + self.rating_popularity + self.freshness


class PerformanceScore(BaseModel):
    score: int = Field(..., ge=0, le=100)
    level: PerformanceLevel
    badge: PerformanceBadge
    components: ComponentScores

    model_config = {"frozen": True}
