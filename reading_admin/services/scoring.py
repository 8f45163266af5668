"""
Story performance scoring.

Every function here is pure: same inputs, same output. Rates are percentages
clamped to [0, 100] and a zero denominator means "no data yet" (0.0), never an
error. Inputs are trusted to be non-negative; the collector owns validation.
"""
from datetime import datetime
from typing import Iterable, List, Sequence, Tuple
from reading_admin.schemas.metrics import (
    ActivityPoint,
    ComponentScores,
    MetricsSnapshot,
    PerformanceBadge,
    PerformanceLevel,
    PerformanceScore,
)
from reading_admin.schemas.analytics import Momentum, Recommendation

# Component caps, summing to 100
VIEWS_CAP = 30.0
COMPLETION_CAP = 25.0
RATING_CAP = 20.0
RATING_POPULARITY_CAP = 15.0
FRESHNESS_CAP = 10.0

VIEWS_FOR_FULL_CREDIT = 100
RATINGS_FOR_FULL_CREDIT = 10
FRESHNESS_DECAY_DAYS = 30

# Inclusive lower bounds, highest first
LEVEL_THRESHOLDS = (
    (80, PerformanceLevel.EXCELLENT),
    (60, PerformanceLevel.GOOD),
    (40, PerformanceLevel.AVERAGE),
)

BADGES = {
    PerformanceLevel.EXCELLENT: PerformanceBadge.FIRE,
    PerformanceLevel.GOOD: PerformanceBadge.CHART_UP,
    PerformanceLevel.AVERAGE: PerformanceBadge.CHART_FLAT,
    PerformanceLevel.POOR: PerformanceBadge.CHART_DOWN,
}

DEFAULT_TRENDING_WINDOW_DAYS = 14
DEFAULT_TRENDING_HALF_LIFE_DAYS = 7.0
RATING_TRENDING_WEIGHT = 10.0
DEFAULT_TRENDING_THRESHOLD = 75.0

# Below "good", a story is flagged for editorial attention
ATTENTION_SCORE_THRESHOLD = 60

SECONDS_PER_DAY = 86400.0


def _clamp_percentage(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def calculate_completion_rate(total_readers: int, completed_readers: int) -> float:
    """% of readers who reached 100% progress, rounded to 2 places."""
    if total_readers == 0:
        return 0.0
    return _clamp_percentage(round(completed_readers / total_readers * 100, 2))


def calculate_engagement_rate(views: int, ratings: int, bookmarks: int, shares: int) -> float:
    """Active interactions (ratings, bookmarks, shares) per 100 views."""
    if views == 0:
        return 0.0
    return _clamp_percentage(round((ratings + bookmarks + shares) / views * 100, 2))


def calculate_bounce_rate(views: int, short_sessions: int) -> float:
    """
    Reading sessions that stopped below the bounce threshold per 100 views.
    `short_sessions` is already filtered by the collector, which owns the
    threshold (BOUNCE_PROGRESS_THRESHOLD).
    """
    if views == 0:
        return 0.0
    return _clamp_percentage(round(short_sessions / views * 100, 2))


def _components(snapshot: MetricsSnapshot) -> Tuple[float, float, float, float, float]:
    completion_rate = calculate_completion_rate(snapshot.total_readers, snapshot.completed_readers)

    views = min(snapshot.view_count / VIEWS_FOR_FULL_CREDIT * VIEWS_CAP, VIEWS_CAP)
    completion = completion_rate / 100 * COMPLETION_CAP
    rating = snapshot.average_rating / 5 * RATING_CAP
    popularity = min(
        snapshot.total_ratings / RATINGS_FOR_FULL_CREDIT * RATING_POPULARITY_CAP,
        RATING_POPULARITY_CAP,
    )
    freshness = max(FRESHNESS_CAP - snapshot.days_since_published / FRESHNESS_DECAY_DAYS, 0.0)
    return views, completion, rating, popularity, freshness


def calculate_component_scores(snapshot: MetricsSnapshot) -> ComponentScores:
    views, completion, rating, popularity, freshness = _components(snapshot)
    return ComponentScores(
        views=round(views, 2),
        completion=round(completion, 2),
        rating=round(rating, 2),
        rating_popularity=round(popularity, 2),
        freshness=round(freshness, 2),
    )


def calculate_performance_score(snapshot: MetricsSnapshot) -> int:
    """
    Composite 0–100 score: views 30, completion 25, rating 20,
    rating popularity 15, freshness 10.
    """
    return int(round(sum(_components(snapshot))))


def classify_performance_level(score: float) -> PerformanceLevel:
    for threshold, level in LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    return PerformanceLevel.POOR


def classify_performance_badge(score: float) -> PerformanceBadge:
    return BADGES[classify_performance_level(score)]


def score_snapshot(snapshot: MetricsSnapshot) -> PerformanceScore:
    score = calculate_performance_score(snapshot)
    return PerformanceScore(
        score=score,
        level=classify_performance_level(score),
        badge=classify_performance_badge(score),
        components=calculate_component_scores(snapshot),
    )


def _decayed_sum(
    points: Iterable[ActivityPoint],
    now: datetime,
    window_days: int,
    half_life_days: float,
) -> float:
    total = 0.0
    for point in points:
        age_days = (now - point.timestamp).total_seconds() / SECONDS_PER_DAY
        # future-dated points and anything older than the window are ignored
        if age_days < 0 or age_days >= window_days:
            continue
        total += point.count * 0.5 ** (age_days / half_life_days)
    return total


def calculate_trending_score(
    recent_view_counts: Sequence[ActivityPoint],
    recent_rating_counts: Sequence[ActivityPoint],
    now: datetime,
    window_days: int = DEFAULT_TRENDING_WINDOW_DAYS,
    half_life_days: float = DEFAULT_TRENDING_HALF_LIFE_DAYS,
) -> float:
    """
    Recency-weighted activity inside the trending window.

    Each view counts 1 and each rating counts RATING_TRENDING_WEIGHT, halved
    for every `half_life_days` of age. Activity outside the window adds
    nothing, so an empty window scores exactly 0.0.
    """
    views = _decayed_sum(recent_view_counts, now, window_days, half_life_days)
    ratings = _decayed_sum(recent_rating_counts, now, window_days, half_life_days)
    return views + ratings * RATING_TRENDING_WEIGHT


def trending_score_for(
    snapshot: MetricsSnapshot,
    window_days: int = DEFAULT_TRENDING_WINDOW_DAYS,
    half_life_days: float = DEFAULT_TRENDING_HALF_LIFE_DAYS,
) -> float:
    return calculate_trending_score(
        snapshot.recent_view_counts,
        snapshot.recent_rating_counts,
        snapshot.sampled_at,
        window_days=window_days,
        half_life_days=half_life_days,
    )


def is_trending(trending_score: float, threshold: float = DEFAULT_TRENDING_THRESHOLD) -> bool:
    return trending_score >= threshold


def calculate_momentum(current_week_views: int, previous_week_views: int) -> Momentum:
    """Week-over-week change in views."""
    if previous_week_views == 0:
        return Momentum.GROWING if current_week_views > 0 else Momentum.STAGNANT

    change = (current_week_views - previous_week_views) / previous_week_views * 100
    if change > 20:
        return Momentum.ACCELERATING
    if change > 0:
        return Momentum.GROWING
    if change > -20:
        return Momentum.STABLE
    return Momentum.DECLINING


def build_recommendations(
    views: int,
    average_rating: float,
    completion_rate: float,
    engagement_rate: float,
) -> List[Recommendation]:
    recommendations = []

    if views < 50:
        recommendations.append(Recommendation(
            type="views",
            priority="high",
            message="Consider improving title and excerpt for better discoverability",
            action="optimize_metadata",
        ))
    if average_rating < 3.5:
        recommendations.append(Recommendation(
            type="rating",
            priority="high",
            message="Content quality may need improvement",
            action="review_content",
        ))
    if completion_rate < 60:
        recommendations.append(Recommendation(
            type="completion",
            priority="medium",
            message="Consider improving story structure or pacing",
            action="improve_structure",
        ))
    if engagement_rate < 15:
        recommendations.append(Recommendation(
            type="engagement",
            priority="medium",
            message="Add more interactive elements to boost engagement",
            action="add_interactions",
        ))

    return recommendations


def calculate_percentile_rank(score: float, all_scores: Sequence[float]) -> int:
    """% of the population not strictly better than `score`."""
    if not all_scores:
        return 0
    better = sum(1 for other in all_scores if other > score)
    return int(round((len(all_scores) - better) / len(all_scores) * 100))


def needs_attention(score: float, recommendations: Sequence[Recommendation]) -> bool:
    if score < ATTENTION_SCORE_THRESHOLD:
        return True
    return any(r.priority == "high" for r in recommendations)
