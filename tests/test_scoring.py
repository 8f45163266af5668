from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from reading_admin.schemas.analytics import Momentum
from reading_admin.schemas.metrics import (
    ActivityPoint,
    MetricsSnapshot,
    PerformanceBadge,
    PerformanceLevel,
)
from reading_admin.services.scoring import (
    build_recommendations,
    calculate_bounce_rate,
    calculate_completion_rate,
    calculate_component_scores,
    calculate_engagement_rate,
    calculate_momentum,
    calculate_percentile_rank,
    calculate_performance_score,
    calculate_trending_score,
    classify_performance_badge,
    classify_performance_level,
    is_trending,
    score_snapshot,
    trending_score_for,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def snapshot(**overrides) -> MetricsSnapshot:
    fields = dict(entity_id=1, sampled_at=NOW)
    fields.update(overrides)
    return MetricsSnapshot(**fields)


def views_at(*days_ago, count=10):
    return tuple(ActivityPoint(timestamp=NOW - timedelta(days=d), count=count) for d in days_ago)


# completion rate

def test_completion_rate_is_zero_without_readers():
    assert calculate_completion_rate(0, 0) == 0.0


def test_completion_rate_rounds_to_two_places():
    assert calculate_completion_rate(15, 10) == 66.67


@pytest.mark.parametrize("total,completed", [(1, 0), (1, 1), (3, 1), (7, 7), (1000, 999)])
def test_completion_rate_stays_within_bounds(total, completed):
    rate = calculate_completion_rate(total, completed)
    assert 0.0 <= rate <= 100.0
    assert rate == round(completed / total * 100, 2)


def test_completion_rate_clamps_inconsistent_counts():
    assert calculate_completion_rate(5, 8) == 100.0


# engagement and bounce

def test_engagement_rate():
    assert calculate_engagement_rate(100, 5, 10, 5) == 20.0
    assert calculate_engagement_rate(0, 5, 10, 5) == 0.0


def test_engagement_rate_is_capped():
    assert calculate_engagement_rate(2, 10, 0, 0) == 100.0


def test_bounce_rate():
    assert calculate_bounce_rate(40, 10) == 25.0
    assert calculate_bounce_rate(0, 10) == 0.0


# performance score

def test_empty_snapshot_scores_only_freshness():
    assert calculate_performance_score(snapshot()) == 10


def test_maximal_inputs_score_above_80():
    score = calculate_performance_score(snapshot(
        view_count=3000,
        total_readers=100,
        completed_readers=100,
        average_rating=5.0,
        total_ratings=100,
        days_since_published=0,
    ))
    assert 80 < score <= 100


def test_component_scores_match_documented_formula():
    components = calculate_component_scores(snapshot(
        view_count=50,
        total_readers=4,
        completed_readers=2,
        average_rating=4.0,
        total_ratings=5,
        days_since_published=60,
    ))
    assert components.views == 15.0
    assert components.completion == 12.5
    assert components.rating == 16.0
    assert components.rating_popularity == 7.5
    assert components.freshness == 8.0
    assert calculate_performance_score(snapshot(
        view_count=50,
        total_readers=4,
        completed_readers=2,
        average_rating=4.0,
        total_ratings=5,
        days_since_published=60,
    )) == 59


def test_freshness_never_goes_negative():
    assert calculate_component_scores(snapshot(days_since_published=3650)).freshness == 0.0
    assert calculate_performance_score(snapshot(days_since_published=3650)) == 0


@pytest.mark.parametrize("field,values", [
    ("view_count", [0, 10, 50, 99, 100, 500]),
    ("average_rating", [0.0, 1.0, 2.5, 4.9, 5.0]),
    ("total_ratings", [0, 1, 5, 10, 50]),
    ("completed_readers", [0, 3, 10, 20]),
])
def test_score_is_monotonic_in_each_input(field, values):
    base = dict(view_count=20, total_readers=20, completed_readers=5, average_rating=3.0,
                total_ratings=2, days_since_published=45)
    scores = []
    for value in values:
        base[field] = value
        scores.append(calculate_performance_score(snapshot(**base)))
    assert scores == sorted(scores)
    assert all(0 <= s <= 100 for s in scores)


def test_score_does_not_increase_with_age():
    scores = [calculate_performance_score(snapshot(days_since_published=d)) for d in (0, 30, 90, 299, 300, 1000)]
    assert scores == sorted(scores, reverse=True)


def test_scoring_is_deterministic():
    snap = snapshot(view_count=42, total_readers=9, completed_readers=4, average_rating=3.7,
                    total_ratings=6, days_since_published=12)
    assert calculate_performance_score(snap) == calculate_performance_score(snap)
    assert score_snapshot(snap) == score_snapshot(snap)


def test_snapshot_rejects_negative_counts():
    with pytest.raises(ValidationError):
        snapshot(view_count=-1)
    with pytest.raises(ValidationError):
        snapshot(average_rating=5.5)


# levels and badges

@pytest.mark.parametrize("score,level", [
    (100, PerformanceLevel.EXCELLENT),
    (80, PerformanceLevel.EXCELLENT),
    (79, PerformanceLevel.GOOD),
    (60, PerformanceLevel.GOOD),
    (59, PerformanceLevel.AVERAGE),
    (40, PerformanceLevel.AVERAGE),
    (39, PerformanceLevel.POOR),
    (0, PerformanceLevel.POOR),
])
def test_performance_level_boundaries(score, level):
    assert classify_performance_level(score) == level


@pytest.mark.parametrize("score,badge,emoji", [
    (85, PerformanceBadge.FIRE, "🔥"),
    (65, PerformanceBadge.CHART_UP, "📈"),
    (45, PerformanceBadge.CHART_FLAT, "📊"),
    (25, PerformanceBadge.CHART_DOWN, "📉"),
])
def test_performance_badge(score, badge, emoji):
    assert classify_performance_badge(score) == badge
    assert badge.emoji == emoji


def test_score_snapshot_bundles_level_and_badge():
    result = score_snapshot(snapshot(view_count=100, total_readers=10, completed_readers=10,
                                     average_rating=5.0, total_ratings=10))
    assert result.score == 100
    assert result.level == PerformanceLevel.EXCELLENT
    assert result.badge == PerformanceBadge.FIRE
    assert result.components.total == 100


# trending

def test_trending_is_zero_when_window_is_empty():
    assert calculate_trending_score((), (), NOW) == 0.0


def test_trending_ignores_activity_outside_window():
    old = views_at(14, 20, 30, count=100)
    assert calculate_trending_score(old, old, NOW, window_days=14) == 0.0


def test_trending_ignores_future_activity():
    future = (ActivityPoint(timestamp=NOW + timedelta(days=1), count=50),)
    assert calculate_trending_score(future, (), NOW) == 0.0


def test_trending_increases_with_recency():
    scores = [calculate_trending_score(views_at(d), (), NOW) for d in (13, 7, 3, 1, 0)]
    assert all(earlier < later for earlier, later in zip(scores, scores[1:]))


def test_trending_weights_ratings_above_views():
    one_view = calculate_trending_score(views_at(0, count=1), (), NOW)
    one_rating = calculate_trending_score((), views_at(0, count=1), NOW)
    assert one_view == 1.0
    assert one_rating == 10.0


def test_trending_half_life():
    score = calculate_trending_score(views_at(7, count=8), (), NOW, half_life_days=7)
    assert score == pytest.approx(4.0)


def test_trending_score_for_uses_snapshot_clock():
    snap = snapshot(recent_view_counts=views_at(2, count=30), recent_rating_counts=views_at(1, count=5))
    assert trending_score_for(snap) == calculate_trending_score(
        snap.recent_view_counts, snap.recent_rating_counts, NOW
    )
    assert trending_score_for(snap) > 0


def test_is_trending_threshold():
    assert is_trending(75.0)
    assert not is_trending(74.99)


# momentum, recommendations, percentile

@pytest.mark.parametrize("current,previous,momentum", [
    (0, 0, Momentum.STAGNANT),
    (5, 0, Momentum.GROWING),
    (130, 100, Momentum.ACCELERATING),
    (110, 100, Momentum.GROWING),
    (100, 100, Momentum.STABLE),
    (85, 100, Momentum.STABLE),
    (50, 100, Momentum.DECLINING),
])
def test_momentum(current, previous, momentum):
    assert calculate_momentum(current, previous) == momentum


def test_recommendations_for_weak_story():
    actions = [r.action for r in build_recommendations(10, 2.0, 30.0, 5.0)]
    assert actions == ["optimize_metadata", "review_content", "improve_structure", "add_interactions"]


def test_no_recommendations_for_strong_story():
    assert build_recommendations(500, 4.5, 80.0, 25.0) == []


def test_percentile_rank():
    assert calculate_percentile_rank(50, []) == 0
    assert calculate_percentile_rank(90, [10, 50, 90]) == 100
    assert calculate_percentile_rank(50, [10, 50, 90]) == 67
    assert calculate_percentile_rank(10, [10, 50, 90, 95]) == 25
