from datetime import date, timedelta
from typing import Iterable, Optional, Sequence
from reading_admin.schemas.analytics import MemberAnalytics, MemberReadingSnapshot, StreakMilestone
from reading_admin.services.scoring import calculate_completion_rate

STREAK_MILESTONES = (
    (3, "streak_starter"),
    (7, "week_warrior"),
    (14, "fortnight_fighter"),
    (30, "monthly_master"),
    (60, "reading_champion"),
    (90, "quarter_king"),
    (180, "semester_scholar"),
    (365, "year_legend"),
)

# Inclusive lower bounds, highest first
ENGAGEMENT_LEVELS = (
    (95, "excellent"),
    (80, "high"),
    (60, "medium"),
)

# Words per minute
READING_SPEEDS = (
    (400, "speed_reader"),
    (300, "fast"),
    (200, "average"),
)


def calculate_member_engagement_score(
    reading_days: int,
    period_days: int,
    interactions: int,
    stories_read: int,
    stories_completed: int,
) -> float:
    """Consistency (40) + interactions per story (30, capped) + completion (30)."""
    consistency = min(reading_days / period_days, 1.0) * 40 if period_days > 0 else 0.0
    interaction = min(30.0, interactions / stories_read * 30) if stories_read > 0 else 0.0
    completion = stories_completed / stories_read * 30 if stories_read > 0 else 0.0
    return round(consistency + interaction + completion, 1)


def classify_engagement_level(score: float) -> str:
    for threshold, level in ENGAGEMENT_LEVELS:
        if score >= threshold:
            return level
    return "low"


def calculate_current_streak(reading_dates: Iterable[date], today: date) -> int:
    """Consecutive reading days ending today, or yesterday if today has no reading yet."""
    days = set(reading_dates)
    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def calculate_longest_streak(reading_dates: Iterable[date]) -> int:
    longest = 0
    current = 0
    previous = None
    for day in sorted(set(reading_dates)):
        if previous is not None and day - previous == timedelta(days=1):
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        previous = day
    return longest


def next_streak_milestone(streak_days: int) -> Optional[StreakMilestone]:
    for days, achievement in STREAK_MILESTONES:
        if streak_days < days:
            return StreakMilestone(
                days=days,
                achievement=achievement,
                days_remaining=days - streak_days,
                progress_percentage=round(streak_days / days * 100, 1),
            )
    return None


def calculate_words_per_minute(words_read: int, minutes: int) -> int:
    if minutes == 0:
        return 0
    return int(round(words_read / minutes))


def categorize_reading_speed(wpm: int) -> str:
    if wpm == 0:
        return "unknown"
    for threshold, category in READING_SPEEDS:
        if wpm >= threshold:
            return category
    return "slow"


def calculate_trend(points: Sequence[float]) -> float:
    """Least-squares slope of the points against their index."""
    n = len(points)
    if n < 2:
        return 0.0

    sum_x = sum(range(n))
    sum_y = sum(points)
    sum_xy = sum(x * y for x, y in enumerate(points))
    sum_x2 = sum(x * x for x in range(n))

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return round((n * sum_xy - sum_x * sum_y) / denominator, 2)


def summarize_member(snapshot: MemberReadingSnapshot) -> MemberAnalytics:
    today = snapshot.sampled_at.date()
    daily = sorted(snapshot.daily, key=lambda d: d.date)

    total_words = sum(d.words_read for d in daily)
    total_minutes = sum(d.reading_time_minutes for d in daily)
    reading_days = sum(1 for d in daily if d.words_read > 0)
    current_streak = calculate_current_streak(snapshot.reading_dates, today)
    wpm = calculate_words_per_minute(total_words, total_minutes)
    engagement = calculate_member_engagement_score(
        reading_days,
        snapshot.period.days,
        snapshot.interactions,
        snapshot.stories_started,
        snapshot.stories_completed,
    )

    return MemberAnalytics(
        member_id=snapshot.member_id,
        period=snapshot.period,
        total_words=total_words,
        total_stories=sum(d.stories_completed for d in daily),
        total_time_minutes=total_minutes,
        reading_days=reading_days,
        daily_average=int(round(total_words / len(daily))) if daily else 0,
        completion_rate=calculate_completion_rate(snapshot.stories_started, snapshot.stories_completed),
        current_streak=current_streak,
        longest_streak=calculate_longest_streak(snapshot.reading_dates),
        next_milestone=next_streak_milestone(current_streak),
        engagement_score=engagement,
        engagement_level=classify_engagement_level(engagement),
        words_per_minute=wpm,
        reading_speed=categorize_reading_speed(wpm),
        words_trend=calculate_trend([d.words_read for d in daily]),
    )
