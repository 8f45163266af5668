from datetime import timedelta

from reading_admin.models.reading import ReadingHistory, MemberReadingStatistics
from reading_admin.models.story import StoryView, StoryRating, StoryInteraction
from reading_admin.schemas.analytics import ReadingPeriod
from reading_admin.services.scoring import trending_score_for
from reading_admin.services.collector import (
    collect_member_snapshot,
    collect_story_snapshot,
    count_by_timestamp,
    count_platform_totals,
    list_active_stories,
)


async def seed_story_activity(db, story, members, now):
    progresses = [100] * 10 + [50] * 3 + [5] * 2
    for member, progress in zip(members, progresses):
        db.add(ReadingHistory(member_id=member.id, story_id=story.id, reading_progress=progress,
                              last_read_at=now - timedelta(days=1)))

    for days_ago, count in ((1, 30), (10, 20), (20, 5)):
        for _ in range(count):
            db.add(StoryView(story_id=story.id, viewed_at=now - timedelta(days=days_ago)))

    for member, stars in zip(members, (5, 4, 3)):
        db.add(StoryRating(story_id=story.id, member_id=member.id, rating=stars,
                           created_at=now - timedelta(days=2)))

    for member, action in zip(members, ("bookmark", "bookmark", "share")):
        db.add(StoryInteraction(story_id=story.id, member_id=member.id, action=action))

    await db.commit()


async def test_collect_story_snapshot(db, make_story, make_members, now):
    story = await make_story(days_old=10, word_count=500)
    members = await make_members(15)
    await seed_story_activity(db, story, members, now)

    snapshot = await collect_story_snapshot(db, story.id, now=now)

    assert snapshot.entity_id == story.id
    assert snapshot.sampled_at == now
    assert snapshot.view_count == 55
    assert snapshot.total_readers == 15
    assert snapshot.completed_readers == 10
    assert snapshot.short_sessions == 2
    assert snapshot.average_rating == 4.0
    assert snapshot.total_ratings == 3
    assert snapshot.bookmark_count == 2
    assert snapshot.share_count == 1
    assert snapshot.word_count == 500
    assert snapshot.days_since_published == 10
    assert snapshot.current_week_views == 30
    assert snapshot.previous_week_views == 20
    # the 20-day-old views fall outside the 14 day trending window
    assert sum(p.count for p in snapshot.recent_view_counts) == 50
    assert sum(p.count for p in snapshot.recent_rating_counts) == 3


async def test_collect_story_snapshot_unknown_story(db):
    assert await collect_story_snapshot(db, 999) is None


async def test_collect_story_snapshot_without_activity(db, make_story, now):
    story = await make_story(days_old=0)
    snapshot = await collect_story_snapshot(db, story.id, now=now)
    assert snapshot.view_count == 0
    assert snapshot.average_rating == 0.0
    assert snapshot.recent_view_counts == ()


async def test_bounce_threshold_is_configurable(db, make_story, make_members, now):
    story = await make_story()
    members = await make_members(15)
    await seed_story_activity(db, story, members, now)

    snapshot = await collect_story_snapshot(db, story.id, now=now, bounce_threshold=60.0)
    assert snapshot.short_sessions == 5


def test_count_by_timestamp_merges_identical_instants(now):
    earlier = now - timedelta(minutes=50)
    points = count_by_timestamp([now, earlier, now])
    assert [(p.timestamp, p.count) for p in points] == [(earlier, 1), (now, 2)]


async def test_activity_just_inside_the_trending_window_still_counts(db, make_story, now):
    story = await make_story()
    inside = now - timedelta(days=14) + timedelta(minutes=30)
    db.add(StoryView(story_id=story.id, viewed_at=inside))
    db.add(StoryView(story_id=story.id, viewed_at=now - timedelta(days=14)))
    await db.commit()

    snapshot = await collect_story_snapshot(db, story.id, now=now)

    assert [(p.timestamp, p.count) for p in snapshot.recent_view_counts] == [(inside, 1)]
    assert trending_score_for(snapshot) > 0


async def test_views_in_the_same_hour_keep_their_own_age(db, make_story, now):
    story = await make_story()
    db.add(StoryView(story_id=story.id, viewed_at=now - timedelta(minutes=40)))
    db.add(StoryView(story_id=story.id, viewed_at=now - timedelta(minutes=10)))
    await db.commit()

    snapshot = await collect_story_snapshot(db, story.id, now=now)

    ages = [now - p.timestamp for p in snapshot.recent_view_counts]
    assert ages == [timedelta(minutes=40), timedelta(minutes=10)]


async def test_collect_member_snapshot(db, make_story, make_members, now):
    story = await make_story()
    (member,) = await make_members(1)
    today = now.date()
    db.add(ReadingHistory(member_id=member.id, story_id=story.id, reading_progress=100, last_read_at=now))
    db.add(StoryInteraction(story_id=story.id, member_id=member.id, action="share", created_at=now))
    db.add(StoryRating(story_id=story.id, member_id=member.id, rating=4, created_at=now))
    for offset, words in ((0, 800), (1, 400), (40, 300)):
        db.add(MemberReadingStatistics(member_id=member.id, date=today - timedelta(days=offset),
                                       words_read=words, stories_completed=0, reading_time_minutes=4))
    await db.commit()

    snapshot = await collect_member_snapshot(db, member.id, ReadingPeriod.WEEK, now=now)

    assert snapshot.stories_started == 1
    assert snapshot.stories_completed == 1
    assert snapshot.interactions == 2
    assert [d.words_read for d in snapshot.daily] == [400, 800]
    assert len(snapshot.reading_dates) == 3


async def test_collect_member_snapshot_unknown_member(db):
    assert await collect_member_snapshot(db, 999, ReadingPeriod.MONTH) is None


async def test_platform_helpers(db, make_story, make_members, now):
    story = await make_story(title="Active")
    await make_story(title="Hidden", active=False)
    members = await make_members(15)
    await seed_story_activity(db, story, members, now)

    assert await list_active_stories(db) == [(story.id, "Active")]
    assert await count_platform_totals(db) == {"views": 55, "ratings": 3, "interactions": 3}
