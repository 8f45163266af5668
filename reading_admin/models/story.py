from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from reading_admin.database import Base
from reading_admin.models.timestamps import utcnow

class Story(Base):
    __tablename__ = "stories"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=True)
    word_count = Column(Integer, default=0, nullable=False)
    reading_time_minutes = Column(Integer, default=1, nullable=False)
    reading_level = Column(String, nullable=True)  # beginner, intermediate, advanced
    active = Column(Boolean, default=True, nullable=False)
    views = Column(Integer, default=0, nullable=False)  # denormalized counter
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class StoryView(Base):
    __tablename__ = "story_views"

    id = Column(Integer, primary_key=True, index=True)
    story_id = Column(Integer, ForeignKey("stories.id"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=True)  # guests have no member
    viewed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)


class StoryRating(Base):
    __tablename__ = "member_story_ratings"

    id = Column(Integer, primary_key=True, index=True)
    story_id = Column(Integer, ForeignKey("stories.id"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    rating = Column(Integer, nullable=False)  # 1–5
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("story_id", "member_id", name="uq_story_member_rating"),
    )


class StoryInteraction(Base):
    __tablename__ = "member_story_interactions"

    id = Column(Integer, primary_key=True, index=True)
    story_id = Column(Integer, ForeignKey("stories.id"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    action = Column(String, nullable=False)  # bookmark, share
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
