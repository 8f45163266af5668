from sqlalchemy import Column, Integer, Float, Date, DateTime, ForeignKey, UniqueConstraint
from reading_admin.database import Base
from reading_admin.models.timestamps import utcnow

class ReadingHistory(Base):
    __tablename__ = "member_reading_history"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False, index=True)
    story_id = Column(Integer, ForeignKey("stories.id"), nullable=False, index=True)
    reading_progress = Column(Float, default=0.0, nullable=False)  # 0–100
    time_spent = Column(Integer, default=0, nullable=False)  # seconds
    words_read = Column(Integer, default=0, nullable=False)
    last_read_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("member_id", "story_id", name="uq_member_story_history"),
    )


class MemberReadingStatistics(Base):
    __tablename__ = "member_reading_statistics"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    words_read = Column(Integer, default=0, nullable=False)
    stories_completed = Column(Integer, default=0, nullable=False)
    reading_time_minutes = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("member_id", "date", name="uq_member_date_stats"),
    )
