from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class ReadingProgressUpdate(BaseModel):
    member_id: int
    story_id: int
    reading_progress: float = Field(..., ge=0, le=100)
    time_spent: int = Field(0, ge=0, description="Seconds spent in this session")
    words_read: int = Field(0, ge=0, description="Words read in this session")

class ReadingHistoryResponse(BaseModel):
    id: int
    member_id: int
    story_id: int
    reading_progress: float
    time_spent: int
    words_read: int
    last_read_at: datetime
    completed_at: Optional[datetime]
    just_completed: bool = False

    model_config = {"from_attributes": True}

class StoryViewCreate(BaseModel):
    member_id: Optional[int] = None

class StoryViewResponse(BaseModel):
    story_id: int
    views: int
