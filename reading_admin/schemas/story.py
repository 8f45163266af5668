from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class StoryCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = ""
    active: bool = True
    published_at: Optional[datetime] = None

class StoryUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    active: Optional[bool] = None
    published_at: Optional[datetime] = None

class StoryResponse(BaseModel):
    id: int
    title: str
    word_count: int
    reading_time_minutes: int
    reading_level: Optional[str]
    active: bool
    published_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


class ContentProgress(BaseModel):
    current_words: int
    target_words: int
    progress_percentage: float
    words_remaining: int
    is_target_met: bool


class ContentAnalysis(BaseModel):
    word_count: int = 0
    character_count: int = 0
    paragraph_count: int = 0
    sentence_count: int = 0
    reading_level: str = "intermediate"
    estimated_reading_time: int = 1  # minutes
    average_words_per_sentence: float = 0.0
    average_words_per_paragraph: float = 0.0
    average_characters_per_word: float = 0.0
    unique_words_count: int = 0
    unique_words_ratio: float = 0.0
    complexity_score: float = 0.0
    readability_score: float = 0.0
    progress: Optional[ContentProgress] = None


class ContentAnalysisRequest(BaseModel):
    content: str
    target_words: Optional[int] = Field(None, ge=1)
