from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class RatingCreate(BaseModel):
    story_id: int
    member_id: int
    rating: int = Field(..., ge=1, le=5)

class RatingUpdate(BaseModel):
    rating: int = Field(..., ge=1, le=5)

class RatingResponse(BaseModel):
    id: int
    story_id: int
    member_id: int
    rating: int
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}
