# chairai/schemas/review_schema.py
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from chairai.schemas.common_schema import PaginationMeta

class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)

class ReviewCategoryOut(BaseModel):
    name: str

class ReviewProjectOut(BaseModel):
    id: str
    category: ReviewCategoryOut

class ReviewerOut(BaseModel):
    id: str
    name: str

class ReviewOut(BaseModel):
    id: str
    project: ReviewProjectOut
    reviewer: ReviewerOut
    reviewee_id: str
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

class ReviewSummaryOut(BaseModel):
    average_rating: float
    total_reviews: int
    # key 為 "1".."5"
    ratings_distribution: Dict[str, int]

class ArtisanReviewsOut(BaseModel):
    data: List[ReviewOut]
    pagination: PaginationMeta
    summary: ReviewSummaryOut
