# chairai/schemas/generated_image_schema.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict

from chairai.schemas.common_schema import PaginationMeta, PaginationQuery

class GeneratedImagesQuery(PaginationQuery):
    # 只列出尚未轉成案件的圖片
    unused_only: bool = False

class GeneratedImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    prompt: Optional[str] = None
    image_url: str
    is_used: bool
    created_at: Optional[datetime] = None

class GeneratedImageListOut(BaseModel):
    data: List[GeneratedImageOut]
    pagination: PaginationMeta
