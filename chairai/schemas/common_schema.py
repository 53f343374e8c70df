# chairai/schemas/common_schema.py
# 共用：分頁參數與分頁 metadata
import math
import uuid
from pydantic import BaseModel, Field

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

class PaginationQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        # page 從 1 開始
        return (self.page - 1) * self.limit

class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)

def validate_uuid(value: str, message: str) -> str:
    """驗證字串為合法 UUID，回傳標準小寫格式"""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise ValueError(message)
