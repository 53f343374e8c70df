# chairai/repositories/generated_image_repo.py
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from chairai.models.generated_image import GeneratedImage

class GeneratedImageRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_image_by_id(self, image_id: str) -> Optional[GeneratedImage]:
        stmt = (
            select(GeneratedImage)
            .where(GeneratedImage.id == image_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_images_by_user(
        self, user_id: str, unused_only: bool, limit: int, offset: int
    ) -> Tuple[List[GeneratedImage], int]:
        """
        查詢某位委託人的圖片 (新到舊)，回傳 (當頁資料, 總筆數)
        """
        conditions = [GeneratedImage.user_id == user_id]
        if unused_only:
            conditions.append(GeneratedImage.is_used == False)  # noqa: E712

        count_stmt = select(func.count(GeneratedImage.id)).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar_one()

        stmt = (
            select(GeneratedImage)
            .where(*conditions)
            .order_by(GeneratedImage.created_at.desc(), GeneratedImage.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all(), total
