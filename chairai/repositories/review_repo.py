# chairai/repositories/review_repo.py

from typing import Dict, List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from chairai.models.review import Review

class ReviewRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_review_by_project_and_reviewer(self, project_id: str, reviewer_id: str) -> Optional[Review]:
        stmt = select(Review).where(
            Review.project_id == project_id,
            Review.reviewer_id == reviewer_id
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_review_by_id(self, review_id: str) -> Optional[Review]:
        stmt = (
            select(Review)
            .where(Review.id == review_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_review(self, review: Review) -> Review:
        """
        新增評價 (project_id + reviewer_id 有 unique 限制)
        """
        try:
            self.db.add(review)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        # 重新查詢一次，確保 reviewer / project 關聯都已載入
        return await self.get_review_by_id(review.id)

    async def get_reviews_by_reviewee(
        self, reviewee_id: str, limit: int, offset: int
    ) -> Tuple[List[Review], int]:
        """
        取得某人收到的評價 (新到舊)，回傳 (當頁資料, 總筆數)
        """
        count_stmt = select(func.count(Review.id)).where(Review.reviewee_id == reviewee_id)
        total = (await self.db.execute(count_stmt)).scalar_one()

        stmt = (
            select(Review)
            .where(Review.reviewee_id == reviewee_id)
            .order_by(Review.created_at.desc(), Review.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return result.scalars().unique().all(), total

    async def get_rating_distribution(self, reviewee_id: str) -> Dict[int, int]:
        """
        依星等分組統計，回傳 {rating: count} (沒有評價的星等不會出現)
        """
        stmt = (
            select(Review.rating, func.count(Review.id))
            .where(Review.reviewee_id == reviewee_id)
            .group_by(Review.rating)
        )
        result = await self.db.execute(stmt)
        return {rating: count for rating, count in result.all()}
