# chairai/repositories/artisan_profile_repo.py
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional

from chairai.models.artisan_profile import ArtisanProfile, ArtisanSpecialization, PortfolioImage
from chairai.schemas.artisan_profile_schema import ArtisanProfileUpsert


class ArtisanProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # (重要)
    # specializations / portfolio_images 由 Model 的 lazy="selectin" 載入；
    # populate_existing 確保刪除或新增之後重新讀取的是最新的集合
    async def get_profile_by_user_id(self, user_id: str) -> ArtisanProfile | None:
        stmt = (
            select(ArtisanProfile)
            .where(ArtisanProfile.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_profile_by_nip(self, nip: str) -> ArtisanProfile | None:
        stmt = select(ArtisanProfile).where(ArtisanProfile.nip == nip)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def upsert_profile(self, user_id: str, profile_data: ArtisanProfileUpsert) -> ArtisanProfile:
        """
        以 user_id 為鍵，有就更新、沒有就新增
        """
        try:
            db_profile = await self.db.get(ArtisanProfile, user_id)
            if db_profile is None:
                db_profile = ArtisanProfile(user_id=user_id, **profile_data.model_dump())
                self.db.add(db_profile)
            else:
                for key, value in profile_data.model_dump().items():
                    setattr(db_profile, key, value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self.get_profile_by_user_id(user_id)

    # --- Specializations ---
    async def add_specializations(self, user_id: str, specialization_ids: List[str]) -> None:
        """
        新增專長關聯；已存在的關聯直接略過 (重複呼叫結果相同)
        """
        stmt = select(ArtisanSpecialization.specialization_id).where(
            ArtisanSpecialization.artisan_id == user_id
        )
        existing = set((await self.db.execute(stmt)).scalars().all())

        try:
            for specialization_id in dict.fromkeys(specialization_ids):
                if specialization_id in existing:
                    continue
                self.db.add(ArtisanSpecialization(artisan_id=user_id, specialization_id=specialization_id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def remove_specialization(self, user_id: str, specialization_id: str) -> int:
        stmt = delete(ArtisanSpecialization).where(
            ArtisanSpecialization.artisan_id == user_id,
            ArtisanSpecialization.specialization_id == specialization_id
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount

    # --- Portfolio ---
    async def get_portfolio_image(self, image_id: str, user_id: str) -> Optional[PortfolioImage]:
        stmt = select(PortfolioImage).where(
            PortfolioImage.id == image_id,
            PortfolioImage.artisan_id == user_id
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def count_portfolio_images(self, user_id: str) -> int:
        stmt = select(func.count(PortfolioImage.id)).where(PortfolioImage.artisan_id == user_id)
        return (await self.db.execute(stmt)).scalar_one()

    async def create_portfolio_image(self, user_id: str, image_url: str) -> PortfolioImage:
        image = PortfolioImage(artisan_id=user_id, image_url=image_url)
        try:
            self.db.add(image)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(image)
        return image

    async def delete_portfolio_image(self, image_id: str, user_id: str) -> int:
        stmt = delete(PortfolioImage).where(
            PortfolioImage.id == image_id,
            PortfolioImage.artisan_id == user_id
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount
