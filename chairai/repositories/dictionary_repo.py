# chairai/repositories/dictionary_repo.py
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from chairai.models.dictionary import Category, Material, Specialization

class DictionaryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self) -> List[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return result.scalars().all()

    async def list_materials(self) -> List[Material]:
        result = await self.db.execute(select(Material).order_by(Material.name))
        return result.scalars().all()

    async def list_specializations(self) -> List[Specialization]:
        result = await self.db.execute(select(Specialization).order_by(Specialization.name))
        return result.scalars().all()

    async def get_category_by_id(self, category_id: str) -> Optional[Category]:
        return await self.db.get(Category, category_id)

    async def get_material_by_id(self, material_id: str) -> Optional[Material]:
        return await self.db.get(Material, material_id)

    async def list_specializations_by_ids(self, specialization_ids: List[str]) -> List[Specialization]:
        """
        回傳傳入的 ID 列表中，實際存在於資料庫的專長
        """
        if not specialization_ids:
            return []
        stmt = select(Specialization).where(Specialization.id.in_(specialization_ids))
        result = await self.db.execute(stmt)
        return result.scalars().all()
