# chairai/services/dictionary_service.py
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession

from chairai.repositories.dictionary_repo import DictionaryRepository
from chairai.schemas.dictionary_schema import CategoryOut, MaterialOut, SpecializationOut

class DictionaryService:
    """類別 / 材質 / 專長 的唯讀字典"""

    def __init__(self, db: AsyncSession):
        self.dictionary_repo = DictionaryRepository(db)

    async def list_categories(self) -> List[CategoryOut]:
        return [CategoryOut.model_validate(c) for c in await self.dictionary_repo.list_categories()]

    async def list_materials(self) -> List[MaterialOut]:
        return [MaterialOut.model_validate(m) for m in await self.dictionary_repo.list_materials()]

    async def list_specializations(self) -> List[SpecializationOut]:
        return [SpecializationOut.model_validate(s) for s in await self.dictionary_repo.list_specializations()]
