# chairai/routers/dictionary_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from chairai.core.database import get_db
from chairai.core.security import get_current_user
from chairai.services.dictionary_service import DictionaryService
from chairai.schemas.dictionary_schema import CategoryOut, MaterialOut, SpecializationOut

router = APIRouter(
    tags=["Dictionaries"],
    dependencies=[Depends(get_current_user)]
)

@router.get("/categories", response_model=List[CategoryOut])
async def get_categories(db: AsyncSession = Depends(get_db)):
    """家具類別列表"""
    return await DictionaryService(db).list_categories()

@router.get("/materials", response_model=List[MaterialOut])
async def get_materials(db: AsyncSession = Depends(get_db)):
    """材質列表"""
    return await DictionaryService(db).list_materials()

@router.get("/specializations", response_model=List[SpecializationOut])
async def get_specializations(db: AsyncSession = Depends(get_db)):
    """工匠專長列表"""
    return await DictionaryService(db).list_specializations()
