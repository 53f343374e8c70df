# chairai/routers/artisan_router.py
from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from chairai.core.database import get_db
from chairai.core.security import get_current_user
from chairai.core.storage import LocalStorage, get_storage
from chairai.core.exceptions import ArtisanProfileError
from chairai.models.user import User
from chairai.services.artisan_profile_service import ArtisanProfileService, PROFILE_NOT_FOUND_MESSAGE
from chairai.schemas.artisan_profile_schema import (
    ArtisanProfileOut,
    ArtisanProfileUpsert,
    PortfolioImageOut,
    SpecializationsAdd,
)
from chairai.schemas.dictionary_schema import SpecializationOut

router = APIRouter(
    prefix="/artisans",
    tags=["Artisans"],
    dependencies=[Depends(get_current_user)] # (重要) 整個路由都需要登入
)

# --- 我的 Profile (工匠) ---
@router.get("/me", response_model=ArtisanProfileOut)
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = ArtisanProfileService(db)
    profile = await service.get_artisan_profile(current_user.id)
    if profile is None:
        raise ArtisanProfileError(PROFILE_NOT_FOUND_MESSAGE, "PROFILE_NOT_FOUND", 404)
    return profile

@router.put("/me", response_model=ArtisanProfileOut)
async def upsert_my_profile(
    profile_data: ArtisanProfileUpsert,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    建立或更新工匠 Profile (公司名稱、NIP、是否公開)
    """
    service = ArtisanProfileService(db)
    return await service.upsert_artisan_profile(profile_data, current_user)

@router.post(
    "/me/specializations",
    response_model=List[SpecializationOut],
    status_code=status.HTTP_201_CREATED
)
async def add_my_specializations(
    data: SpecializationsAdd,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = ArtisanProfileService(db)
    return await service.add_specializations_to_profile(data.specialization_ids, current_user)

@router.delete("/me/specializations/{specialization_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_my_specialization(
    specialization_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = ArtisanProfileService(db)
    await service.remove_specialization_from_profile(specialization_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post(
    "/me/portfolio",
    response_model=PortfolioImageOut,
    status_code=status.HTTP_201_CREATED
)
async def upload_portfolio_image(
    image: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user)
):
    """
    上傳作品集圖片 (multipart 欄位 `image`，JPG / PNG / WEBP，最大 5MB)
    """
    service = ArtisanProfileService(db, storage=storage)
    return await service.upload_portfolio_image(image, current_user)

@router.delete("/me/portfolio/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio_image(
    image_id: str,
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user)
):
    """
    刪除作品集圖片；公開的 Profile 至少要保留 5 張
    """
    service = ArtisanProfileService(db, storage=storage)
    await service.delete_portfolio_image(image_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# --- 公開 Profile ---
@router.get("/{artisan_id}", response_model=ArtisanProfileOut)
async def get_public_profile(
    artisan_id: str,
    db: AsyncSession = Depends(get_db)
):
    service = ArtisanProfileService(db)
    return await service.get_public_profile(artisan_id)
