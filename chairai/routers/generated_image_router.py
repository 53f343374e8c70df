# chairai/routers/generated_image_router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from chairai.core.database import get_db
from chairai.core.security import get_current_user
from chairai.models.user import User
from chairai.services.generated_image_service import GeneratedImageService
from chairai.schemas.common_schema import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from chairai.schemas.generated_image_schema import GeneratedImageListOut, GeneratedImageOut, GeneratedImagesQuery

router = APIRouter(
    prefix="/images/generated",
    tags=["Generated Images"],
    dependencies=[Depends(get_current_user)]
)

@router.get("", response_model=GeneratedImageListOut)
async def list_my_generated_images(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    unused_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    委託人自己的 AI 圖片 (`unused_only=true` 只列出尚未建立案件的圖片)
    """
    service = GeneratedImageService(db)
    query = GeneratedImagesQuery(page=page, limit=limit, unused_only=unused_only)
    return await service.list_my_images(query, current_user)

@router.get("/{image_id}", response_model=GeneratedImageOut)
async def get_generated_image(
    image_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = GeneratedImageService(db)
    return await service.get_image(image_id, current_user)
