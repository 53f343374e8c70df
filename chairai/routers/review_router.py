# chairai/routers/review_router.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from chairai.core.database import get_db
from chairai.core.security import get_current_user
from chairai.models.user import User
from chairai.services.review_service import ReviewService
from chairai.schemas.common_schema import DEFAULT_PAGE_SIZE
from chairai.schemas.review_schema import ArtisanReviewsOut, ReviewCreate, ReviewOut

# 評價：建立掛在 /projects 下，查詢掛在 /artisans 下
project_review_router = APIRouter(
    prefix="/projects",
    tags=["Reviews"],
    dependencies=[Depends(get_current_user)]
)

artisan_review_router = APIRouter(
    prefix="/artisans",
    tags=["Reviews"],
    dependencies=[Depends(get_current_user)]
)

@project_review_router.post(
    "/{project_id}/reviews",
    response_model=ReviewOut,
    status_code=status.HTTP_201_CREATED
)
async def create_review(
    project_id: str,
    review_data: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    案件完成後，委託人與得標工匠互相評價 (每人每案一次)
    """
    service = ReviewService(db)
    return await service.create_review(project_id, review_data, current_user)

@artisan_review_router.get("/{artisan_id}/reviews", response_model=ArtisanReviewsOut)
async def get_artisan_reviews(
    artisan_id: str,
    # 不合理的值由 Service 改用預設值，這裡不做範圍驗證
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    db: AsyncSession = Depends(get_db)
):
    """
    工匠收到的評價列表與統計 (平均分數、星等分布)
    """
    service = ReviewService(db)
    return await service.get_artisan_reviews(artisan_id, page=page, limit=limit)
