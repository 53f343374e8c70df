# chairai/services/review_service.py
import logging
from typing import Dict, Optional, Tuple
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chairai.models.user import User
from chairai.models.review import Review
from chairai.models.project import ProjectStatusEnum
from chairai.schemas.common_schema import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PaginationMeta
from chairai.schemas.review_schema import (
    ArtisanReviewsOut, ReviewCategoryOut, ReviewCreate, ReviewerOut,
    ReviewOut, ReviewProjectOut, ReviewSummaryOut
)
from chairai.repositories.project_repo import ProjectRepository
from chairai.repositories.proposal_repo import ProposalRepository
from chairai.repositories.review_repo import ReviewRepository
from chairai.repositories.user_repo import UserRepository
from chairai.repositories.artisan_profile_repo import ArtisanProfileRepository
from chairai.core.exceptions import ReviewError

logger = logging.getLogger(__name__)

DEFAULT_REVIEWER_NAME = "Użytkownik"
REVIEW_ALREADY_EXISTS_MESSAGE = "Już dodałeś recenzję do tego projektu"


def summarize_ratings(distribution: Dict[int, int]) -> Tuple[int, Optional[float]]:
    """
    由星等分布計算 (總數, 平均)；沒有評價時平均為 None
    平均四捨五入到小數第 2 位
    """
    total = sum(distribution.values())
    if total == 0:
        return 0, None
    average = sum(rating * count for rating, count in distribution.items()) / total
    return total, round(average, 2)


class ReviewService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.review_repo = ReviewRepository(db)
        self.project_repo = ProjectRepository(db)
        self.proposal_repo = ProposalRepository(db)
        self.user_repo = UserRepository(db)
        self.profile_repo = ArtisanProfileRepository(db)

    async def _resolve_reviewer_name(self, reviewer_id: str) -> str:
        """查詢評價者的顯示名稱；查不到時使用預設名稱"""
        try:
            user = await self.user_repo.get_user_by_id(reviewer_id)
        except SQLAlchemyError as e:
            logger.warning(f"Could not resolve reviewer {reviewer_id}: {e}")
            return DEFAULT_REVIEWER_NAME
        if not user:
            logger.warning(f"Reviewer {reviewer_id} not found, using default name")
            return DEFAULT_REVIEWER_NAME
        return user.display_name or DEFAULT_REVIEWER_NAME

    def _to_review_out(self, review: Review, reviewer_name: str) -> ReviewOut:
        return ReviewOut(
            id=review.id,
            project=ReviewProjectOut(
                id=review.project.id,
                category=ReviewCategoryOut(name=review.project.category.name),
            ),
            reviewer=ReviewerOut(id=review.reviewer_id, name=reviewer_name),
            reviewee_id=review.reviewee_id,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
        )

    async def create_review(self, project_id: str, review_data: ReviewCreate, reviewer: User) -> ReviewOut:
        """
        業務邏輯：案件完成後，委託人與被接受的工匠可以互相評價

        - 委託人評價 -> 被評價者是被接受提案的工匠
        - 工匠評價 -> 被評價者是委託人
        """
        # 1. 案件
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise ReviewError("Nie znaleziono projektu", "PROJECT_NOT_FOUND", 404)
        # (重要) 寫入失敗會 rollback 並 expire Session 內的物件，之後只能用本地變數
        project_id = project.id
        reviewer_id = reviewer.id
        client_id = project.client_id

        # 2. 必須是已完成的案件
        if project.status != ProjectStatusEnum.completed:
            raise ReviewError("Można recenzować tylko zakończone projekty", "PROJECT_NOT_COMPLETED", 400)

        # 3. 判斷評價對象
        accepted_artisan_id = await self.proposal_repo.get_artisan_id(project.accepted_proposal_id)
        if reviewer_id == client_id:
            reviewee_id = accepted_artisan_id
        elif accepted_artisan_id is not None and reviewer_id == accepted_artisan_id:
            reviewee_id = client_id
        else:
            raise ReviewError("Nie masz uprawnień do recenzowania tego projektu", "REVIEW_FORBIDDEN", 403)

        # 4. 找不到被接受的提案 (無法決定被評價者)
        if not reviewee_id:
            raise ReviewError("Nie można określić recenzowanej osoby", "REVIEWEE_NOT_FOUND", 400)

        # 5. 每人每案只能評價一次
        existing = await self.review_repo.get_review_by_project_and_reviewer(project_id, reviewer_id)
        if existing:
            raise ReviewError(REVIEW_ALREADY_EXISTS_MESSAGE, "REVIEW_ALREADY_EXISTS", 409)

        # 6. 新增
        new_review = Review(
            project_id=project_id,
            reviewer_id=reviewer_id,
            reviewee_id=reviewee_id,
            rating=review_data.rating,
            comment=review_data.comment,
        )
        try:
            created = await self.review_repo.create_review(new_review)
        except IntegrityError:
            logger.warning(f"Duplicate review for project {project_id} by {reviewer_id}")
            raise ReviewError(REVIEW_ALREADY_EXISTS_MESSAGE, "REVIEW_ALREADY_EXISTS", 409)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create review for project {project_id}: {e}", exc_info=True)
            raise ReviewError("Nie udało się utworzyć recenzji", "REVIEW_CREATE_FAILED", 500)

        logger.info(f"Review {created.id} created for project {project_id} ({reviewer_id} -> {reviewee_id})")

        # 7. 評價者名稱
        reviewer_name = await self._resolve_reviewer_name(reviewer_id)
        return self._to_review_out(created, reviewer_name)

    async def get_artisan_reviews(self, artisan_id: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> ArtisanReviewsOut:
        """
        取得工匠收到的評價 (分頁) 與統計摘要
        """
        # 不合理的分頁參數：page 至少 1，limit 限制在 1..MAX_PAGE_SIZE
        page = max(1, page)
        limit = max(1, min(MAX_PAGE_SIZE, limit))

        profile = await self.profile_repo.get_profile_by_user_id(artisan_id)
        if not profile:
            raise ReviewError("Nie znaleziono rzemieślnika", "ARTISAN_NOT_FOUND", 404)

        try:
            reviews, total = await self.review_repo.get_reviews_by_reviewee(
                artisan_id, limit=limit, offset=(page - 1) * limit
            )
            distribution = await self.review_repo.get_rating_distribution(artisan_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch reviews of artisan {artisan_id}: {e}", exc_info=True)
            raise ReviewError("Nie udało się pobrać recenzji", "REVIEWS_FETCH_FAILED", 500)

        total_reviews, average = summarize_ratings(distribution)
        summary = ReviewSummaryOut(
            average_rating=average or 0.0,
            total_reviews=total_reviews,
            ratings_distribution={str(r): distribution.get(r, 0) for r in range(1, 6)},
        )

        data = [
            self._to_review_out(
                r, r.reviewer.display_name if r.reviewer else DEFAULT_REVIEWER_NAME
            )
            for r in reviews
        ]
        return ArtisanReviewsOut(
            data=data,
            pagination=PaginationMeta.build(page, limit, total),
            summary=summary,
        )
