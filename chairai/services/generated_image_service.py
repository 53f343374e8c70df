# chairai/services/generated_image_service.py
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chairai.models.user import User
from chairai.repositories.generated_image_repo import GeneratedImageRepository
from chairai.schemas.common_schema import PaginationMeta
from chairai.schemas.generated_image_schema import GeneratedImageListOut, GeneratedImageOut, GeneratedImagesQuery
from chairai.core import permissions
from chairai.core.exceptions import GeneratedImageError

logger = logging.getLogger(__name__)

class GeneratedImageService:
    def __init__(self, db: AsyncSession):
        self.image_repo = GeneratedImageRepository(db)

    async def list_my_images(self, query: GeneratedImagesQuery, user: User) -> GeneratedImageListOut:
        """委託人自己的 AI 圖片 (新到舊)，可只列出尚未使用的"""
        permissions.require(
            user, "generated_images", "view", GeneratedImageError,
            message="Tylko klienci mogą przeglądać wygenerowane obrazy"
        )
        try:
            images, total = await self.image_repo.list_images_by_user(
                user.id, unused_only=query.unused_only, limit=query.limit, offset=query.offset
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to list generated images of {user.id}: {e}", exc_info=True)
            raise GeneratedImageError("Nie udało się pobrać obrazów", "IMAGES_FETCH_FAILED", 500)

        return GeneratedImageListOut(
            data=[GeneratedImageOut.model_validate(img) for img in images],
            pagination=PaginationMeta.build(query.page, query.limit, total),
        )

    async def get_image(self, image_id: str, user: User) -> GeneratedImageOut:
        image = await self.image_repo.get_image_by_id(image_id)
        if not image:
            raise GeneratedImageError("Nie znaleziono wygenerowanego obrazu", "IMAGE_NOT_FOUND", 404)
        if image.user_id != user.id:
            raise GeneratedImageError("Nie masz uprawnień do tego obrazu", "IMAGE_FORBIDDEN", 403)
        return GeneratedImageOut.model_validate(image)
