# chairai/services/artisan_profile_service.py
import logging
import uuid
from typing import List, Optional

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chairai.models.user import User
from chairai.models.artisan_profile import ArtisanProfile
from chairai.repositories.artisan_profile_repo import ArtisanProfileRepository
from chairai.repositories.dictionary_repo import DictionaryRepository
from chairai.repositories.review_repo import ReviewRepository
from chairai.schemas.artisan_profile_schema import ArtisanProfileOut, ArtisanProfileUpsert, PortfolioImageOut
from chairai.schemas.dictionary_schema import SpecializationOut
from chairai.services.review_service import summarize_ratings
from chairai.core import permissions
from chairai.core.config import settings
from chairai.core.exceptions import ArtisanProfileError
from chairai.core.storage import LocalStorage, StorageError
from chairai.utils.uploads import PORTFOLIO_IMAGE_TYPES, read_upload

logger = logging.getLogger(__name__)

PORTFOLIO_BUCKET = "portfolio-images"
PROFILE_NOT_FOUND_MESSAGE = "Nie znaleziono profilu rzemieślnika"


class ArtisanProfileService:
    def __init__(self, db: AsyncSession, storage: Optional[LocalStorage] = None):
        self.db = db
        self.profile_repo = ArtisanProfileRepository(db)
        self.dictionary_repo = DictionaryRepository(db)
        self.review_repo = ReviewRepository(db)
        self.storage = storage or LocalStorage()

    def _require_artisan(self, user: User) -> None:
        permissions.require(
            user, "artisan_profile", "manage", ArtisanProfileError,
            message="Tylko rzemieślnicy mogą zarządzać profilem"
        )

    async def _get_existing_profile(self, user_id: str) -> ArtisanProfile:
        profile = await self.profile_repo.get_profile_by_user_id(user_id)
        if not profile:
            raise ArtisanProfileError(PROFILE_NOT_FOUND_MESSAGE, "PROFILE_NOT_FOUND", 404)
        return profile

    async def _to_profile_out(self, profile: ArtisanProfile) -> ArtisanProfileOut:
        """組合完整的 Profile 回傳資料 (專長、作品集、評價統計)"""
        total_reviews, average_rating = summarize_ratings(
            await self.review_repo.get_rating_distribution(profile.user_id)
        )
        return ArtisanProfileOut(
            user_id=profile.user_id,
            company_name=profile.company_name,
            nip=profile.nip,
            is_public=profile.is_public,
            specializations=[
                SpecializationOut.model_validate(link.specialization)
                for link in profile.specializations
            ],
            portfolio_images=[PortfolioImageOut.model_validate(img) for img in profile.portfolio_images],
            average_rating=average_rating,
            total_reviews=total_reviews,
            updated_at=profile.updated_at,
        )

    # --- Profile ---
    async def upsert_artisan_profile(self, profile_data: ArtisanProfileUpsert, user: User) -> ArtisanProfileOut:
        """
        建立或更新工匠 Profile；NIP 不可與其他工匠重複

        回傳的專長、作品集、評價統計為空值 (由其他 API 維護)
        """
        self._require_artisan(user)
        # (重要) 寫入失敗會 rollback 並 expire Session 內的物件，之後只能用本地變數
        user_id = user.id

        # 1. NIP 唯一性
        try:
            nip_owner = await self.profile_repo.get_profile_by_nip(profile_data.nip)
        except SQLAlchemyError as e:
            logger.error(f"NIP uniqueness check failed: {e}", exc_info=True)
            raise ArtisanProfileError("Błąd podczas sprawdzania unikalności NIP", "NIP_CHECK_ERROR", 500)
        if nip_owner and nip_owner.user_id != user_id:
            raise ArtisanProfileError(
                "Podany NIP jest już używany przez innego rzemieślnika", "NIP_CONFLICT", 409
            )

        # 2. Upsert
        try:
            profile = await self.profile_repo.upsert_profile(user_id, profile_data)
        except IntegrityError:
            # 併發：檢查之後 NIP 被其他工匠搶先使用
            raise ArtisanProfileError(
                "Podany NIP jest już używany przez innego rzemieślnika", "NIP_CONFLICT", 409
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to upsert artisan profile {user_id}: {e}", exc_info=True)
            raise ArtisanProfileError(
                "Błąd podczas tworzenia/aktualizacji profilu rzemieślnika", "UPSERT_ERROR", 500
            )

        logger.info(f"Artisan profile {user_id} saved (is_public={profile.is_public})")
        return ArtisanProfileOut(
            user_id=profile.user_id,
            company_name=profile.company_name,
            nip=profile.nip,
            is_public=profile.is_public,
            updated_at=profile.updated_at,
        )

    async def get_artisan_profile(self, user_id: str) -> Optional[ArtisanProfileOut]:
        profile = await self.profile_repo.get_profile_by_user_id(user_id)
        if not profile:
            return None
        return await self._to_profile_out(profile)

    async def get_public_profile(self, artisan_id: str) -> ArtisanProfileOut:
        """公開 Profile：未發布 (is_public = false) 的 Profile 不可查看"""
        profile = await self.profile_repo.get_profile_by_user_id(artisan_id)
        if not profile:
            raise ArtisanProfileError(PROFILE_NOT_FOUND_MESSAGE, "PROFILE_NOT_FOUND", 404)
        if not profile.is_public:
            raise ArtisanProfileError("Profil rzemieślnika nie jest opublikowany", "PROFILE_NOT_PUBLISHED", 403)
        return await self._to_profile_out(profile)

    # --- Specializations ---
    async def add_specializations_to_profile(
        self, specialization_ids: List[str], user: User
    ) -> List[SpecializationOut]:
        self._require_artisan(user)
        user_id = user.id
        await self._get_existing_profile(user_id)

        # 重複的 ID 只算一次
        unique_ids = list(dict.fromkeys(specialization_ids))

        try:
            found = await self.dictionary_repo.list_specializations_by_ids(unique_ids)
        except SQLAlchemyError as e:
            logger.error(f"Specialization check failed: {e}", exc_info=True)
            raise ArtisanProfileError("Błąd podczas sprawdzania specjalizacji", "SPECIALIZATION_CHECK_ERROR", 500)

        if len(found) != len(unique_ids):
            raise ArtisanProfileError("Jedna lub więcej specjalizacji nie istnieje", "SPECIALIZATION_NOT_FOUND", 404)

        try:
            await self.profile_repo.add_specializations(user_id, unique_ids)
        except SQLAlchemyError as e:
            logger.error(f"Failed to add specializations for {user_id}: {e}", exc_info=True)
            raise ArtisanProfileError("Błąd podczas dodawania specjalizacji", "SPECIALIZATION_INSERT_ERROR", 500)

        by_id = {s.id: s for s in found}
        return [SpecializationOut.model_validate(by_id[i]) for i in unique_ids]

    async def remove_specialization_from_profile(self, specialization_id: str, user: User) -> None:
        self._require_artisan(user)
        user_id = user.id
        try:
            await self.profile_repo.remove_specialization(user_id, specialization_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to remove specialization {specialization_id} for {user_id}: {e}", exc_info=True)
            raise ArtisanProfileError("Błąd podczas usuwania specjalizacji", "SPECIALIZATION_DELETE_ERROR", 500)

    # --- Portfolio ---
    async def upload_portfolio_image(self, file: UploadFile, user: User) -> PortfolioImageOut:
        """
        上傳作品集圖片：
        1. 上傳到 storage (失敗則不寫 DB)
        2. 寫入 metadata；失敗時刪除剛上傳的檔案 (補償動作)
        """
        self._require_artisan(user)
        user_id = user.id
        await self._get_existing_profile(user_id)

        content, extension = await read_upload(
            file, PORTFOLIO_IMAGE_TYPES, ArtisanProfileError,
            "Dozwolone formaty obrazu: JPG, PNG, WEBP"
        )
        path = f"{user_id}/{uuid.uuid4()}.{extension}"

        try:
            await self.storage.upload(PORTFOLIO_BUCKET, path, content, file.content_type)
        except StorageError as e:
            logger.error(f"Portfolio upload failed for {user_id}: {e}", exc_info=True)
            raise ArtisanProfileError(f"Błąd podczas przesyłania obrazu: {e}", "IMAGE_UPLOAD_ERROR", 500)

        image_url = self.storage.get_public_url(PORTFOLIO_BUCKET, path)
        try:
            image = await self.profile_repo.create_portfolio_image(user_id, image_url)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save portfolio metadata for {user_id}: {e}", exc_info=True)
            try:
                await self.storage.remove(PORTFOLIO_BUCKET, [path])
            except StorageError as cleanup_error:
                logger.error(f"Failed to remove orphaned upload {path}: {cleanup_error}")
            raise ArtisanProfileError("Błąd podczas zapisywania metadanych obrazu", "IMAGE_METADATA_ERROR", 500)

        logger.info(f"Portfolio image {image.id} uploaded by {user_id}")
        return PortfolioImageOut.model_validate(image)

    async def delete_portfolio_image(self, image_id: str, user: User) -> None:
        """
        刪除作品集圖片；公開的 Profile 至少要保留 PORTFOLIO_MIN_PUBLIC_IMAGES 張
        """
        self._require_artisan(user)
        user_id = user.id

        # 1. 圖片必須存在且屬於自己
        image = await self.profile_repo.get_portfolio_image(image_id, user_id)
        if not image:
            raise ArtisanProfileError(
                "Obraz nie został znaleziony lub nie należy do użytkownika", "IMAGE_NOT_FOUND", 404
            )

        # 2. 公開的 Profile 檢查最低張數
        try:
            profile = await self.profile_repo.get_profile_by_user_id(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Profile check failed for {user_id}: {e}", exc_info=True)
            raise ArtisanProfileError("Błąd podczas sprawdzania profilu", "PROFILE_CHECK_ERROR", 500)

        if profile and profile.is_public:
            try:
                count = await self.profile_repo.count_portfolio_images(user_id)
            except SQLAlchemyError as e:
                logger.error(f"Portfolio count failed for {user_id}: {e}", exc_info=True)
                raise ArtisanProfileError("Błąd podczas liczenia obrazów w portfolio", "IMAGE_COUNT_ERROR", 500)
            if count <= settings.PORTFOLIO_MIN_PUBLIC_IMAGES:
                raise ArtisanProfileError(
                    "Nie można usunąć obrazu. Profil publiczny musi zawierać co najmniej "
                    f"{settings.PORTFOLIO_MIN_PUBLIC_IMAGES} zdjęć",
                    "MIN_IMAGES_REQUIRED",
                    400
                )

        image_url = image.image_url

        # 3. 刪除 DB 資料
        try:
            await self.profile_repo.delete_portfolio_image(image_id, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete portfolio image {image_id}: {e}", exc_info=True)
            raise ArtisanProfileError("Błąd podczas usuwania obrazu z bazy danych", "IMAGE_DELETE_ERROR", 500)

        logger.info(f"Portfolio image {image_id} deleted by {user_id}")

        # 4. 刪除檔案 (best effort，失敗只記錄)
        path = self.storage.path_from_url(PORTFOLIO_BUCKET, image_url)
        if not path:
            logger.warning(f"Could not derive storage path from {image_url}")
            return
        try:
            await self.storage.remove(PORTFOLIO_BUCKET, [path])
        except StorageError as e:
            logger.error(f"Failed to remove portfolio file {path}: {e}")
