# chairai/services/proposal_service.py

import logging
import uuid
from decimal import Decimal
from typing import Optional

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chairai.models.user import User
from chairai.models.proposal import Proposal
from chairai.models.project import ProjectStatusEnum
from chairai.repositories.proposal_repo import ProposalRepository
from chairai.repositories.project_repo import ProjectRepository
from chairai.repositories.review_repo import ReviewRepository
from chairai.repositories.artisan_profile_repo import ArtisanProfileRepository
from chairai.schemas.common_schema import PaginationMeta
from chairai.schemas.proposal_schema import (
    MyProposalCategoryOut, MyProposalImageOut, MyProposalListOut, MyProposalOut,
    MyProposalProjectOut, MyProposalsQuery, ProjectProposalListOut, ProjectProposalOut,
    ProposalArtisanOut, ProposalCompanyOut, ProposalCreate, ProposalOut
)
from chairai.services.review_service import summarize_ratings
from chairai.core import permissions
from chairai.core.exceptions import ProposalError
from chairai.core.storage import LocalStorage, StorageError
from chairai.utils.uploads import PROPOSAL_ATTACHMENT_TYPES, read_upload

logger = logging.getLogger(__name__)

ATTACHMENT_BUCKET = "proposal-attachments"
UNKNOWN_ARTISAN_NAME = "Nieznany rzemieślnik"
PROPOSAL_ALREADY_EXISTS_MESSAGE = "Już złożyłeś propozycję do tego projektu"


class ProposalService:
    def __init__(self, db: AsyncSession, storage: Optional[LocalStorage] = None):
        self.db = db
        self.proposal_repo = ProposalRepository(db)
        self.project_repo = ProjectRepository(db)
        self.review_repo = ReviewRepository(db)
        self.profile_repo = ArtisanProfileRepository(db)
        self.storage = storage or LocalStorage()

    async def _save_attachment(self, file: UploadFile, artisan_id: str, project_id: str) -> str:
        """
        檢查並上傳附件，回傳 public URL
        路徑: <artisan_id>/<project_id>/<uuid>.<ext>
        """
        content, extension = await read_upload(
            file, PROPOSAL_ATTACHMENT_TYPES, ProposalError,
            "Dozwolone formaty załącznika: PDF, JPG, PNG"
        )
        path = f"{artisan_id}/{project_id}/{uuid.uuid4().hex}.{extension}"
        try:
            await self.storage.upload(ATTACHMENT_BUCKET, path, content, file.content_type)
        except StorageError as e:
            logger.error(f"Attachment upload failed for project {project_id}: {e}", exc_info=True)
            raise ProposalError("Nie udało się przesłać załącznika", "UPLOAD_FAILED", 500)
        return self.storage.get_public_url(ATTACHMENT_BUCKET, path)

    async def _delete_attachment(self, attachment_url: Optional[str]) -> None:
        """刪除已上傳的附件 (建立提案失敗時的補償動作，失敗只記錄)"""
        if not attachment_url:
            return
        path = self.storage.path_from_url(ATTACHMENT_BUCKET, attachment_url)
        if not path:
            return
        try:
            await self.storage.remove(ATTACHMENT_BUCKET, [path])
        except StorageError as e:
            logger.error(f"Failed to clean up attachment {attachment_url}: {e}")

    async def create_proposal(
        self,
        project_id: str,
        proposal_data: ProposalCreate,
        artisan: User,
        attachment: Optional[UploadFile] = None,
    ) -> ProposalOut:
        """
        業務邏輯：工匠對 open 的案件提案 (每個案件只能提一次)
        """
        # 1. 只有工匠可以提案
        permissions.require(
            artisan, "proposals", "create", ProposalError,
            code="FORBIDDEN_NOT_ARTISAN",
            message="Tylko rzemieślnicy mogą składać propozycje"
        )

        # 2. 案件必須存在且為 open
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise ProposalError("Nie znaleziono projektu", "PROJECT_NOT_FOUND", 404)
        if project.status != ProjectStatusEnum.open:
            raise ProposalError("Projekt nie przyjmuje już propozycji", "PROJECT_NOT_OPEN", 403)

        # (重要) 寫入失敗會 rollback 並 expire Session 內的物件，之後只能用本地變數
        project_id = project.id
        artisan_id = artisan.id

        # 3. 唯一性檢查
        if await self.proposal_repo.check_existing_proposal(project_id, artisan_id):
            raise ProposalError(PROPOSAL_ALREADY_EXISTS_MESSAGE, "PROPOSAL_ALREADY_EXISTS", 409)

        # 4. 附件 (可選)
        attachment_url = None
        if attachment is not None:
            attachment_url = await self._save_attachment(attachment, artisan_id, project_id)

        # 5. 建立提案；失敗時刪除剛上傳的附件
        new_proposal = Proposal(
            project_id=project_id,
            artisan_id=artisan_id,
            price=Decimal(str(proposal_data.price)),
            message=proposal_data.message,
            attachment_url=attachment_url,
        )
        try:
            created = await self.proposal_repo.create_proposal(new_proposal)
        except IntegrityError:
            await self._delete_attachment(attachment_url)
            raise ProposalError(PROPOSAL_ALREADY_EXISTS_MESSAGE, "PROPOSAL_ALREADY_EXISTS", 409)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create proposal for project {project_id}: {e}", exc_info=True)
            await self._delete_attachment(attachment_url)
            raise ProposalError("Nie udało się utworzyć propozycji", "CREATE_PROPOSAL_FAILED", 500)

        logger.info(f"Proposal {created.id} submitted by artisan {artisan_id} for project {project_id}")

        # 6. 工匠資訊 (公司名稱、評價統計)
        profile = await self.profile_repo.get_profile_by_user_id(artisan_id)
        total_reviews, average_rating = summarize_ratings(
            await self.review_repo.get_rating_distribution(artisan_id)
        )
        return ProposalOut(
            id=created.id,
            project_id=created.project_id,
            artisan=ProposalArtisanOut(
                user_id=artisan_id,
                company_name=profile.company_name if profile else UNKNOWN_ARTISAN_NAME,
                average_rating=average_rating,
                total_reviews=total_reviews,
            ),
            price=created.price,
            message=created.message,
            attachment_url=created.attachment_url,
            created_at=created.created_at,
        )

    async def list_project_proposals(self, project_id: str, user: User) -> ProjectProposalListOut:
        """
        案件的所有提案：委託人 (擁有者) 或被接受的工匠可以查看
        """
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise ProposalError("Nie znaleziono projektu", "PROJECT_NOT_FOUND", 404)

        if not permissions.is_project_owner(project, user):
            accepted_artisan_id = await self.proposal_repo.get_artisan_id(project.accepted_proposal_id)
            if accepted_artisan_id is None or accepted_artisan_id != user.id:
                raise ProposalError(
                    "Brak uprawnień do przeglądania propozycji tego projektu", "FORBIDDEN", 403
                )

        proposals = await self.proposal_repo.get_proposals_by_project_id(project.id)
        data = [
            ProjectProposalOut(
                id=p.id,
                project_id=p.project_id,
                artisan_id=p.artisan_id,
                price=p.price,
                message=p.message,
                attachment_url=p.attachment_url,
                created_at=p.created_at,
                artisan_profile=ProposalCompanyOut(
                    company_name=p.artisan_profile.company_name if p.artisan_profile else UNKNOWN_ARTISAN_NAME
                ),
            )
            for p in proposals
        ]
        return ProjectProposalListOut(data=data)

    async def list_my_proposals(self, query: MyProposalsQuery, artisan: User) -> MyProposalListOut:
        permissions.require(
            artisan, "proposals", "list_own", ProposalError,
            message="Tylko rzemieślnicy mogą przeglądać swoje propozycje"
        )
        try:
            proposals, total = await self.proposal_repo.get_proposals_by_artisan_id(
                artisan.id, limit=query.limit, offset=query.offset, project_status=query.status
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to list proposals of artisan {artisan.id}: {e}", exc_info=True)
            raise ProposalError("Nie udało się pobrać propozycji", "PROPOSALS_FETCH_FAILED", 500)

        data = []
        for p in proposals:
            project = p.project
            data.append(MyProposalOut(
                id=p.id,
                project=MyProposalProjectOut(
                    id=project.id,
                    status=project.status,
                    category=MyProposalCategoryOut(id=project.category.id, name=project.category.name),
                    generated_image=MyProposalImageOut(image_url=project.generated_image.image_url),
                ),
                price=p.price,
                attachment_url=p.attachment_url,
                created_at=p.created_at,
                is_accepted=project.accepted_proposal_id == p.id,
            ))

        return MyProposalListOut(
            data=data,
            pagination=PaginationMeta.build(query.page, query.limit, total),
        )
