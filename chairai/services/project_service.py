# chairai/services/project_service.py
import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# 匯入 Models
from chairai.models.user import User
from chairai.models.project import Project, ProjectStatusEnum

# 匯入 Schemas
from chairai.schemas.common_schema import PaginationMeta, PaginationQuery
from chairai.schemas.project_schema import (
    AcceptProposalOut, MyProjectListOut, ProjectCreate, ProjectListItemOut,
    ProjectListOut, ProjectOut, ProjectsQuery, ProjectStatusOut
)

# 匯入 Repositories
from chairai.repositories.project_repo import ProjectRepository
from chairai.repositories.proposal_repo import ProposalRepository
from chairai.repositories.dictionary_repo import DictionaryRepository
from chairai.repositories.generated_image_repo import GeneratedImageRepository

from chairai.core import permissions
from chairai.core.exceptions import ProjectError

logger = logging.getLogger(__name__)

IMAGE_ALREADY_USED_MESSAGE = "Ten obraz jest już używany w innym projekcie"
PROJECT_NOT_FOUND_MESSAGE = "Nie znaleziono projektu"
PROJECT_FORBIDDEN_MESSAGE = "Brak uprawnień do wyświetlenia tego projektu"
PROJECT_NOT_OPEN_MESSAGE = "Nie można zaakceptować propozycji. Projekt nie jest otwarty"


class ProjectService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.project_repo = ProjectRepository(db)
        self.proposal_repo = ProposalRepository(db)
        self.dictionary_repo = DictionaryRepository(db)
        self.image_repo = GeneratedImageRepository(db)

    def _to_project_out(self, project: Project, proposals_count: int) -> ProjectOut:
        out = ProjectOut.model_validate(project)
        out.proposals_count = proposals_count
        return out

    # 輔助函式：獲取案件並檢查是否為擁有者
    async def _get_owned_project(self, project_id: str, user: User, forbidden_message: str) -> Project:
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise ProjectError(PROJECT_NOT_FOUND_MESSAGE, "PROJECT_NOT_FOUND", 404)
        if not permissions.is_project_owner(project, user):
            raise ProjectError(forbidden_message, "PROJECT_FORBIDDEN", 403)
        return project

    # 1. 建立案件 (委託人)
    async def create_project(self, project_data: ProjectCreate, client: User) -> ProjectOut:
        """
        業務邏輯：以一張自己的 AI 圖片建立案件

        檢查順序 (任一失敗即停止)：
        圖片存在 -> 圖片屬於自己 -> 圖片未被使用 -> 類別存在 -> 材質存在
        """
        permissions.require(
            client, "projects", "create", ProjectError,
            message="Tylko klienci mogą tworzyć projekty"
        )

        client_id = client.id

        # 1. 圖片
        image = await self.image_repo.get_image_by_id(project_data.generated_image_id)
        if not image:
            raise ProjectError("Nie znaleziono wygenerowanego obrazu", "IMAGE_NOT_FOUND", 404)
        if image.user_id != client_id:
            raise ProjectError("Nie masz uprawnień do tego obrazu", "IMAGE_FORBIDDEN", 403)

        # 2. 圖片是否已被其他案件使用
        if image.is_used or await self.project_repo.find_project_by_generated_image(image.id):
            raise ProjectError(IMAGE_ALREADY_USED_MESSAGE, "IMAGE_ALREADY_USED", 409)

        # 3. 類別與材質
        if not await self.dictionary_repo.get_category_by_id(project_data.category_id):
            raise ProjectError("Nie znaleziono kategorii", "CATEGORY_NOT_FOUND", 404)
        if not await self.dictionary_repo.get_material_by_id(project_data.material_id):
            raise ProjectError("Nie znaleziono materiału", "MATERIAL_NOT_FOUND", 404)

        # 4. 建立 (同一交易內把圖片標記為已使用)
        try:
            project = await self.project_repo.create_project(project_data, client_id)
        except IntegrityError:
            # 併發：另一個請求剛好用同一張圖片建立了案件
            logger.warning(f"Unique violation while creating project for image {project_data.generated_image_id}")
            raise ProjectError(IMAGE_ALREADY_USED_MESSAGE, "IMAGE_ALREADY_USED", 409)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create project: {e}", exc_info=True)
            raise ProjectError("Nie udało się utworzyć projektu", "PROJECT_CREATE_FAILED", 500)

        if project is None:
            raise ProjectError(IMAGE_ALREADY_USED_MESSAGE, "IMAGE_ALREADY_USED", 409)

        logger.info(f"Project {project.id} created by client {client_id}")
        return self._to_project_out(project, 0)

    # 2. 瀏覽案件 (工匠)
    async def list_projects(self, query: ProjectsQuery, user: User) -> ProjectListOut:
        permissions.require(
            user, "projects", "list", ProjectError,
            message="Tylko rzemieślnicy mogą przeglądać listę projektów"
        )
        try:
            projects, total = await self.project_repo.list_projects(
                limit=query.limit,
                offset=query.offset,
                status=query.status,
                category_id=query.category_id,
                material_id=query.material_id,
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to list projects: {e}", exc_info=True)
            raise ProjectError("Nie udało się pobrać listy projektów", "PROJECT_LIST_FAILED", 500)

        return ProjectListOut(
            data=[ProjectListItemOut.model_validate(p) for p in projects],
            pagination=PaginationMeta.build(query.page, query.limit, total),
        )

    # 3. 我的案件 (委託人)
    async def list_my_projects(self, query: PaginationQuery, client: User) -> MyProjectListOut:
        permissions.require(
            client, "projects", "list_own", ProjectError,
            message="Tylko klienci mogą przeglądać swoje projekty"
        )
        try:
            projects, total = await self.project_repo.list_projects_by_client(
                client.id, limit=query.limit, offset=query.offset
            )
            counts = await self.project_repo.count_proposals_for_projects([p.id for p in projects])
        except SQLAlchemyError as e:
            logger.error(f"Failed to list projects of client {client.id}: {e}", exc_info=True)
            raise ProjectError("Nie udało się pobrać listy projektów", "PROJECT_LIST_FAILED", 500)

        return MyProjectListOut(
            data=[self._to_project_out(p, counts.get(p.id, 0)) for p in projects],
            pagination=PaginationMeta.build(query.page, query.limit, total),
        )

    # 4. 案件詳情
    async def get_project_details(self, project_id: str, user: User) -> ProjectOut:
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise ProjectError(PROJECT_NOT_FOUND_MESSAGE, "PROJECT_NOT_FOUND", 404)

        accepted_artisan_id = await self.proposal_repo.get_artisan_id(project.accepted_proposal_id)
        if not permissions.can_view_project(project, user, accepted_artisan_id):
            raise ProjectError(PROJECT_FORBIDDEN_MESSAGE, "PROJECT_FORBIDDEN", 403)

        proposals_count = await self.project_repo.count_proposals(project.id)
        return self._to_project_out(project, proposals_count)

    # 5. 接受提案 (委託人)
    async def accept_proposal(self, project_id: str, proposal_id: str, client: User) -> AcceptProposalOut:
        """
        業務邏輯：委託人接受某個提案，案件 open -> in_progress

        其他提案維持原樣 (不會被刪除或標記)
        """
        project = await self._get_owned_project(
            project_id, client, "Nie masz uprawnień do akceptacji propozycji dla tego projektu"
        )
        if project.status != ProjectStatusEnum.open:
            raise ProjectError(PROJECT_NOT_OPEN_MESSAGE, "PROJECT_NOT_OPEN", 400)

        proposal = await self.proposal_repo.get_proposal_by_id(proposal_id)
        if not proposal:
            raise ProjectError("Nie znaleziono propozycji", "PROPOSAL_NOT_FOUND", 404)
        if proposal.project_id != project.id:
            raise ProjectError("Propozycja nie należy do tego projektu", "PROPOSAL_PROJECT_MISMATCH", 400)

        try:
            updated = await self.project_repo.accept_proposal(project.id, proposal.id, proposal.price)
        except SQLAlchemyError as e:
            logger.error(f"Failed to accept proposal {proposal_id} for project {project_id}: {e}", exc_info=True)
            raise ProjectError("Nie udało się zaakceptować propozycji", "PROPOSAL_ACCEPT_FAILED", 500)

        # (重要) 0 筆：讀取之後狀態已被其他請求改掉
        if updated == 0:
            raise ProjectError(PROJECT_NOT_OPEN_MESSAGE, "PROJECT_NOT_OPEN", 400)

        project = await self.project_repo.get_project_by_id(project.id)
        logger.info(f"Project {project.id} accepted proposal {proposal.id} (price {proposal.price})")
        return AcceptProposalOut.model_validate(project)

    # 6. 更新案件狀態 (委託人)
    async def update_project_status(
        self, project_id: str, new_status: ProjectStatusEnum, client: User
    ) -> ProjectStatusOut:
        project = await self._get_owned_project(
            project_id, client, "Nie masz uprawnień do aktualizacji statusu tego projektu"
        )
        current_status = ProjectStatusEnum(project.status)
        new_status = ProjectStatusEnum(new_status)

        # 相同狀態：不寫入，updated_at 不變
        if current_status == new_status:
            return ProjectStatusOut.model_validate(project)

        if not permissions.is_valid_transition(current_status, new_status):
            raise ProjectError(
                f"Niedozwolona zmiana statusu z '{current_status.value}' na '{new_status.value}'",
                "INVALID_STATUS_TRANSITION",
                400
            )

        try:
            updated = await self.project_repo.update_status(project.id, current_status, new_status)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update status of project {project_id}: {e}", exc_info=True)
            raise ProjectError("Nie udało się zaktualizować statusu projektu", "STATUS_UPDATE_FAILED", 500)

        if updated == 0:
            # 併發：讀取之後狀態已改變，重新讀取以回報實際的狀態
            latest = await self.project_repo.get_project_by_id(project.id)
            latest_status = ProjectStatusEnum(latest.status).value if latest else current_status.value
            raise ProjectError(
                f"Niedozwolona zmiana statusu z '{latest_status}' na '{new_status.value}'",
                "INVALID_STATUS_TRANSITION",
                400
            )

        project = await self.project_repo.get_project_by_id(project.id)
        logger.info(f"Project {project.id} status changed: {current_status.value} -> {new_status.value}")
        return ProjectStatusOut.model_validate(project)
