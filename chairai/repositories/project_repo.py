# chairai/repositories/project_repo.py

import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

# 匯入 Models
from chairai.models.generated_image import GeneratedImage
from chairai.models.project import Project, ProjectStatusEnum
from chairai.models.proposal import Proposal

# 匯入 Schemas
from chairai.schemas.project_schema import ProjectCreate

logger = logging.getLogger(__name__)

class ProjectRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # 獲取單一案件 (包含圖片、類別、材質)
    async def get_project_by_id(self, project_id: str) -> Project | None:
        """
        透過 ID 獲取單一案件

        (重要) populate_existing：條件式 UPDATE 之後，
        Session 內的舊物件也要以資料庫的值為準
        """
        stmt = (
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_project_by_generated_image(self, generated_image_id: str) -> Project | None:
        """檢查是否已有案件使用這張圖片"""
        stmt = select(Project.id).where(Project.generated_image_id == generated_image_id)
        result = await self.db.execute(stmt)
        project_id = result.scalars().first()
        return await self.get_project_by_id(project_id) if project_id else None

    # 建立新案件
    async def create_project(self, project_data: ProjectCreate, client_id: str) -> Project | None:
        """
        在同一個交易中：
        1. INSERT 案件 (generated_image_id 有 unique 限制)
        2. 條件式把圖片標記為已使用 (is_used = false -> true)

        若圖片已被使用 (影響 0 筆)，整個交易 rollback 並回傳 None。
        IntegrityError 等資料庫錯誤會 rollback 後往上拋。
        """
        db_project = Project(
            **project_data.model_dump(),
            client_id=client_id,
            status=ProjectStatusEnum.open
        )
        try:
            self.db.add(db_project)
            await self.db.flush()

            consume_stmt = (
                update(GeneratedImage)
                .where(
                    GeneratedImage.id == project_data.generated_image_id,
                    GeneratedImage.is_used == False  # noqa: E712
                )
                .values(is_used=True)
                .execution_options(synchronize_session=False)
            )
            result = await self.db.execute(consume_stmt)
            if result.rowcount != 1:
                logger.warning(f"Generated image {project_data.generated_image_id} already consumed, rolling back")
                await self.db.rollback()
                return None

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return await self.get_project_by_id(db_project.id)

    async def _count(self, stmt) -> int:
        result = await self.db.execute(stmt)
        return result.scalar_one()

    # 條件搜尋案件 (工匠瀏覽市集)
    async def list_projects(
        self,
        limit: int,
        offset: int,
        status: Optional[ProjectStatusEnum] = None,
        category_id: Optional[str] = None,
        material_id: Optional[str] = None,
    ) -> Tuple[List[Project], int]:
        """
        依條件 (狀態、類別、材質 皆為精確比對) 查詢案件，新到舊排序並分頁
        回傳 (當頁資料, 總筆數)
        """
        conditions = []
        if status:
            conditions.append(Project.status == status)
        if category_id:
            conditions.append(Project.category_id == category_id)
        if material_id:
            conditions.append(Project.material_id == material_id)

        logger.info(f"Listing projects: status={status}, category_id={category_id}, material_id={material_id}, limit={limit}, offset={offset}")

        total = await self._count(select(func.count(Project.id)).where(*conditions))

        stmt = (
            select(Project)
            .where(*conditions)
            .order_by(Project.created_at.desc(), Project.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return result.scalars().unique().all(), total

    # 查看特定委託人的所有案件
    async def list_projects_by_client(
        self, client_id: str, limit: int, offset: int
    ) -> Tuple[List[Project], int]:
        total = await self._count(
            select(func.count(Project.id)).where(Project.client_id == client_id)
        )
        stmt = (
            select(Project)
            .where(Project.client_id == client_id)
            .order_by(Project.created_at.desc(), Project.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return result.scalars().unique().all(), total

    async def count_proposals(self, project_id: str) -> int:
        return await self._count(
            select(func.count(Proposal.id)).where(Proposal.project_id == project_id)
        )

    async def count_proposals_for_projects(self, project_ids: List[str]) -> Dict[str, int]:
        """一次查出多個案件的提案數量 (避免 N+1)"""
        if not project_ids:
            return {}
        stmt = (
            select(Proposal.project_id, func.count(Proposal.id))
            .where(Proposal.project_id.in_(project_ids))
            .group_by(Proposal.project_id)
        )
        result = await self.db.execute(stmt)
        return {project_id: count for project_id, count in result.all()}

    async def accept_proposal(self, project_id: str, proposal_id: str, price) -> int:
        """
        (U) 條件式接受提案：只有 status 仍為 open 時才會更新
        回傳影響筆數 (0 代表已被其他請求搶先)
        """
        stmt = (
            update(Project)
            .where(Project.id == project_id, Project.status == ProjectStatusEnum.open)
            .values(
                status=ProjectStatusEnum.in_progress,
                accepted_proposal_id=proposal_id,
                accepted_price=price,
                updated_at=func.now()
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount

    async def update_status(
        self, project_id: str, current_status: ProjectStatusEnum, new_status: ProjectStatusEnum
    ) -> int:
        """
        (U) 條件式更新狀態：WHERE status = 讀取時的狀態
        """
        stmt = (
            update(Project)
            .where(Project.id == project_id, Project.status == current_status)
            .values(status=new_status, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount
