# chairai/repositories/proposal_repo.py

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload
from typing import List, Optional, Tuple

from chairai.models.project import Project, ProjectStatusEnum
from chairai.models.proposal import Proposal

class ProposalRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_proposal_by_id(self, proposal_id: str) -> Optional[Proposal]:
        """
        透過 ID 獲取單一提案
        """
        stmt = select(Proposal).where(Proposal.id == proposal_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_artisan_id(self, proposal_id: Optional[str]) -> Optional[str]:
        """
        查詢提案者 (工匠) 的 user id；用於判斷「已被接受的工匠」
        """
        if not proposal_id:
            return None
        stmt = select(Proposal.artisan_id).where(Proposal.id == proposal_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def check_existing_proposal(self, project_id: str, artisan_id: str) -> Optional[Proposal]:
        """
        檢查特定工匠是否已對特定案件提案
        """
        stmt = select(Proposal).where(
            Proposal.project_id == project_id,
            Proposal.artisan_id == artisan_id
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_proposals_by_project_id(self, project_id: str) -> List[Proposal]:
        """
        獲取特定案件的所有提案 (artisan_profile 由 Model 的 lazy="joined" 一併載入)

        populate_existing：Session 內已有的提案也要重新載入 artisan_profile
        """
        stmt = (
            select(Proposal)
            .where(Proposal.project_id == project_id)
            .order_by(Proposal.created_at.desc(), Proposal.id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().unique().all()

    async def get_proposals_by_artisan_id(
        self,
        artisan_id: str,
        limit: int,
        offset: int,
        project_status: Optional[ProjectStatusEnum] = None,
    ) -> Tuple[List[Proposal], int]:
        """
        獲取特定工匠的所有提案 (「我的提案」)，可依案件狀態過濾
        回傳 (當頁資料, 總筆數)
        """
        conditions = [Proposal.artisan_id == artisan_id]
        if project_status:
            conditions.append(Project.status == project_status)

        count_stmt = (
            select(func.count(Proposal.id))
            .join(Project, Proposal.project_id == Project.id)
            .where(*conditions)
        )
        total = (await self.db.execute(count_stmt)).scalar_one()

        stmt = (
            select(Proposal)
            .join(Project, Proposal.project_id == Project.id)
            .where(*conditions)
            # 載入關聯的案件資訊 (案件本身的圖片、類別、材質為 joined)
            .options(joinedload(Proposal.project))
            .order_by(Proposal.created_at.desc(), Proposal.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return result.scalars().unique().all(), total

    async def create_proposal(self, proposal: Proposal) -> Proposal:
        """
        新增提案；失敗時 rollback 並把例外往上拋
        """
        try:
            self.db.add(proposal)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(proposal)
        return proposal
