# chairai/routers/proposal_router.py

from fastapi import APIRouter, Depends, status, UploadFile, File, Form, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from chairai.core.database import get_db
from chairai.core.security import get_current_user
from chairai.core.storage import LocalStorage, get_storage
from chairai.models.user import User
from chairai.models.project import ProjectStatusEnum
from chairai.services.proposal_service import ProposalService
from chairai.schemas.common_schema import MAX_PAGE_SIZE
from chairai.schemas.proposal_schema import (
    MAX_PROPOSAL_PRICE,
    MyProposalListOut,
    MyProposalsQuery,
    ProjectProposalListOut,
    ProposalCreate,
    ProposalOut,
)

# 建立 API Router
router = APIRouter(
    prefix="/proposals",
    tags=["Proposals"],
    dependencies=[Depends(get_current_user)] # 重要：此 router 下所有 API 都需要登入
)

# -----------------------------------------------------------------
# 掛載在 /projects/ 下的提案 API，語意更清晰
# -----------------------------------------------------------------
project_proposal_router = APIRouter(
    prefix="/projects",
    tags=["Proposals"], # 歸類到同一個 Tag
    dependencies=[Depends(get_current_user)]
)

@project_proposal_router.post(
    "/{project_id}/proposals",
    response_model=ProposalOut,
    status_code=status.HTTP_201_CREATED
)
async def submit_proposal(
    project_id: str,
    # (重要) 由於是檔案上傳，欄位必須來自 Form
    price: float = Form(..., gt=0, le=MAX_PROPOSAL_PRICE),
    message: Optional[str] = Form(None, max_length=2000),
    # 附件是可選的 (PDF / JPG / PNG，最大 5MB)
    attachment: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user)
):
    """
    工匠對 open 的案件提交提案。

    - 必須傳送 form-data。
    """
    service = ProposalService(db, storage=storage)
    return await service.create_proposal(
        project_id=project_id,
        proposal_data=ProposalCreate(price=price, message=message),
        artisan=current_user,
        attachment=attachment
    )

@project_proposal_router.get(
    "/{project_id}/proposals",
    response_model=ProjectProposalListOut
)
async def get_project_proposals(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    查看案件的所有提案 (委託人或得標工匠)
    """
    service = ProposalService(db)
    return await service.list_project_proposals(project_id, current_user)

@router.get("/me", response_model=MyProposalListOut)
async def get_my_proposals(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    status: Optional[ProjectStatusEnum] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    工匠查看自己提交過的所有提案，可依案件狀態篩選
    """
    service = ProposalService(db)
    return await service.list_my_proposals(
        MyProposalsQuery(page=page, limit=limit, status=status), current_user
    )
