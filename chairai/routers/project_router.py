# chairai/routers/project_router.py
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

# 匯入核心依賴
from chairai.core.database import get_db
from chairai.core.security import get_current_user
from chairai.models.user import User
from chairai.models.project import ProjectStatusEnum

# 匯入 Service 和 Schemas
from chairai.services.project_service import ProjectService
from chairai.schemas.common_schema import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PaginationQuery
from chairai.schemas.project_schema import (
    AcceptProposalOut, AcceptProposalRequest, MyProjectListOut, ProjectCreate,
    ProjectListOut, ProjectOut, ProjectsQuery, ProjectStatusOut, ProjectStatusUpdate
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
    # (重要) 該模組下的所有 API 都至少需要登入
    dependencies=[Depends(get_current_user)]
)

@router.post(
    "",
    response_model=ProjectOut,
    status_code=status.HTTP_201_CREATED
)
async def create_new_project(
    project_data: ProjectCreate, # Request Body
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    以 AI 生成的圖片建立新案件。

    - (權限) 僅限「委託人 (client)」角色。
    - (資料) 圖片必須屬於自己且尚未被其他案件使用。
    """
    service = ProjectService(db)
    return await service.create_project(project_data=project_data, client=current_user)

@router.get("", response_model=ProjectListOut)
async def browse_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: Optional[ProjectStatusEnum] = None,
    category_id: Optional[str] = None,
    material_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    瀏覽案件 (工匠使用)，可依 狀態 / 類別 / 材質 篩選。
    """
    query = ProjectsQuery(
        page=page, limit=limit, status=status,
        category_id=category_id, material_id=material_id
    )
    logger.info(f"Browse projects by {current_user.id}: {query.model_dump()}")
    service = ProjectService(db)
    return await service.list_projects(query, current_user)

# (注意) /me 必須定義在 /{project_id} 之前
@router.get("/me", response_model=MyProjectListOut)
async def get_my_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    委託人查看自己建立的所有案件 (含提案數量)
    """
    service = ProjectService(db)
    return await service.list_my_projects(PaginationQuery(page=page, limit=limit), current_user)

@router.get("/{project_id}", response_model=ProjectOut)
async def get_project_details(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    案件詳情。擁有者永遠可以查看；工匠可查看 open 的案件或自己得標的案件。
    """
    service = ProjectService(db)
    return await service.get_project_details(project_id, current_user)

@router.post("/{project_id}/accept-proposal", response_model=AcceptProposalOut)
async def accept_proposal(
    project_id: str,
    data: AcceptProposalRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    委託人接受某個提案 (案件 open -> in_progress)
    """
    service = ProjectService(db)
    return await service.accept_proposal(project_id, data.proposal_id, current_user)

@router.patch("/{project_id}/status", response_model=ProjectStatusOut)
async def update_project_status(
    project_id: str,
    data: ProjectStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    委託人更新案件狀態 (完成 / 關閉)，狀態只能往前。
    """
    service = ProjectService(db)
    return await service.update_project_status(project_id, data.status, current_user)
