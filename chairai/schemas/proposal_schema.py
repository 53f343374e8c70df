# chairai/schemas/proposal_schema.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

from chairai.models.project import ProjectStatusEnum
from chairai.schemas.common_schema import PaginationMeta, PaginationQuery

MAX_PROPOSAL_PRICE = 1_000_000

# --- 建立 (Create) ---
class ProposalCreate(BaseModel):
    # project_id 和 artisan_id 將從 URL 和 Token 中取得
    # attachment_url 將由 Service 層處理檔案後填入
    price: float = Field(..., gt=0, le=MAX_PROPOSAL_PRICE)
    message: Optional[str] = Field(None, max_length=2000)

# --- 讀取 (Read / Out) ---
class ProposalArtisanOut(BaseModel):
    user_id: str
    company_name: str
    average_rating: Optional[float] = None
    total_reviews: int = 0

class ProposalOut(BaseModel):
    id: str
    project_id: str
    artisan: ProposalArtisanOut
    price: float
    message: Optional[str] = None
    attachment_url: Optional[str] = None
    created_at: Optional[datetime] = None

class ProposalCompanyOut(BaseModel):
    company_name: str

class ProjectProposalOut(BaseModel):
    """委託人檢視某案件所有提案時的格式"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    artisan_id: str
    price: float
    message: Optional[str] = None
    attachment_url: Optional[str] = None
    created_at: Optional[datetime] = None
    artisan_profile: ProposalCompanyOut

class ProjectProposalListOut(BaseModel):
    data: List[ProjectProposalOut]

# --- 工匠「我的提案」 ---
class MyProposalsQuery(PaginationQuery):
    limit: int = Field(10, ge=1, le=100)
    status: Optional[ProjectStatusEnum] = None

class MyProposalCategoryOut(BaseModel):
    id: str
    name: str

class MyProposalImageOut(BaseModel):
    image_url: str

class MyProposalProjectOut(BaseModel):
    id: str
    status: ProjectStatusEnum
    category: MyProposalCategoryOut
    generated_image: MyProposalImageOut

class MyProposalOut(BaseModel):
    id: str
    project: MyProposalProjectOut
    price: float
    attachment_url: Optional[str] = None
    created_at: Optional[datetime] = None
    is_accepted: bool

class MyProposalListOut(BaseModel):
    data: List[MyProposalOut]
    pagination: PaginationMeta
