# chairai/schemas/project_schema.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from chairai.models.project import ProjectStatusEnum
from chairai.schemas.common_schema import PaginationMeta, PaginationQuery, validate_uuid

# 1. 委託人建立案件時的 Request Body (Input)
class ProjectCreate(BaseModel):
    generated_image_id: str
    category_id: str
    material_id: str
    dimensions: Optional[str] = Field(None, max_length=100)
    budget_range: Optional[str] = Field(None, max_length=50)

    @field_validator("generated_image_id")
    @classmethod
    def validate_image_id(cls, v: str) -> str:
        return validate_uuid(v, "Nieprawidłowy UUID dla wygenerowanego obrazu")

    @field_validator("category_id")
    @classmethod
    def validate_category_id(cls, v: str) -> str:
        return validate_uuid(v, "Nieprawidłowy UUID dla kategorii")

    @field_validator("material_id")
    @classmethod
    def validate_material_id(cls, v: str) -> str:
        return validate_uuid(v, "Nieprawidłowy UUID dla materiału")

# 2. 列表查詢條件 (工匠瀏覽市集)
class ProjectsQuery(PaginationQuery):
    status: Optional[ProjectStatusEnum] = None
    category_id: Optional[str] = None
    material_id: Optional[str] = None

# 3. 巢狀輸出
class ProjectGeneratedImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    image_url: str
    prompt: Optional[str] = None

class ProjectCategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str

class ProjectMaterialOut(ProjectCategoryOut):
    pass

# 4. 回傳給前端的案件資料 (Output)
class ProjectListItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    generated_image: ProjectGeneratedImageOut
    category: ProjectCategoryOut
    material: ProjectMaterialOut
    status: ProjectStatusEnum
    dimensions: Optional[str] = None
    budget_range: Optional[str] = None
    accepted_proposal_id: Optional[str] = None
    accepted_price: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ProjectOut(ProjectListItemOut):
    # (重要) 即時計算的提案數量，不在 ORM 上
    proposals_count: int = 0

class ProjectListOut(BaseModel):
    data: List[ProjectListItemOut]
    pagination: PaginationMeta

class MyProjectListOut(BaseModel):
    data: List[ProjectOut]
    pagination: PaginationMeta

# 5. 接受提案
class AcceptProposalRequest(BaseModel):
    proposal_id: str

    @field_validator("proposal_id")
    @classmethod
    def validate_proposal_id(cls, v: str) -> str:
        return validate_uuid(v, "Nieprawidłowy UUID propozycji")

class AcceptProposalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    status: ProjectStatusEnum
    accepted_proposal_id: Optional[str] = None
    accepted_price: Optional[float] = None
    updated_at: Optional[datetime] = None

# 6. 更新案件狀態
class ProjectStatusUpdate(BaseModel):
    status: ProjectStatusEnum

class ProjectStatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    status: ProjectStatusEnum
    updated_at: Optional[datetime] = None
