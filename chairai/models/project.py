# models/project.py
import enum
import uuid
from sqlalchemy import Column, String, DECIMAL, TIMESTAMP, ForeignKey, Enum, CHAR, func
from sqlalchemy.orm import relationship
from chairai.core.database import Base

class ProjectStatusEnum(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    completed = "completed"
    closed = "closed"

class Project(Base):
    __tablename__ = "projects"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # (重要) unique：一張圖片最多只能對應一個案件
    generated_image_id = Column(CHAR(36), ForeignKey("generated_images.id"), unique=True, nullable=False, index=True)
    category_id = Column(CHAR(36), ForeignKey("categories.id"), nullable=False, index=True)
    material_id = Column(CHAR(36), ForeignKey("materials.id"), nullable=False, index=True)
    status = Column(
        Enum(ProjectStatusEnum, values_callable=lambda obj: [e.value for e in obj], name="project_status"),
        default=ProjectStatusEnum.open,
        nullable=False,
        index=True
    )
    dimensions = Column(String(100))
    budget_range = Column(String(50))
    # use_alter：proposals 也有 FK 指回 projects
    accepted_proposal_id = Column(
        CHAR(36),
        ForeignKey("proposals.id", use_alter=True, name="fk_accepted_proposal"),
        nullable=True
    )
    accepted_price = Column(DECIMAL(10, 2), nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # 多對一關聯一律 joined 載入 (ProjectOut 需要巢狀資料)
    generated_image = relationship("GeneratedImage", lazy="joined")
    category = relationship("Category", lazy="joined")
    material = relationship("Material", lazy="joined")

    proposals = relationship(
        "Proposal",
        back_populates="project",
        foreign_keys="[Proposal.project_id]",
        cascade="all, delete-orphan"
    )
