# models/proposal.py
import uuid
from sqlalchemy import Column, String, Text, DECIMAL, ForeignKey, TIMESTAMP, CHAR, UniqueConstraint, func
from sqlalchemy.orm import relationship
from chairai.core.database import Base

class Proposal(Base):
    __tablename__ = "proposals"
    # 每位工匠對同一案件只能提一次案
    __table_args__ = (UniqueConstraint("project_id", "artisan_id", name="uq_proposal_project_artisan"),)

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(CHAR(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    artisan_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    price = Column(DECIMAL(10, 2), nullable=False)
    message = Column(Text)
    attachment_url = Column(String(500))
    created_at = Column(TIMESTAMP, server_default=func.now())

    project = relationship("Project", back_populates="proposals", foreign_keys=[project_id])

    # 提案者的工匠 Profile (沒有直接 FK，兩邊都指向 users.id)
    artisan_profile = relationship(
        "ArtisanProfile",
        primaryjoin="foreign(Proposal.artisan_id) == ArtisanProfile.user_id",
        uselist=False,
        viewonly=True,
        lazy="joined"
    )
