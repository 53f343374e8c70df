# models/review.py
import uuid
from sqlalchemy import Column, Text, INT, ForeignKey, TIMESTAMP, CHAR, CheckConstraint, UniqueConstraint, func
from sqlalchemy.orm import relationship
from chairai.core.database import Base

class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        # 每個人對同一案件只能評價一次
        UniqueConstraint("project_id", "reviewer_id", name="uq_review_project_reviewer"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(CHAR(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewee_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(INT, nullable=False)
    comment = Column(Text)
    created_at = Column(TIMESTAMP, server_default=func.now())

    # 評價列表需要 project.category.name
    project = relationship("Project", lazy="joined")
    reviewer = relationship("User", foreign_keys=[reviewer_id], lazy="joined")
