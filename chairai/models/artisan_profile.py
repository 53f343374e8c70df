# models/artisan_profile.py
import uuid
from sqlalchemy import Column, String, Boolean, ForeignKey, TIMESTAMP, CHAR, func
from sqlalchemy.orm import relationship
from chairai.core.database import Base

class ArtisanProfile(Base):
    __tablename__ = "artisan_profiles"

    # 1-to-1 with User
    user_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    company_name = Column(String(255), nullable=False)
    # NIP (波蘭統一編號) 在所有工匠間必須唯一
    nip = Column(String(10), unique=True, nullable=False, index=True)
    is_public = Column(Boolean, default=False, nullable=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="artisan_profile")

    specializations = relationship(
        "ArtisanSpecialization",
        back_populates="profile",
        cascade="all, delete-orphan",
        lazy="selectin"
    )
    portfolio_images = relationship(
        "PortfolioImage",
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="PortfolioImage.created_at.desc()",
        lazy="selectin"
    )

class ArtisanSpecialization(Base):
    """工匠 - 專長 關聯表 (多對多)"""
    __tablename__ = "artisan_specializations"

    artisan_id = Column(CHAR(36), ForeignKey("artisan_profiles.user_id", ondelete="CASCADE"), primary_key=True)
    specialization_id = Column(CHAR(36), ForeignKey("specializations.id", ondelete="CASCADE"), primary_key=True)

    profile = relationship("ArtisanProfile", back_populates="specializations")
    specialization = relationship("Specialization", lazy="joined")

class PortfolioImage(Base):
    __tablename__ = "portfolio_images"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    artisan_id = Column(CHAR(36), ForeignKey("artisan_profiles.user_id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String(500), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    profile = relationship("ArtisanProfile", back_populates="portfolio_images")
