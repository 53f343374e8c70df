# models/user.py
import enum
import uuid
from sqlalchemy import Column, String, Boolean, Enum, CHAR, TIMESTAMP, func
from sqlalchemy.orm import relationship
from chairai.core.database import Base

# 對應 SQL 中的 ENUM 型別
class UserRoleEnum(str, enum.Enum):
    client = "client"
    artisan = "artisan"

class User(Base):
    __tablename__ = "users"

    # 基本欄位
    id = Column(CHAR(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRoleEnum, values_callable=lambda obj: [e.value for e in obj], name="user_role"), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    # 1-to-1 工匠 Profile (只有 artisan 才會有)
    artisan_profile = relationship(
        "ArtisanProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan"
    )

    @property
    def display_name(self) -> str:
        """顯示名稱：e-mail 的 @ 前段"""
        return self.email.split("@", 1)[0]
