# models/generated_image.py
import uuid
from sqlalchemy import Column, String, Text, Boolean, ForeignKey, TIMESTAMP, CHAR, func
from chairai.core.database import Base

class GeneratedImage(Base):
    """AI 產生的家具圖片，只屬於產生它的委託人，最多只能轉成一個案件"""
    __tablename__ = "generated_images"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    prompt = Column(Text)
    image_url = Column(String(500), nullable=False)
    # 轉成案件後設為 True
    is_used = Column(Boolean, default=False, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
