# models/dictionary.py
# 字典表：家具類別、材質、工匠專長 (唯讀參考資料)
import uuid
from sqlalchemy import Column, String, CHAR
from chairai.core.database import Base

class Category(Base):
    __tablename__ = "categories"
    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), unique=True, nullable=False)

class Material(Base):
    __tablename__ = "materials"
    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), unique=True, nullable=False)

class Specialization(Base):
    __tablename__ = "specializations"
    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), unique=True, nullable=False)
