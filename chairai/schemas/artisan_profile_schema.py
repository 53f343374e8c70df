# chairai/schemas/artisan_profile_schema.py
import re
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from chairai.schemas.common_schema import validate_uuid
from chairai.schemas.dictionary_schema import SpecializationOut

class ArtisanProfileUpsert(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    nip: str
    is_public: bool = False

    @field_validator("nip")
    @classmethod
    def validate_nip(cls, v: str) -> str:
        """NIP 必須是 10 位數字 (允許輸入時帶 - 或空白)"""
        digits = re.sub(r"[\s-]", "", v)
        if not re.fullmatch(r"\d{10}", digits):
            raise ValueError("NIP musi składać się z 10 cyfr")
        return digits

class SpecializationsAdd(BaseModel):
    specialization_ids: List[str] = Field(..., min_length=1)

    @field_validator("specialization_ids")
    @classmethod
    def validate_ids(cls, v: List[str]) -> List[str]:
        return [validate_uuid(item, "Nieprawidłowy UUID specjalizacji") for item in v]

class PortfolioImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    image_url: str
    created_at: Optional[datetime] = None

class ArtisanProfileOut(BaseModel):
    user_id: str
    company_name: str
    nip: str
    is_public: bool
    specializations: List[SpecializationOut] = []
    portfolio_images: List[PortfolioImageOut] = []
    average_rating: Optional[float] = None
    total_reviews: int = 0
    updated_at: Optional[datetime] = None
