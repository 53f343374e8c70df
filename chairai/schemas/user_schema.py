# chairai/schemas/user_schema.py
from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
import re
from chairai.models.user import UserRoleEnum

# Token 回應的格式
class Token(BaseModel):
    access_token: str
    token_type: str

# Token 內的資料
class TokenData(BaseModel):
    user_id: str
    role: str

# 註冊請求 Body
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRoleEnum

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        """
        密碼至少 8 碼，且需包含小寫、大寫字母與數字
        """
        if not re.search(r'(?=.*[a-z])(?=.*[A-Z])(?=.*\d)', v):
            raise ValueError('Hasło musi zawierać co najmniej jedną małą literę, jedną wielką literę i jedną cyfrę')
        return v

# 註冊/查詢使用者的安全回應
class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    role: UserRoleEnum
    is_active: bool
