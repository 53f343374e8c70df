# chairai/services/auth_service.py
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from chairai.repositories.user_repo import UserRepository
from chairai.core.security import verify_password, create_access_token, get_password_hash
from chairai.core.exceptions import DomainError
from chairai.models.user import User
from chairai.schemas.user_schema import UserCreate

logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "Ten adres e-mail jest już zarejestrowany"

class AuthService:
    def __init__(self, db: AsyncSession):
        self.user_repo = UserRepository(db)

    async def authenticate_user(self, email: str, password: str) -> User | None:
        """
        驗證使用者帳號密碼。
        成功回傳 User 物件，失敗回傳 None。
        """
        user = await self.user_repo.get_user_by_email(email)

        # 1. 檢查使用者是否存在
        if not user:
            return None

        # 2. 檢查是否被停權
        if not user.is_active:
            return None

        # 3. 檢查密碼是否正確
        if not verify_password(plain_password=password, hashed_password=user.password_hash):
            return None

        return user

    async def register_user(self, user_create: UserCreate) -> User:
        """
        處理使用者註冊 (委託人 / 工匠)
        """
        # 1. 檢查 Email 是否已被註冊
        existing_user = await self.user_repo.get_user_by_email(user_create.email)
        if existing_user:
            raise DomainError(EMAIL_TAKEN_MESSAGE, "EMAIL_ALREADY_EXISTS", 409)

        # 2. 雜湊密碼並建立 User ORM 模型
        new_user = User(
            email=user_create.email,
            password_hash=get_password_hash(user_create.password),
            role=user_create.role
        )

        # 3. 呼叫 Repository 儲存到資料庫
        try:
            created_user = await self.user_repo.create_user(new_user)
        except IntegrityError:
            raise DomainError(EMAIL_TAKEN_MESSAGE, "EMAIL_ALREADY_EXISTS", 409)

        logger.info(f"User registered: {created_user.id} ({created_user.role.value})")
        return created_user

    def create_login_token(self, user: User) -> str:
        """
        為指定使用者建立 access token
        """
        return create_access_token(
            data={
                "sub": user.email,
                "user_id": str(user.id),
                "role": user.role.value # 確保存入的是字串
            }
        )
