# chairai/core/config.py
# 應用程式設定 (資料庫連線字串、JWT 秘鑰、檔案上傳等)
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # 資料庫設定 (非同步驅動, e.g. mysql+aiomysql://...)
    DATABASE_URL: str = "sqlite+aiosqlite:///./chairai.db"
    # (可選) 在 console 印出 SQL 語句
    SQL_ECHO: bool = False

    # JWT 設定
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    # 存取令牌過期時間（分鐘）
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # 檔案上傳 (物件儲存) 設定
    UPLOAD_ROOT: str = "static/uploads"
    UPLOAD_URL_PREFIX: str = "/static/uploads"
    MAX_UPLOAD_SIZE_MB: int = 5

    # 公開的工匠 Profile 至少需要幾張作品集照片
    PORTFOLIO_MIN_PUBLIC_IMAGES: int = 5

    CORS_ORIGINS: List[str] = ["*"]

    # 環境變數檔案
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# 建立設定實例
settings = Settings()
