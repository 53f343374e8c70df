import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from chairai.core.config import settings
from chairai.core.database import init_models
from chairai.core.exceptions import DomainError
from chairai.routers import (
    auth_router, user_router,
    project_router, artisan_router,
    dictionary_router, generated_image_router
)

# 單獨匯入 "proposal_router.py" 檔案中的 *兩個* router
from chairai.routers.proposal_router import (
    router as proposal_main_router,
    project_proposal_router as proposal_project_router
)
from chairai.routers.review_router import project_review_router, artisan_review_router

# --- 匯入所有 Model 檔案 ---
# 都在應用程式啟動時被 SQLAlchemy 註冊。
from chairai.models import user
from chairai.models import dictionary
from chairai.models import generated_image
from chairai.models import project
from chairai.models import proposal
from chairai.models import review
from chairai.models import artisan_profile


# 設定基礎日誌
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__) # 建立一個 logger 實例

@asynccontextmanager
async def lifespan(app: FastAPI):
    # 啟動時建立資料表
    await init_models()
    logger.info("Database tables ready")
    yield

app = FastAPI(title="ChairAI", lifespan=lifespan)

# --- 設定 CORS (跨來源資源共用) ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"], # 允許所有 HTTP 方法
    allow_headers=["*"], # 允許所有 HTTP 標頭
)

# --- 上傳檔案 (作品集圖片、提案附件) ---
os.makedirs(settings.UPLOAD_ROOT, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_ROOT), name="uploads")


def error_response(status_code: int, code: str, message: str, headers: dict | None = None) -> JSONResponse:
    """統一錯誤格式 {"error": {"code", "message"}}"""
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers=headers,
    )

# --- 全域錯誤處理 ---
@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} for {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
}

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.info(f"Validation error for {request.url.path}: {errors}")
    message = "Nieprawidłowe dane wejściowe"
    if errors:
        # Pydantic 會在 ValueError 訊息前加上 "Value error, "
        message = str(errors[0].get("msg", message)).removeprefix("Value error, ")
    return error_response(400, "VALIDATION_ERROR", message)

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception for {request.method} {request.url.path}: {exc}", exc_info=True)
    return error_response(500, "INTERNAL_SERVER_ERROR", "Wystąpił nieoczekiwany błąd serwera")

# --- 根路徑 ---
@app.get("/")
def read_root():
    return {"status": "success", "message": "Backend is running!"}

# --- 載入 API 路由 ---
app.include_router(auth_router.router)
app.include_router(user_router.router)
app.include_router(dictionary_router.router)
app.include_router(generated_image_router.router)
app.include_router(project_router.router)
app.include_router(proposal_main_router)
app.include_router(proposal_project_router)
app.include_router(project_review_router)
app.include_router(artisan_router.router)
app.include_router(artisan_review_router)
