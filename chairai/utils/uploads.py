# chairai/utils/uploads.py
# 上傳檔案的共用檢查 (類型 / 大小)
from typing import Dict, Tuple, Type

from fastapi import UploadFile

from chairai.core.config import settings
from chairai.core.exceptions import DomainError

# content-type -> 副檔名
PORTFOLIO_IMAGE_TYPES: Dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

PROPOSAL_ATTACHMENT_TYPES: Dict[str, str] = {
    "application/pdf": "pdf",
    "image/jpeg": "jpg",
    "image/png": "png",
}


def max_upload_bytes() -> int:
    return settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024


async def read_upload(
    file: UploadFile,
    allowed_types: Dict[str, str],
    error_cls: Type[DomainError],
    type_message: str,
) -> Tuple[bytes, str]:
    """
    檢查並讀取上傳檔案，回傳 (內容, 副檔名)

    - 類型不在 allowed_types 中：INVALID_FILE_TYPE (400)
    - 超過大小限制：FILE_TOO_LARGE (400)
    """
    extension = allowed_types.get(file.content_type or "")
    if extension is None:
        raise error_cls(type_message, "INVALID_FILE_TYPE", 400)

    limit = max_upload_bytes()
    # 多讀 1 byte 就能判斷是否超過上限
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise error_cls(
            f"Rozmiar pliku nie może przekraczać {settings.MAX_UPLOAD_SIZE_MB}MB",
            "FILE_TOO_LARGE",
            400
        )
    return content, extension
