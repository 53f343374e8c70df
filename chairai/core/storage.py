# chairai/core/storage.py
# 物件儲存：以本機檔案系統模擬 bucket (upload / get_public_url / remove)
import logging
import os
from pathlib import Path
from typing import Iterable, Optional

import aiofiles

from chairai.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """儲存層失敗 (上傳 / 刪除)"""


class LocalStorage:
    def __init__(self, root: Optional[str] = None, url_prefix: Optional[str] = None):
        self.root = Path(root or settings.UPLOAD_ROOT)
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip("/")

    def _full_path(self, bucket: str, path: str) -> Path:
        # 禁止 ../ 跳出 bucket 目錄
        bucket_dir = (self.root / bucket).resolve()
        full = (bucket_dir / path).resolve()
        if bucket_dir not in full.parents:
            raise StorageError(f"Invalid object path: {path}")
        return full

    async def upload(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        """寫入檔案，回傳 bucket 內的路徑；檔案已存在時不覆蓋"""
        file_path = self._full_path(bucket, path)
        if file_path.exists():
            raise StorageError(f"Object already exists: {bucket}/{path}")
        try:
            os.makedirs(file_path.parent, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(data)
        except OSError as e:
            raise StorageError(str(e)) from e
        logger.info(f"Uploaded object {bucket}/{path} ({content_type}, {len(data)} bytes)")
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.url_prefix}/{bucket}/{path}"

    def path_from_url(self, bucket: str, url: str) -> Optional[str]:
        """從 public URL 反推 bucket 內的路徑 (不是本 bucket 的 URL 回傳 None)"""
        marker = f"/{bucket}/"
        if marker not in url:
            return None
        return url.split(marker, 1)[1]

    async def remove(self, bucket: str, paths: Iterable[str]) -> None:
        for path in paths:
            file_path = self._full_path(bucket, path)
            try:
                os.remove(file_path)
            except FileNotFoundError:
                logger.warning(f"Object not found while removing: {bucket}/{path}")
            except OSError as e:
                raise StorageError(str(e)) from e


def get_storage() -> LocalStorage:
    """FastAPI Dependency: 取得儲存客戶端"""
    return LocalStorage()
