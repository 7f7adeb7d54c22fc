import os
import uuid
from pathlib import Path

from fastapi import HTTPException, UploadFile, status
from havenstay.config import settings

UPLOAD_URL_PREFIX = "/uploads"

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

CHUNK_SIZE = 64 * 1024


class UploadService:
    """Stores uploaded images on local disk, served back under /uploads."""

    def __init__(self, upload_dir: str | None = None):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    def validate_image(self, file: UploadFile) -> str:
        if not file.content_type or not file.content_type.startswith("image/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="File must be an image"
            )
        ext = Path(file.filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            ext = "." + file.content_type.split("/", 1)[1].split("+", 1)[0]
            if ext not in ALLOWED_EXTENSIONS:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Unsupported image type",
                )
        return ext

    async def save_image(self, file: UploadFile, folder: str) -> str:
        """Write ``file`` under ``folder`` and return its public /uploads path."""
        ext = self.validate_image(file)
        target_dir = self.upload_dir / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{uuid.uuid4().hex}{ext}"
        dest = target_dir / filename

        written = 0
        too_large = False
        with dest.open("wb") as out:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.MAX_UPLOAD_BYTES:
                    too_large = True
                    break
                out.write(chunk)

        if too_large:
            os.remove(dest)
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="File too large",
            )
        return f"{UPLOAD_URL_PREFIX}/{folder}/{filename}"

    def delete_image(self, public_path: str) -> None:
        if not public_path or not public_path.startswith(UPLOAD_URL_PREFIX + "/"):
            return
        path = self.upload_dir / public_path[len(UPLOAD_URL_PREFIX) + 1 :]
        path.unlink(missing_ok=True)
