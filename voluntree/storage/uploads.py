"""Persist received multipart files into the upload temp directory."""

from __future__ import annotations

import os
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from voluntree.core.config import settings
from voluntree.core.exceptions import ValidationError

CHUNK_SIZE = 64 * 1024


def save_upload(upload: UploadFile | None, *, temp_dir: str | None = None) -> str | None:
    if upload is None or not upload.filename:
        return None

    target_dir = Path(temp_dir or settings.UPLOAD_TEMP_DIR)
    target_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename).suffix.lower()
    target = target_dir / f"{uuid4().hex}{suffix}"

    written = 0
    with open(target, "wb") as handle:
        while chunk := upload.file.read(CHUNK_SIZE):
            written += len(chunk)
            if written > settings.MAX_UPLOAD_BYTES:
                handle.close()
                os.remove(target)
                raise ValidationError("file_too_large", details={"field": upload.filename})
            handle.write(chunk)
    return str(target)
