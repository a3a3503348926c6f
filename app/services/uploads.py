import logging
import os
import time
from typing import Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".xlsx", ".xls", ".csv"}
ALLOWED_MIME_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/octet-stream",
    "application/excel",
    "application/x-excel",
    "application/x-msexcel",
    "text/csv",
}

CHUNK_SIZE = 1024 * 1024


class UploadRejected(ValueError):
    """The upload is refused before any of it is processed."""


def is_spreadsheet(filename: str, content_type: Optional[str]) -> bool:
    extension = os.path.splitext(filename)[1].lower()
    return extension in ALLOWED_EXTENSIONS or content_type in ALLOWED_MIME_TYPES


def save_upload(upload: UploadFile, upload_dir: str, max_size: int) -> str:
    """
    Copy the upload to upload_dir as "<epoch ms>-<basename>" and return its path.
    Anything over max_size bytes is removed again and rejected.
    """
    if not is_spreadsheet(upload.filename, upload.content_type):
        logger.warning("Rejected file %s, mimetype %s", upload.filename, upload.content_type)
        raise UploadRejected(
            f"Only Excel files are allowed! Received mimetype: {upload.content_type}"
        )

    os.makedirs(upload_dir, exist_ok=True)
    name = f"{int(time.time() * 1000)}-{os.path.basename(upload.filename)}"
    path = os.path.join(upload_dir, name)

    written = 0
    try:
        with open(path, "wb") as out:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_size:
                    break
                out.write(chunk)
    except BaseException:
        remove_upload(path)
        raise

    if written > max_size:
        remove_upload(path)
        raise UploadRejected("File too large")

    logger.info("File received: %s (%s, %d bytes)", upload.filename, upload.content_type, written)
    return path


def remove_upload(path: Optional[str]) -> None:
    if path and os.path.exists(path):
        os.remove(path)

