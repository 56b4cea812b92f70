# scholarseek/core/storage.py

import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from fastapi import UploadFile
from loguru import logger

from scholarseek.core.config import settings
from scholarseek.core.exceptions import PersistenceError, ValidationError

ALLOWED_EXTENSIONS = {"pdf", "jpg", "jpeg", "png", "doc", "docx"}


@dataclass
class PendingDocument:
    """An upload that passed validation but is not on disk yet."""
    document_type: str
    extension: str
    content: bytes


def _extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lstrip(".").lower()


async def read_application_document(file: UploadFile, document_type: str) -> PendingDocument:
    """
    Validates an uploaded application document without writing anything.
    - Checks extension, emptiness and size.
    - Ignores original filename (sanitizes input).
    """
    extension = _extension(file.filename)
    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"Invalid file type for {document_type}. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}."
        )

    file_content = await file.read()

    if not file_content:
        raise ValidationError(f"{document_type} is empty.")

    if len(file_content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(
            f"{document_type} is too large. Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB."
        )

    await file.seek(0)
    return PendingDocument(document_type=document_type, extension=extension, content=file_content)


def write_application_document(document: PendingDocument, student_id: int, scholarship_id: int) -> str:
    """Writes a validated document to the local store and returns the stored path."""
    # One folder per (student, scholarship) pair; filenames are never user supplied
    upload_dir = os.path.join(settings.UPLOAD_DIR, f"{student_id}_{scholarship_id}")
    file_path = os.path.join(upload_dir, f"{uuid.uuid4()}.{document.extension}")

    try:
        os.makedirs(upload_dir, exist_ok=True)
        with open(file_path, "wb") as fh:
            fh.write(document.content)
    except OSError as e:
        logger.error(f"❌ Document write failed for {file_path}: {e}")
        raise PersistenceError("Failed to store uploaded document.")

    return file_path


def discard_documents(file_paths: Iterable[str]) -> None:
    """Removes stored documents that no application row will point at."""
    for file_path in file_paths:
        try:
            os.remove(file_path)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning(f"Could not remove orphaned document {file_path}: {e}")


def describe_document(file_path: Optional[str], document_type: str) -> Optional[dict]:
    """
    Metadata for a stored document, or None when it is missing on disk.
    The content itself is never opened.
    """
    if not file_path or not os.path.isfile(file_path):
        return None

    stat = os.stat(file_path)
    filename = os.path.basename(file_path)
    return {
        "filename": filename,
        "path": file_path,
        "size": stat.st_size,
        "modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        "type": document_type,
        "extension": _extension(filename),
    }
