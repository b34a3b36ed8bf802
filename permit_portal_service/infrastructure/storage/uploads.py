# Local-disk storage for uploaded documents and payment proofs
import logging
import os
import random
import time
from typing import FrozenSet, Iterable

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from opentelemetry.trace import SpanKind

from permit_portal_service.app.config import settings
from permit_portal_service.app.observability import tracer
from permit_portal_service.app.service.exceptions import ApplicationValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/"
DOCUMENTS_SUBDIR = "documents"
PAYMENTS_SUBDIR = "payments"

IMAGE_TYPES: FrozenSet[str] = frozenset({"image/jpeg", "image/png", "image/jpg"})
DOCUMENT_TYPES: FrozenSet[str] = IMAGE_TYPES | frozenset({
    "application/pdf",
    "application/msword", # .doc
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document", # .docx
})


def unique_file_name(original_name: str) -> str:
    _, ext = os.path.splitext(original_name or "")
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext.lower()}"


def validate_content_type(upload: UploadFile, allowed: FrozenSet[str], message: str) -> None:
    if upload.content_type not in allowed:
        raise ApplicationValidationError(message)


def validate_payment_proof(upload: UploadFile) -> None:
    validate_content_type(upload, IMAGE_TYPES, "Only JPG, JPEG, PNG images allowed.")


def validate_revision_document(upload: UploadFile) -> None:
    validate_content_type(upload, DOCUMENT_TYPES, "Only PDF, Word, and Image files are allowed.")


def _write_file(path: str, content: bytes) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as fh:
        fh.write(content)


def disk_path(public_path: str) -> str:
    """Maps an '/uploads/...' path back to its location under UPLOAD_DIR."""
    relative = public_path[len(PUBLIC_PREFIX):] if public_path.startswith(PUBLIC_PREFIX) else public_path
    return os.path.join(settings.UPLOAD_DIR, *relative.split("/"))


async def save_upload(upload: UploadFile, subdir: str) -> str:
    """Writes the upload under UPLOAD_DIR/subdir and returns its public path."""
    file_name = unique_file_name(upload.filename)
    public_path = f"{PUBLIC_PREFIX}{subdir}/{file_name}"
    with tracer.start_as_current_span("uploads.save", kind=SpanKind.INTERNAL) as span:
        content = await upload.read()
        span.set_attribute("upload.subdir", subdir)
        span.set_attribute("upload.size_bytes", len(content))
        await run_in_threadpool(_write_file, disk_path(public_path), content)
    logger.info(f"Stored upload '{upload.filename}' as {subdir}/{file_name} ({len(content)} bytes).")
    return public_path


async def save_payment_proof(upload: UploadFile) -> str:
    validate_payment_proof(upload)
    return await save_upload(upload, PAYMENTS_SUBDIR)


async def save_revision_document(upload: UploadFile) -> str:
    validate_revision_document(upload)
    return await save_upload(upload, DOCUMENTS_SUBDIR)


def _remove_files(paths: Iterable[str]) -> None:
    for path in paths:
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Upload {path} was already gone when discarding it.")


async def discard_uploads(public_paths: Iterable[str]) -> None:
    """Deletes stored uploads whose request failed after they were written."""
    paths = [disk_path(p) for p in public_paths if p]
    if not paths:
        return
    await run_in_threadpool(_remove_files, paths)
    logger.info(f"Discarded {len(paths)} upload(s) left by a failed request.")
