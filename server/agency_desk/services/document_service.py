"""
Document metadata and on-disk storage.

Uploaded files land in ``<upload_dir>/<agency_id>/<uuid>-<name>``; the row
keeps the relative path so the upload root can move between deployments.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import aiofiles
import aiofiles.os
from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from agency_desk.core.config import get_settings
from agency_desk.core.logging import get_logger
from agency_desk.models.document import AIProcessingStatus, Document, DocumentType
from agency_desk.models.user import User
from agency_desk.schemas.document import DocumentCreate, DocumentUpdate
from agency_desk.services.client_service import get_client
from agency_desk.services.policy_service import get_policy

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class DocumentUploadError(ValueError):
    """The uploaded file was rejected before anything was stored."""


class DocumentReferenceError(LookupError):
    pass


@dataclass(slots=True)
class DocumentFilters:
    search: str | None = None
    type: DocumentType | None = None
    ai_status: AIProcessingStatus | None = None
    client_id: str | None = None
    policy_id: str | None = None


@dataclass(slots=True)
class UploadedFile:
    filename: str
    content_type: str | None
    content: bytes


def _with_relations(query):
    return query.options(joinedload(Document.client), joinedload(Document.policy))


def safe_filename(filename: str) -> str:
    name = _UNSAFE_CHARS.sub("_", Path(filename).name).strip("._")
    return name or "upload"


def resolve_document_path(file_path: str) -> Path:
    return get_settings().upload_dir / file_path


def owned_upload_path(document: Document) -> Path | None:
    """
    Path of the stored file when it sits inside the document agency's upload
    directory, otherwise ``None``.
    """
    agency_root = (get_settings().upload_dir / document.agency_id).resolve()
    stored = resolve_document_path(document.file_path).resolve()
    if stored == agency_root or not stored.is_relative_to(agency_root):
        return None
    return stored


async def list_documents(
    session: AsyncSession,
    agency_id: str,
    *,
    filters: DocumentFilters,
    page: int,
    page_size: int,
) -> tuple[Sequence[Document], int]:
    conditions = [Document.agency_id == agency_id]
    if filters.search:
        conditions.append(func.lower(Document.name).like(f"%{filters.search.lower()}%"))
    if filters.type:
        conditions.append(Document.type == filters.type)
    if filters.ai_status:
        conditions.append(Document.ai_processing_status == filters.ai_status)
    if filters.client_id:
        conditions.append(Document.client_id == filters.client_id)
    if filters.policy_id:
        conditions.append(Document.policy_id == filters.policy_id)

    total = await session.scalar(select(func.count()).select_from(Document).where(and_(*conditions)))
    result = await session.execute(
        _with_relations(select(Document))
        .where(and_(*conditions))
        .order_by(Document.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return result.scalars().unique().all(), int(total or 0)


async def get_document(session: AsyncSession, agency_id: str, document_id: str) -> Document | None:
    result = await session.execute(
        _with_relations(select(Document))
        .where(Document.id == document_id, Document.agency_id == agency_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def _check_references(
    session: AsyncSession, agency_id: str, client_id: str | None, policy_id: str | None
) -> None:
    if client_id is not None and await get_client(session, agency_id, client_id) is None:
        raise DocumentReferenceError("Client not found")
    if policy_id is not None and await get_policy(session, agency_id, policy_id) is None:
        raise DocumentReferenceError("Policy not found")


async def create_document(session: AsyncSession, user: User, data: DocumentCreate) -> Document:
    await _check_references(session, user.agency_id, data.client_id, data.policy_id)
    document = Document(
        agency_id=user.agency_id,
        created_by=user.id,
        ai_processing_status=AIProcessingStatus.PENDING,
        **data.model_dump(),
    )
    session.add(document)
    await session.flush()
    return document


def validate_upload(upload: UploadedFile) -> None:
    settings = get_settings()
    if upload.content_type not in settings.allowed_upload_types:
        raise DocumentUploadError("Invalid file type. Only PDF, JPEG, and PNG are allowed.")
    if len(upload.content) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise DocumentUploadError(f"File too large. Maximum size is {limit_mb}MB.")
    if not upload.content:
        raise DocumentUploadError("Uploaded file is empty")


async def upload_document(
    session: AsyncSession,
    user: User,
    upload: UploadedFile,
    *,
    document_type: str | None = None,
    client_id: str | None = None,
    policy_id: str | None = None,
) -> Document:
    validate_upload(upload)
    await _check_references(session, user.agency_id, client_id, policy_id)
    try:
        resolved_type = DocumentType(document_type) if document_type else DocumentType.OTHER
    except ValueError:
        resolved_type = DocumentType.OTHER

    relative_path = Path(user.agency_id) / f"{uuid.uuid4()}-{safe_filename(upload.filename)}"
    target = resolve_document_path(str(relative_path))
    await aiofiles.os.makedirs(target.parent, exist_ok=True)
    async with aiofiles.open(target, "wb") as handle:
        await handle.write(upload.content)

    document = Document(
        agency_id=user.agency_id,
        created_by=user.id,
        name=upload.filename,
        type=resolved_type,
        file_path=relative_path.as_posix(),
        file_size=len(upload.content),
        mime_type=upload.content_type,
        client_id=client_id,
        policy_id=policy_id,
        ai_processing_status=AIProcessingStatus.PENDING,
    )
    session.add(document)
    try:
        await session.flush()
    except SQLAlchemyError:
        await _remove_file(target)
        logger.error("document.upload.insert_failed", agency_id=user.agency_id, path=relative_path.as_posix())
        raise
    logger.info("document.uploaded", agency_id=user.agency_id, document_id=document.id, size=len(upload.content))
    return document


async def update_document(session: AsyncSession, document: Document, data: DocumentUpdate) -> Document:
    payload = data.model_dump(exclude_unset=True)
    await _check_references(session, document.agency_id, payload.get("client_id"), payload.get("policy_id"))
    for field, value in payload.items():
        setattr(document, field, value)
    await session.flush()
    return document


async def _remove_file(path: Path) -> None:
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        pass


async def delete_document(session: AsyncSession, document: Document) -> None:
    """Delete the row; the stored file is removed only if it was uploaded for this agency."""
    stored = owned_upload_path(document)
    await session.delete(document)
    await session.flush()
    if stored is None:
        logger.info("document.file_kept", document_id=document.id, path=document.file_path)
        return
    try:
        await _remove_file(stored)
    except OSError as exc:
        logger.warning("document.file_cleanup_failed", document_id=document.id, error=str(exc))
