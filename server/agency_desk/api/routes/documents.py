from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.auth import get_current_user
from agency_desk.api.dependencies.database import get_db
from agency_desk.core.config import get_settings
from agency_desk.models.document import AIProcessingStatus, DocumentType
from agency_desk.models.user import User
from agency_desk.schemas.document import DocumentCollection, DocumentCreate, DocumentRead, DocumentUpdate
from agency_desk.services.activity_service import record_activity
from agency_desk.services.document_service import (
    DocumentFilters,
    DocumentReferenceError,
    DocumentUploadError,
    UploadedFile,
    create_document,
    delete_document,
    get_document,
    list_documents,
    update_document,
    upload_document,
)


router = APIRouter(prefix="/documents", tags=["documents"])


Page = Annotated[int, Query(ge=1)]
PageSize = Annotated[int, Query(ge=1, le=100)]


async def _load(session: AsyncSession, user: User, document_id: str):
    document = await get_document(session, user.agency_id, document_id)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return document


@router.get("", response_model=DocumentCollection)
async def list_documents_endpoint(
    page: Page = 1,
    page_size: PageSize = 20,
    search: str | None = Query(default=None, min_length=1),
    type: DocumentType | None = None,
    ai_status: AIProcessingStatus | None = None,
    client_id: str | None = None,
    policy_id: str | None = None,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DocumentCollection:
    filters = DocumentFilters(
        search=search,
        type=type,
        ai_status=ai_status,
        client_id=client_id,
        policy_id=policy_id,
    )
    items, total = await list_documents(session, current_user.agency_id, filters=filters, page=page, page_size=page_size)
    return DocumentCollection(
        items=[DocumentRead.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=DocumentRead, status_code=status.HTTP_201_CREATED)
async def create_document_endpoint(
    payload: DocumentCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DocumentRead:
    try:
        document = await create_document(session, current_user, payload)
    except DocumentReferenceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    await record_activity(
        session,
        current_user,
        action="document.created",
        entity_type="document",
        entity_id=document.id,
        details={"name": document.name},
    )
    await session.commit()
    return DocumentRead.model_validate(await _load(session, current_user, document.id))


@router.post("/upload", response_model=DocumentRead, status_code=status.HTTP_201_CREATED)
async def upload_document_endpoint(
    file: UploadFile = File(...),
    document_type: str | None = Form(default=None, alias="type"),
    client_id: str | None = Form(default=None),
    policy_id: str | None = Form(default=None),
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DocumentRead:
    # One byte past the cap is enough to reject the file.
    upload = UploadedFile(
        filename=file.filename or "upload",
        content_type=file.content_type,
        content=await file.read(get_settings().max_upload_bytes + 1),
    )
    try:
        document = await upload_document(
            session,
            current_user,
            upload,
            document_type=document_type,
            client_id=client_id or None,
            policy_id=policy_id or None,
        )
    except (DocumentUploadError, DocumentReferenceError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    await record_activity(
        session,
        current_user,
        action="document.uploaded",
        entity_type="document",
        entity_id=document.id,
        details={"name": document.name, "size": document.file_size},
    )
    await session.commit()
    return DocumentRead.model_validate(await _load(session, current_user, document.id))


@router.get("/{document_id}", response_model=DocumentRead)
async def get_document_endpoint(
    document_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DocumentRead:
    return DocumentRead.model_validate(await _load(session, current_user, document_id))


@router.patch("/{document_id}", response_model=DocumentRead)
async def update_document_endpoint(
    document_id: str,
    payload: DocumentUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DocumentRead:
    document = await _load(session, current_user, document_id)
    try:
        await update_document(session, document, payload)
    except DocumentReferenceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    await session.commit()
    return DocumentRead.model_validate(await _load(session, current_user, document_id))


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document_endpoint(
    document_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    document = await _load(session, current_user, document_id)
    name = document.name
    await delete_document(session, document)
    await record_activity(
        session,
        current_user,
        action="document.deleted",
        entity_type="document",
        entity_id=document_id,
        details={"name": name},
    )
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
