from datetime import datetime
from pathlib import PureWindowsPath
from typing import Any, List

from pydantic import Field, field_validator

from agency_desk.models.document import AIProcessingStatus, DocumentType
from agency_desk.schemas.client import ClientSummary
from agency_desk.schemas.common import ORMModel, PageMeta, Timestamped


class PolicyReference(ORMModel):
    id: str
    policy_number: str


class DocumentCreate(ORMModel):
    name: str = Field(min_length=1, max_length=255)
    type: DocumentType = DocumentType.OTHER
    file_path: str = Field(min_length=1, max_length=500)
    file_size: int | None = Field(default=None, ge=0)
    mime_type: str | None = Field(default=None, max_length=120)
    client_id: str | None = None
    policy_id: str | None = None

    @field_validator("file_path")
    @classmethod
    def file_path_is_relative(cls, value: str) -> str:
        path = PureWindowsPath(value)
        if path.drive or path.root:
            raise ValueError("file_path must be relative to the upload directory")
        if ".." in path.parts:
            raise ValueError("file_path must not contain '..' segments")
        return value


class DocumentUpdate(ORMModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: DocumentType | None = None
    client_id: str | None = None
    policy_id: str | None = None
    ai_extracted_data: dict[str, Any] | None = None
    ai_processing_status: AIProcessingStatus | None = None


class DocumentRead(Timestamped):
    id: str
    name: str
    type: DocumentType
    file_path: str
    file_size: int | None = None
    mime_type: str | None = None
    client_id: str | None = None
    policy_id: str | None = None
    ai_extracted_data: dict[str, Any] | None = None
    ai_processing_status: AIProcessingStatus | None = None
    ai_processed_at: datetime | None = None
    client: ClientSummary | None = None
    policy: PolicyReference | None = None


class DocumentCollection(PageMeta):
    items: List[DocumentRead]
