from typing import List

from pydantic import BaseModel

from agency_desk.schemas.common import ORMModel


class CarrierRead(ORMModel):
    id: str
    name: str
    ivans_code: str | None = None
    supported_lines: List[str] = []
    website: str | None = None
    phone: str | None = None
    is_active: bool


class CarrierCollection(BaseModel):
    carriers: List[CarrierRead]
