from datetime import timedelta

from pydantic import BaseModel, EmailStr, Field


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = Field(default="bearer")
    expires_in: int


class RegistrationRequest(BaseModel):
    agency_name: str = Field(min_length=1, max_length=255)
    full_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


def get_token_expiry_seconds(minutes: int) -> int:
    return int(timedelta(minutes=minutes).total_seconds())
