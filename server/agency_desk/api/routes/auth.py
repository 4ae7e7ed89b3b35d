from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.database import get_db
from agency_desk.core.config import get_settings
from agency_desk.core.security import create_access_token
from agency_desk.schemas.auth import RegistrationRequest, TokenResponse, get_token_expiry_seconds
from agency_desk.schemas.user import UserRead
from agency_desk.services.user_service import UserManagementError, authenticate_user, register_agency


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token", response_model=TokenResponse)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    user = await authenticate_user(session, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect credentials")
    settings = get_settings()
    return TokenResponse(
        access_token=create_access_token(user.id),
        expires_in=get_token_expiry_seconds(settings.access_token_expire_minutes),
    )


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(payload: RegistrationRequest, session: AsyncSession = Depends(get_db)) -> UserRead:
    try:
        user = await register_agency(session, payload)
    except UserManagementError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    await session.commit()
    await session.refresh(user)
    return UserRead.model_validate(user)
