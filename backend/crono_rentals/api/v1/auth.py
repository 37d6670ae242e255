"""
Router per l'autenticazione
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Endpoints per login, profilo e cambio password.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.database import get_db
from crono_rentals.core.deps import CurrentUser
from crono_rentals.schemas.token import LoginResponse
from crono_rentals.schemas.user import PasswordChange, UserLogin, UserResponse
from crono_rentals.services.auth_service import auth_service

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Login utente",
)
async def login(
    data: UserLogin,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Autentica l'utente con email e password.

    Returns:
        LoginResponse: dati utente e access token

    Raises:
        AuthenticationError 401: INVALID_CREDENTIALS, USER_INACTIVE
    """
    return await auth_service.login(db, data)


@router.get(
    "/profile",
    response_model=UserResponse,
    summary="Profilo dell'utente corrente",
)
async def get_profile(current_user: CurrentUser) -> UserResponse:
    """Restituisce i dati dell'utente autenticato."""
    return UserResponse.model_validate(current_user)


@router.patch(
    "/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cambio password",
)
async def change_password(
    data: PasswordChange,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Cambia la password dell'utente autenticato (richiede quella attuale)."""
    await auth_service.change_password(
        db,
        current_user,
        data.current_password,
        data.new_password,
    )
    await db.commit()
