"""
Router FastAPI per la gestione utenti
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Tutti gli endpoint richiedono il ruolo ADMIN.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.config import settings
from crono_rentals.core.database import get_db
from crono_rentals.core.deps import require_role
from crono_rentals.models.user import UserRole
from crono_rentals.schemas.user import PasswordReset, UserCreate, UserResponse, UserUpdate
from crono_rentals.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Utenti"],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)


@router.get("/", response_model=list[UserResponse])
async def get_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
):
    """Lista degli utenti."""
    users, _ = await user_service.get_all(db, page=page, page_size=page_size)
    return users


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    """Dettaglio utente."""
    return await user_service.get_by_id(db, user_id)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Crea un nuovo utente."""
    user = await user_service.create(db, data)
    await db.commit()
    return user


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(user_id: int, data: UserUpdate, db: AsyncSession = Depends(get_db)):
    """Aggiorna un utente."""
    user = await user_service.update(db, user_id, data)
    await db.commit()
    return user


@router.delete("/{user_id}", response_model=UserResponse)
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    """Disattiva un utente (soft delete)."""
    user = await user_service.delete(db, user_id)
    await db.commit()
    return user


@router.patch("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
async def reset_user_password(
    user_id: int,
    data: PasswordReset,
    db: AsyncSession = Depends(get_db),
):
    """Reimposta la password di un utente."""
    await user_service.reset_password(db, user_id, data.new_password)
    await db.commit()
