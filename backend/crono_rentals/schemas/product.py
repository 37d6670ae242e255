"""
Schemas Pydantic per l'entità Product
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from crono_rentals.models.product import ProductType
from crono_rentals.schemas.common import PaginationMeta


class ProductCreate(BaseModel):
    """
    Schema per la creazione di un prodotto.

    total_quantity iniziale finisce interamente in available_quantity.
    """

    name: str = Field(..., min_length=1, max_length=150)
    type: ProductType
    description: Optional[str] = None
    notes: Optional[str] = None
    total_quantity: Optional[int] = Field(None, ge=0)


class ProductUpdate(BaseModel):
    """
    Aggiornamento parziale.

    I contatori available/rented/in_repair non sono modificabili qui:
    si usano le operazioni di magazzino.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    type: Optional[ProductType] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    total_quantity: Optional[int] = Field(None, ge=0)


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: ProductType
    description: Optional[str] = None
    notes: Optional[str] = None
    total_quantity: int
    available_quantity: int
    rented_quantity: int
    in_repair_quantity: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProductList(BaseModel):
    """Lista paginata di prodotti."""

    data: list[ProductRead] = Field(default_factory=list)
    meta: PaginationMeta
