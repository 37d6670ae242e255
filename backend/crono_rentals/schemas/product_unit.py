"""
Schemas Pydantic per l'entità ProductUnit
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crono_rentals.models.product import ProductType
from crono_rentals.models.product_unit import ProductUnitStatus
from crono_rentals.schemas.common import PaginationMeta


class ProductUnitCreate(BaseModel):
    type: ProductType
    serial_number: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = None

    @field_validator("serial_number")
    @classmethod
    def strip_serial(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il numero di serie non può essere vuoto")
        return v


class ProductUnitUpdate(BaseModel):
    type: Optional[ProductType] = None
    serial_number: Optional[str] = Field(None, min_length=1, max_length=100)
    notes: Optional[str] = None


class ProductUnitStatusUpdate(BaseModel):
    status: ProductUnitStatus


class ProductUnitRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: ProductType
    serial_number: str
    status: ProductUnitStatus
    notes: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProductUnitList(BaseModel):
    """Lista paginata di unità."""

    data: list[ProductUnitRead] = Field(default_factory=list)
    meta: PaginationMeta
