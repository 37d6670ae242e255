"""
Schemas Pydantic condivisi
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""

import math
from enum import Enum

from pydantic import BaseModel, Field


class ActiveFilter(str, Enum):
    """Filtro sul flag is_active nelle liste."""
    TRUE = "true"
    FALSE = "false"
    ALL = "all"


class PaginationMeta(BaseModel):
    """Metadati di paginazione restituiti insieme a ogni lista."""

    total: int = Field(..., ge=0, description="Numero totale di record")
    page: int = Field(..., ge=1, description="Pagina corrente")
    page_size: int = Field(..., ge=1, description="Record per pagina")
    total_pages: int = Field(..., ge=0, description="Numero totale di pagine")

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> "PaginationMeta":
        return cls(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if page_size else 0,
        )


class QuantityRequest(BaseModel):
    """Quantità da movimentare (add-stock, retire, ...)."""

    quantity: int = Field(..., description="Quantità da movimentare (> 0)")


__all__ = [
    "ActiveFilter",
    "PaginationMeta",
    "QuantityRequest",
]
