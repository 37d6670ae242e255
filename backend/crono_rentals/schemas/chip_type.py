"""
Schemas Pydantic per l'entità ChipType
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChipSequenceEntry(BaseModel):
    """Un record della tabella di sequenza: numero chip -> codice."""

    chip: int
    code: str


class ChipTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Nome tecnico univoco")
    display_name: str = Field(..., min_length=1, max_length=150)
    total_stock: int = Field(..., ge=0)


class ChipTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, min_length=1, max_length=150)
    total_stock: Optional[int] = Field(None, ge=0)


class ChipTypeRead(BaseModel):
    """Schema di risposta senza la tabella di sequenza (può essere grande)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    display_name: str
    total_stock: int
    created_at: datetime
    updated_at: datetime


class ChipTypeDetail(ChipTypeRead):
    """Dettaglio con la tabella di sequenza."""

    sequence_data: Optional[list[ChipSequenceEntry]] = None
