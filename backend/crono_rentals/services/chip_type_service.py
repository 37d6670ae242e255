"""
Service Layer per l'entità ChipType
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Gestione dei tipi di chip e della relativa tabella di sequenza,
caricata da file CSV con colonne Chip e Code.

Formato CSV accettato:
- codifica UTF-8, BOM iniziale ignorato
- separatore ";" se presente nella prima riga, altrimenti ","
- righe vuote ignorate, spazi attorno ai valori rimossi
- intestazione con colonne "chip" e "code" (maiuscole/minuscole indifferenti)
"""

import csv
import io
import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    DuplicateError,
    NotFoundError,
)
from crono_rentals.models.chip_type import ChipType
from crono_rentals.models.rental import RentalChipRange
from crono_rentals.schemas.chip_type import ChipTypeCreate, ChipTypeUpdate

logger = logging.getLogger(__name__)

SequenceItem = dict[str, Any]


def filter_sequence(
    sequence: Optional[list[SequenceItem]],
    start: int,
    end: int,
) -> list[SequenceItem]:
    """
    Filtra la sequenza ai chip con start <= chip <= end.

    Scansione lineare nell'ordine memorizzato: la sequenza non è
    garantita ordinata né contigua. Una sequenza assente vale come vuota.
    """
    return [item for item in (sequence or []) if start <= item["chip"] <= end]


def parse_sequence_csv(content: bytes) -> list[SequenceItem]:
    """
    Converte il contenuto di un file CSV in una lista di {chip, code}.

    Raises:
        BusinessValidationError: CSV_EMPTY, CSV_INVALID_COLUMNS,
            CSV_INVALID_CHIP_VALUE_AT_ROW_<n>, CSV_PARSE_ERROR
    """
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise BusinessValidationError("File CSV non leggibile", error_code="CSV_PARSE_ERROR") from e

    if text.startswith("\ufeff"):
        text = text[1:]

    first_line = text.split("\n", 1)[0]
    delimiter = ";" if ";" in first_line else ","

    try:
        reader = csv.reader(io.StringIO(text), delimiter=delimiter, strict=True)
        rows = [
            [cell.strip() for cell in row]
            for row in reader
            if any(cell.strip() for cell in row)
        ]
    except csv.Error as e:
        raise BusinessValidationError("File CSV non valido", error_code="CSV_PARSE_ERROR") from e

    # Intestazione senza righe di dati equivale a file vuoto
    if len(rows) < 2:
        raise BusinessValidationError("Il file CSV non contiene dati", error_code="CSV_EMPTY")

    header = [column.lower() for column in rows[0]]
    if "chip" not in header or "code" not in header:
        raise BusinessValidationError(
            "Il file CSV deve avere le colonne Chip e Code",
            error_code="CSV_INVALID_COLUMNS",
        )
    chip_index = header.index("chip")
    code_index = header.index("code")

    sequence: list[SequenceItem] = []
    for index, row in enumerate(rows[1:]):
        # Riga 1 = intestazione
        row_number = index + 2
        if len(row) != len(header):
            raise BusinessValidationError(
                f"Numero di colonne errato alla riga {row_number}",
                error_code="CSV_PARSE_ERROR",
            )
        try:
            chip = int(row[chip_index])
        except ValueError:
            raise BusinessValidationError(
                f"Valore chip non valido alla riga {row_number}",
                error_code=f"CSV_INVALID_CHIP_VALUE_AT_ROW_{row_number}",
            )
        sequence.append({"chip": chip, "code": row[code_index]})

    return sequence


class ChipTypeService:
    """Service per i tipi di chip e le tabelle di sequenza."""

    async def get_all(self, db: AsyncSession) -> list[ChipType]:
        result = await db.execute(select(ChipType).order_by(ChipType.name.asc()))
        return list(result.scalars().all())

    async def get_by_id(self, db: AsyncSession, chip_type_id: int) -> ChipType:
        """
        Raises:
            NotFoundError: CHIP_TYPE_NOT_FOUND
        """
        result = await db.execute(select(ChipType).where(ChipType.id == chip_type_id))
        chip_type = result.scalar_one_or_none()
        if chip_type is None:
            logger.warning("Tipo di chip non trovato: %s", chip_type_id)
            raise NotFoundError(
                f"Tipo di chip {chip_type_id} non trovato",
                error_code="CHIP_TYPE_NOT_FOUND",
            )
        return chip_type

    async def _check_name_available(
        self,
        db: AsyncSession,
        name: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        query = select(ChipType.id).where(ChipType.name == name)
        if exclude_id is not None:
            query = query.where(ChipType.id != exclude_id)
        result = await db.execute(query)
        if result.scalar_one_or_none() is not None:
            logger.warning("Nome tipo di chip già esistente: %s", name)
            raise DuplicateError(
                f"Tipo di chip '{name}' già esistente",
                error_code="CHIP_TYPE_NAME_ALREADY_EXISTS",
            )

    async def _flush_unique(self, db: AsyncSession, chip_type: ChipType) -> ChipType:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.error("Errore IntegrityError tipo di chip: %s", e.orig)
            await db.rollback()
            raise DuplicateError(
                "Tipo di chip già esistente",
                error_code="CHIP_TYPE_NAME_ALREADY_EXISTS",
            ) from e
        await db.refresh(chip_type)
        return chip_type

    async def create(self, db: AsyncSession, data: ChipTypeCreate) -> ChipType:
        await self._check_name_available(db, data.name)

        chip_type = ChipType(**data.model_dump(), sequence_data=None)
        db.add(chip_type)
        chip_type = await self._flush_unique(db, chip_type)

        logger.info("Creato tipo di chip %s (%s)", chip_type.id, chip_type.name)
        return chip_type

    async def update(self, db: AsyncSession, chip_type_id: int, data: ChipTypeUpdate) -> ChipType:
        chip_type = await self.get_by_id(db, chip_type_id)
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        new_name = update_data.get("name")
        if new_name is not None and new_name != chip_type.name:
            await self._check_name_available(db, new_name, exclude_id=chip_type_id)

        for field, value in update_data.items():
            setattr(chip_type, field, value)

        chip_type = await self._flush_unique(db, chip_type)
        logger.info("Aggiornato tipo di chip %s", chip_type.id)
        return chip_type

    async def delete(self, db: AsyncSession, chip_type_id: int) -> None:
        """
        Eliminazione fisica.

        Raises:
            NotFoundError: CHIP_TYPE_NOT_FOUND
            ConflictError: CHIP_TYPE_IN_USE se referenziato da un noleggio
        """
        chip_type = await self.get_by_id(db, chip_type_id)

        usage = await db.execute(
            select(func.count(RentalChipRange.id)).where(
                RentalChipRange.chip_type_id == chip_type_id
            )
        )
        if (usage.scalar() or 0) > 0:
            logger.warning("Tipo di chip %s usato da noleggi, eliminazione rifiutata", chip_type_id)
            raise ConflictError(
                "Il tipo di chip è usato da uno o più noleggi",
                error_code="CHIP_TYPE_IN_USE",
            )

        await db.delete(chip_type)
        await db.flush()
        logger.info("Eliminato tipo di chip %s (%s)", chip_type_id, chip_type.name)

    async def upload_sequence(
        self,
        db: AsyncSession,
        chip_type_id: int,
        content: bytes,
    ) -> ChipType:
        """
        Sostituisce la tabella di sequenza con il contenuto del CSV.

        Raises:
            NotFoundError: CHIP_TYPE_NOT_FOUND
            BusinessValidationError: errori CSV_*
        """
        chip_type = await self.get_by_id(db, chip_type_id)

        try:
            sequence = parse_sequence_csv(content)
        except BusinessValidationError as e:
            logger.warning("CSV sequenza rifiutato per il tipo %s: %s", chip_type_id, e.error_code)
            raise

        chip_type.sequence_data = sequence
        await db.flush()
        await db.refresh(chip_type)

        logger.info("Caricata sequenza per il tipo %s: %s chip", chip_type.id, len(sequence))
        return chip_type

    async def get_sequence(
        self,
        db: AsyncSession,
        chip_type_id: int,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> list[SequenceItem]:
        """Sequenza completa, o filtrata se sono indicati entrambi gli estremi."""
        chip_type = await self.get_by_id(db, chip_type_id)
        if start is not None and end is not None:
            return filter_sequence(chip_type.sequence_data, start, end)
        return list(chip_type.sequence_data or [])


chip_type_service = ChipTypeService()
