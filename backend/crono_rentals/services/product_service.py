"""
Service Layer per l'entità Product
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Definisce la logica di business per i prodotti a quantità e il registro
dei movimenti di magazzino tra i quattro contatori:
- total_quantity: quantità posseduta
- available_quantity: disponibile a magazzino
- rented_quantity: fuori a noleggio
- in_repair_quantity: in riparazione

Ogni movimento è un singolo UPDATE condizionale
(UPDATE ... WHERE bucket >= qty): il controllo e la scrittura sono
atomici anche con richieste concorrenti, e se il chiamante ha aperto
una transazione (vedi core.database.atomic) il movimento ne fa parte.
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.exceptions import BusinessValidationError, ConflictError, NotFoundError
from crono_rentals.models.mixins import utcnow
from crono_rentals.models.product import Product, ProductType
from crono_rentals.schemas.common import ActiveFilter
from crono_rentals.schemas.product import ProductCreate, ProductUpdate

# Logger per questo modulo
logger = logging.getLogger(__name__)


class ProductService:
    """
    Service per prodotti a quantità e movimenti di magazzino.

    Invariante mantenuta da tutte le operazioni:
        available + rented + in_repair == total, tutti >= 0
    """

    # ------------------------------------------------------------
    # Letture
    # ------------------------------------------------------------
    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 10,
        type: Optional[ProductType] = None,
        active: ActiveFilter = ActiveFilter.TRUE,
    ) -> tuple[list[Product], int]:
        """
        Recupera la lista paginata dei prodotti.

        Returns:
            Tuple di (lista prodotti, totale count)
        """
        conditions = []
        if type is not None:
            conditions.append(Product.type == type.value)
        if active != ActiveFilter.ALL:
            conditions.append(Product.is_active == (active == ActiveFilter.TRUE))

        query = (
            select(Product)
            .where(*conditions)
            .order_by(Product.name.asc(), Product.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await db.execute(query)
        products = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count()).select_from(Product).where(*conditions)
        )
        total = count_result.scalar() or 0

        logger.debug("Recuperati %s prodotti su %s totali (pagina %s)", len(products), total, page)
        return products, total

    async def get_by_id(self, db: AsyncSession, product_id: int) -> Product:
        """
        Recupera un prodotto tramite ID (anche se disattivato).

        Raises:
            NotFoundError: PRODUCT_NOT_FOUND
        """
        result = await db.execute(select(Product).where(Product.id == product_id))
        product = result.scalar_one_or_none()

        if product is None:
            logger.warning("Prodotto non trovato: %s", product_id)
            raise NotFoundError(f"Prodotto {product_id} non trovato", error_code="PRODUCT_NOT_FOUND")

        return product

    async def _reload(self, db: AsyncSession, product_id: int) -> Product:
        """Rilegge la riga dopo un UPDATE core, sovrascrivendo l'identity map."""
        result = await db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    # ------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------
    async def create(self, db: AsyncSession, data: ProductCreate) -> Product:
        """
        Crea un prodotto. La quantità iniziale è tutta disponibile.
        """
        initial = data.total_quantity or 0
        product = Product(
            name=data.name,
            type=data.type.value,
            description=data.description,
            notes=data.notes,
            total_quantity=initial,
            available_quantity=initial,
            rented_quantity=0,
            in_repair_quantity=0,
        )
        db.add(product)
        await db.flush()
        await db.refresh(product)

        logger.info("Creato prodotto %s (%s) con quantità %s", product.id, product.name, initial)
        return product

    async def update(self, db: AsyncSession, product_id: int, data: ProductUpdate) -> Product:
        """
        Aggiorna un prodotto.

        Il controllo sulla quantità scatta solo se total_quantity è nel
        payload: il nuovo totale non può scendere sotto
        available + rented + in_repair (TOTAL_QUANTITY_BELOW_USED).
        Un aumento del totale confluisce in available_quantity.

        Raises:
            NotFoundError: PRODUCT_NOT_FOUND
            BusinessValidationError: TOTAL_QUANTITY_BELOW_USED
        """
        product = await self.get_by_id(db, product_id)
        update_data = data.model_dump(exclude_unset=True)

        new_total = update_data.pop("total_quantity", None)
        if "type" in update_data and update_data["type"] is not None:
            update_data["type"] = ProductType(update_data["type"]).value

        for field, value in update_data.items():
            setattr(product, field, value)
        await db.flush()

        if new_total is not None and new_total != product.total_quantity:
            used = (
                Product.available_quantity
                + Product.rented_quantity
                + Product.in_repair_quantity
            )
            stmt = (
                update(Product)
                .where(Product.id == product_id, used <= new_total)
                .values(
                    available_quantity=Product.available_quantity
                    + (new_total - Product.total_quantity),
                    total_quantity=new_total,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            if result.rowcount == 0:
                logger.warning(
                    "Totale %s inferiore alla quantità in uso per il prodotto %s",
                    new_total, product_id,
                )
                raise BusinessValidationError(
                    "La quantità totale non può essere inferiore alla quantità in uso",
                    error_code="TOTAL_QUANTITY_BELOW_USED",
                )

        product = await self._reload(db, product_id)
        logger.info("Aggiornato prodotto %s", product_id)
        return product

    async def delete(self, db: AsyncSession, product_id: int) -> Product:
        """Soft delete (is_active=False)."""
        product = await self.get_by_id(db, product_id)
        product.is_active = False
        await db.flush()
        logger.info("Soft delete prodotto %s", product_id)
        return product

    async def reactivate(self, db: AsyncSession, product_id: int) -> Product:
        """Riattiva un prodotto eliminato."""
        product = await self.get_by_id(db, product_id)
        product.is_active = True
        await db.flush()
        logger.info("Riattivato prodotto %s", product_id)
        return product

    # ------------------------------------------------------------
    # Movimenti di magazzino
    # ------------------------------------------------------------
    async def _transfer(
        self,
        db: AsyncSession,
        product_id: int,
        quantity: int,
        values: dict[str, Any],
        guard: Optional[Any] = None,
        error_code: Optional[str] = None,
        error_message: str = "",
    ) -> Product:
        """
        Esegue un movimento come singolo UPDATE condizionale.

        Args:
            values: Nuovi valori dei contatori (espressioni SQL)
            guard: Condizione sul bucket di origine (es. available >= qty)
            error_code: Codice da sollevare se la condizione non è soddisfatta

        Raises:
            NotFoundError: PRODUCT_NOT_FOUND
            BusinessValidationError: QUANTITY_MUST_BE_POSITIVE o error_code
        """
        await self.get_by_id(db, product_id)

        if quantity <= 0:
            logger.warning("Quantità non positiva (%s) per il prodotto %s", quantity, product_id)
            raise BusinessValidationError(
                "La quantità deve essere positiva",
                error_code="QUANTITY_MUST_BE_POSITIVE",
            )

        conditions = [Product.id == product_id]
        if guard is not None:
            conditions.append(guard)

        stmt = (
            update(Product)
            .where(*conditions)
            .values(updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(stmt)
        except IntegrityError as e:
            # I CHECK constraint sui contatori non dovrebbero mai scattare
            logger.error("Violazione vincoli contatori prodotto %s: %s", product_id, e.orig)
            raise ConflictError(
                "Movimento di magazzino non coerente",
                error_code="PRODUCT_QUANTITY_CONFLICT",
            ) from e

        if result.rowcount == 0:
            logger.warning(
                "Movimento rifiutato per il prodotto %s (quantità %s): %s",
                product_id, quantity, error_code,
            )
            raise BusinessValidationError(error_message, error_code=error_code)

        return await self._reload(db, product_id)

    async def add_stock(self, db: AsyncSession, product_id: int, quantity: int) -> Product:
        """total += qty, available += qty."""
        product = await self._transfer(
            db,
            product_id,
            quantity,
            values={
                "total_quantity": Product.total_quantity + quantity,
                "available_quantity": Product.available_quantity + quantity,
            },
        )
        logger.info("Carico magazzino prodotto %s: +%s", product_id, quantity)
        return product

    async def retire(self, db: AsyncSession, product_id: int, quantity: int) -> Product:
        """total -= qty, available -= qty (richiede available >= qty)."""
        product = await self._transfer(
            db,
            product_id,
            quantity,
            values={
                "total_quantity": Product.total_quantity - quantity,
                "available_quantity": Product.available_quantity - quantity,
            },
            guard=Product.available_quantity >= quantity,
            error_code="NOT_ENOUGH_AVAILABLE_QUANTITY",
            error_message="Quantità disponibile insufficiente",
        )
        logger.info("Dismissione prodotto %s: -%s", product_id, quantity)
        return product

    async def send_to_repair(self, db: AsyncSession, product_id: int, quantity: int) -> Product:
        """available -> in_repair."""
        product = await self._transfer(
            db,
            product_id,
            quantity,
            values={
                "available_quantity": Product.available_quantity - quantity,
                "in_repair_quantity": Product.in_repair_quantity + quantity,
            },
            guard=Product.available_quantity >= quantity,
            error_code="NOT_ENOUGH_AVAILABLE_QUANTITY",
            error_message="Quantità disponibile insufficiente",
        )
        logger.info("Prodotto %s in riparazione: %s", product_id, quantity)
        return product

    async def mark_repaired(self, db: AsyncSession, product_id: int, quantity: int) -> Product:
        """in_repair -> available."""
        product = await self._transfer(
            db,
            product_id,
            quantity,
            values={
                "in_repair_quantity": Product.in_repair_quantity - quantity,
                "available_quantity": Product.available_quantity + quantity,
            },
            guard=Product.in_repair_quantity >= quantity,
            error_code="NOT_ENOUGH_IN_REPAIR_QUANTITY",
            error_message="Quantità in riparazione insufficiente",
        )
        logger.info("Prodotto %s riparato: %s", product_id, quantity)
        return product

    async def rent_quantity(self, db: AsyncSession, product_id: int, quantity: int) -> Product:
        """
        available -> rented. Usato solo dal servizio noleggi,
        all'interno della sua transazione.
        """
        product = await self._transfer(
            db,
            product_id,
            quantity,
            values={
                "available_quantity": Product.available_quantity - quantity,
                "rented_quantity": Product.rented_quantity + quantity,
            },
            guard=Product.available_quantity >= quantity,
            error_code="NOT_ENOUGH_AVAILABLE_QUANTITY",
            error_message="Quantità disponibile insufficiente",
        )
        logger.info("Prodotto %s a noleggio: %s", product_id, quantity)
        return product

    async def return_quantity(self, db: AsyncSession, product_id: int, quantity: int) -> Product:
        """
        rented -> available. Usato solo dal servizio noleggi,
        all'interno della sua transazione.
        """
        product = await self._transfer(
            db,
            product_id,
            quantity,
            values={
                "rented_quantity": Product.rented_quantity - quantity,
                "available_quantity": Product.available_quantity + quantity,
            },
            guard=Product.rented_quantity >= quantity,
            error_code="NOT_ENOUGH_RENTED_QUANTITY",
            error_message="Quantità a noleggio insufficiente",
        )
        logger.info("Prodotto %s rientrato da noleggio: %s", product_id, quantity)
        return product


product_service = ProductService()
