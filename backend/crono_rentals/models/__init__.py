"""
Modelli Database SQLAlchemy
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Import centralizzato di tutti i modelli per create_all e usage generico.

Modelli:
- User: Utenti del sistema
- Client: Anagrafica clienti
- Device: Dispositivi di cronometraggio (lettori, CLB)
- Product: Prodotti a quantità (antenne, cavi)
- ProductUnit: Unità serializzate (cronometri, telefoni)
- ChipType: Tipi di chip con tabella di sequenza
- Rental: Noleggio con dispositivi, prodotti, unità e range di chip
"""

# SQLAlchemy 2.0 Base declarativa
# Importato qui per essere disponibile per tutti i modelli
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from crono_rentals.models.user import User, UserRole
from crono_rentals.models.client import Client
from crono_rentals.models.device import (
    Device,
    DeviceModel,
    FrequencyRegion,
    ManufactoringStatus,
    OperationalStatus,
)
from crono_rentals.models.product import Product, ProductType
from crono_rentals.models.product_unit import ProductUnit, ProductUnitStatus
from crono_rentals.models.chip_type import ChipType
from crono_rentals.models.rental import (
    Rental,
    RentalChipRange,
    RentalDevice,
    RentalProduct,
    RentalProductUnit,
    RentalStatus,
)

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Client",
    "Device",
    "DeviceModel",
    "FrequencyRegion",
    "ManufactoringStatus",
    "OperationalStatus",
    "Product",
    "ProductType",
    "ProductUnit",
    "ProductUnitStatus",
    "ChipType",
    "Rental",
    "RentalChipRange",
    "RentalDevice",
    "RentalProduct",
    "RentalProductUnit",
    "RentalStatus",
]
