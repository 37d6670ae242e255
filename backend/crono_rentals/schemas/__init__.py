"""
Schemas Pydantic per il progetto Crono Rentals

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle richieste e risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from crono_rentals.schemas import RentalRead, ClientRead, etc.

from crono_rentals.schemas.common import ActiveFilter, PaginationMeta, QuantityRequest
from crono_rentals.schemas.user import (
    PasswordChange,
    PasswordReset,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)
from crono_rentals.schemas.token import LoginResponse, TokenPayload
from crono_rentals.schemas.client import ClientCreate, ClientList, ClientRead, ClientUpdate
from crono_rentals.schemas.device import (
    DeviceCreate,
    DeviceList,
    DeviceRead,
    DeviceUpdate,
    ManufactoringStatusUpdate,
    OperationalStatusUpdate,
    OwnerAssign,
)
from crono_rentals.schemas.product import ProductCreate, ProductList, ProductRead, ProductUpdate
from crono_rentals.schemas.product_unit import (
    ProductUnitCreate,
    ProductUnitList,
    ProductUnitRead,
    ProductUnitStatusUpdate,
    ProductUnitUpdate,
)
from crono_rentals.schemas.chip_type import (
    ChipSequenceEntry,
    ChipTypeCreate,
    ChipTypeDetail,
    ChipTypeRead,
    ChipTypeUpdate,
)
from crono_rentals.schemas.rental import (
    ChipRangeCreate,
    ChipSequenceRange,
    RentalCreate,
    RentalList,
    RentalProductLine,
    RentalRead,
    RentalUpdate,
)
