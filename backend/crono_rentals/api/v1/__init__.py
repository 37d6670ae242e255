"""
API v1 Routes
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from crono_rentals.api.v1 import (
    auth, chip_types, clients, devices, product_units, products, rentals, users
)

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(auth.router)
api_v1_router.include_router(users.router)
api_v1_router.include_router(clients.router)
api_v1_router.include_router(devices.router)
api_v1_router.include_router(products.router)
api_v1_router.include_router(product_units.router)
api_v1_router.include_router(chip_types.router)
api_v1_router.include_router(rentals.router)

# Esportazione
__all__ = ["api_v1_router"]
