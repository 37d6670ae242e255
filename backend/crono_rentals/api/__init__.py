"""
API Routes
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Modulo per l'aggregazione dei router versionati.
"""

from crono_rentals.api.v1 import api_v1_router

# Esportazione router
__all__ = ["api_v1_router"]
