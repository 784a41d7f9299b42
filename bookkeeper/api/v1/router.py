"""
Router principal API v1 pour Bookkeeper
Combine tous les endpoints v1

Endpoints disponibles:
- /ledger: Plan comptable, ecritures, soldes, etats financiers
"""
from fastapi import APIRouter

from bookkeeper.api.v1.endpoints import ledger


# Router principal v1
api_router = APIRouter()

api_router.include_router(ledger.router)
