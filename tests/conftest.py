"""
Configuration globale pytest pour Bookkeeper
Fixtures partagees entre tous les tests

Environnement de test (ENV=test):
- Base SQLite en memoire (StaticPool), tables recreees a chaque test
- Le header X-User-ID identifie l'appelant: headers={"X-User-ID": "1"}
"""
import os
from typing import Dict, Generator

import pytest

# Configuration environnement de test (avant tout import bookkeeper)
os.environ["ENV"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["DATABASE_URL"] = "sqlite://"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from bookkeeper.core.database import Base, SessionLocal, engine  # noqa: E402
from bookkeeper.core.dependencies import get_db  # noqa: E402
from bookkeeper.main import app  # noqa: E402


# ============================================
# Base de Donnees Test
# ============================================

@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Session de DB pour les tests.
    Le schema est cree avant et supprime apres chaque test.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


# ============================================
# Client API Test
# ============================================

@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    TestClient FastAPI avec override de get_db.
    Les requetes partagent la session du test.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================
# Helpers
# ============================================

def user_headers(user_id: int) -> Dict[str, str]:
    """Headers d'identification de l'appelant"""
    return {"X-User-ID": str(user_id)}


@pytest.fixture
def owner_headers() -> Dict[str, str]:
    """Proprietaire du livre 1"""
    return user_headers(1)


# ============================================
# Markers pytest
# ============================================

def pytest_configure(config):
    """Configuration des markers personnalises"""
    config.addinivalue_line(
        "markers", "unit: Tests unitaires (pas de DB)"
    )
    config.addinivalue_line(
        "markers", "integration: Tests integration (avec DB)"
    )
    config.addinivalue_line(
        "markers", "e2e: Tests end-to-end (API complete)"
    )


# ============================================
# Fixtures Grand Livre
# ============================================

@pytest.fixture
def chart(db_session: Session) -> Dict[str, object]:
    """
    Plan comptable minimal du tenant 1.

    Cles: cash (1111, banque), receivable, equipment, depreciation (1590,
    actif de contrepartie), payable, capital, sales, cost, rent.
    """
    from bookkeeper.models.ledger.account import AccountType
    from tests.factories import ChartAccountFactory

    specs = {
        "cash": ("1111", "Caja y bancos", AccountType.ASSET, True),
        "receivable": ("1210", "Clientes", AccountType.ASSET, False),
        "equipment": ("1510", "Equipo", AccountType.ASSET, False),
        "depreciation": ("1590", "Depreciacion acumulada", AccountType.ASSET, False),
        "payable": ("2110", "Proveedores", AccountType.LIABILITY, False),
        "capital": ("3110", "Capital social", AccountType.EQUITY, False),
        "sales": ("4010", "Ventas", AccountType.INCOME, False),
        "cost": ("5010", "Costo de ventas", AccountType.COST, False),
        "rent": ("6010", "Alquileres", AccountType.EXPENSE, False),
    }
    return {
        key: ChartAccountFactory.create(
            db_session=db_session,
            tenant_id=1,
            code=code,
            name=name,
            type=account_type,
            is_bank_account=is_bank,
        )
        for key, (code, name, account_type, is_bank) in specs.items()
    }
