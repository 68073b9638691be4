"""Configuration de test pour pytest avec gestion des chemins.

Ce module configure pytest pour résoudre les imports backend en ajoutant la racine du projet au
sys.path, force un dépôt en mémoire et fournit les fixtures communes (payloads, dépôts, client HTTP).
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from backend...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

os.environ["PROFILE_STORE"] = "memory"
os.environ["APP_DEBUG"] = "false"

from backend.infra.repo.db import get_engine  # noqa: E402
from backend.infra.repo.models import Base  # noqa: E402
from backend.infra.repo.profile_repo import SqlProfileStore  # noqa: E402
from backend.infra.repositories import InMemoryProfileStore  # noqa: E402
from tests.fakes import make_payload  # noqa: E402


@pytest.fixture
def payload():
    """Payload brut valide (copie neuve à chaque test)."""
    return make_payload()


@pytest.fixture
def memory_store():
    """Dépôt de profils en mémoire, vide."""
    return InMemoryProfileStore()


@pytest.fixture
def sql_store():
    """Dépôt SQL sur une base SQLite en mémoire (schéma créé à la volée)."""
    engine = get_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield SqlProfileStore(engine)
    engine.dispose()


@pytest.fixture
def client(monkeypatch):
    """Client HTTP de test branché sur un service neuf (dépôt mémoire isolé)."""
    from fastapi.testclient import TestClient

    from backend.app.main import app
    from backend.core.container import container
    from backend.domain.services import ProfileService

    monkeypatch.setattr(container, "profile_service", ProfileService(InMemoryProfileStore()))
    with TestClient(app) as test_client:
        yield test_client
