# Schémas Pydantic exposés par l'API (réponses).

from typing import Any, Literal

from pydantic import BaseModel


class ProfileRevisionResponse(BaseModel):
    """Entrée d'historique d'une lignée.

    Champs:
    - profile_id: str (UUID de la lignée)
    - version: str (v<major>.<minor>.<patch>)
    - checksum: str (SHA-256 du JSON canonique)
    - created_at: str (ISO datetime)
    - status: active | superseded | retired
    """

    profile_id: str
    version: str
    checksum: str
    created_at: str
    status: Literal["active", "superseded", "retired"]


class ProfileChangeResponse(BaseModel):
    """Changement élémentaire entre deux révisions."""

    type: Literal["addition", "removal", "modification"]
    path: str
    old_value: Any = None
    new_value: Any = None


class RestoreRequest(BaseModel):
    """Restauration: révision source et nouvelle version (strictement supérieure)."""

    from_version: str
    version: str


class RetireResponse(BaseModel):
    """Réponse au retrait d'une lignée."""

    id: str
    retired: bool
