"""
Routes liées aux profils de voix de marque: soumission, lecture, historique et retrait.

Ce module regroupe les endpoints `/v1/profiles`. Les soumissions sont des payloads JSON non typés;
toutes les erreurs de champ sont renvoyées ensemble dans l'enveloppe d'erreur (422), les conflits de
version en 409.
"""

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Body, Query

from backend.api.errors import from_profile_errors, gone, not_found
from backend.api.schemas import (
    ProfileChangeResponse,
    ProfileRevisionResponse,
    RestoreRequest,
    RetireResponse,
)
from backend.core.constants import HTTP_CREATED
from backend.core.container import container

router = APIRouter(prefix="/v1/profiles", tags=["profiles"])


@router.post("", status_code=HTTP_CREATED)
def submit_profile(payload: Any = Body(...)):
    """
    Soumet une nouvelle révision de profil.

    Paramètres:
    - payload: profil brut (id, version, tone, vocabulary, style_guides, examples).

    Retour: le profil validé et persisté, champ pour champ.
    """
    result = container.profile_service.submit(payload)
    if not result.ok:
        raise from_profile_errors(result.errors)
    return result.profile.to_payload()


@router.get("/{profile_id}")
def get_profile(profile_id: str):
    """Retourne le profil actif (dernière version acceptée); 410 si la lignée est retirée."""
    service = container.profile_service
    profile = service.get(profile_id)
    if profile is None:
        if service.is_retired(profile_id):
            raise gone(f"profile {profile_id} is retired")
        raise not_found(f"profile {profile_id} not found")
    return profile.to_payload()


@router.get("/{profile_id}/versions", response_model=list[ProfileRevisionResponse])
def list_versions(profile_id: str):
    """Historique complet de la lignée, trié par version croissante."""
    revisions = container.profile_service.history(profile_id)
    if not revisions:
        raise not_found(f"profile {profile_id} not found")
    return [ProfileRevisionResponse(**asdict(r)) for r in revisions]


@router.get("/{profile_id}/versions/{version}")
def get_version(profile_id: str, version: str):
    """Retourne une révision précise de la lignée."""
    profile = container.profile_service.get_version(profile_id, version)
    if profile is None:
        raise not_found(f"profile {profile_id}@{version} not found")
    return profile.to_payload()


@router.get("/{profile_id}/diff", response_model=list[ProfileChangeResponse])
def diff_versions(
    profile_id: str,
    from_version: str = Query(...),
    to_version: str = Query(...),
):
    """Changements entre deux révisions de la lignée."""
    try:
        changes = container.profile_service.diff(profile_id, from_version, to_version)
    except KeyError as err:
        raise not_found(f"profile revision {err.args[0]} not found") from err
    return [ProfileChangeResponse(**asdict(c)) for c in changes]


@router.post("/{profile_id}/retire", response_model=RetireResponse)
def retire_profile(profile_id: str):
    """Retire la lignée: plus aucune nouvelle version, historique conservé."""
    if not container.profile_service.retire(profile_id):
        raise not_found(f"profile {profile_id} not found")
    return RetireResponse(id=profile_id, retired=True)


@router.post("/{profile_id}/restore", status_code=HTTP_CREATED)
def restore_profile(profile_id: str, request: RestoreRequest):
    """
    Republie le contenu d'une révision antérieure sous une nouvelle version.

    Paramètres:
    - from_version: révision source (inchangée).
    - version: nouvelle version, strictement supérieure à la dernière de la lignée.
    """
    try:
        result = container.profile_service.restore(
            profile_id, request.from_version, request.version
        )
    except KeyError as err:
        raise not_found(f"profile revision {err.args[0]} not found") from err
    if not result.ok:
        raise from_profile_errors(result.errors)
    return result.profile.to_payload()
