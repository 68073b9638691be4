"""
Route de lecture des métriques de conformité.

Les métriques sont recalculées à la demande à partir des profils actifs et des événements de
conformité fournis par le collaborateur de surveillance des contenus.
"""

from typing import Any

from fastapi import APIRouter, Body

from backend.core.container import container
from backend.domain.compliance import ComplianceMetrics

router = APIRouter(prefix="/v1/compliance", tags=["compliance"])


@router.post("/metrics", response_model=ComplianceMetrics)
def compliance_metrics(events: list[Any] | None = Body(default=None)):
    """Calcule les métriques; les événements invalides sont isolés dans `malformed_events`."""
    return container.profile_service.compliance_metrics(events or [])
