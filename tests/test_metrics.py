"""Tests pour les métriques Prometheus.

Ce module teste que les métriques Prometheus sont correctement exposées via l'endpoint /metrics.
"""

from prometheus_client import REGISTRY

from backend.core.constants import HTTP_OK
from tests.fakes import make_payload


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_metrics_exposed(client):
    """Teste que l'endpoint /metrics expose les métriques HTTP et métier."""
    labels = {"kind": "constraint", "code": "enum_violation"}
    before = _sample("profile_validation_errors_total", **labels)

    client.post("/v1/profiles", json=make_payload(tone="loud"))
    r = client.get("/metrics")

    assert r.status_code == HTTP_OK
    assert b"http_requests_total" in r.content
    assert b"profile_submissions_total" in r.content
    assert b"profile_validation_errors_total" in r.content
    assert _sample("profile_validation_errors_total", **labels) == before + 1


def test_request_metrics_use_route_template(client):
    """Teste que les routes paramétrées sont étiquetées par leur gabarit (cardinalité bornée)."""
    client.get("/v1/profiles/6f1c1a2e-3b4d-4c5e-8f90-a1b2c3d4e5f6")
    body = client.get("/metrics").text
    assert 'route="/v1/profiles/{profile_id}"' in body
    assert "6f1c1a2e-3b4d-4c5e-8f90-a1b2c3d4e5f6" not in body
