"""Tests pour l'endpoint de santé de l'application."""

from backend.core.constants import HTTP_OK


def test_health(client):
    """Teste que l'endpoint de santé retourne un statut OK et le backend de stockage."""
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    assert r.json()["status"] == "ok"
    assert r.json()["storage"] == "memory"
