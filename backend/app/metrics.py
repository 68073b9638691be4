"""
Métriques Prometheus pour l'application.

Ce module définit les métriques Prometheus du service de profils de voix de marque, l'endpoint
`/metrics` et le middleware de mesure des requêtes HTTP.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Profile submission metrics
PROFILE_SUBMISSIONS = Counter(
    "profile_submissions_total",
    "Total profile submissions by outcome",
    ["outcome"],
)
PROFILE_VALIDATION_ERRORS = Counter(
    "profile_validation_errors_total",
    "Field-level errors returned by profile validation",
    ["kind", "code"],
)
PROFILE_VERSION_CONFLICTS = Counter(
    "profile_version_conflicts_total",
    "Version submissions rejected by the version gate or the store",
    ["reason"],
)
PROFILE_STORE_RETRIES = Counter(
    "profile_store_retries_total",
    "Store writes retried after a concurrent version race",
)


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte les métriques de comptage des requêtes et de latence par route pour l'exposition
    Prometheus.
    """

    async def dispatch(self, request: Request, call_next):
        """
        Traite une requête HTTP et collecte les métriques.

        Args:
            request: Requête HTTP entrante.
            call_next: Fonction pour appeler le middleware suivant.

        Returns:
            Response: Réponse HTTP avec métriques collectées.
        """
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = request.scope.get("route")
        route_path = getattr(route, "path", None) or request.scope.get("path", "unknown")
        REQUEST_COUNT.labels(request.method, route_path, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route_path).observe(time.perf_counter() - start)
        return response
