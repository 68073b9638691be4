"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : middlewares,
routes, métriques et configuration de l'API des profils de voix de marque.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, métriques)
- Enregistrer les gestionnaires d'erreurs (enveloppe standard)
- Monter les routers (santé, profils, conformité, métriques)
"""

from __future__ import annotations

from fastapi import FastAPI

from backend.api.errors import APIError, handle_api_error, handle_generic_exception
from backend.api.routes_compliance import router as compliance_router
from backend.api.routes_health import router as health_router
from backend.api.routes_profiles import router as profiles_router
from backend.app.metrics import PrometheusMiddleware, metrics_router
from backend.core.container import container
from backend.core.logging import setup_logging
from backend.middlewares.request_id import RequestIDMiddleware


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog)
    - Lit les paramètres d'exécution
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes de santé, de profils et de conformité
    """
    settings = container.settings
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(Exception, handle_generic_exception)
    app.include_router(health_router)
    app.include_router(profiles_router)
    app.include_router(compliance_router)
    app.include_router(metrics_router)
    return app


app = create_app()
