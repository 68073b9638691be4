"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, dépôt de profils, service métier)
et expose un singleton `container` utilisé par le reste de l'application.
"""

import redis
import structlog

from backend.core.settings import Settings, get_settings
from backend.domain.services import ProfileService
from backend.infra.repo.db import get_engine
from backend.infra.repo.models import Base
from backend.infra.repo.profile_repo import SqlProfileStore
from backend.infra.repositories import InMemoryProfileStore, RedisProfileStore

log = structlog.get_logger(__name__)


class Container:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.profile_store, self.storage_backend = self._build_store()
        self.profile_service = ProfileService(
            self.profile_store, max_attempts=self.settings.STORE_PUT_MAX_ATTEMPTS
        )

    def _build_store(self):
        """Choisit le dépôt selon `PROFILE_STORE`.

        Redis absent ou injoignable: repli sur la mémoire, sauf si `REQUIRE_REDIS` est actif.
        """
        kind = self.settings.PROFILE_STORE
        if kind == "sql":
            engine = get_engine(self.settings.DATABASE_URL)
            if engine.url.get_backend_name() == "sqlite":
                Base.metadata.create_all(engine)
            return SqlProfileStore(engine), "sql"
        if kind == "redis":
            if not self.settings.REDIS_URL:
                if self.settings.REQUIRE_REDIS:
                    raise RuntimeError("Redis required but REDIS_URL not set")
                return InMemoryProfileStore(), "memory-fallback"
            try:
                store = RedisProfileStore(self.settings.REDIS_URL)
                store.client.ping()
                return store, "redis"
            except redis.exceptions.RedisError as err:
                if self.settings.REQUIRE_REDIS:
                    raise RuntimeError("Redis required but unavailable") from err
                log.warning("redis_unavailable_fallback_memory", error=str(err))
                return InMemoryProfileStore(), "memory-fallback"
        return InMemoryProfileStore(), "memory"


container = Container()
