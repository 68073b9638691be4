"""
Dépôts de profils de voix de marque.

Ce module fournit deux implémentations du contrat `ProfileStore`: une version en mémoire
(dev/tests) et une version Redis dont le check-and-set est exécuté atomiquement par un script Lua.
"""

import json
import threading
from datetime import UTC, datetime
from typing import Any

import redis
import structlog

from backend.domain.brand_voice import BrandVoiceProfile, profile_checksum
from backend.domain.store import (
    Conflict,
    Ok,
    ProfileRevision,
    PutResult,
    is_successor,
    with_statuses,
)

log = structlog.get_logger(__name__)


def _revision_record(profile: BrandVoiceProfile) -> dict[str, Any]:
    return {
        "payload": profile.to_payload(),
        "checksum": profile_checksum(profile),
        "created_at": datetime.now(UTC).isoformat(),
    }


def _history(
    profile_id: str, records: dict[str, dict[str, Any]], retired: bool
) -> list[ProfileRevision]:
    revisions = [
        ProfileRevision(profile_id, version, rec["checksum"], rec["created_at"])
        for version, rec in records.items()
    ]
    return with_statuses(revisions, retired)


class InMemoryProfileStore:
    """
    Dépôt de profils en mémoire (utilisé pour dev/tests).

    Les révisions sont conservées sous leur forme persistée (dict JSON) et reconstruites à la
    lecture; un verrou sérialise les check-and-set d'écriture.
    """

    backend_name = "memory"

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._lock = threading.Lock()
        self._revisions: dict[str, dict[str, dict[str, Any]]] = {}
        self._latest: dict[str, str] = {}
        self._retired: set[str] = set()

    def get_latest(self, profile_id: str) -> BrandVoiceProfile | None:
        """Retourne la dernière révision acceptée, ou None si la lignée est inconnue."""
        with self._lock:
            version = self._latest.get(profile_id)
            if version is None:
                return None
            return BrandVoiceProfile.from_payload(self._revisions[profile_id][version]["payload"])

    def put(self, profile: BrandVoiceProfile, expected_latest: str | None) -> PutResult:
        """Ajoute une révision si la dernière version vaut toujours `expected_latest`."""
        with self._lock:
            actual = self._latest.get(profile.id)
            if profile.id in self._retired:
                return Conflict(profile.id, expected_latest, actual, retired=True)
            if actual != expected_latest or not is_successor(profile, expected_latest):
                return Conflict(profile.id, expected_latest, actual)
            self._revisions.setdefault(profile.id, {})[profile.version] = _revision_record(profile)
            self._latest[profile.id] = profile.version
        return Ok(profile.id, profile.version)

    def get_version(self, profile_id: str, version: str) -> BrandVoiceProfile | None:
        """Retourne une révision précise de la lignée, si elle existe."""
        with self._lock:
            record = self._revisions.get(profile_id, {}).get(version)
        return BrandVoiceProfile.from_payload(record["payload"]) if record else None

    def list_versions(self, profile_id: str) -> list[ProfileRevision]:
        """Historique de la lignée, trié par version croissante."""
        with self._lock:
            records = dict(self._revisions.get(profile_id, {}))
            retired = profile_id in self._retired
        return _history(profile_id, records, retired)

    def list_active(self) -> list[BrandVoiceProfile]:
        """Dernière révision de chaque lignée non retirée, triée par id."""
        with self._lock:
            payloads = [
                self._revisions[pid][version]["payload"]
                for pid, version in sorted(self._latest.items())
                if pid not in self._retired
            ]
        return [BrandVoiceProfile.from_payload(p) for p in payloads]

    def retire(self, profile_id: str) -> bool:
        """Retire une lignée existante (l'historique reste consultable)."""
        with self._lock:
            if profile_id not in self._latest:
                return False
            self._retired.add(profile_id)
        return True


# Script Lua pour check-and-set atomique de la dernière version d'une lignée
PUT_REVISION_SCRIPT = """
local lineage = KEYS[1]
local revisions = KEYS[2]
local index = KEYS[3]
local expected = ARGV[1]
local version = ARGV[2]
local record = ARGV[3]
local profile_id = ARGV[4]

local current = redis.call('HGET', lineage, 'latest') or ''
if redis.call('HGET', lineage, 'retired') == '1' then
    return {0, current, 1}
end
if current ~= expected then
    return {0, current, 0}
end
if redis.call('HSETNX', revisions, version, record) == 0 then
    return {0, current, 0}
end
redis.call('HSET', lineage, 'latest', version)
redis.call('SADD', index, profile_id)
return {1, version, 0}
"""


class RedisProfileStore:
    """Dépôt de profils adossé à Redis.

    Clés: `profile:{id}` (hash `latest`/`retired`), `profile:{id}:revisions` (hash version ->
    révision JSON) et `profile:ids` (index des lignées).
    """

    backend_name = "redis"
    index_key = "profile:ids"

    def __init__(self, url: str):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)
        self._script_hash: str | None = None

    @staticmethod
    def _lineage_key(profile_id: str) -> str:
        return f"profile:{profile_id}"

    @staticmethod
    def _revisions_key(profile_id: str) -> str:
        return f"profile:{profile_id}:revisions"

    def _get_script_hash(self) -> str:
        """Charge (une fois) le script Lua de check-and-set."""
        if self._script_hash is None:
            self._script_hash = self.client.script_load(PUT_REVISION_SCRIPT)
        return self._script_hash

    def _load(self, profile_id: str, version: str) -> BrandVoiceProfile | None:
        raw = self.client.hget(self._revisions_key(profile_id), version)
        return BrandVoiceProfile.from_payload(json.loads(raw)["payload"]) if raw else None

    def get_latest(self, profile_id: str) -> BrandVoiceProfile | None:
        """Charge la révision pointée par `profile:{id}` -> `latest`."""
        version = self.client.hget(self._lineage_key(profile_id), "latest")
        return self._load(profile_id, version) if version else None

    def put(self, profile: BrandVoiceProfile, expected_latest: str | None) -> PutResult:
        """Check-and-set atomique côté serveur; `Conflict` si la lignée a bougé entre-temps."""
        if not is_successor(profile, expected_latest):
            return Conflict(profile.id, expected_latest, expected_latest)
        ok, current, retired = self.client.evalsha(
            self._get_script_hash(),
            3,
            self._lineage_key(profile.id),
            self._revisions_key(profile.id),
            self.index_key,
            expected_latest or "",
            profile.version,
            json.dumps(_revision_record(profile)),
            profile.id,
        )
        if int(ok) != 1:
            log.debug("redis_put_conflict", profile_id=profile.id, current=current)
            return Conflict(profile.id, expected_latest, current or None, retired=int(retired) == 1)
        return Ok(profile.id, profile.version)

    def get_version(self, profile_id: str, version: str) -> BrandVoiceProfile | None:
        """Charge une révision précise."""
        return self._load(profile_id, version)

    def list_versions(self, profile_id: str) -> list[ProfileRevision]:
        """Historique complet de la lignée, trié par version croissante."""
        raw = self.client.hgetall(self._revisions_key(profile_id))
        retired = self.client.hget(self._lineage_key(profile_id), "retired") == "1"
        return _history(profile_id, {v: json.loads(r) for v, r in raw.items()}, retired)

    def list_active(self) -> list[BrandVoiceProfile]:
        """Dernière révision de chaque lignée non retirée, triée par id."""
        active: list[BrandVoiceProfile] = []
        for profile_id in sorted(self.client.smembers(self.index_key)):
            lineage = self.client.hgetall(self._lineage_key(profile_id))
            if not lineage.get("latest") or lineage.get("retired") == "1":
                continue
            profile = self._load(profile_id, lineage["latest"])
            if profile is not None:
                active.append(profile)
        return active

    def retire(self, profile_id: str) -> bool:
        """Marque la lignée comme retirée si elle existe."""
        key = self._lineage_key(profile_id)
        if not self.client.hexists(key, "latest"):
            return False
        self.client.hset(key, "retired", "1")
        return True
