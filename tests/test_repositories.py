"""
Tests pour les dépôts de profils.

Le contrat (check-and-set, immutabilité, retrait, historique) est vérifié sur les dépôts mémoire et
SQL; le dépôt Redis est testé avec un client simulé comme le reste des composants Redis.
"""

import json
from unittest.mock import Mock

import pytest
import redis
from sqlalchemy import update

from backend.core.constants import MAX_VOCABULARY_TERMS
from backend.domain.brand_voice import profile_checksum
from backend.domain.services import ProfileService
from backend.domain.store import Conflict, Ok
from backend.infra.repo.db import session_scope
from backend.infra.repo.models import ProfileRevisionORM
from backend.infra.repo.profile_repo import SqlProfileStore
from backend.infra.repositories import PUT_REVISION_SCRIPT, RedisProfileStore
from tests.fakes import OTHER_PROFILE_ID, PROFILE_ID, make_payload, make_profile


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Dépôt vide (mémoire ou SQL)."""
    return request.getfixturevalue(f"{request.param}_store")


def _overwrite_stored_payload(store, version: str, payload: dict) -> None:
    """Remplace une révision persistée, comme si elle avait été acceptée sous d'autres règles."""
    if isinstance(store, SqlProfileStore):
        with session_scope(store._engine) as session:
            session.execute(
                update(ProfileRevisionORM)
                .where(
                    ProfileRevisionORM.profile_id == payload["id"],
                    ProfileRevisionORM.version == version,
                )
                .values(payload=payload)
            )
    else:
        store._revisions[payload["id"]][version]["payload"] = payload


class TestProfileStoreContract:
    """Contrat commun des dépôts de profils."""

    def test_put_new_lineage(self, store) -> None:
        """Teste la création d'une lignée avec `expected_latest=None`."""
        profile = make_profile()
        assert store.put(profile, None) == Ok(PROFILE_ID, "v1.0.0")
        assert store.get_latest(PROFILE_ID) == profile
        assert store.get_version(PROFILE_ID, "v1.0.0") == profile

    def test_unknown_lineage_reads_none(self, store) -> None:
        """Teste les lectures sur une lignée inconnue."""
        assert store.get_latest(PROFILE_ID) is None
        assert store.get_version(PROFILE_ID, "v1.0.0") is None
        assert store.list_versions(PROFILE_ID) == []
        assert store.retire(PROFILE_ID) is False

    def test_stale_expected_latest_conflicts(self, store) -> None:
        """Teste le check-and-set: une écriture basée sur une tête périmée est refusée."""
        store.put(make_profile(), None)
        store.put(make_profile(version="v1.1.0"), "v1.0.0")

        outcome = store.put(make_profile(version="v1.2.0"), "v1.0.0")
        assert isinstance(outcome, Conflict)
        assert outcome.actual_latest == "v1.1.0"
        assert outcome.retired is False
        assert store.get_latest(PROFILE_ID).version == "v1.1.0"

    def test_second_initial_write_conflicts(self, store) -> None:
        """Teste que deux créations concurrentes d'une lignée ne réussissent pas toutes deux."""
        assert isinstance(store.put(make_profile(), None), Ok)
        outcome = store.put(make_profile(version="v9.0.0", tone="casual"), None)
        assert isinstance(outcome, Conflict)
        assert store.get_latest(PROFILE_ID).tone == "formal"

    def test_non_successor_is_refused_by_store(self, store) -> None:
        """Teste que le dépôt refuse lui-même une version non supérieure."""
        store.put(make_profile(version="v1.10.0"), None)
        outcome = store.put(make_profile(version="v1.2.0"), "v1.10.0")
        assert isinstance(outcome, Conflict)
        assert [r.version for r in store.list_versions(PROFILE_ID)] == ["v1.10.0"]

    def test_history_sorted_numerically_with_checksums(self, store) -> None:
        """Teste l'historique trié par version numérique, révisions immuables."""
        store.put(make_profile(version="v1.2.0"), None)
        store.put(make_profile(version="v1.10.0", tone="casual"), "v1.2.0")
        store.put(make_profile(version="v2.0.0"), "v1.10.0")

        history = store.list_versions(PROFILE_ID)
        assert [r.version for r in history] == ["v1.2.0", "v1.10.0", "v2.0.0"]
        assert len({r.checksum for r in history}) == len(history)
        assert history[1].checksum == profile_checksum(store.get_version(PROFILE_ID, "v1.10.0"))
        assert all(r.created_at for r in history)
        assert store.get_version(PROFILE_ID, "v1.10.0").tone == "casual"

    def test_retire_blocks_new_versions_but_keeps_history(self, store) -> None:
        """Teste le retrait: plus de nouvelle version, historique consultable."""
        store.put(make_profile(), None)
        assert store.retire(PROFILE_ID) is True

        outcome = store.put(make_profile(version="v2.0.0"), "v1.0.0")
        assert isinstance(outcome, Conflict)
        assert outcome.retired is True
        assert [r.version for r in store.list_versions(PROFILE_ID)] == ["v1.0.0"]
        assert store.get_version(PROFILE_ID, "v1.0.0") is not None

    def test_history_marks_head_active_then_retired(self, store) -> None:
        """Teste les statuts d'historique: tête active, révisions remplacées, tête retirée."""
        store.put(make_profile(), None)
        store.put(make_profile(version="v1.1.0"), "v1.0.0")
        assert [r.status for r in store.list_versions(PROFILE_ID)] == ["superseded", "active"]

        store.retire(PROFILE_ID)
        assert [r.status for r in store.list_versions(PROFILE_ID)] == ["superseded", "retired"]

    def test_revision_stored_under_older_rules_stays_readable(self, store) -> None:
        """Teste qu'une révision dépassant les bornes courantes reste lisible et comptée."""
        store.put(make_profile(), None)
        store.put(make_profile(id=OTHER_PROFILE_ID), None)
        legacy = make_payload()
        legacy["vocabulary"]["preferred"] = [f"term-{i}" for i in range(MAX_VOCABULARY_TERMS + 1)]
        _overwrite_stored_payload(store, "v1.0.0", legacy)

        assert len(store.get_latest(PROFILE_ID).vocabulary.preferred) == MAX_VOCABULARY_TERMS + 1
        assert store.get_version(PROFILE_ID, "v1.0.0").to_payload() == legacy

        metrics = ProfileService(store).compliance_metrics(
            [{"event_id": "e1", "profile_id": PROFILE_ID, "adhered": True}]
        )
        assert metrics.total_active_profiles == 2
        assert metrics.grandfathered_violations == 1
        assert metrics.violating_profile_ids == [PROFILE_ID]
        assert metrics.vocabulary_adherence == 1.0

    def test_list_active_skips_retired_and_sorts_by_id(self, store) -> None:
        """Teste que seuls les profils actifs (dernière version) sont listés, triés par id."""
        store.put(make_profile(), None)
        store.put(make_profile(version="v1.1.0", tone="technical"), "v1.0.0")
        store.put(make_profile(id=OTHER_PROFILE_ID), None)

        active = store.list_active()
        assert [(p.id, p.version) for p in active] == [
            (OTHER_PROFILE_ID, "v1.0.0"),
            (PROFILE_ID, "v1.1.0"),
        ]

        store.retire(OTHER_PROFILE_ID)
        assert [p.id for p in store.list_active()] == [PROFILE_ID]


class TestRedisProfileStore:
    """Tests pour RedisProfileStore (client Redis simulé)."""

    def setup_method(self) -> None:
        """Setup test environment."""
        self.store = RedisProfileStore("redis://localhost:6379/0")
        self.store.client = Mock(spec=redis.Redis)
        self.store._script_hash = "test_script_hash"

    def test_script_loaded_once(self) -> None:
        """Teste le chargement unique du script Lua."""
        self.store._script_hash = None
        self.store.client.script_load.return_value = "sha"
        assert self.store._get_script_hash() == "sha"
        assert self.store._get_script_hash() == "sha"
        self.store.client.script_load.assert_called_once_with(PUT_REVISION_SCRIPT)

    def test_put_accepted(self) -> None:
        """Teste une écriture acceptée par le script."""
        self.store.client.evalsha.return_value = [1, "v1.1.0", 0]

        outcome = self.store.put(make_profile(version="v1.1.0"), "v1.0.0")

        assert outcome == Ok(PROFILE_ID, "v1.1.0")
        args = self.store.client.evalsha.call_args.args
        assert args[:5] == (
            "test_script_hash",
            3,
            f"profile:{PROFILE_ID}",
            f"profile:{PROFILE_ID}:revisions",
            "profile:ids",
        )
        assert args[5:7] == ("v1.0.0", "v1.1.0")
        assert json.loads(args[7])["payload"]["version"] == "v1.1.0"

    def test_put_conflict(self) -> None:
        """Teste une écriture perdue (tête de lignée déplacée)."""
        self.store.client.evalsha.return_value = [0, "v1.5.0", 0]

        outcome = self.store.put(make_profile(version="v1.1.0"), "v1.0.0")

        assert outcome == Conflict(PROFILE_ID, "v1.0.0", "v1.5.0")

    def test_put_on_retired_lineage(self) -> None:
        """Teste le refus d'écriture sur une lignée retirée."""
        self.store.client.evalsha.return_value = [0, "v1.0.0", 1]

        outcome = self.store.put(make_profile(version="v1.1.0"), "v1.0.0")

        assert isinstance(outcome, Conflict)
        assert outcome.retired is True

    def test_put_non_successor_skips_redis(self) -> None:
        """Teste qu'une version non supérieure est refusée sans appel Redis."""
        outcome = self.store.put(make_profile(version="v1.0.0"), "v1.0.0")

        assert isinstance(outcome, Conflict)
        self.store.client.evalsha.assert_not_called()

    def test_get_latest(self) -> None:
        """Teste la lecture de la dernière révision."""
        profile = make_profile()
        record = json.dumps({"payload": profile.to_payload(), "checksum": "c", "created_at": "t"})
        self.store.client.hget.side_effect = ["v1.0.0", record]

        assert self.store.get_latest(PROFILE_ID) == profile

    def test_get_latest_unknown(self) -> None:
        """Teste la lecture d'une lignée inconnue."""
        self.store.client.hget.return_value = None
        assert self.store.get_latest(PROFILE_ID) is None

    def test_list_versions_sorted(self) -> None:
        """Teste l'historique trié numériquement."""
        self.store.client.hgetall.return_value = {
            "v1.10.0": json.dumps({"payload": {}, "checksum": "b", "created_at": "t2"}),
            "v1.9.0": json.dumps({"payload": {}, "checksum": "a", "created_at": "t1"}),
        }
        self.store.client.hget.return_value = None
        history = self.store.list_versions(PROFILE_ID)
        assert [(r.version, r.checksum) for r in history] == [("v1.9.0", "a"), ("v1.10.0", "b")]
        assert [r.status for r in history] == ["superseded", "active"]

        self.store.client.hget.return_value = "1"
        assert self.store.list_versions(PROFILE_ID)[-1].status == "retired"

    def test_retire(self) -> None:
        """Teste le retrait d'une lignée existante puis inconnue."""
        self.store.client.hexists.return_value = True
        assert self.store.retire(PROFILE_ID) is True
        self.store.client.hset.assert_called_once_with(f"profile:{PROFILE_ID}", "retired", "1")

        self.store.client.hexists.return_value = False
        assert self.store.retire(OTHER_PROFILE_ID) is False

    def test_redis_error_propagates(self) -> None:
        """Teste qu'une panne Redis n'est pas masquée en conflit."""
        self.store.client.evalsha.side_effect = redis.exceptions.ConnectionError("down")
        with pytest.raises(redis.exceptions.ConnectionError):
            self.store.put(make_profile(version="v1.1.0"), "v1.0.0")
