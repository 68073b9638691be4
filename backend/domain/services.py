"""
Service métier des profils de voix de marque.

Orchestration des soumissions (validation, politique de version, écriture check-and-set avec
réessais bornés), du cycle de vie des lignées (retrait, restauration d'une révision antérieure)
et des lectures d'audit (historique, différences, métriques de conformité).
"""

# ============================================================
# Module : backend/domain/services.py
# Objet  : Service applicatif au-dessus du contrat `ProfileStore`.
# ============================================================

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from backend.app.metrics import (
    PROFILE_STORE_RETRIES,
    PROFILE_SUBMISSIONS,
    PROFILE_VALIDATION_ERRORS,
    PROFILE_VERSION_CONFLICTS,
)
from backend.domain.brand_voice import BrandVoiceProfile
from backend.domain.compliance import ComplianceEvent, ComplianceMetrics, aggregate
from backend.domain.diff import ProfileChange, diff_profiles
from backend.domain.errors import ErrorCodes, ProfileError, VersionConflictError
from backend.domain.store import REVISION_RETIRED, Conflict, ProfileRevision, ProfileStore
from backend.domain.validator import validate
from backend.domain.version_policy import Accepted, accept

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """Issue d'une soumission: profil persisté OU liste d'erreurs (jamais les deux)."""

    profile: BrandVoiceProfile | None = None
    errors: list[ProfileError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.profile is not None


class ProfileService:
    """Service métier de gestion des profils de voix de marque.

    Responsabilités:
    - Valider les soumissions brutes et filtrer les versions via la politique de version.
    - Persister via `store` avec check-and-set optimiste, en relisant la dernière version et en
      réessayant (borné) lorsqu'une écriture concurrente l'emporte.
    - Exposer l'historique, les différences entre révisions et les métriques de conformité.
    """

    def __init__(self, store: ProfileStore, max_attempts: int = 3):
        """Initialise le service.

        Paramètres:
        - store: dépôt de profils (mémoire, SQL ou Redis).
        - max_attempts: nombre maximal de tentatives d'écriture par soumission.
        """
        self.store = store
        self.max_attempts = max(1, max_attempts)

    def submit(self, raw: Any) -> SubmissionResult:
        """Valide, contrôle la version puis persiste une soumission brute.

        Retour: `SubmissionResult` portant le profil stocké, ou toutes les erreurs rencontrées
        (validation complète, conflit de version, lignée retirée).
        """
        validated = validate(raw)
        if isinstance(validated, list):
            for err in validated:
                PROFILE_VALIDATION_ERRORS.labels(err.kind, err.code).inc()
            PROFILE_SUBMISSIONS.labels("invalid").inc()
            log.info(
                "profile_rejected",
                error_count=len(validated),
                fields=sorted({e.field for e in validated}),
            )
            return SubmissionResult(errors=validated)

        profile = validated
        for attempt in range(1, self.max_attempts + 1):
            current = self.store.get_latest(profile.id)
            decision = accept(profile.id, profile.version, current.version if current else None)
            if not isinstance(decision, Accepted):
                return self._reject(profile, decision)

            outcome = self.store.put(profile, current.version if current else None)
            if not isinstance(outcome, Conflict):
                PROFILE_SUBMISSIONS.labels("accepted").inc()
                log.info(
                    "profile_stored",
                    profile_id=profile.id,
                    version=profile.version,
                    initial=decision.initial,
                    store=self.store.backend_name,
                )
                return SubmissionResult(profile=profile)
            if outcome.retired:
                return self._reject(
                    profile,
                    VersionConflictError(
                        "id",
                        ErrorCodes.RETIRED,
                        f"profile {profile.id} is retired and accepts no new versions",
                        candidate_version=profile.version,
                        current_version=outcome.actual_latest,
                    ),
                )
            PROFILE_STORE_RETRIES.inc()
            log.warning(
                "profile_store_conflict",
                profile_id=profile.id,
                attempt=attempt,
                expected=outcome.expected_latest,
                actual=outcome.actual_latest,
            )

        return self._reject(
            profile,
            VersionConflictError(
                "version",
                ErrorCodes.WRITE_CONFLICT,
                f"concurrent writes to profile {profile.id}; retry with a fresh latest version",
                candidate_version=profile.version,
            ),
        )

    def _reject(self, profile: BrandVoiceProfile, error: ProfileError) -> SubmissionResult:
        PROFILE_VERSION_CONFLICTS.labels(error.code).inc()
        PROFILE_SUBMISSIONS.labels("conflict").inc()
        log.info(
            "profile_version_rejected",
            profile_id=profile.id,
            version=profile.version,
            code=error.code,
        )
        return SubmissionResult(errors=[error])

    def get(self, profile_id: str) -> BrandVoiceProfile | None:
        """Profil actif (dernière version acceptée); None si la lignée est inconnue ou retirée."""
        profile = self.store.get_latest(profile_id)
        if profile is None or self.is_retired(profile_id):
            return None
        return profile

    def is_retired(self, profile_id: str) -> bool:
        """Vrai si la tête d'historique de la lignée est marquée retirée."""
        history = self.store.list_versions(profile_id)
        return bool(history) and history[-1].status == REVISION_RETIRED

    def get_version(self, profile_id: str, version: str) -> BrandVoiceProfile | None:
        """Révision précise d'une lignée."""
        return self.store.get_version(profile_id, version)

    def history(self, profile_id: str) -> list[ProfileRevision]:
        """Historique complet de la lignée (consultable même après retrait)."""
        return self.store.list_versions(profile_id)

    def retire(self, profile_id: str) -> bool:
        """Retire la lignée; l'historique est conservé."""
        retired = self.store.retire(profile_id)
        if retired:
            log.info("profile_retired", profile_id=profile_id)
        return retired

    def restore(self, profile_id: str, from_version: str, new_version: str) -> SubmissionResult:
        """Republie le contenu d'une révision antérieure sous une nouvelle version.

        La révision source reste intacte; le contenu repasse par `submit` (règles courantes et
        politique de version). KeyError si la révision source est introuvable.
        """
        source = self.store.get_version(profile_id, from_version)
        if source is None:
            raise KeyError(f"{profile_id}@{from_version}")
        payload = source.to_payload()
        payload["version"] = new_version
        result = self.submit(payload)
        if result.ok:
            log.info(
                "profile_restored",
                profile_id=profile_id,
                from_version=from_version,
                version=new_version,
            )
        return result

    def diff(self, profile_id: str, from_version: str, to_version: str) -> list[ProfileChange]:
        """Changements entre deux révisions; KeyError si l'une est introuvable."""
        old = self.store.get_version(profile_id, from_version)
        new = self.store.get_version(profile_id, to_version)
        if old is None or new is None:
            missing = from_version if old is None else to_version
            raise KeyError(f"{profile_id}@{missing}")
        return diff_profiles(old, new)

    def compliance_metrics(
        self, events: Iterable[ComplianceEvent | Mapping[str, Any]] = ()
    ) -> ComplianceMetrics:
        """Recalcule les métriques de conformité sur les profils actifs du dépôt."""
        metrics = aggregate(self.store.list_active(), events)
        if metrics.orphaned_events or metrics.malformed_events:
            log.warning(
                "compliance_events_isolated",
                orphaned=len(metrics.orphaned_events),
                malformed=len(metrics.malformed_events),
            )
        return metrics
