# ============================================================
# Module : backend/infra/repo/profile_repo.py
# Objet  : Accès SQL aux lignées et révisions de profils.
# Notes  : check-and-set optimiste sur profile_lineages.latest_version.
# ============================================================

from __future__ import annotations

import structlog
from sqlalchemy import select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from ...domain.brand_voice import BrandVoiceProfile, profile_checksum
from ...domain.store import (
    Conflict,
    Ok,
    ProfileRevision,
    PutResult,
    is_successor,
    with_statuses,
)
from .db import session_scope
from .models import ProfileLineageORM, ProfileRevisionORM

log = structlog.get_logger(__name__)


class SqlProfileStore:
    """Dépôt SQL (SQLAlchemy) des profils; une transaction par opération."""

    backend_name = "sql"

    def __init__(self, engine: Engine) -> None:
        """Construit le dépôt sur un moteur SQLAlchemy (schéma créé par Alembic)."""
        self._engine = engine

    def get_latest(self, profile_id: str) -> BrandVoiceProfile | None:
        """Retourne la révision pointée par la tête de lignée."""
        stmt = (
            select(ProfileRevisionORM.payload)
            .join(
                ProfileLineageORM,
                (ProfileLineageORM.profile_id == ProfileRevisionORM.profile_id)
                & (ProfileLineageORM.latest_version == ProfileRevisionORM.version),
            )
            .where(ProfileLineageORM.profile_id == profile_id)
        )
        with session_scope(self._engine) as session:
            payload = session.execute(stmt).scalars().first()
        return BrandVoiceProfile.from_payload(payload) if payload else None

    def put(self, profile: BrandVoiceProfile, expected_latest: str | None) -> PutResult:
        """Insère une révision si la tête de lignée vaut toujours `expected_latest`.

        Nouvelle lignée: INSERT (doublon concurrent -> IntegrityError -> Conflict).
        Lignée existante: UPDATE ... WHERE latest_version = :expected (0 ligne -> Conflict).
        """
        if not is_successor(profile, expected_latest):
            return Conflict(profile.id, expected_latest, expected_latest)
        try:
            with session_scope(self._engine) as session:
                lineage = session.get(ProfileLineageORM, profile.id)
                actual = lineage.latest_version if lineage is not None else None
                if lineage is not None and lineage.retired:
                    return Conflict(profile.id, expected_latest, actual, retired=True)
                if expected_latest is None:
                    if lineage is not None:
                        return Conflict(profile.id, expected_latest, actual)
                    session.add(
                        ProfileLineageORM(
                            profile_id=profile.id, latest_version=profile.version, retired=False
                        )
                    )
                    session.flush()
                else:
                    result = session.execute(
                        update(ProfileLineageORM)
                        .where(
                            ProfileLineageORM.profile_id == profile.id,
                            ProfileLineageORM.latest_version == expected_latest,
                            ProfileLineageORM.retired.is_(False),
                        )
                        .values(latest_version=profile.version)
                    )
                    if result.rowcount != 1:
                        return Conflict(profile.id, expected_latest, actual)
                session.add(
                    ProfileRevisionORM(
                        profile_id=profile.id,
                        version=profile.version,
                        payload=profile.to_payload(),
                        checksum=profile_checksum(profile),
                    )
                )
                session.flush()
        except IntegrityError:
            log.info("sql_put_race_lost", profile_id=profile.id, version=profile.version)
            return Conflict(profile.id, expected_latest, self._latest_version(profile.id))
        return Ok(profile.id, profile.version)

    def get_version(self, profile_id: str, version: str) -> BrandVoiceProfile | None:
        """Retourne une révision précise de la lignée."""
        stmt = select(ProfileRevisionORM.payload).where(
            ProfileRevisionORM.profile_id == profile_id, ProfileRevisionORM.version == version
        )
        with session_scope(self._engine) as session:
            payload = session.execute(stmt).scalars().first()
        return BrandVoiceProfile.from_payload(payload) if payload else None

    def list_versions(self, profile_id: str) -> list[ProfileRevision]:
        """Historique de la lignée (retirée ou non), trié par version croissante."""
        stmt = select(ProfileRevisionORM).where(ProfileRevisionORM.profile_id == profile_id)
        with session_scope(self._engine) as session:
            rows = session.execute(stmt).scalars().all()
            revisions = [
                ProfileRevision(
                    profile_id=r.profile_id,
                    version=r.version,
                    checksum=r.checksum,
                    created_at=(r.created_at.isoformat() if r.created_at else ""),
                )
                for r in rows
            ]
            lineage = session.get(ProfileLineageORM, profile_id)
            retired = bool(lineage is not None and lineage.retired)
        return with_statuses(revisions, retired)

    def list_active(self) -> list[BrandVoiceProfile]:
        """Dernière révision de chaque lignée non retirée, triée par id."""
        stmt = (
            select(ProfileRevisionORM.payload)
            .join(
                ProfileLineageORM,
                (ProfileLineageORM.profile_id == ProfileRevisionORM.profile_id)
                & (ProfileLineageORM.latest_version == ProfileRevisionORM.version),
            )
            .where(ProfileLineageORM.retired.is_(False))
            .order_by(ProfileLineageORM.profile_id)
        )
        with session_scope(self._engine) as session:
            payloads = session.execute(stmt).scalars().all()
        return [BrandVoiceProfile.from_payload(p) for p in payloads]

    def retire(self, profile_id: str) -> bool:
        """Marque la lignée comme retirée; False si elle n'existe pas."""
        stmt = (
            update(ProfileLineageORM)
            .where(ProfileLineageORM.profile_id == profile_id)
            .values(retired=True)
        )
        with session_scope(self._engine) as session:
            result = session.execute(stmt)
        return result.rowcount == 1

    def _latest_version(self, profile_id: str) -> str | None:
        stmt = select(ProfileLineageORM.latest_version).where(
            ProfileLineageORM.profile_id == profile_id
        )
        with session_scope(self._engine) as session:
            return session.execute(stmt).scalars().first()
