"""
Contrat du dépôt de profils (collaborateur externe du cœur métier).

Le cœur ne dépend que de ce contrat de lecture/écriture. `put` est un check-and-set optimiste
indexé sur (`id`, dernière version attendue): deux écritures concurrentes d'une même lignée sont
sérialisées, la perdante reçoit `Conflict` et doit relire la dernière version avant de réessayer.
Les révisions persistées sont immuables; le retrait d'une lignée ne supprime jamais l'historique.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Literal, Protocol

from backend.domain.brand_voice import BrandVoiceProfile
from backend.domain.version_policy import Accepted, SemVer, accept, parse_version


@dataclass(frozen=True)
class Ok:
    """Écriture acceptée: `version` est désormais la dernière version de la lignée."""

    profile_id: str
    version: str


@dataclass(frozen=True)
class Conflict:
    """Écriture refusée: la dernière version réelle diffère de celle attendue (ou lignée retirée)."""

    profile_id: str
    expected_latest: str | None
    actual_latest: str | None
    retired: bool = False


PutResult = Ok | Conflict


REVISION_ACTIVE = "active"
REVISION_SUPERSEDED = "superseded"
REVISION_RETIRED = "retired"

RevisionStatus = Literal["active", "superseded", "retired"]


@dataclass(frozen=True)
class ProfileRevision:
    """Entrée d'historique d'une lignée (audit de conformité).

    `status`: `active` pour la dernière révision d'une lignée vivante, `superseded` pour les
    révisions antérieures, `retired` pour la dernière révision d'une lignée retirée (inactive et
    sans successeur possible).
    """

    profile_id: str
    version: str
    checksum: str
    created_at: str
    status: RevisionStatus = REVISION_SUPERSEDED


class ProfileStore(Protocol):
    """Opérations attendues d'un dépôt de profils."""

    backend_name: str

    # Tête de lignée, retirée ou non.
    def get_latest(self, profile_id: str) -> BrandVoiceProfile | None: ...

    def put(self, profile: BrandVoiceProfile, expected_latest: str | None) -> PutResult: ...

    def get_version(self, profile_id: str, version: str) -> BrandVoiceProfile | None: ...

    # Trié par version croissante, statuts posés par `with_statuses`.
    def list_versions(self, profile_id: str) -> list[ProfileRevision]: ...

    def list_active(self) -> list[BrandVoiceProfile]: ...

    def retire(self, profile_id: str) -> bool: ...


def is_successor(profile: BrandVoiceProfile, expected_latest: str | None) -> bool:
    """Vrai si `profile.version` peut succéder à `expected_latest` (vérifié par tout dépôt)."""
    return isinstance(accept(profile.id, profile.version, expected_latest), Accepted)


def with_statuses(revisions: Iterable[ProfileRevision], retired: bool) -> list[ProfileRevision]:
    """Trie l'historique par version et marque la tête `active` (ou `retired`)."""
    ordered = sorted(revisions, key=lambda r: parse_version(r.version) or SemVer(-1, -1, -1))
    if not ordered:
        return []
    head = replace(ordered[-1], status=REVISION_RETIRED if retired else REVISION_ACTIVE)
    return [replace(r, status=REVISION_SUPERSEDED) for r in ordered[:-1]] + [head]
