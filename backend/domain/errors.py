"""
Taxonomie des erreurs métier, manipulées comme des valeurs.

Les erreurs de validation et de politique de version sont retournées (jamais levées) et peuvent être
présentées telles quelles à l'utilisateur final: elles ne portent que de l'information structurelle.

- StructuralError: type ou forme incorrects (champ manquant, mauvais type, UUID invalide).
- ConstraintError: borne, énumération ou motif non respectés.
- VersionConflictError: écriture non monotone ou course entre écritures concurrentes.
- OrphanedReferenceError: événement de conformité référençant un profil inconnu.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


class ErrorCodes:
    """Codes d'erreur stables exposés aux clients."""

    # Structurels
    MISSING = "missing"
    WRONG_TYPE = "wrong_type"
    INVALID_UUID = "invalid_uuid"

    # Contraintes
    TOO_LONG = "too_long"
    ENUM_VIOLATION = "enum_violation"
    PATTERN_MISMATCH = "pattern_mismatch"

    # Versions
    NOT_MONOTONIC = "not_monotonic"
    WRITE_CONFLICT = "write_conflict"
    RETIRED = "retired"

    # Références
    UNKNOWN_PROFILE = "unknown_profile"


@dataclass(frozen=True)
class ProfileError:
    """Erreur rattachée à un champ (chemin pointé, ex: `vocabulary.avoid`)."""

    field: str
    code: str
    message: str

    kind: ClassVar[str] = "error"

    def as_record(self) -> dict[str, Any]:
        """Enregistrement `{field, code, message}` destiné à l'API."""
        return {"field": self.field, "code": self.code, "message": self.message}


@dataclass(frozen=True)
class StructuralError(ProfileError):
    kind: ClassVar[str] = "structural"


@dataclass(frozen=True)
class ConstraintError(ProfileError):
    """Violation de contrainte; `suggestion` propose une valeur proche quand elle existe."""

    suggestion: str | None = None

    kind: ClassVar[str] = "constraint"

    def as_record(self) -> dict[str, Any]:
        record = super().as_record()
        if self.suggestion is not None:
            record["suggestion"] = self.suggestion
        return record


@dataclass(frozen=True)
class VersionConflictError(ProfileError):
    candidate_version: str | None = None
    current_version: str | None = None

    kind: ClassVar[str] = "version_conflict"


@dataclass(frozen=True)
class OrphanedReferenceError(ProfileError):
    event_id: str = ""
    profile_id: str = ""

    kind: ClassVar[str] = "orphaned_reference"

    def as_record(self) -> dict[str, Any]:
        record = super().as_record()
        record.update({"event_id": self.event_id, "profile_id": self.profile_id})
        return record
