"""
Politique de version des lignées de profils.

Garde-fou (et non générateur): l'appelant fournit explicitement la version candidate; la politique
l'accepte si elle est bien formée et strictement supérieure à la dernière version acceptée de la
lignée. La comparaison est numérique composante par composante (`v1.10.0` > `v1.9.0`), jamais
lexicale.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import NamedTuple

from backend.core.constants import VERSION_PATTERN
from backend.domain.errors import ConstraintError, ErrorCodes, VersionConflictError

_VERSION_RE = re.compile(VERSION_PATTERN)


class SemVer(NamedTuple):
    """Triplet (major, minor, patch) ordonné numériquement."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"


def parse_version(value: object) -> SemVer | None:
    """Analyse `v<major>.<minor>.<patch>`; retourne None si la chaîne est mal formée."""
    if not isinstance(value, str):
        return None
    match = _VERSION_RE.fullmatch(value)
    if not match:
        return None
    major, minor, patch = (int(part) for part in match.groups())
    return SemVer(major, minor, patch)


@dataclass(frozen=True)
class Accepted:
    """Décision favorable: `version` devient la dernière version de la lignée."""

    lineage_id: str
    version: str
    initial: bool


VersionDecision = Accepted | ConstraintError | VersionConflictError


def accept(lineage_id: str, candidate: str, current_latest: str | None) -> VersionDecision:
    """Décide si `candidate` peut succéder à `current_latest` dans la lignée `lineage_id`.

    - Sans version antérieure, toute version bien formée est acceptée comme initiale.
    - Sinon la candidate doit être strictement supérieure (égale ou inférieure: rejet).

    Lève ValueError si `current_latest` (déjà persistée) est elle-même mal formée.
    """
    parsed = parse_version(candidate)
    if parsed is None:
        return ConstraintError(
            "version",
            ErrorCodes.PATTERN_MISMATCH,
            "version must match pattern v<major>.<minor>.<patch>",
        )
    if current_latest is None:
        return Accepted(lineage_id, candidate, initial=True)

    latest = parse_version(current_latest)
    if latest is None:
        raise ValueError(f"stored version {current_latest!r} of {lineage_id} is malformed")
    if parsed <= latest:
        return VersionConflictError(
            "version",
            ErrorCodes.NOT_MONOTONIC,
            f"version {candidate} must be greater than current latest {current_latest}",
            candidate_version=candidate,
            current_version=current_latest,
        )
    return Accepted(lineage_id, candidate, initial=False)
