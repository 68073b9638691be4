"""Tests pour la politique de version des lignées (comparaison numérique, monotonie stricte)."""

from __future__ import annotations

import pytest

from backend.domain.errors import ConstraintError, ErrorCodes, VersionConflictError
from backend.domain.version_policy import Accepted, SemVer, accept, parse_version
from tests.fakes import PROFILE_ID


def test_parse_version_is_numeric() -> None:
    """Teste l'analyse numérique des composantes (zéros de tête admis)."""
    assert parse_version("v1.10.0") == SemVer(1, 10, 0)
    assert parse_version("v01.2.3") == SemVer(1, 2, 3)
    assert parse_version("v1.10.0") > parse_version("v1.9.0")
    assert str(SemVer(2, 0, 1)) == "v2.0.1"


@pytest.mark.parametrize("value", ["1.2.3", "v1.2", "v1.2.3.4", "v1.2.x", "", None, 123])
def test_parse_version_rejects_malformed(value) -> None:
    """Teste que les chaînes mal formées (ou non textuelles) ne sont pas analysées."""
    assert parse_version(value) is None


def test_first_version_is_accepted_as_initial() -> None:
    """Teste qu'une lignée sans historique accepte toute version bien formée."""
    decision = accept(PROFILE_ID, "v3.1.4", None)
    assert decision == Accepted(PROFILE_ID, "v3.1.4", initial=True)


def test_greater_version_is_accepted() -> None:
    """Teste qu'une version strictement supérieure est acceptée (non initiale)."""
    decision = accept(PROFILE_ID, "v1.10.0", "v1.9.0")
    assert isinstance(decision, Accepted)
    assert decision.initial is False


def test_lexically_greater_but_numerically_lower_is_rejected() -> None:
    """Teste le scénario `v1.2.0` soumise après `v1.10.0`: rejet non monotone."""
    decision = accept(PROFILE_ID, "v1.2.0", "v1.10.0")
    assert isinstance(decision, VersionConflictError)
    assert decision.code == ErrorCodes.NOT_MONOTONIC
    assert decision.candidate_version == "v1.2.0"
    assert decision.current_version == "v1.10.0"


def test_equal_version_is_a_conflict() -> None:
    """Teste qu'une resoumission de la même version est un conflit, pas une acceptation."""
    decision = accept(PROFILE_ID, "v2.0.0", "v2.0.0")
    assert isinstance(decision, VersionConflictError)
    assert decision.code == ErrorCodes.NOT_MONOTONIC
    assert decision.field == "version"


def test_malformed_candidate_is_constraint_error() -> None:
    """Teste qu'une candidate mal formée est une erreur de contrainte ciblée."""
    decision = accept(PROFILE_ID, "2.0.0", "v1.0.0")
    assert isinstance(decision, ConstraintError)
    assert decision.code == ErrorCodes.PATTERN_MISMATCH


def test_oversized_candidate_is_constraint_error() -> None:
    """Teste qu'une candidate aux composantes démesurées est refusée sans conversion entière."""
    assert parse_version("v" + "9" * 5000 + ".0.0") is None
    decision = accept(PROFILE_ID, "v" + "9" * 5000 + ".0.0", "v1.0.0")
    assert isinstance(decision, ConstraintError)
    assert decision.code == ErrorCodes.PATTERN_MISMATCH


def test_malformed_stored_version_raises() -> None:
    """Teste qu'une version persistée corrompue lève une erreur (état incohérent)."""
    with pytest.raises(ValueError):
        accept(PROFILE_ID, "v1.0.0", "latest")
