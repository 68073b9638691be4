"""
Validation structurelle et sémantique des soumissions de profils.

`validate(raw)` vérifie chaque champ d'une soumission non typée et retourne soit le profil validé,
soit la liste COMPLÈTE des erreurs (pas d'arrêt à la première): l'appelant peut présenter un retour
exhaustif en un seul aller-retour. Fonction pure: aucun accès au stockage, aucun événement émis.
"""

from __future__ import annotations

import difflib
from typing import Any

from pydantic import ValidationError
from pydantic_core import ErrorDetails

from backend.domain.brand_voice import TONES, BrandVoiceProfile
from backend.domain.errors import ConstraintError, ErrorCodes, ProfileError, StructuralError

ROOT_FIELD = "$"

_VERSION_HINT = "v<major>.<minor>.<patch>"
_UUID_HINT = "xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx (hexadecimal)"


def validate(raw: Any) -> BrandVoiceProfile | list[ProfileError]:
    """Valide une soumission brute.

    Retour:
    - `BrandVoiceProfile` si la soumission respecte le modèle;
    - sinon la liste de toutes les erreurs, triée par champ puis par code.
    """
    try:
        return BrandVoiceProfile.model_validate(raw)
    except ValidationError as exc:
        errors = [_to_profile_error(err) for err in exc.errors()]
        return sorted(errors, key=lambda e: (e.field, e.code))


def field_path(loc: tuple[int | str, ...]) -> str:
    """Convertit une localisation Pydantic en chemin pointé (`examples[3].input`)."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or ROOT_FIELD


def suggest_tone(value: str) -> str | None:
    """Ton connu le plus proche d'une valeur inconnue (comparaison insensible à la casse)."""
    matches = difflib.get_close_matches(value.strip().lower(), TONES, n=1, cutoff=0.6)
    return matches[0] if matches else None


def _to_profile_error(err: ErrorDetails) -> ProfileError:
    field = field_path(err["loc"])
    kind = err["type"]
    ctx = err.get("ctx") or {}

    if kind == "missing":
        return StructuralError(field, ErrorCodes.MISSING, f"{field} is required")
    if kind == "uuid_format":
        return StructuralError(
            field, ErrorCodes.INVALID_UUID, f"{field} must match UUID pattern {_UUID_HINT}"
        )
    if kind == "too_long":
        return ConstraintError(
            field,
            ErrorCodes.TOO_LONG,
            f"{field} must contain at most {ctx.get('max_length')} items "
            f"(got {ctx.get('actual_length')})",
        )
    if kind == "literal_error":
        value = err.get("input")
        return ConstraintError(
            field,
            ErrorCodes.ENUM_VIOLATION,
            f"{field} must be one of: {', '.join(TONES)}",
            suggestion=suggest_tone(value) if isinstance(value, str) else None,
        )
    if kind == "string_pattern_mismatch":
        return ConstraintError(
            field, ErrorCodes.PATTERN_MISMATCH, f"{field} must match pattern {_VERSION_HINT}"
        )
    return StructuralError(field, ErrorCodes.WRONG_TYPE, f"{field}: {err['msg']}")
