"""
Différences entre deux révisions d'un même profil (journal d'audit).

Les listes de termes sont comparées comme des ensembles (termes ajoutés / retirés), les guides de
style par nom, les exemples par valeur; `id` et `version` ne sont pas rapportés.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from backend.domain.brand_voice import BrandVoiceProfile

ChangeType = Literal["addition", "removal", "modification"]


@dataclass(frozen=True)
class ProfileChange:
    """Changement élémentaire localisé par un chemin de champ."""

    type: ChangeType
    path: str
    old_value: Any = None
    new_value: Any = None


def diff_profiles(old: BrandVoiceProfile, new: BrandVoiceProfile) -> list[ProfileChange]:
    """Liste les changements de `old` vers `new`, dans l'ordre des champs du modèle."""
    changes: list[ProfileChange] = []
    if old.tone != new.tone:
        changes.append(ProfileChange("modification", "tone", old.tone, new.tone))

    for attr in ("preferred", "avoid"):
        changes.extend(
            _diff_terms(
                f"vocabulary.{attr}",
                getattr(old.vocabulary, attr),
                getattr(new.vocabulary, attr),
            )
        )

    old_guides = {g.name: g.rules for g in old.style_guides}
    new_guides = {g.name: g.rules for g in new.style_guides}
    for name, rules in new_guides.items():
        path = f"style_guides.{name}"
        if name not in old_guides:
            changes.append(ProfileChange("addition", path, new_value=rules))
        elif old_guides[name] != rules:
            changes.append(ProfileChange("modification", path, old_guides[name], rules))
    for name, rules in old_guides.items():
        if name not in new_guides:
            changes.append(ProfileChange("removal", f"style_guides.{name}", old_value=rules))

    old_examples = [e.model_dump() for e in old.examples]
    new_examples = [e.model_dump() for e in new.examples]
    for example in new_examples:
        if example not in old_examples:
            changes.append(ProfileChange("addition", "examples", new_value=example))
    for example in old_examples:
        if example not in new_examples:
            changes.append(ProfileChange("removal", "examples", old_value=example))
    return changes


def _diff_terms(path: str, old: list[str], new: list[str]) -> list[ProfileChange]:
    old_set, new_set = set(old), set(new)
    added = [
        ProfileChange("addition", path, new_value=term)
        for term in dict.fromkeys(new)
        if term not in old_set
    ]
    removed = [
        ProfileChange("removal", path, old_value=term)
        for term in dict.fromkeys(old)
        if term not in new_set
    ]
    return added + removed
