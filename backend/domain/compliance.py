"""
Agrégation des métriques de conformité à partir des profils actifs.

Les métriques sont dérivées (jamais persistées comme état de référence) et recalculables à tout
moment. L'agrégation est pure et déterministe: mêmes entrées, même résultat, quel que soit l'ordre
des séquences fournies. Elle ne échoue jamais sur un événement mal formé: celui-ci est isolé dans
la liste de diagnostic `malformed_events`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from backend.domain.brand_voice import TONES, BrandVoiceProfile, profile_checksum
from backend.domain.errors import ErrorCodes, OrphanedReferenceError
from backend.domain.validator import field_path, validate
from backend.domain.version_policy import SemVer, parse_version

_UNPARSABLE = SemVer(-1, -1, -1)


class ComplianceEvent(BaseModel):
    """Signal externe: un contenu généré a-t-il respecté le vocabulaire `avoid` du profil?"""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    event_id: str = Field(min_length=1)
    profile_id: str = Field(min_length=1)
    adhered: bool
    flagged_terms: list[str] = Field(default_factory=list)


class MalformedEvent(BaseModel):
    """Diagnostic d'un événement rejeté par le schéma `ComplianceEvent`."""

    model_config = ConfigDict(frozen=True)

    event_id: str | None
    reason: str


class ComplianceMetrics(BaseModel):
    """Métriques de conformité consommées par les tableaux de bord.

    `vocabulary_adherence` vaut None (indéfini) en l'absence d'événement pertinent: l'absence de
    données n'implique ni conformité parfaite ni conformité nulle.
    """

    model_config = ConfigDict(frozen=True)

    total_active_profiles: int
    tone_counts: dict[str, int]
    grandfathered_violations: int
    violating_profile_ids: list[str]
    events_considered: int
    adherent_events: int
    vocabulary_adherence: float | None
    orphaned_events: list[OrphanedReferenceError]
    malformed_events: list[MalformedEvent]


def aggregate(
    active_profiles: Iterable[BrandVoiceProfile],
    events: Iterable[ComplianceEvent | Mapping[str, Any]] = (),
) -> ComplianceMetrics:
    """Calcule les métriques pour les profils actifs et les événements fournis.

    - Comptes par ton (les tons absents valent 0).
    - Profils « hérités » ne respectant plus les règles courantes.
    - Ratio d'adhérence au vocabulaire sur les événements rattachés à un profil actif.
    - Événements orphelins et mal formés rapportés, jamais ignorés silencieusement.
    """
    profiles = _latest_by_id(active_profiles)

    tone_counts = dict.fromkeys(TONES, 0)
    for profile in profiles.values():
        if profile.tone in tone_counts:
            tone_counts[profile.tone] += 1

    violating = sorted(
        pid for pid, profile in profiles.items() if isinstance(validate(profile.to_payload()), list)
    )

    considered = adherent = 0
    orphaned: list[OrphanedReferenceError] = []
    malformed: list[MalformedEvent] = []
    for raw in events:
        try:
            event = ComplianceEvent.model_validate(raw)
        except ValidationError as exc:
            malformed.append(MalformedEvent(event_id=_raw_event_id(raw), reason=_reason(exc)))
            continue
        if event.profile_id not in profiles:
            orphaned.append(
                OrphanedReferenceError(
                    "profile_id",
                    ErrorCodes.UNKNOWN_PROFILE,
                    f"event {event.event_id} references unknown profile {event.profile_id}",
                    event_id=event.event_id,
                    profile_id=event.profile_id,
                )
            )
            continue
        considered += 1
        if event.adhered:
            adherent += 1

    orphaned.sort(key=lambda o: (o.profile_id, o.event_id))
    malformed.sort(key=lambda m: (m.event_id or "", m.reason))
    return ComplianceMetrics(
        total_active_profiles=len(profiles),
        tone_counts=tone_counts,
        grandfathered_violations=len(violating),
        violating_profile_ids=violating,
        events_considered=considered,
        adherent_events=adherent,
        vocabulary_adherence=(adherent / considered) if considered else None,
        orphaned_events=orphaned,
        malformed_events=malformed,
    )


def _latest_by_id(profiles: Iterable[BrandVoiceProfile]) -> dict[str, BrandVoiceProfile]:
    # Plusieurs révisions d'un même id: la plus haute version l'emporte, puis l'empreinte.
    def rank(profile: BrandVoiceProfile) -> tuple[SemVer, str]:
        return (parse_version(profile.version) or _UNPARSABLE, profile_checksum(profile))

    latest: dict[str, BrandVoiceProfile] = {}
    for profile in profiles:
        current = latest.get(profile.id)
        if current is None or rank(profile) > rank(current):
            latest[profile.id] = profile
    return latest


def _raw_event_id(raw: Any) -> str | None:
    if isinstance(raw, Mapping):
        value = raw.get("event_id")
        if isinstance(value, str) and value:
            return value
    return None


def _reason(exc: ValidationError) -> str:
    return "; ".join(f"{field_path(err['loc'])}: {err['msg']}" for err in exc.errors())
