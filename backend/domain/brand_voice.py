"""
Modèle de domaine des profils de voix de marque (Brand Voice Profile).

Un profil décrit le ton, le vocabulaire, les règles de style et les exemples travaillés d'une
marque; il contraint la génération automatique de contenus. Toutes les révisions d'un même profil
partagent `id` et se distinguent par `version`.
"""

# ============================================================
# Module : backend/domain/brand_voice.py
# Objet  : Modèle Pydantic d'un profil + représentation persistée.
# ============================================================

from __future__ import annotations

import hashlib
import json
import re
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)
from pydantic_core import PydanticCustomError

from backend.core.constants import (
    MAX_EXAMPLES,
    MAX_STYLE_GUIDES,
    MAX_VOCABULARY_TERMS,
    UUID_PATTERN,
    VERSION_PATTERN,
)

Tone = Literal["formal", "casual", "playful", "technical"]
TONES: tuple[str, ...] = ("formal", "casual", "playful", "technical")

_UUID_RE = re.compile(UUID_PATTERN)


def _check_uuid(value: str) -> str:
    if not _UUID_RE.fullmatch(value):
        raise PydanticCustomError("uuid_format", "Input should be a UUID-formatted string")
    return value


ProfileId = Annotated[str, AfterValidator(_check_uuid)]
VersionStr = Annotated[str, StringConstraints(pattern=VERSION_PATTERN)]


class _ProfilePart(BaseModel):
    """Base commune: types stricts, révisions immuables, champs inconnus ignorés."""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")


class Vocabulary(_ProfilePart):
    """Termes à privilégier et à éviter (ordre conservé)."""

    preferred: list[str] = Field(max_length=MAX_VOCABULARY_TERMS)
    avoid: list[str] = Field(max_length=MAX_VOCABULARY_TERMS)


class StyleGuide(_ProfilePart):
    """Guide de style nommé et sa liste de règles."""

    name: str
    rules: list[str]


class Example(_ProfilePart):
    """Exemple travaillé: entrée brute et sortie attendue dans la voix de la marque."""

    input: str
    output: str


class BrandVoiceProfile(_ProfilePart):
    """Révision validée d'un profil de voix de marque.

    Attributs
    - id: identifiant UUID de la lignée (immuable).
    - version: révision au format v<major>.<minor>.<patch>.
    - tone: valeur de l'énumération fermée `TONES`.
    - vocabulary: termes préférés / à éviter (≤ 200 chacun).
    - style_guides: guides de style (≤ 50).
    - examples: exemples entrée/sortie (≤ 50).
    """

    id: ProfileId
    version: VersionStr
    tone: Tone
    vocabulary: Vocabulary
    style_guides: list[StyleGuide] = Field(max_length=MAX_STYLE_GUIDES)
    examples: list[Example] = Field(max_length=MAX_EXAMPLES)

    @field_validator("tone", mode="before")
    @classmethod
    def _tone_is_text(cls, value: Any) -> Any:
        # Un ton non textuel est une erreur de type, pas une valeur hors énumération.
        if not isinstance(value, str):
            raise PydanticCustomError("string_type", "Input should be a valid string")
        return value

    def to_payload(self) -> dict[str, Any]:
        """Représentation persistée (compatible JSON), champ pour champ."""
        return self.model_dump(mode="json")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> BrandVoiceProfile:
        """Reconstruit une révision persistée, sans re-contrôler les bornes courantes.

        Une révision acceptée sous des règles antérieures (profil « hérité ») doit rester lisible;
        sa conformité aux règles courantes est évaluée par `validate`, pas à la lecture.
        """
        vocabulary = payload["vocabulary"]
        return cls.model_construct(
            id=payload["id"],
            version=payload["version"],
            tone=payload["tone"],
            vocabulary=Vocabulary.model_construct(
                preferred=list(vocabulary["preferred"]), avoid=list(vocabulary["avoid"])
            ),
            style_guides=[
                StyleGuide.model_construct(name=g["name"], rules=list(g["rules"]))
                for g in payload["style_guides"]
            ],
            examples=[
                Example.model_construct(input=e["input"], output=e["output"])
                for e in payload["examples"]
            ],
        )


def profile_checksum(profile: BrandVoiceProfile) -> str:
    """Empreinte SHA-256 du JSON canonique (clés triées, séparateurs compacts)."""
    canonical = json.dumps(
        profile.to_payload(), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
