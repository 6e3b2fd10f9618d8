"""Theme catalog — the game styles a scene can be rendered in.

Each theme supplies two prompt fragments: ``description_prompt`` steers the
text model toward the right setting, ``image_prompt`` steers the image model
toward the right palette and architecture. ``RANDOM`` is a pseudo-theme that
resolves to one concrete theme per generation.
"""

from __future__ import annotations

import logging
import random
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .i18n import check_language

logger = logging.getLogger(__name__)

RANDOM = "RANDOM"


class ThemeId(str, Enum):
    """Concrete theme identifiers."""

    JAPANESE_SCHOOL = "JAPANESE_SCHOOL"
    MEDIEVAL_FANTASY = "MEDIEVAL_FANTASY"
    MILLENNIUM_CITY = "MILLENNIUM_CITY"
    CASSETTE_FUTURISM = "CASSETTE_FUTURISM"


class ThemeDefinition(BaseModel):
    """Prompt fragments and display labels for one theme."""

    model_config = ConfigDict(frozen=True)

    id: ThemeId
    description_prompt: str
    image_prompt: str
    labels: dict[str, str]


THEMES: dict[ThemeId, ThemeDefinition] = {
    ThemeId.JAPANESE_SCHOOL: ThemeDefinition(
        id=ThemeId.JAPANESE_SCHOOL,
        description_prompt=(
            "Japanese high school, classroom, hallway, rooftop, cherry blossoms, "
            "nostalgic, sentimental."
        ),
        image_prompt=(
            "Japanese adventure game (AVG) background, uniforms, clean pixel lines, "
            "nostalgic atmosphere, cherry blossom petals, hard shadows."
        ),
        labels={"en": "Japanese School", "zh": "日式校园"},
    ),
    ThemeId.MEDIEVAL_FANTASY: ThemeDefinition(
        id=ThemeId.MEDIEVAL_FANTASY,
        description_prompt=(
            "Medieval fantasy RPG, stone castles, dungeons, forests, torches, knights, "
            "magic, Dragon Quest style."
        ),
        image_prompt=(
            "Medieval fantasy RPG (Dragon Quest IV style), stone brick textures, medieval "
            "architecture, pixelated torchlight using dithering, high contrast shadows, "
            "chiptune aesthetic."
        ),
        labels={"en": "Medieval Fantasy", "zh": "中世纪冒险"},
    ),
    ThemeId.MILLENNIUM_CITY: ThemeDefinition(
        id=ThemeId.MILLENNIUM_CITY,
        description_prompt=(
            "Early 2000s Asian metropolis (like Tokyo, Taipei, or Seoul). Nostalgic urban "
            "memory, Kairosoft simulation game style. Dense streets, overhead power lines "
            "against the sky, vending machines, small shops, concrete apartments with "
            "balconies, outdoor air conditioning units. Realistic everyday life, not sci-fi."
        ),
        image_prompt=(
            "Detailed isometric pixel art, Asian city aesthetic (Tokyo/Seoul), PS1/GBA era "
            "pre-rendered background style. Features: Dense urban landscape, overhead power "
            "lines, air conditioning units, vending machines, tiled concrete. Colors: Urban "
            "greys, faded signage colors, hard edges, no blur."
        ),
        labels={"en": "Millennium City", "zh": "千禧年都市"},
    ),
    ThemeId.CASSETTE_FUTURISM: ThemeDefinition(
        id=ThemeId.CASSETTE_FUTURISM,
        description_prompt=(
            "80s retro-futurism, analog tech, CRT monitors, wires, industrial sci-fi, beige "
            "and orange plastics, Metal Gear/Snatcher style."
        ),
        image_prompt=(
            "Cassette futurism, NES sci-fi (like Metal Gear or Snatcher), industrial pipes, "
            "green screen terminals, retro tech atmosphere, cold fluorescent lighting using "
            "solid colors, limited palette."
        ),
        labels={"en": "Cassette Futurism", "zh": "磁带未来主义"},
    ),
}

RANDOM_LABELS: dict[str, str] = {"en": "Random Style", "zh": "随机风格"}


class StyleCatalog:
    """Read-only view over :data:`THEMES` with RANDOM resolution."""

    def __init__(
        self,
        themes: dict[ThemeId, ThemeDefinition] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._themes = dict(themes or THEMES)
        self._rng = rng or random.Random()

    def choices(self) -> list[str]:
        """Selectable ids in display order, RANDOM last."""
        return [theme.value for theme in self._themes] + [RANDOM]

    def get(self, theme_id: str | ThemeId) -> ThemeDefinition:
        """Return the definition for a concrete theme id.

        Raises:
            ValueError: If *theme_id* is RANDOM or not in the catalog.
        """
        try:
            return self._themes[ThemeId(theme_id)]
        except (ValueError, KeyError):
            allowed = ", ".join(self.choices())
            raise ValueError(f"Unknown theme '{theme_id}'. Allowed: {allowed}") from None

    def resolve(self, theme_or_random: str | ThemeId) -> ThemeDefinition:
        """Resolve RANDOM to a uniformly chosen concrete theme; pass others through."""
        if theme_or_random == RANDOM:
            theme = self._rng.choice(list(self._themes.values()))
            logger.debug("Resolved RANDOM theme to %s", theme.id.value)
            return theme
        return self.get(theme_or_random)

    def label(self, theme_id: str | ThemeId, language: str) -> str:
        """Display label for a theme (RANDOM included) in *language*."""
        check_language(language)
        if theme_id == RANDOM:
            return RANDOM_LABELS[language]
        return self.get(theme_id).labels[language]


catalog = StyleCatalog()
