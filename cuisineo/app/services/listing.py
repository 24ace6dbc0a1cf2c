from __future__ import annotations

from typing import Iterable, Optional

from cuisineo.app.domain.models import Category, Recipe

NO_MATCH_MESSAGE = 'Aucune recette trouvée pour "{term}".'
NOTHING_TO_SHOW_MESSAGE = "Aucune recette à afficher pour le moment."


def filter_recipes(
    recipes: Iterable[Recipe],
    category: Optional[Category] = None,
    search: str = "",
) -> list[Recipe]:
    """Keep recipes of `category` whose name contains `search`, case-insensitively."""
    term = search.strip().lower()
    return [
        recipe
        for recipe in recipes
        if (category is None or recipe.category == category)
        and (not term or term in recipe.name.lower())
    ]


def empty_state_message(total: int, shown: int, search: str = "") -> Optional[str]:
    if shown:
        return None
    term = search.strip()
    if total and term:
        return NO_MATCH_MESSAGE.format(term=term)
    return NOTHING_TO_SHOW_MESSAGE
