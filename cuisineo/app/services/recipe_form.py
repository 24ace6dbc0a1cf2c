from __future__ import annotations

import logging
import re
from typing import Optional

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from cuisineo.app.domain.errors import RecipeValidationError, UnauthorizedError
from cuisineo.app.domain.models import DEFAULT_CATEGORY, Category, Identity, Recipe, RecipeDraft
from cuisineo.app.infra.db.base import RecipeRepository
from cuisineo.app.schemas.recipes import RecipeFormDefaults, RecipeFormInput

logger = logging.getLogger(__name__)

_URL_ADAPTER = TypeAdapter(AnyHttpUrl)
_LINE_BREAK_RE = re.compile(r"\r?\n")

MESSAGES = {
    "name": "Le nom de la recette est obligatoire.",
    "category_required": "La catégorie est obligatoire.",
    "category_invalid": "Catégorie non valide.",
    "ingredientsText": "La liste des ingrédients est obligatoire (un par ligne).",
    "steps": "Les étapes de préparation sont obligatoires.",
    "imageUrl": "L'URL de l'image n'est pas valide.",
}


def parse_ingredients(text: str) -> list[str]:
    """Split on line breaks, trim, and drop blank lines; order is kept."""
    return [line.strip() for line in _LINE_BREAK_RE.split(text) if line.strip()]


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def validate_recipe_form(form: RecipeFormInput) -> RecipeDraft:
    """
    Validate the raw form and build the draft sent to the store.

    Raises:
        RecipeValidationError: With one French message per invalid field
    """
    errors: dict[str, str] = {}

    name = _clean(form.name)
    if not name:
        errors["name"] = MESSAGES["name"]

    category: Optional[Category] = None
    raw_category = _clean(form.category)
    if not raw_category:
        errors["category"] = MESSAGES["category_required"]
    else:
        try:
            category = Category(raw_category)
        except ValueError:
            errors["category"] = MESSAGES["category_invalid"]

    ingredients = parse_ingredients(form.ingredientsText or "")
    if not ingredients:
        errors["ingredientsText"] = MESSAGES["ingredientsText"]

    steps = _clean(form.steps)
    if not steps:
        errors["steps"] = MESSAGES["steps"]

    image_url = _clean(form.imageUrl) or None
    if image_url is not None:
        try:
            _URL_ADAPTER.validate_python(image_url)
        except ValidationError:
            errors["imageUrl"] = MESSAGES["imageUrl"]

    if errors:
        raise RecipeValidationError(errors)

    return RecipeDraft(
        name=name,
        category=category,  # type: ignore[arg-type]
        ingredients=ingredients,
        steps=steps,
        image_url=image_url,
    )


def submit_recipe_form(
    repo: RecipeRepository,
    identity: Optional[Identity],
    form: RecipeFormInput,
    recipe_id: Optional[str] = None,
) -> Recipe:
    """
    Validate then create (recipe_id is None) or update a recipe.

    Validation errors never reach the store, and without an identity the
    submit stops before any write.
    """
    draft = validate_recipe_form(form)

    if identity is None:
        raise UnauthorizedError()

    if recipe_id is None:
        logger.info("Creating recipe for owner=%s", identity.id)
        return repo.create(draft, identity.id)

    logger.info("Updating recipe id=%s by user=%s", recipe_id, identity.id)
    return repo.update(recipe_id, draft)


def form_defaults(recipe: Optional[Recipe] = None) -> RecipeFormDefaults:
    if recipe is None:
        return RecipeFormDefaults(category=DEFAULT_CATEGORY.value)
    return RecipeFormDefaults(
        name=recipe.name,
        category=recipe.category.value,
        ingredientsText="\n".join(recipe.ingredients),
        steps=recipe.steps,
        imageUrl=recipe.image_url or "",
    )
