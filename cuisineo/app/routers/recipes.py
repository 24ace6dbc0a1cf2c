# cuisineo/app/routers/recipes.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from starlette.concurrency import run_in_threadpool

from cuisineo.app.deps import (
    get_browser,
    get_current_identity,
    get_optional_identity,
    get_recipe_repository,
)
from cuisineo.app.domain.errors import (
    NotFoundError,
    RecipeValidationError,
    StoreUnavailableError,
    UnauthorizedError,
)
from cuisineo.app.domain.models import Category, Identity
from cuisineo.app.infra.db.base import RecipeRepository
from cuisineo.app.schemas.recipes import (
    CreateViewResponse,
    EditViewResponse,
    MigrationReportResponse,
    RecipeFormInput,
    RecipeListResponse,
    RecipeResponse,
    SavedRecipeResponse,
)
from cuisineo.app.services.browsers import BrowserContext
from cuisineo.app.services.listing import empty_state_message, filter_recipes
from cuisineo.app.services.recipe_form import form_defaults, submit_recipe_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])

LOAD_ERROR = "Impossible de charger les recettes. Veuillez vérifier votre connexion ou réessayer."
SAVE_ERROR = "Une erreur est survenue lors de l'enregistrement. Veuillez réessayer."
DELETE_ERROR = "Erreur lors de la suppression."


def _unavailable(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)


def _unauthorized(exc: UnauthorizedError) -> HTTPException:
    code = status.HTTP_403_FORBIDDEN if exc.policy_rejection else status.HTTP_401_UNAUTHORIZED
    return HTTPException(status_code=code, detail=str(exc))


def _invalid(exc: RecipeValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"message": "Le formulaire contient des erreurs.", "fields": exc.field_errors},
    )


@router.get("/", response_model=RecipeListResponse)
async def list_recipes(
    category: Optional[Category] = Query(default=None),
    q: str = Query(default="", max_length=200),
    repo: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeListResponse:
    try:
        recipes = await run_in_threadpool(repo.list_all)
    except StoreUnavailableError:
        raise _unavailable(LOAD_ERROR)

    shown = filter_recipes(recipes, category=category, search=q)
    return RecipeListResponse(
        recipes=[RecipeResponse.from_recipe(recipe) for recipe in shown],
        total=len(recipes),
        emptyMessage=empty_state_message(len(recipes), len(shown), q),
    )


@router.get("/mine", response_model=RecipeListResponse)
async def list_my_recipes(
    identity: Identity = Depends(get_current_identity),
    repo: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeListResponse:
    try:
        recipes = await run_in_threadpool(repo.list_by_owner, identity.id)
    except StoreUnavailableError:
        raise _unavailable("Impossible de charger vos recettes. Veuillez réessayer.")

    return RecipeListResponse(
        recipes=[RecipeResponse.from_recipe(recipe) for recipe in recipes],
        total=len(recipes),
        emptyMessage=None if recipes else "Vous n'avez pas encore ajouté de recette.",
    )


@router.get("/new", response_model=CreateViewResponse)
async def create_view(
    identity: Identity = Depends(get_current_identity),
    browser: BrowserContext = Depends(get_browser),
) -> CreateViewResponse:
    # Migration failures stay silent here; the flag is left unset for the next visit.
    report = await run_in_threadpool(browser.migration.run, identity)
    return CreateViewResponse(
        defaults=form_defaults(),
        categories=Category.values(),
        migration=MigrationReportResponse.from_report(report),
    )


@router.post("/", response_model=SavedRecipeResponse, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    payload: RecipeFormInput,
    identity: Optional[Identity] = Depends(get_optional_identity),
    repo: RecipeRepository = Depends(get_recipe_repository),
) -> SavedRecipeResponse:
    try:
        recipe = await run_in_threadpool(submit_recipe_form, repo, identity, payload)
    except RecipeValidationError as exc:
        raise _invalid(exc)
    except UnauthorizedError as exc:
        raise _unauthorized(exc)
    except StoreUnavailableError:
        raise _unavailable(SAVE_ERROR)

    return SavedRecipeResponse(
        recipe=RecipeResponse.from_recipe(recipe),
        redirectTo=f"/recipes/{recipe.id}",
    )


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: str,
    repo: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeResponse:
    try:
        recipe = await run_in_threadpool(repo.get_by_id, recipe_id)
    except StoreUnavailableError:
        raise _unavailable("Impossible de charger les détails de la recette. Veuillez réessayer.")

    if recipe is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recette non trouvée.")
    return RecipeResponse.from_recipe(recipe)


@router.get("/{recipe_id}/edit", response_model=EditViewResponse)
async def edit_view(
    recipe_id: str,
    identity: Identity = Depends(get_current_identity),
    repo: RecipeRepository = Depends(get_recipe_repository),
) -> EditViewResponse:
    try:
        recipe = await run_in_threadpool(repo.get_by_id, recipe_id)
    except StoreUnavailableError:
        raise _unavailable("Impossible de charger les données de la recette pour modification.")

    if recipe is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recette à modifier non trouvée.")
    if not recipe.is_owned_by(identity):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Action non autorisée. Vous ne pouvez modifier que vos propres recettes.",
        )
    return EditViewResponse(
        recipe=RecipeResponse.from_recipe(recipe),
        defaults=form_defaults(recipe),
        categories=Category.values(),
    )


@router.put("/{recipe_id}", response_model=SavedRecipeResponse)
async def update_recipe(
    recipe_id: str,
    payload: RecipeFormInput,
    identity: Optional[Identity] = Depends(get_optional_identity),
    repo: RecipeRepository = Depends(get_recipe_repository),
) -> SavedRecipeResponse:
    try:
        recipe = await run_in_threadpool(submit_recipe_form, repo, identity, payload, recipe_id)
    except RecipeValidationError as exc:
        raise _invalid(exc)
    except UnauthorizedError as exc:
        raise _unauthorized(exc)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recette à modifier non trouvée.")
    except StoreUnavailableError:
        raise _unavailable(SAVE_ERROR)

    return SavedRecipeResponse(
        recipe=RecipeResponse.from_recipe(recipe),
        redirectTo=f"/recipes/{recipe.id}",
    )


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: str,
    identity: Identity = Depends(get_current_identity),
    repo: RecipeRepository = Depends(get_recipe_repository),
) -> Response:
    try:
        await run_in_threadpool(repo.delete_by_id, recipe_id)
    except UnauthorizedError as exc:
        raise _unauthorized(exc)
    except StoreUnavailableError:
        raise _unavailable(DELETE_ERROR)

    logger.info("Recipe %s deleted by user=%s", recipe_id, identity.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
