from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

import httpx
from supabase import Client, PostgrestAPIError

from cuisineo.app.domain.errors import NotFoundError, StoreUnavailableError, UnauthorizedError
from cuisineo.app.domain.models import DEFAULT_CATEGORY, Category, Recipe, RecipeDraft
from cuisineo.app.infra.db.base import RecipeRepository

logger = logging.getLogger(__name__)

# insufficient_privilege, PostgREST JWT errors
_POLICY_ERROR_CODES = {"42501", "PGRST301", "PGRST302"}
# invalid_text_representation: the id is not a valid uuid
_MALFORMED_ID_CODE = "22P02"

_TRANSPORT_ERRORS = (httpx.HTTPError, ConnectionError, TimeoutError)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _parse_category(value: Any) -> Category:
    try:
        return Category(str(value))
    except ValueError:
        logger.warning("Unknown recipe category %r, falling back to %s", value, DEFAULT_CATEGORY.value)
        return DEFAULT_CATEGORY


def _parse_ingredients(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, str) and item.strip()]


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _row_to_recipe(row: dict[str, Any]) -> Recipe:
    return Recipe(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        category=_parse_category(row.get("category")),
        ingredients=_parse_ingredients(row.get("ingredients")),
        steps=str(row.get("steps") or ""),
        image_url=_safe_str(row.get("image_url")),
        owner_id=_safe_str(row.get("owner_id")),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def _draft_to_row(draft: RecipeDraft) -> dict[str, Any]:
    return {
        "name": draft.name,
        "category": draft.category.value,
        "ingredients": list(draft.ingredients),
        "steps": draft.steps,
        "image_url": draft.image_url,
    }


class SupabaseRecipeRepository(RecipeRepository):
    TABLE_NAME = "recipes"

    def __init__(self, client: Client, table_name: str | None = None):
        self._client = client
        self._table_name = table_name or self.TABLE_NAME

    def _table(self):
        return self._client.table(self._table_name)

    def _execute(self, operation: str, query) -> list[dict[str, Any]]:
        try:
            result = query.execute()
        except PostgrestAPIError as error:
            if error.code in _POLICY_ERROR_CODES:
                logger.warning("Store policy rejected %s: %s", operation, error.message)
                raise UnauthorizedError(
                    "Action non autorisée. Vous ne pouvez modifier que vos propres recettes.",
                    policy_rejection=True,
                ) from error
            logger.error("Store query error during %s: code=%s message=%s", operation, error.code, error.message)
            raise StoreUnavailableError(operation, str(error.message or error)) from error
        except _TRANSPORT_ERRORS as error:
            logger.error("Network error during %s: %s", operation, error)
            raise StoreUnavailableError(operation, str(error)) from error
        return result.data or []

    def list_all(self) -> list[Recipe]:
        rows = self._execute(
            "list_all",
            self._table().select("*").order("created_at", desc=True),
        )
        logger.info("Fetched %d recipes", len(rows))
        return [_row_to_recipe(row) for row in rows]

    def list_by_owner(self, owner_id: str) -> list[Recipe]:
        rows = self._execute(
            "list_by_owner",
            self._table().select("*").eq("owner_id", owner_id).order("created_at", desc=True),
        )
        logger.info("Fetched %d recipes for owner=%s", len(rows), owner_id)
        return [_row_to_recipe(row) for row in rows]

    def get_by_id(self, recipe_id: str) -> Optional[Recipe]:
        try:
            rows = self._execute(
                "get_by_id",
                self._table().select("*").eq("id", recipe_id).limit(1),
            )
        except StoreUnavailableError as error:
            if _is_malformed_id(error):
                logger.info("Malformed recipe id treated as not found: %s", recipe_id)
                return None
            raise

        if not rows:
            logger.info("No recipe found with id=%s", recipe_id)
            return None
        return _row_to_recipe(rows[0])

    def delete_by_id(self, recipe_id: str) -> None:
        try:
            deleted = self._execute(
                "delete_by_id",
                self._table().delete().eq("id", recipe_id),
            )
        except StoreUnavailableError as error:
            if _is_malformed_id(error):
                return
            raise

        if deleted:
            logger.info("Recipe deleted: id=%s", recipe_id)
            return

        # Row-level security filters rows silently; a surviving row means the policy refused.
        if self.get_by_id(recipe_id) is not None:
            logger.warning("Delete refused by store policy: id=%s", recipe_id)
            raise UnauthorizedError(
                "Action non autorisée. Vous ne pouvez supprimer que vos propres recettes.",
                policy_rejection=True,
            )
        logger.info("Delete of absent recipe ignored: id=%s", recipe_id)

    def create(self, draft: RecipeDraft, owner_id: str) -> Recipe:
        payload = _draft_to_row(draft)
        payload["owner_id"] = owner_id
        rows = self._execute("create", self._table().insert(payload))
        if not rows:
            raise StoreUnavailableError("create", "insert returned no row")

        recipe = _row_to_recipe(rows[0])
        logger.info("Recipe created: id=%s, owner=%s", recipe.id, owner_id)
        return recipe

    def update(self, recipe_id: str, draft: RecipeDraft) -> Recipe:
        try:
            rows = self._execute(
                "update",
                self._table().update(_draft_to_row(draft)).eq("id", recipe_id),
            )
        except StoreUnavailableError as error:
            if _is_malformed_id(error):
                raise NotFoundError(recipe_id) from error
            raise

        if rows:
            logger.info("Recipe updated: id=%s", recipe_id)
            return _row_to_recipe(rows[0])

        if self.get_by_id(recipe_id) is None:
            raise NotFoundError(recipe_id)
        logger.warning("Update refused by store policy: id=%s", recipe_id)
        raise UnauthorizedError(
            "Action non autorisée. Vous ne pouvez modifier que vos propres recettes.",
            policy_rejection=True,
        )

    def exists_any(self) -> bool:
        rows = self._execute("exists_any", self._table().select("id").limit(1))
        return bool(rows)

    def insert_many(self, drafts: Sequence[RecipeDraft], owner_id: str) -> list[Recipe]:
        if not drafts:
            return []

        payload = []
        for draft in drafts:
            row = _draft_to_row(draft)
            row["owner_id"] = owner_id
            payload.append(row)

        # A single multi-row INSERT is one statement, so Postgres applies it atomically.
        rows = self._execute("insert_many", self._table().insert(payload))
        if len(rows) != len(payload):
            raise StoreUnavailableError(
                "insert_many", f"expected {len(payload)} rows, store returned {len(rows)}"
            )
        logger.info("Inserted %d recipes for owner=%s", len(rows), owner_id)
        return [_row_to_recipe(row) for row in rows]


def _is_malformed_id(error: StoreUnavailableError) -> bool:
    cause = error.__cause__
    return isinstance(cause, PostgrestAPIError) and cause.code == _MALFORMED_ID_CODE
