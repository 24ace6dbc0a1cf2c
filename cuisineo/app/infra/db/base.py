# cuisineo/app/infra/db/base.py
"""
Abstract base class for the recipe document store.
This interface allows easy swapping between different store backends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from cuisineo.app.domain.models import Recipe, RecipeDraft


class RecipeRepository(ABC):
    """
    Abstract interface for recipe persistence.

    Implementations:
    - SupabaseRecipeRepository: PostgREST table guarded by row-level security

    Ownership of mutations is enforced by the store's access policy,
    never re-derived here.
    """

    @abstractmethod
    def list_all(self) -> list[Recipe]:
        """
        List every recipe, newest first.

        Returns:
            Recipes ordered by created_at descending

        Raises:
            StoreUnavailableError: On transport or query failure
        """
        pass

    @abstractmethod
    def list_by_owner(self, owner_id: str) -> list[Recipe]:
        """
        List the recipes owned by one identity, newest first.

        Args:
            owner_id: Identity that owns the recipes

        Returns:
            Recipes ordered by created_at descending
        """
        pass

    @abstractmethod
    def get_by_id(self, recipe_id: str) -> Optional[Recipe]:
        """
        Point lookup.

        Args:
            recipe_id: Store-assigned identifier

        Returns:
            The recipe, or None if no record has this identifier

        Raises:
            StoreUnavailableError: On transport failure only
        """
        pass

    @abstractmethod
    def delete_by_id(self, recipe_id: str) -> None:
        """
        Delete a recipe. Deleting an absent record is a no-op.

        Args:
            recipe_id: Store-assigned identifier

        Raises:
            UnauthorizedError: The store policy kept the record
            StoreUnavailableError: On transport failure
        """
        pass

    @abstractmethod
    def create(self, draft: RecipeDraft, owner_id: str) -> Recipe:
        """
        Insert a new recipe with store-generated id and timestamps.

        Args:
            draft: Validated recipe fields
            owner_id: Identity stamped as owner

        Returns:
            The stored recipe
        """
        pass

    @abstractmethod
    def update(self, recipe_id: str, draft: RecipeDraft) -> Recipe:
        """
        Replace the user-supplied fields of a recipe.
        Only updated_at is refreshed; owner and created_at are kept.

        Args:
            recipe_id: Recipe to update
            draft: Validated recipe fields

        Returns:
            The updated recipe

        Raises:
            NotFoundError: No record has this identifier
            UnauthorizedError: The store policy rejected the update
        """
        pass

    @abstractmethod
    def exists_any(self) -> bool:
        """
        Cheap existence probe (scan limited to one record).

        Returns:
            True if the collection holds at least one recipe
        """
        pass

    @abstractmethod
    def insert_many(self, drafts: Sequence[RecipeDraft], owner_id: str) -> list[Recipe]:
        """
        Insert several recipes as a single all-or-nothing write.

        Args:
            drafts: Recipes to insert
            owner_id: Identity stamped as owner on every record

        Returns:
            The stored recipes, each with its own store-assigned id
        """
        pass
