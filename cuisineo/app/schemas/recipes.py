# cuisineo/app/schemas/recipes.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from cuisineo.app.domain.models import MigrationReport, Recipe


class RecipeFormInput(BaseModel):
    """Raw form fields; every field is checked by the recipe form validator."""
    name: Optional[str] = None
    category: Optional[str] = None
    ingredientsText: Optional[str] = None
    steps: Optional[str] = None
    imageUrl: Optional[str] = None


class RecipeFormDefaults(BaseModel):
    name: str = ""
    category: str
    ingredientsText: str = ""
    steps: str = ""
    imageUrl: str = ""


class RecipeResponse(BaseModel):
    id: str
    name: str
    category: str
    ingredients: list[str] = Field(default_factory=list)
    steps: str = ""
    imageUrl: Optional[str] = None
    ownerId: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "RecipeResponse":
        return cls(
            id=recipe.id,
            name=recipe.name,
            category=recipe.category.value,
            ingredients=list(recipe.ingredients),
            steps=recipe.steps,
            imageUrl=recipe.image_url,
            ownerId=recipe.owner_id,
            createdAt=recipe.created_at,
            updatedAt=recipe.updated_at,
        )


class RecipeListResponse(BaseModel):
    recipes: list[RecipeResponse] = Field(default_factory=list)
    total: int = 0
    emptyMessage: Optional[str] = None


class SavedRecipeResponse(BaseModel):
    recipe: RecipeResponse
    redirectTo: str


class MigrationReportResponse(BaseModel):
    state: str
    outcome: str
    importedCount: int = 0

    @classmethod
    def from_report(cls, report: MigrationReport) -> "MigrationReportResponse":
        return cls(
            state=report.state.value,
            outcome=report.outcome.value,
            importedCount=report.imported_count,
        )


class CreateViewResponse(BaseModel):
    defaults: RecipeFormDefaults
    categories: list[str]
    migration: MigrationReportResponse


class EditViewResponse(BaseModel):
    recipe: RecipeResponse
    defaults: RecipeFormDefaults
    categories: list[str]
