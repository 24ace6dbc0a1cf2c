# cuisineo/app/domain/models.py
"""
Domain models for recipes, identities and the seed migration.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Category(str, Enum):
    """Fixed set of recipe categories."""
    ENTREE = "entrée"
    PLAT = "plat"
    DESSERT = "dessert"
    BOISSON = "boisson"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


DEFAULT_CATEGORY = Category.PLAT


@dataclass
class Identity:
    """An authenticated user as reported by the identity gateway."""
    id: str
    email: Optional[str] = None


@dataclass
class RecipeDraft:
    """User-supplied recipe fields, already validated and normalized."""
    name: str
    category: Category
    ingredients: list[str]
    steps: str
    image_url: Optional[str] = None


@dataclass
class Recipe:
    """
    A recipe as stored in the document store.
    `id`, `created_at` and `updated_at` are assigned by the store.
    """
    id: str
    name: str
    category: Category
    ingredients: list[str] = field(default_factory=list)
    steps: str = ""
    image_url: Optional[str] = None
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_owned_by(self, identity: Optional[Identity]) -> bool:
        return identity is not None and self.owner_id == identity.id

    def to_draft(self) -> RecipeDraft:
        return RecipeDraft(
            name=self.name,
            category=self.category,
            ingredients=list(self.ingredients),
            steps=self.steps,
            image_url=self.image_url,
        )


class AuthFailureReason(str, Enum):
    """Closed taxonomy of identity gateway rejections."""
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_ALREADY_REGISTERED = "email_already_registered"
    MALFORMED_EMAIL = "malformed_email"
    WEAK_PASSWORD = "weak_password"
    UNKNOWN = "unknown"


class MigrationState(str, Enum):
    """States of the one-time seed migration."""
    IDLE = "idle"
    CHECKING = "checking"
    IMPORTING = "importing"
    DONE = "done"
    ERROR = "error"


class MigrationOutcome(str, Enum):
    """Why a migration run ended where it did."""
    ALREADY_DONE = "already_done"
    SKIPPED_STORE_POPULATED = "skipped_store_populated"
    SKIPPED_EMPTY_CACHE = "skipped_empty_cache"
    IMPORTED = "imported"
    FAILED = "failed"
    NOT_AUTHENTICATED = "not_authenticated"
    IN_PROGRESS = "in_progress"


@dataclass
class MigrationReport:
    """Result of one invocation of the seed migration."""
    state: MigrationState
    outcome: MigrationOutcome
    imported_count: int = 0
    error_message: Optional[str] = None

    @property
    def is_done(self) -> bool:
        return self.state == MigrationState.DONE
