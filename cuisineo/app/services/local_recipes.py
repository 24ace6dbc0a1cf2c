from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

from cuisineo.app.domain.models import DEFAULT_CATEGORY, Category, RecipeDraft
from cuisineo.app.infra.local.base import LocalStore

logger = logging.getLogger(__name__)

LOCAL_RECIPES_KEY = "cuisineo_recettes"
STORE_IMPORTED_FLAG_KEY = "cuisineo_store_imported"


def load_seed_file(path: Path) -> list[dict[str, Any]]:
    """Load the bundled demonstration recipes."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Seed file {path} must hold a JSON list")
    return [entry for entry in data if isinstance(entry, dict)]


def seed_local_cache(
    store: LocalStore,
    seed: list[dict[str, Any]],
    now: Optional[datetime] = None,
) -> int:
    """
    Copy the demo recipes into the local cache on a browser's first load.
    Existing cache content is never overwritten.

    Returns:
        Number of recipes written (0 when the cache already existed)
    """
    if store.get_item(LOCAL_RECIPES_KEY) is not None:
        return 0

    base = now or datetime.now(timezone.utc)
    records = []
    for index, recipe in enumerate(seed):
        # one minute apart so the seed keeps a stable newest-first order
        stamp = (base - timedelta(minutes=index)).isoformat()
        records.append(
            {
                **recipe,
                "id": str(uuid4()),
                "image_url": recipe.get("image_url") or None,
                "created_at": stamp,
                "updated_at": stamp,
            }
        )

    store.set_item(LOCAL_RECIPES_KEY, json.dumps(records, ensure_ascii=False))
    logger.info("Local cache seeded with %d recipes", len(records))
    return len(records)


def read_local_recipes(store: LocalStore) -> list[dict[str, Any]]:
    raw = store.get_item(LOCAL_RECIPES_KEY)
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError as error:
        logger.error("Local cache is not valid JSON, ignoring it: %s", error)
        return []
    if not isinstance(data, list):
        return []
    return [entry for entry in data if isinstance(entry, dict)]


def clear_local_recipes(store: LocalStore) -> None:
    store.remove_item(LOCAL_RECIPES_KEY)


def local_record_to_draft(record: dict[str, Any]) -> RecipeDraft:
    """Convert a cached record, defaulting missing fields the way the import always did."""
    try:
        category = Category(str(record.get("category")))
    except ValueError:
        category = DEFAULT_CATEGORY

    ingredients = record.get("ingredients")
    if not isinstance(ingredients, list):
        ingredients = []

    return RecipeDraft(
        name=str(record.get("name") or "Sans nom"),
        category=category,
        ingredients=[str(item).strip() for item in ingredients if str(item).strip()],
        steps=str(record.get("steps") or ""),
        image_url=record.get("image_url") or None,
    )
