# cuisineo/app/services/browsers.py
"""
Per-browser application state.

A browser is identified by a long-lived cookie. Each one gets its own
Supabase client (its auth session drives the PostgREST token, so the store
policy sees the right user), session context, local cache and seed migration.
"""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
from supabase import AuthError, Client, create_client

from cuisineo.app.infra.db.base import RecipeRepository
from cuisineo.app.infra.db.supabase_recipes_repo import SupabaseRecipeRepository
from cuisineo.app.infra.identity.supabase_gateway import SupabaseIdentityGateway
from cuisineo.app.infra.local.base import LocalStore
from cuisineo.app.infra.local.json_file_store import JsonFileLocalStore
from cuisineo.app.services.local_recipes import seed_local_cache
from cuisineo.app.services.seed_migration import SeedMigration
from cuisineo.app.services.session_context import SessionContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_BROWSERS = 1000


@dataclass
class BrowserContext:
    browser_id: str
    session: SessionContext
    local_store: LocalStore
    recipes: RecipeRepository
    migration: SeedMigration
    client: Optional[Client] = None

    def close(self) -> None:
        self.session.close()
        if self.client is None:
            return
        # Local scope only drops the in-memory session and stops the token refresh timer.
        try:
            self.client.auth.sign_out({"scope": "local"})
        except (AuthError, httpx.HTTPError, ConnectionError, TimeoutError) as error:
            logger.warning("Could not end session of browser %s: %s", self.browser_id, error)


BrowserContextFactory = Callable[[str], BrowserContext]


class BrowserRegistry:
    """
    Builds browser contexts on first use and closes them on eviction or
    shutdown. Least recently used contexts are evicted past `max_browsers`;
    their persisted local cache survives, their sign-in does not.
    """

    def __init__(self, factory: BrowserContextFactory, max_browsers: int = DEFAULT_MAX_BROWSERS):
        self._factory = factory
        self._max_browsers = max_browsers
        self._contexts: "OrderedDict[str, BrowserContext]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._contexts)

    def get_or_create(self, browser_id: str) -> BrowserContext:
        with self._lock:
            context = self._contexts.get(browser_id)
            if context is not None:
                self._contexts.move_to_end(browser_id)
                return context

            context = self._factory(browser_id)
            self._contexts[browser_id] = context
            logger.info("Browser context created: %s", browser_id)

            while len(self._contexts) > self._max_browsers:
                evicted_id, evicted = self._contexts.popitem(last=False)
                evicted.close()
                logger.info("Browser context evicted: %s", evicted_id)
            return context

    def close_all(self) -> None:
        with self._lock:
            contexts = list(self._contexts.values())
            self._contexts.clear()
        for context in contexts:
            context.close()
        logger.info("Closed %d browser contexts", len(contexts))


def supabase_context_factory(
    supabase_url: str,
    supabase_key: str,
    local_store_dir: Path,
    seed: list[dict[str, Any]],
    table_name: str | None = None,
    client_factory: Callable[[str, str], Client] = create_client,
) -> BrowserContextFactory:
    def _build(browser_id: str) -> BrowserContext:
        client = client_factory(supabase_url, supabase_key)
        session = SessionContext(SupabaseIdentityGateway(client))
        session.start()

        local_store = JsonFileLocalStore(local_store_dir, browser_id)
        seed_local_cache(local_store, seed)

        recipes = SupabaseRecipeRepository(client, table_name)
        return BrowserContext(
            browser_id=browser_id,
            session=session,
            local_store=local_store,
            recipes=recipes,
            migration=SeedMigration(recipes, local_store),
            client=client,
        )

    return _build
