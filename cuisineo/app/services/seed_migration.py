# cuisineo/app/services/seed_migration.py
"""
One-time promotion of the locally cached demo recipes into the document store.

States: idle -> checking -> (importing) -> done, with error reachable from
checking and importing. The persisted flag is scoped to one browser; only
the store's non-emptiness is shared between browsers. Two tabs or processes
running the first check at the same moment can both import (accepted gap).
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from cuisineo.app.domain.errors import CuisineoError
from cuisineo.app.domain.models import Identity, MigrationOutcome, MigrationReport, MigrationState
from cuisineo.app.infra.db.base import RecipeRepository
from cuisineo.app.infra.local.base import LocalStore
from cuisineo.app.services.local_recipes import (
    STORE_IMPORTED_FLAG_KEY,
    clear_local_recipes,
    local_record_to_draft,
    read_local_recipes,
)

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[MigrationState, frozenset[MigrationState]] = {
    MigrationState.IDLE: frozenset({MigrationState.CHECKING, MigrationState.DONE}),
    MigrationState.CHECKING: frozenset(
        {MigrationState.IMPORTING, MigrationState.DONE, MigrationState.ERROR}
    ),
    MigrationState.IMPORTING: frozenset({MigrationState.DONE, MigrationState.ERROR}),
    MigrationState.DONE: frozenset({MigrationState.CHECKING}),
    MigrationState.ERROR: frozenset({MigrationState.CHECKING, MigrationState.DONE}),
}


class InvalidMigrationTransition(RuntimeError):
    def __init__(self, current: MigrationState, target: MigrationState):
        super().__init__(f"Invalid migration transition: {current.value} -> {target.value}")
        self.current = current
        self.target = target


def can_transition(current: MigrationState, target: MigrationState) -> bool:
    return target in _TRANSITIONS[current]


class SeedMigration:
    """
    Seed migration for one browser.

    A run already in progress in this process is never started a second
    time; the caller gets an IN_PROGRESS report instead.
    """

    def __init__(self, repository: RecipeRepository, local_store: LocalStore):
        self._repo = repository
        self._local = local_store
        self._state = MigrationState.IDLE
        self._run_lock = threading.Lock()

    @property
    def state(self) -> MigrationState:
        return self._state

    def _transition(self, target: MigrationState) -> None:
        if not can_transition(self._state, target):
            raise InvalidMigrationTransition(self._state, target)
        logger.debug("Seed migration: %s -> %s", self._state.value, target.value)
        self._state = target

    def flag_is_set(self) -> bool:
        return bool(self._local.get_item(STORE_IMPORTED_FLAG_KEY))

    def _set_flag(self) -> None:
        self._local.set_item(STORE_IMPORTED_FLAG_KEY, "true")

    def run(self, identity: Optional[Identity]) -> MigrationReport:
        if identity is None:
            return MigrationReport(state=self._state, outcome=MigrationOutcome.NOT_AUTHENTICATED)

        if not self._run_lock.acquire(blocking=False):
            return MigrationReport(state=self._state, outcome=MigrationOutcome.IN_PROGRESS)
        try:
            return self._run(identity)
        finally:
            self._run_lock.release()

    def _run(self, identity: Identity) -> MigrationReport:
        if self.flag_is_set():
            if self._state != MigrationState.DONE:
                self._transition(MigrationState.DONE)
            logger.info("Seed migration already done for this browser (flag found)")
            return MigrationReport(state=self._state, outcome=MigrationOutcome.ALREADY_DONE)

        self._transition(MigrationState.CHECKING)
        try:
            store_populated = self._repo.exists_any()
        except Exception as error:
            return self._fail("Existence probe failed", error)

        if store_populated:
            logger.info("Store already holds recipes, nothing to import")
            return self._finish(MigrationOutcome.SKIPPED_STORE_POPULATED)

        try:
            records = read_local_recipes(self._local)
        except Exception as error:
            return self._fail("Local cache unreadable", error)
        if not records:
            logger.info("Local cache is empty, nothing to import")
            return self._finish(MigrationOutcome.SKIPPED_EMPTY_CACHE)

        self._transition(MigrationState.IMPORTING)
        logger.info("Importing %d local recipes for owner=%s", len(records), identity.id)
        try:
            drafts = [local_record_to_draft(record) for record in records]
            imported = self._repo.insert_many(drafts, identity.id)
        except Exception as error:
            return self._fail("Import failed", error)

        logger.info("Seed migration imported %d recipes", len(imported))
        return self._finish(MigrationOutcome.IMPORTED, imported_count=len(imported), clear_cache=True)

    def _finish(
        self,
        outcome: MigrationOutcome,
        imported_count: int = 0,
        clear_cache: bool = False,
    ) -> MigrationReport:
        try:
            self._set_flag()
            if clear_cache:
                clear_local_recipes(self._local)
        except Exception as error:
            return self._fail("Could not persist the migration flag", error)

        self._transition(MigrationState.DONE)
        return MigrationReport(state=self._state, outcome=outcome, imported_count=imported_count)

    def _fail(self, message: str, error: Exception) -> MigrationReport:
        # Flag stays unset so the next visit retries.
        logger.error(
            "Seed migration error: %s: %s",
            message,
            error,
            exc_info=not isinstance(error, CuisineoError),
        )
        self._transition(MigrationState.ERROR)
        return MigrationReport(
            state=self._state,
            outcome=MigrationOutcome.FAILED,
            error_message=str(error),
        )
