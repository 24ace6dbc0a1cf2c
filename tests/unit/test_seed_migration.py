from __future__ import annotations

import json

import pytest

from cuisineo.app.domain.errors import LocalStoreError
from cuisineo.app.domain.models import (
    Category,
    Identity,
    MigrationOutcome,
    MigrationState,
    RecipeDraft,
)
from cuisineo.app.infra.local.base import InMemoryLocalStore
from cuisineo.app.services.local_recipes import (
    LOCAL_RECIPES_KEY,
    STORE_IMPORTED_FLAG_KEY,
    read_local_recipes,
    seed_local_cache,
)
from cuisineo.app.services.seed_migration import (
    InvalidMigrationTransition,
    SeedMigration,
    can_transition,
)
from stubs import RecipeRepositoryStub

USER = Identity(id="user-42", email="chef@cuisineo.fr")

SEED = [
    {"name": "Velouté de potimarron", "category": "entrée", "ingredients": ["potimarron"], "steps": "Mixer."},
    {"name": "Gratin dauphinois", "category": "plat", "ingredients": ["pommes de terre"], "steps": "Cuire."},
    {"name": "Mousse au chocolat", "category": "dessert", "ingredients": ["chocolat"], "steps": "Fouetter."},
]


def _seeded_store() -> InMemoryLocalStore:
    store = InMemoryLocalStore()
    seed_local_cache(store, SEED)
    return store


class FlagWriteFailingStore(InMemoryLocalStore):
    def set_item(self, key: str, value: str) -> None:
        if key == STORE_IMPORTED_FLAG_KEY:
            raise LocalStoreError(key, "disk full")
        super().set_item(key, value)


class TestTransitions:
    def test_allowed_transitions(self) -> None:
        assert can_transition(MigrationState.IDLE, MigrationState.CHECKING)
        assert can_transition(MigrationState.CHECKING, MigrationState.IMPORTING)
        assert can_transition(MigrationState.IMPORTING, MigrationState.ERROR)
        assert can_transition(MigrationState.ERROR, MigrationState.CHECKING)

    def test_forbidden_transitions(self) -> None:
        assert not can_transition(MigrationState.IDLE, MigrationState.IMPORTING)
        assert not can_transition(MigrationState.DONE, MigrationState.IMPORTING)
        assert not can_transition(MigrationState.IMPORTING, MigrationState.CHECKING)

    def test_invalid_transition_raises(self) -> None:
        migration = SeedMigration(RecipeRepositoryStub(), InMemoryLocalStore())
        with pytest.raises(InvalidMigrationTransition):
            migration._transition(MigrationState.IMPORTING)


class TestSeedMigrationRun:
    def test_imports_seed_into_empty_store(self) -> None:
        repo = RecipeRepositoryStub()
        store = _seeded_store()
        migration = SeedMigration(repo, store)

        report = migration.run(USER)

        assert report.outcome is MigrationOutcome.IMPORTED
        assert report.state is MigrationState.DONE
        assert report.imported_count == 3
        assert len(repo.insert_many_calls) == 1

        recipes = repo.list_all()
        assert len(recipes) == 3
        assert {recipe.owner_id for recipe in recipes} == {USER.id}
        assert len({recipe.id for recipe in recipes}) == 3
        assert {recipe.category for recipe in recipes} == {
            Category.ENTREE,
            Category.PLAT,
            Category.DESSERT,
        }

    def test_import_sets_flag_and_clears_cache(self) -> None:
        store = _seeded_store()
        SeedMigration(RecipeRepositoryStub(), store).run(USER)

        assert store.get_item(STORE_IMPORTED_FLAG_KEY) == "true"
        assert store.get_item(LOCAL_RECIPES_KEY) is None

    def test_second_run_makes_no_store_calls(self) -> None:
        repo = RecipeRepositoryStub()
        migration = SeedMigration(repo, _seeded_store())

        migration.run(USER)
        report = migration.run(USER)

        assert report.outcome is MigrationOutcome.ALREADY_DONE
        assert report.state is MigrationState.DONE
        assert repo.probe_calls == 1
        assert len(repo.insert_many_calls) == 1

    def test_flag_from_previous_visit_skips_probe(self) -> None:
        repo = RecipeRepositoryStub()
        store = _seeded_store()
        store.set_item(STORE_IMPORTED_FLAG_KEY, "true")

        report = SeedMigration(repo, store).run(USER)

        assert report.outcome is MigrationOutcome.ALREADY_DONE
        assert repo.probe_calls == 0
        assert repo.write_count == 0

    def test_populated_store_is_left_untouched(self) -> None:
        repo = RecipeRepositoryStub()
        repo.add(
            RecipeDraft(name="Soupe", category=Category.ENTREE, ingredients=["eau"], steps="Chauffer."),
            owner_id="someone-else",
        )
        store = _seeded_store()

        report = SeedMigration(repo, store).run(USER)

        assert report.outcome is MigrationOutcome.SKIPPED_STORE_POPULATED
        assert report.state is MigrationState.DONE
        assert repo.write_count == 0
        assert store.get_item(STORE_IMPORTED_FLAG_KEY) == "true"
        # local cache is only dropped after an import
        assert len(read_local_recipes(store)) == 3

    def test_second_browser_after_import_writes_nothing(self) -> None:
        repo = RecipeRepositoryStub()
        SeedMigration(repo, _seeded_store()).run(USER)

        other_browser = SeedMigration(repo, _seeded_store())
        report = other_browser.run(Identity(id="user-7"))

        assert report.outcome is MigrationOutcome.SKIPPED_STORE_POPULATED
        assert len(repo.insert_many_calls) == 1
        assert len(repo.list_all()) == 3

    def test_empty_cache_finishes_without_import(self) -> None:
        repo = RecipeRepositoryStub()
        store = InMemoryLocalStore({LOCAL_RECIPES_KEY: "[]"})

        report = SeedMigration(repo, store).run(USER)

        assert report.outcome is MigrationOutcome.SKIPPED_EMPTY_CACHE
        assert report.state is MigrationState.DONE
        assert repo.insert_many_calls == []
        assert store.get_item(STORE_IMPORTED_FLAG_KEY) == "true"

    def test_probe_failure_leaves_flag_unset_and_retry_succeeds(self) -> None:
        repo = RecipeRepositoryStub()
        repo.fail_probe = True
        store = _seeded_store()
        migration = SeedMigration(repo, store)

        report = migration.run(USER)

        assert report.outcome is MigrationOutcome.FAILED
        assert report.state is MigrationState.ERROR
        assert report.error_message
        assert store.get_item(STORE_IMPORTED_FLAG_KEY) is None
        assert repo.insert_many_calls == []

        repo.fail_probe = False
        retry = migration.run(USER)

        assert retry.outcome is MigrationOutcome.IMPORTED
        assert retry.state is MigrationState.DONE
        assert store.get_item(STORE_IMPORTED_FLAG_KEY) == "true"

    def test_insert_failure_keeps_local_cache(self) -> None:
        repo = RecipeRepositoryStub()
        repo.fail_insert = True
        store = _seeded_store()

        report = SeedMigration(repo, store).run(USER)

        assert report.outcome is MigrationOutcome.FAILED
        assert report.state is MigrationState.ERROR
        assert store.get_item(STORE_IMPORTED_FLAG_KEY) is None
        assert len(read_local_recipes(store)) == 3

    def test_flag_write_failure_moves_to_error(self) -> None:
        store = FlagWriteFailingStore({LOCAL_RECIPES_KEY: json.dumps([])})

        report = SeedMigration(RecipeRepositoryStub(), store).run(USER)

        assert report.outcome is MigrationOutcome.FAILED
        assert report.state is MigrationState.ERROR

    def test_requires_identity(self) -> None:
        repo = RecipeRepositoryStub()
        migration = SeedMigration(repo, _seeded_store())

        report = migration.run(None)

        assert report.outcome is MigrationOutcome.NOT_AUTHENTICATED
        assert report.state is MigrationState.IDLE
        assert repo.probe_calls == 0

    def test_concurrent_run_reports_in_progress(self) -> None:
        repo = RecipeRepositoryStub()
        migration = SeedMigration(repo, _seeded_store())

        migration._run_lock.acquire()
        try:
            report = migration.run(USER)
        finally:
            migration._run_lock.release()

        assert report.outcome is MigrationOutcome.IN_PROGRESS
        assert repo.probe_calls == 0

    def test_unexpected_probe_error_moves_to_error_and_retry_succeeds(self) -> None:
        repo = RecipeRepositoryStub()
        store = _seeded_store()
        migration = SeedMigration(repo, store)
        original_probe = repo.exists_any

        def _broken_probe() -> bool:
            raise KeyError("id")

        repo.exists_any = _broken_probe
        report = migration.run(USER)

        assert report.outcome is MigrationOutcome.FAILED
        assert report.state is MigrationState.ERROR
        assert store.get_item(STORE_IMPORTED_FLAG_KEY) is None

        repo.exists_any = original_probe
        retry = migration.run(USER)

        assert retry.outcome is MigrationOutcome.IMPORTED
        assert retry.state is MigrationState.DONE

    def test_unexpected_insert_error_keeps_local_cache(self) -> None:
        repo = RecipeRepositoryStub()
        store = _seeded_store()

        def _broken_insert(drafts, owner_id):
            raise RuntimeError("connection reset")

        repo.insert_many = _broken_insert
        report = SeedMigration(repo, store).run(USER)

        assert report.outcome is MigrationOutcome.FAILED
        assert report.state is MigrationState.ERROR
        assert len(read_local_recipes(store)) == 3
