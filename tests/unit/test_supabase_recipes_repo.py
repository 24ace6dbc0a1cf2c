from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx
import pytest
from supabase import PostgrestAPIError

from cuisineo.app.domain.errors import NotFoundError, StoreUnavailableError, UnauthorizedError
from cuisineo.app.domain.models import Category, RecipeDraft
from cuisineo.app.infra.db.supabase_recipes_repo import SupabaseRecipeRepository

ROW = {
    "id": "5b0e2c1e-8a36-4f62-9d0e-0c7b7f1f2a10",
    "name": "Gratin dauphinois",
    "category": "plat",
    "ingredients": ["pommes de terre", "lait"],
    "steps": "Cuire 1h.",
    "image_url": None,
    "owner_id": "user-1",
    "created_at": "2024-01-15T12:00:00Z",
    "updated_at": "2024-01-15T12:00:00+00:00",
}

DRAFT = RecipeDraft(
    name="Gratin dauphinois",
    category=Category.PLAT,
    ingredients=["pommes de terre", "lait"],
    steps="Cuire 1h.",
)


def _result(rows):
    return MagicMock(data=rows)


def _api_error(code: str, message: str = "error") -> PostgrestAPIError:
    return PostgrestAPIError({"message": message, "code": code, "hint": None, "details": None})


def _repo_with(*results):
    """Each result is either a list of rows or an exception raised by execute()."""
    query = MagicMock()
    for method in ("select", "eq", "order", "limit", "insert", "update", "delete"):
        getattr(query, method).return_value = query
    query.execute.side_effect = [
        result if isinstance(result, Exception) else _result(result) for result in results
    ]
    client = MagicMock()
    client.table.return_value = query
    return SupabaseRecipeRepository(client), client, query


class TestReads:
    def test_list_all_orders_newest_first(self) -> None:
        repo, client, query = _repo_with([ROW])

        recipes = repo.list_all()

        client.table.assert_called_with("recipes")
        query.order.assert_called_once_with("created_at", desc=True)
        assert len(recipes) == 1
        recipe = recipes[0]
        assert recipe.category is Category.PLAT
        assert recipe.ingredients == ["pommes de terre", "lait"]
        assert recipe.created_at == datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

    def test_list_by_owner_filters(self) -> None:
        repo, _, query = _repo_with([ROW])

        repo.list_by_owner("user-1")

        query.eq.assert_called_once_with("owner_id", "user-1")

    def test_unknown_category_falls_back_to_plat(self) -> None:
        repo, _, _ = _repo_with([{**ROW, "category": "apéritif"}])
        assert repo.list_all()[0].category is Category.PLAT

    def test_get_by_id_absent(self) -> None:
        repo, _, _ = _repo_with([])
        assert repo.get_by_id("missing") is None

    def test_get_by_id_malformed_id_is_absent(self) -> None:
        repo, _, _ = _repo_with(_api_error("22P02", "invalid input syntax for type uuid"))
        assert repo.get_by_id("not-a-uuid") is None

    def test_transport_failure(self) -> None:
        repo, _, _ = _repo_with(httpx.ConnectError("connection refused"))
        with pytest.raises(StoreUnavailableError) as exc_info:
            repo.list_all()
        assert exc_info.value.operation == "list_all"

    def test_query_error(self) -> None:
        repo, _, _ = _repo_with(_api_error("PGRST000", "database unreachable"))
        with pytest.raises(StoreUnavailableError):
            repo.list_all()

    def test_exists_any(self) -> None:
        repo, _, query = _repo_with([{"id": ROW["id"]}], [])

        assert repo.exists_any() is True
        assert repo.exists_any() is False
        query.limit.assert_called_with(1)


class TestDelete:
    def test_deleted_row(self) -> None:
        repo, _, query = _repo_with([ROW])

        repo.delete_by_id(ROW["id"])

        query.delete.assert_called_once()
        query.eq.assert_called_once_with("id", ROW["id"])

    def test_silently_filtered_delete_is_unauthorized(self) -> None:
        repo, _, _ = _repo_with([], [ROW])

        with pytest.raises(UnauthorizedError) as exc_info:
            repo.delete_by_id(ROW["id"])
        assert exc_info.value.policy_rejection is True

    def test_absent_row_is_a_noop(self) -> None:
        repo, _, _ = _repo_with([], [])
        repo.delete_by_id(ROW["id"])

    def test_policy_error_code(self) -> None:
        repo, _, _ = _repo_with(_api_error("42501", "permission denied for table recipes"))
        with pytest.raises(UnauthorizedError):
            repo.delete_by_id(ROW["id"])

    def test_transport_failure(self) -> None:
        repo, _, _ = _repo_with(TimeoutError("timed out"))
        with pytest.raises(StoreUnavailableError):
            repo.delete_by_id(ROW["id"])


class TestWrites:
    def test_create_stamps_owner(self) -> None:
        repo, _, query = _repo_with([ROW])

        recipe = repo.create(DRAFT, "user-1")

        payload = query.insert.call_args.args[0]
        assert payload["owner_id"] == "user-1"
        assert payload["category"] == "plat"
        assert "id" not in payload
        assert recipe.id == ROW["id"]

    def test_create_without_returned_row(self) -> None:
        repo, _, _ = _repo_with([])
        with pytest.raises(StoreUnavailableError):
            repo.create(DRAFT, "user-1")

    def test_update_does_not_send_owner(self) -> None:
        repo, _, query = _repo_with([{**ROW, "name": "Gratin savoyard"}])

        recipe = repo.update(ROW["id"], DRAFT)

        payload = query.update.call_args.args[0]
        assert "owner_id" not in payload
        assert "created_at" not in payload
        assert recipe.name == "Gratin savoyard"

    def test_update_absent_row(self) -> None:
        repo, _, _ = _repo_with([], [])
        with pytest.raises(NotFoundError):
            repo.update(ROW["id"], DRAFT)

    def test_update_filtered_by_policy(self) -> None:
        repo, _, _ = _repo_with([], [ROW])
        with pytest.raises(UnauthorizedError):
            repo.update(ROW["id"], DRAFT)

    def test_insert_many_single_statement(self) -> None:
        rows = [{**ROW, "id": f"id-{index}"} for index in range(3)]
        repo, _, query = _repo_with(rows)

        recipes = repo.insert_many([DRAFT, DRAFT, DRAFT], "user-1")

        query.insert.assert_called_once()
        payload = query.insert.call_args.args[0]
        assert len(payload) == 3
        assert {row["owner_id"] for row in payload} == {"user-1"}
        assert [recipe.id for recipe in recipes] == ["id-0", "id-1", "id-2"]

    def test_insert_many_row_count_mismatch(self) -> None:
        repo, _, _ = _repo_with([ROW])
        with pytest.raises(StoreUnavailableError):
            repo.insert_many([DRAFT, DRAFT], "user-1")

    def test_insert_many_nothing_to_insert(self) -> None:
        repo, client, _ = _repo_with()
        assert repo.insert_many([], "user-1") == []
        client.table.assert_not_called()
