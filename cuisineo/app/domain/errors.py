from __future__ import annotations

from cuisineo.app.domain.models import AuthFailureReason


class CuisineoError(Exception):
    pass


class RecipeValidationError(CuisineoError):
    def __init__(self, field_errors: dict[str, str]):
        fields = ", ".join(sorted(field_errors))
        super().__init__(f"Invalid recipe form fields: {fields}")
        self.field_errors = field_errors


class AuthFormValidationError(CuisineoError):
    def __init__(self, field_errors: dict[str, str]):
        fields = ", ".join(sorted(field_errors))
        super().__init__(f"Invalid auth form fields: {fields}")
        self.field_errors = field_errors


class UnauthorizedError(CuisineoError):
    def __init__(self, message: str = "Action non autorisée. Veuillez vous connecter.", policy_rejection: bool = False):
        super().__init__(message)
        self.policy_rejection = policy_rejection


class NotFoundError(CuisineoError):
    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe not found: {recipe_id}")
        self.recipe_id = recipe_id


class StoreUnavailableError(CuisineoError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Document store unavailable during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class GatewayUnavailableError(CuisineoError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Identity gateway unavailable during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class AuthFailedError(CuisineoError):
    def __init__(self, reason: AuthFailureReason, detail: str = ""):
        message = f"Authentication failed: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.reason = reason
        self.detail = detail


class SessionInitializingError(CuisineoError):
    def __init__(self) -> None:
        super().__init__("Session is still initializing")


class LocalStoreError(CuisineoError):
    def __init__(self, key: str, reason: str):
        super().__init__(f"Local store error for key {key}: {reason}")
        self.key = key
        self.reason = reason
