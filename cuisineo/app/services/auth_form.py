from __future__ import annotations

from pydantic import BaseModel, EmailStr, ValidationError

from cuisineo.app.domain.errors import AuthFormValidationError
from cuisineo.app.domain.models import AuthFailureReason
from cuisineo.app.schemas.auth import AuthFormInput

MIN_PASSWORD_LENGTH = 6

FRIENDLY_MESSAGES: dict[AuthFailureReason, str] = {
    AuthFailureReason.INVALID_CREDENTIALS: "Adresse email ou mot de passe incorrect.",
    AuthFailureReason.EMAIL_ALREADY_REGISTERED: "Cette adresse email est déjà associée à un compte.",
    AuthFailureReason.MALFORMED_EMAIL: "Le format de l'adresse email n'est pas valide.",
    AuthFailureReason.WEAK_PASSWORD: "Le mot de passe choisi est trop faible (minimum 6 caractères).",
    AuthFailureReason.UNKNOWN: "Une erreur est survenue lors de la tentative d'authentification.",
}


class _EmailCheck(BaseModel):
    email: EmailStr


def validate_auth_form(form: AuthFormInput) -> tuple[str, str]:
    """Return (email, password) or raise AuthFormValidationError."""
    errors: dict[str, str] = {}

    email = (form.email or "").strip()
    if not email:
        errors["email"] = "L'adresse email est obligatoire."
    else:
        try:
            _EmailCheck(email=email)
        except ValidationError:
            errors["email"] = "L'adresse email fournie n'est pas valide."

    password = form.password or ""
    if not password:
        errors["password"] = "Le mot de passe est obligatoire."
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = "Le mot de passe doit comporter au moins 6 caractères."

    if errors:
        raise AuthFormValidationError(errors)
    return email, password


def friendly_message(reason: AuthFailureReason) -> str:
    return FRIENDLY_MESSAGES.get(reason, FRIENDLY_MESSAGES[AuthFailureReason.UNKNOWN])
