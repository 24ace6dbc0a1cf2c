from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from cuisineo.app.domain.models import Identity


class AuthFormInput(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class IdentityResponse(BaseModel):
    id: str
    email: Optional[str] = None

    @classmethod
    def from_identity(cls, identity: Identity) -> "IdentityResponse":
        return cls(id=identity.id, email=identity.email)


class SessionResponse(BaseModel):
    user: Optional[IdentityResponse] = None
    initializing: bool = False
    redirectTo: Optional[str] = None
