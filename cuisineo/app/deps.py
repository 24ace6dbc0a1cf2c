# cuisineo/app/deps.py (browser registry lives on app.state, exposed as dependencies)

from __future__ import annotations

import re
from typing import Optional
from uuid import uuid4

from fastapi import Depends, HTTPException, Request, Response, status

from cuisineo.app.config import settings
from cuisineo.app.domain.errors import SessionInitializingError
from cuisineo.app.domain.models import Identity
from cuisineo.app.infra.db.base import RecipeRepository
from cuisineo.app.services.browsers import BrowserContext, BrowserRegistry
from cuisineo.app.services.session_context import SessionContext

_BROWSER_ID_RE = re.compile(r"^[a-f0-9]{32}$")


def get_registry(request: Request) -> BrowserRegistry:
    return request.app.state.browsers


def get_browser(
    request: Request,
    response: Response,
    registry: BrowserRegistry = Depends(get_registry),
) -> BrowserContext:
    """
    Resolve the browser context from its cookie, issuing a new cookie
    on a browser's first visit.
    """
    browser_id = request.cookies.get(settings.BROWSER_COOKIE_NAME)
    if not browser_id or not _BROWSER_ID_RE.match(browser_id):
        browser_id = uuid4().hex
        response.set_cookie(
            settings.BROWSER_COOKIE_NAME,
            browser_id,
            max_age=settings.BROWSER_COOKIE_MAX_AGE,
            httponly=True,
            samesite="lax",
        )
    return registry.get_or_create(browser_id)


def get_session(browser: BrowserContext = Depends(get_browser)) -> SessionContext:
    """Session of a browser whose initial auth state is known."""
    try:
        return browser.session.require_ready()
    except SessionInitializingError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session en cours d'initialisation. Veuillez réessayer.",
        )


def get_optional_identity(session: SessionContext = Depends(get_session)) -> Optional[Identity]:
    return session.current_identity


def get_current_identity(session: SessionContext = Depends(get_session)) -> Identity:
    identity = session.current_identity
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Action non autorisée. Veuillez vous connecter.",
        )
    return identity


def get_recipe_repository(browser: BrowserContext = Depends(get_browser)) -> RecipeRepository:
    return browser.recipes
