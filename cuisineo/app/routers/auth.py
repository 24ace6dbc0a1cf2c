from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from cuisineo.app.deps import get_browser, get_session
from cuisineo.app.domain.errors import AuthFailedError, AuthFormValidationError, GatewayUnavailableError
from cuisineo.app.schemas.auth import AuthFormInput, IdentityResponse, SessionResponse
from cuisineo.app.services.auth_form import friendly_message, validate_auth_form
from cuisineo.app.services.browsers import BrowserContext
from cuisineo.app.services.session_context import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

GATEWAY_ERROR = "Le service d'authentification est indisponible. Veuillez réessayer."


@router.get("/me", response_model=SessionResponse)
async def me(browser: BrowserContext = Depends(get_browser)) -> SessionResponse:
    session = browser.session
    identity = session.current_identity
    return SessionResponse(
        user=IdentityResponse.from_identity(identity) if identity else None,
        initializing=session.initializing,
    )


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    payload: AuthFormInput,
    session: SessionContext = Depends(get_session),
) -> SessionResponse:
    try:
        email, password = validate_auth_form(payload)
        await run_in_threadpool(session.sign_up, email, password)
    except AuthFormValidationError as exc:
        raise HTTPException(status_code=422, detail={"message": "Formulaire invalide.", "fields": exc.field_errors})
    except AuthFailedError as exc:
        raise HTTPException(status_code=400, detail=friendly_message(exc.reason))
    except GatewayUnavailableError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=GATEWAY_ERROR)
    # no session yet when the account still awaits email confirmation
    identity = session.current_identity
    return SessionResponse(
        user=IdentityResponse.from_identity(identity) if identity else None,
        redirectTo="/",
    )


@router.post("/signin", response_model=SessionResponse)
async def sign_in(
    payload: AuthFormInput,
    session: SessionContext = Depends(get_session),
) -> SessionResponse:
    try:
        email, password = validate_auth_form(payload)
        identity = await run_in_threadpool(session.sign_in, email, password)
    except AuthFormValidationError as exc:
        raise HTTPException(status_code=422, detail={"message": "Formulaire invalide.", "fields": exc.field_errors})
    except AuthFailedError as exc:
        raise HTTPException(status_code=400, detail=friendly_message(exc.reason))
    except GatewayUnavailableError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=GATEWAY_ERROR)
    return SessionResponse(user=IdentityResponse.from_identity(identity), redirectTo="/")


@router.post("/signout", response_model=SessionResponse)
async def sign_out(session: SessionContext = Depends(get_session)) -> SessionResponse:
    try:
        await run_in_threadpool(session.sign_out)
    except GatewayUnavailableError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=GATEWAY_ERROR)
    except AuthFailedError as exc:
        logger.warning("Sign-out rejected: %s", exc)
    return SessionResponse(user=None, redirectTo="/")
