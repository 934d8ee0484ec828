"""Sign-in, sign-out, and the login surface."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse

from handbook_chat.api.dependencies import get_app_settings, get_auth_gate
from handbook_chat.auth.gate import AuthGate
from handbook_chat.core.config import Settings
from handbook_chat.models.dto import LoginSurface, SignInRequest

router = APIRouter()


@router.get("/login", response_model=LoginSurface, summary="Login surface")
async def login(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    gate: AuthGate = Depends(get_auth_gate),
):
    if gate.sessions.get(request.cookies.get(settings.session_cookie)) is not None:
        return RedirectResponse(settings.home_path, status_code=303)
    return LoginSurface(login_path=settings.login_path)


@router.post("/auth/session", summary="Exchange an identity token for a session")
async def sign_in(
    body: SignInRequest,
    settings: Settings = Depends(get_app_settings),
    gate: AuthGate = Depends(get_auth_gate),
) -> RedirectResponse:
    outcome = await run_in_threadpool(gate.sign_in, body.id_token)
    response = RedirectResponse(outcome.redirect_to, status_code=303)
    if outcome.allowed and outcome.session is not None:
        response.set_cookie(settings.session_cookie, outcome.session.id, httponly=True, samesite="lax")
    else:
        response.delete_cookie(settings.session_cookie)
        if outcome.reason:
            response.headers["X-Auth-Error"] = outcome.reason
    return response


@router.post("/auth/logout", summary="End the current session")
async def sign_out(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    gate: AuthGate = Depends(get_auth_gate),
) -> RedirectResponse:
    gate.sign_out(request.cookies.get(settings.session_cookie))
    response = RedirectResponse(settings.login_path, status_code=303)
    response.delete_cookie(settings.session_cookie)
    return response


__all__ = ["router"]
