"""FastAPI application setup for Handbook Chat."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from handbook_chat.api.dependencies import (
    get_app_settings,
    get_auth_gate,
    get_chat_service,
    get_database,
    get_indexer,
)
from handbook_chat.api.routes_admin import router as admin_router
from handbook_chat.api.routes_auth import router as auth_router
from handbook_chat.api.routes_chat import router as chat_router
from handbook_chat.core.errors import (
    AuthenticationError,
    AuthorizationError,
    DocumentUnavailableError,
    InvalidInputError,
    UpstreamServiceError,
)
from handbook_chat.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Handbook Chat",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(auth_router, prefix="", tags=["auth"])
app.include_router(chat_router, prefix="", tags=["chat"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_database()
    get_indexer()
    get_chat_service()
    get_auth_gate()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(UpstreamServiceError)
async def upstream_error_handler(request: Request, exc: UpstreamServiceError) -> JSONResponse:
    logger.error("Upstream %s call failed: %s", exc.service, exc.message, extra={"ctx_path": request.url.path})
    return JSONResponse(
        status_code=502,
        content={"detail": "Failed to get a response from the AI service. Please try again."},
    )


@app.exception_handler(DocumentUnavailableError)
async def document_unavailable_handler(request: Request, exc: DocumentUnavailableError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(AuthenticationError)
@app.exception_handler(AuthorizationError)
async def auth_error_handler(request: Request, exc: Exception):
    """Unauthenticated or denied requests are sent back to the login surface."""
    settings = get_app_settings()
    if request.method == "GET":
        response = RedirectResponse(settings.login_path, status_code=303)
    else:
        response = JSONResponse(
            status_code=401,
            content={"detail": str(exc), "redirect": settings.login_path},
        )
    response.delete_cookie(settings.session_cookie)
    return response
