import logging

import ryd.models  # noqa: F401
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from ryd.auth.gate import GateDecision, evaluate_request, extract_session_token, is_api_path, signin_redirect
from ryd.auth.security import InvalidSessionError, decode_session_token
from ryd.core.config import settings
from ryd.core.db import Base, engine
from ryd.core.errors import error_body, register_exception_handlers
from ryd.routers import account as account_router
from ryd.routers import admin_users as admin_users_router
from ryd.routers import auth as auth_router
from ryd.routers import dashboard as dashboard_router
from ryd.routers import finance as finance_router
from ryd.routers import pages as pages_router
from ryd.routers import projects as projects_router
from ryd.routers import resources as resources_router
from ryd.routers import staff as staff_router
from ryd.routers import tasks as tasks_router
from ryd.routers import teams as teams_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "change-me"

app = FastAPI(title="RYD Portal API", version="0.1.0")
register_exception_handlers(app)

for module in (
    auth_router,
    account_router,
    admin_users_router,
    staff_router,
    projects_router,
    tasks_router,
    teams_router,
    finance_router,
    resources_router,
    dashboard_router,
):
    app.include_router(module.router, prefix=settings.API_PREFIX)
app.include_router(pages_router.router)


@app.middleware("http")
async def status_gate(request: Request, call_next):
    path = request.url.path
    if request.method == "OPTIONS":
        return await call_next(request)

    try:
        claims = None
        token = extract_session_token(request.cookies, request.headers.get("authorization"))
        if token:
            try:
                claims = decode_session_token(token)
            except InvalidSessionError:
                logger.debug("gate_invalid_session", extra={"path": path})
        decision = evaluate_request(path, claims)
    except Exception:
        logger.exception("gate_evaluation_failed", extra={"path": path})
        decision = GateDecision(
            allow=False,
            redirect_to=signin_redirect(path),
            reason="Not authenticated",
            authenticated=False,
        )

    if decision.allow:
        return await call_next(request)

    logger.debug(
        "gate_denied",
        extra={"path": path, "redirect": decision.redirect_to, "reason": decision.reason},
    )
    if is_api_path(path):
        code = status.HTTP_403_FORBIDDEN if decision.authenticated else status.HTTP_401_UNAUTHORIZED
        return JSONResponse(status_code=code, content=error_body(decision.reason, redirect=decision.redirect_to))
    return RedirectResponse(decision.redirect_to, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def check_settings() -> None:
    if settings.ENVIRONMENT == "production" and settings.JWT_SECRET == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set in production")


@app.on_event("startup")
def create_schema() -> None:
    if settings.AUTO_CREATE_SCHEMA:
        Base.metadata.create_all(bind=engine)
        logger.info("schema_created", extra={"dialect": engine.dialect.name})


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}
