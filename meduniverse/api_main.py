from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm

from . import face_lock
from .ai_clients import ExternalServiceError, ServiceNotConfigured
from .api_deps import get_current_user
from .auth_models import Role, User
from .auth_security import create_access_token
from .auth_service import authenticate, register_user
from .config import configure_logging
from .db import init_db
from .routes import ROUTERS
from .schemas import AdminLoginIn, MeOut, RegisterIn, TokenOut
from .seed import seed_base

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Medical Universe API", version="1.0.0")

for router in ROUTERS:
    app.include_router(router)


# Startup

@app.on_event("startup")
def startup() -> None:
    # tables (users included) and the idempotent seed
    init_db()
    seed_base()


# Service errors -> HTTP

def _error(code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=code, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(LookupError)
async def lookup_error_handler(request: Request, exc: LookupError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(PermissionError)
async def permission_error_handler(request: Request, exc: PermissionError) -> JSONResponse:
    return _error(status.HTTP_403_FORBIDDEN, exc)


@app.exception_handler(ExternalServiceError)
async def external_error_handler(request: Request, exc: ExternalServiceError) -> JSONResponse:
    logger.error("External service failure on %s: %s", request.url.path, exc)
    return _error(status.HTTP_502_BAD_GATEWAY, exc)


@app.exception_handler(ServiceNotConfigured)
async def not_configured_handler(request: Request, exc: ServiceNotConfigured) -> JSONResponse:
    logger.warning("Service not configured for %s: %s", request.url.path, exc)
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


# AUTH endpoints

def _token_for(u: User) -> TokenOut:
    token = create_access_token(subject=u.id, extra={"role": u.role.value, "email": u.email})
    return TokenOut(access_token=token)


@app.post("/api/auth/register", response_model=dict)
def register(payload: RegisterIn) -> dict[str, Any]:
    user_id = register_user(payload.email, payload.password, payload.full_name, phone=payload.phone)
    return {"ok": True, "user_id": user_id}


@app.post("/api/auth/login", response_model=TokenOut)
def login(form: OAuth2PasswordRequestForm = Depends()) -> TokenOut:
    u = authenticate(form.username, form.password)
    if not u:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if u.role == Role.ADMIN and face_lock.is_enabled(u.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Face verification required: use /api/auth/admin/login"
        )
    return _token_for(u)


@app.post("/api/auth/admin/login", response_model=TokenOut)
def admin_login(payload: AdminLoginIn) -> TokenOut:
    """Admin username/password, plus a face descriptor when face lock is on."""
    u = authenticate(payload.username, payload.password)
    if not u or u.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin credentials")

    if face_lock.is_enabled(u.id):
        if not payload.face_descriptor:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Face verification required")
        check = face_lock.verify(u.id, payload.face_descriptor)
        if not check.matched:
            logger.warning("Face verification failed for admin %s (distance %.3f)", u.id, check.distance)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Face verification failed")

    return _token_for(u)


@app.get("/api/me", response_model=MeOut)
def me(user: User = Depends(get_current_user)) -> MeOut:
    return MeOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role.value,
        phone=user.phone,
        is_active=user.is_active,
    )


@app.get("/api/health")
def health() -> dict[str, Any]:
    return {"ok": True}
