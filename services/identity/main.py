# Run:
# uvicorn services.identity.main:app --host 0.0.0.0 --port 21000 --reload
# Docs: http://127.0.0.1:21000/docs

import logging
import os
import sys
import uuid
from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from common.auth.session import SessionStore
from common.complaint_types import AppRole
from common.constants import ROUTE_AUTH, ROUTE_HOME, SESSION_COOKIE_NAME
from common.errors import AuthenticationFailed, BackendError
from libs.auth.hosted_auth import AuthServiceError, HostedAuthClient
from libs.config import config
from libs.db import get_db
from libs.fastapi_service import (
    CORSMiddlewareConfig,
    FastAPIServiceFactory,
    ServiceAppConfig,
)
from models.user_models import Student, UserRole
from services.identity.dependencies import (
    get_auth,
    get_store,
    optional_caller,
    require_elevated,
)
from services.identity.roles import resolve_home_route
from services.identity.schemas import (
    AccountUpdateResponse,
    Caller,
    CreateAdminRequest,
    CreateAdminResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    SessionResponse,
    SignupRequest,
    SignupResponse,
    Toast,
    UpdateEmailRequest,
    UpdatePasswordRequest,
)
from services.identity.validators import (
    validate_admin_account,
    validate_new_email,
    validate_new_password,
    validate_signup,
)

logger = logging.getLogger(__name__)

service_config = ServiceAppConfig(
    title="Identity Service",
    description="Sign-up, sign-in, sessions and account settings backed by the hosted auth service.",
    service_name="identity",
    cors_config=CORSMiddlewareConfig(),
)

factory = FastAPIServiceFactory(service_config)
app = factory.create_app()

USER_SIGNUPS_TOTAL = factory.add_business_metric(
    "user_signups_total", "Total student accounts created"
)
USER_LOGINS_TOTAL = factory.add_business_metric(
    "user_logins_total", "Sign-in attempts by outcome", ["result"]
)


def _set_session_cookie(response: Response, sid: str, max_age: int) -> None:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        sid,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=config.SESSION_COOKIE_SECURE,
    )


@app.get("/")
async def root():
    return {"service": "identity", "status": "running"}


@app.post("/v1/auth/signup", response_model=SignupResponse, tags=["Auth"])
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db),
    auth: HostedAuthClient = Depends(get_auth),
):
    validate_signup(
        payload.email,
        payload.password,
        payload.confirm_password,
        payload.contact_number,
    )

    try:
        user = await auth.sign_up(
            payload.email,
            payload.password,
            data={"full_name": payload.full_name, "username": payload.username},
            redirect_to=config.SITE_URL,
            emit=False,
        )
    except AuthServiceError as e:
        raise BackendError(e.message, title="Signup Failed") from e

    db.add(
        Student(
            user_id=uuid.UUID(user.id),
            roll_number=payload.roll_number,
            contact_number=payload.contact_number,
            program=payload.program,
            is_anonymous_default=payload.anonymous_by_default,
        )
    )
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Student row insert failed for user %s", user.id)
        raise BackendError(str(getattr(e, "orig", e)), title="Signup Failed") from e

    USER_SIGNUPS_TOTAL.inc()
    return SignupResponse(
        user_id=user.id,
        status="created",
        toast=Toast(
            title="Account Created",
            description="Your account has been created successfully. You can now log in.",
        ),
    )


@app.post("/v1/auth/login", response_model=LoginResponse, tags=["Auth"])
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    auth: HostedAuthClient = Depends(get_auth),
    store: SessionStore = Depends(get_store),
):
    try:
        session = await auth.sign_in_with_password(payload.email, payload.password)
    except AuthServiceError as e:
        USER_LOGINS_TOTAL.labels(result="failed").inc()
        raise AuthenticationFailed(e.message, title="Login Failed") from e

    # The SIGNED_IN listener has already written the session record
    record = store.get(session.session_id)
    if record:
        roles = record["roles"]
        redirect_to = record["home_route"]
    else:
        roles = []
        redirect_to = await resolve_home_route(db, session.user.id)

    _set_session_cookie(response, session.session_id, store.ttl)
    USER_LOGINS_TOTAL.labels(result="ok").inc()

    return LoginResponse(
        user_id=session.user.id,
        email=session.user.email,
        status="authenticated",
        roles=roles,
        redirect_to=redirect_to,
        access_token=session.access_token,
        expires_in=session.expires_in,
    )


@app.get("/v1/auth/session", response_model=SessionResponse, tags=["Auth"])
async def current_session(caller: Optional[Caller] = Depends(optional_caller)):
    if caller is None:
        return SessionResponse(authenticated=False, redirect_to=ROUTE_AUTH)
    return SessionResponse(
        authenticated=True,
        user_id=caller.user_id,
        email=caller.email,
        full_name=caller.full_name,
        roles=caller.roles,
        redirect_to=caller.home_route,
    )


@app.post("/v1/auth/refresh", response_model=SessionResponse, tags=["Auth"])
async def refresh(
    request: Request,
    auth: HostedAuthClient = Depends(get_auth),
    store: SessionStore = Depends(get_store),
):
    record = store.get(request.cookies.get(SESSION_COOKIE_NAME))
    if not record:
        raise AuthenticationFailed("Please sign in to continue")
    try:
        await auth.refresh_session(record["refresh_token"], session_id=record["sid"])
    except AuthServiceError as e:
        raise AuthenticationFailed(e.message, title="Session Expired") from e

    record = store.get(record["sid"]) or record
    return SessionResponse(
        authenticated=True,
        user_id=record["user_id"],
        email=record.get("email"),
        full_name=record.get("full_name"),
        roles=record.get("roles") or [],
        redirect_to=record["home_route"],
    )


@app.post("/v1/auth/logout", response_model=LogoutResponse, tags=["Auth"])
async def logout(
    response: Response,
    caller: Optional[Caller] = Depends(optional_caller),
    auth: HostedAuthClient = Depends(get_auth),
):
    if caller is not None and caller.access_token:
        try:
            await auth.sign_out(caller.access_token, caller.user_id)
        except AuthServiceError as e:
            raise BackendError(e.message, title="Logout Failed") from e

    response.delete_cookie(SESSION_COOKIE_NAME)
    return LogoutResponse(
        status="signed_out",
        redirect_to=ROUTE_HOME,
        toast=Toast(title="Logged out", description="You have been successfully logged out."),
    )


@app.put("/v1/account/email", response_model=AccountUpdateResponse, tags=["Account"])
async def update_email(
    payload: UpdateEmailRequest,
    caller: Caller = Depends(require_elevated),
    auth: HostedAuthClient = Depends(get_auth),
):
    validate_new_email(payload.new_email)
    try:
        await auth.update_user(caller.access_token, email=payload.new_email)
    except AuthServiceError as e:
        raise BackendError(e.message) from e
    return AccountUpdateResponse(
        status="updated",
        toast=Toast(title="Success", description="Check your new email for confirmation"),
    )


@app.put("/v1/account/password", response_model=AccountUpdateResponse, tags=["Account"])
async def update_password(
    payload: UpdatePasswordRequest,
    caller: Caller = Depends(require_elevated),
    auth: HostedAuthClient = Depends(get_auth),
):
    validate_new_password(payload.new_password, payload.confirm_password)
    try:
        await auth.update_user(caller.access_token, password=payload.new_password)
    except AuthServiceError as e:
        raise BackendError(e.message) from e
    return AccountUpdateResponse(
        status="updated",
        toast=Toast(title="Success", description="Password updated successfully"),
    )


@app.post("/v1/admin/accounts", response_model=CreateAdminResponse, tags=["Account"])
async def create_admin_account(
    payload: CreateAdminRequest,
    caller: Caller = Depends(require_elevated),
    db: AsyncSession = Depends(get_db),
    auth: HostedAuthClient = Depends(get_auth),
):
    validate_admin_account(payload.email, payload.password)

    try:
        user = await auth.sign_up(payload.email, payload.password, emit=False)
    except AuthServiceError as e:
        logger.warning("Admin sign-up for %s failed: %s", payload.email, e.message)
        raise BackendError(e.message) from e

    db.add(UserRole(user_id=uuid.UUID(user.id), role=AppRole.ADMIN))
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        message = str(getattr(e, "orig", e))
        raise BackendError(
            f"Account created but failed to assign admin role: {message}"
        ) from e

    logger.info("User %s created admin account %s", caller.user_id, user.id)
    return CreateAdminResponse(
        user_id=user.id,
        role="admin",
        toast=Toast(title="Success", description=f"Admin account created for {payload.email}"),
    )
