"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject database sessions,
the authenticated caller's profile, services, pagination and configuration.

Identity comes from a bearer JWT issued by the auth service (claims `id`,
`email`, `role`). Gating order:
    missing/invalid token        -> 401
    wrong role for the route     -> 403
    right role but no profile    -> 404
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator  # noqa: TC003 - resolved at runtime by FastAPI
from dataclasses import dataclass

from fastapi import Depends, Query, Request
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002 - resolved at runtime by FastAPI

from internhub.config import Settings
from internhub.domain.enums import UserRole
from internhub.domain.exceptions import (
    ForbiddenError,
    ProfileNotFoundError,
    UnauthenticatedError,
)
from internhub.infrastructure.database.orm_models import Company, Student
from internhub.infrastructure.database.repositories import ProfileRepository
from internhub.logging_config import bind_actor
from internhub.services.contract_service import ContractService
from internhub.services.dispute_service import DisputeService
from internhub.services.notification_service import NotificationDispatcher
from internhub.services.unit_of_work import PageQuery


@dataclass(frozen=True)
class CurrentUser:
    """Identity decoded from the bearer token."""

    id: uuid.UUID
    email: str
    role: str


def get_app_settings(request: Request) -> Settings:
    """Provide the settings the application was created with."""
    return request.app.state.settings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for a request."""
    async with request.app.state.database.session() as session:
        yield session


def get_notifier(request: Request) -> NotificationDispatcher:
    """Provide the application's notification dispatcher."""
    return request.app.state.notifier


async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> CurrentUser:
    """Decode the bearer token into a CurrentUser."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthenticatedError()

    try:
        claims = jwt.decode(
            token.strip(), settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except JWTError as err:
        raise UnauthenticatedError("Invalid or expired token") from err

    try:
        user = CurrentUser(
            id=uuid.UUID(str(claims["id"])),
            email=str(claims.get("email", "")),
            role=str(claims["role"]),
        )
    except (KeyError, ValueError) as err:
        raise UnauthenticatedError("Token is missing required claims") from err

    bind_actor(user.id, user.role)
    return user


async def require_student(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Student:
    """Resolve the caller's student profile, or fail with 403/404."""
    if user.role != UserRole.STUDENT:
        raise ForbiddenError("Access denied. Student role required.")
    student = await ProfileRepository(session).get_student_by_user(user.id)
    if student is None:
        raise ProfileNotFoundError("student")
    return student


async def require_company(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Company:
    """Resolve the caller's company profile, or fail with 403/404."""
    if user.role != UserRole.COMPANY:
        raise ForbiddenError("Access denied. Company role required.")
    company = await ProfileRepository(session).get_company_by_user(user.id)
    if company is None:
        raise ProfileNotFoundError("company")
    return company


def get_page_query(
    page: str | None = Query(default=None, description="1-based page number"),
    page_size: str | None = Query(
        default=None, alias="pageSize", description="Items per page (max 50)"
    ),
    settings: Settings = Depends(get_app_settings),
) -> PageQuery:
    """Clamp the pagination query parameters; junk values fall back to defaults."""
    return PageQuery.from_query(
        page,
        page_size,
        default_size=settings.default_page_size,
        max_size=settings.max_page_size,
    )


def get_dispute_service(
    session: AsyncSession = Depends(get_db_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> DisputeService:
    """Provide a DisputeService bound to the current session."""
    return DisputeService(session, notifier)


def get_contract_service(
    session: AsyncSession = Depends(get_db_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> ContractService:
    """Provide a ContractService bound to the current session."""
    return ContractService(session, notifier)
