import logging
from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .infrastructure.repositories import SqlAlchemyMemberRepository
from .models import User
from .utils.auth import Identity, decode_access_token

logger = logging.getLogger(__name__)

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.session_factory() as session:
        yield session


async def get_identity(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> Identity:
    if authorization is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token required",
            headers=_BEARER_CHALLENGE,
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token required",
            headers=_BEARER_CHALLENGE,
        )
    try:
        return decode_access_token(token.strip(), secret=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers=_BEARER_CHALLENGE,
        ) from exc


async def get_current_member(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the verified email against the allow-list."""
    repo = SqlAlchemyMemberRepository(session)
    try:
        member = await repo.get_by_email(identity.email)
    except (ProgrammingError, OperationalError) as exc:
        await session.rollback()
        logger.exception("allow-list lookup failed for %s", identity.email)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="allow-list unavailable",
        ) from exc
    # close the read transaction so handlers can open their own
    await session.commit()
    if member is None:
        logger.info("rejected login for unlisted email %s", identity.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This email is not registered",
        )
    return member


async def require_admin(member: User = Depends(get_current_member)) -> User:
    if not member.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin privileges required")
    return member
