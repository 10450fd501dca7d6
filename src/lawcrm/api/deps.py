"""API dependencies for dependency injection."""

import secrets
from typing import Annotated, AsyncGenerator
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lawcrm.cache import TTLCache
from lawcrm.clients.mailbox import MailboxClient
from lawcrm.config import settings
from lawcrm.models.database import async_session_maker
from lawcrm.models.employee import User
from lawcrm.repositories.user_repo import UserRepository
from lawcrm.schemas.lead import NormalizedLead
from lawcrm.services.generation import RequestGenerationGuard

# API Key security scheme
api_key_header = APIKeyHeader(name=settings.api_key_header, auto_error=False)

# Process-wide state shared by all requests
generation_guard = RequestGenerationGuard()
lead_details_cache: TTLCache[NormalizedLead] = TTLCache(ttl=settings.lead_details_cache_ttl)


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory for services that open their own sessions."""
    return async_session_maker


async def get_db(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_generation_guard() -> RequestGenerationGuard:
    return generation_guard


def get_lead_details_cache() -> TTLCache[NormalizedLead]:
    return lead_details_cache


async def get_mailbox_client() -> AsyncGenerator[MailboxClient, None]:
    client = MailboxClient()
    try:
        yield client
    finally:
        await client.close()


async def verify_api_key(
    api_key: Annotated[str | None, Security(api_key_header)],
) -> None:
    """Reject requests without the shared API key."""
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not secrets.compare_digest(api_key, settings.api_key.get_secret_value()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )


async def get_current_user(
    _: Annotated[None, Depends(verify_api_key)],
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: Annotated[str | None, Header(alias=settings.user_id_header)] = None,
) -> User:
    """Resolve the calling user from the user id header."""
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {settings.user_id_header} header",
        )
    try:
        parsed = UUID(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {settings.user_id_header} header",
        ) from None

    user = await UserRepository(db).get(parsed)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")
    return user


async def require_staff(user: Annotated[User, Depends(get_current_user)]) -> User:
    """Restrict a route to office staff; external users get 403."""
    if not user.is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Staff access required")
    return user


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
SessionMaker = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)]
CurrentUser = Annotated[User, Depends(get_current_user)]
StaffUser = Annotated[User, Depends(require_staff)]
GenerationGuard = Annotated[RequestGenerationGuard, Depends(get_generation_guard)]
LeadDetailsCache = Annotated[TTLCache[NormalizedLead], Depends(get_lead_details_cache)]
Mailbox = Annotated[MailboxClient, Depends(get_mailbox_client)]
