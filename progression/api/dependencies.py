from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from progression.db.engine import async_session_factory, session_scope
from progression.middleware.request_context import learner_id_var
from progression.models.principal import Principal
from progression.repos.store import Store, memory_store, pg_store
from progression.services import token_service

logger = logging.getLogger(__name__)

# Tokens are minted by the auth service; tokenUrl only feeds the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")

# Process-wide store used when DATABASE_URL is unset.
MEMORY_STORE = memory_store()


async def get_store() -> AsyncGenerator[Store, None]:
    """Yield the repository bundle for this request.

    With a database, the repos share one session that commits when the
    handler returns and rolls back when it raises.  Commit hooks (cache
    invalidation, award metrics) run only after a successful commit.
    """
    if async_session_factory is None:
        yield MEMORY_STORE
        return
    async with session_scope() as session:
        store = pg_store(session)
        yield store
    await store.run_commit_hooks()


async def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Validate the bearer token and return the calling learner.

    Async so that learner_id_var is set in the request's own context and
    shows up on every log line the handler emits.
    """
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    try:
        learner_id = UUID(claims["sub"])
    except (TypeError, ValueError):
        logger.warning("Token subject is not a learner id: %r", claims["sub"])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    principal = Principal(
        learner_id=learner_id,
        roles=frozenset(claims.get("roles", [])),
    )
    learner_id_var.set(str(learner_id))
    logger.debug(
        "Token validated for learner=%s roles=%s",
        principal.learner_id,
        principal.roles,
    )
    return principal


def require_role(role: str):
    """Dependency factory: demand a specific role.

    Usage: Depends(require_role("admin"))
    Returns the Principal if the role is present, else 403.
    """

    async def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_role(role):
            logger.warning(
                "Access denied: learner=%s missing role=%s",
                principal.learner_id,
                role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


def resolve_learner(principal: Principal, learner_id: UUID | None) -> UUID:
    """Pick the learner a request acts on.

    Defaults to the caller.  Acting on someone else needs the admin role.
    """
    if learner_id is None:
        return principal.learner_id
    if not principal.can_act_for(learner_id):
        logger.warning(
            "Access denied: learner=%s acting for learner=%s",
            principal.learner_id,
            learner_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot act for another learner",
        )
    return learner_id
