"""Shared API dependencies for services and administrator authentication."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from orion_mint.core.errors import SignerNotConfigured
from orion_mint.core.security import AdminTokenError, decode_admin_token
from orion_mint.db.session import get_session_factory
from orion_mint.db.time import unix_now
from orion_mint.services.authorization import AuthorizationService
from orion_mint.services.nonce import NonceAllocator
from orion_mint.services.signing import Signer, get_signer
from orion_mint.services.similarity import SimilarityClient, get_similarity_client
from orion_mint.services.token_store import TokenStore

from .errors import http_error

# HTTP Bearer scheme for admin JWT authentication
bearer_scheme = HTTPBearer(auto_error=False)

SessionFactoryDep = Annotated[sessionmaker[Session], Depends(get_session_factory)]


def get_clock() -> Callable[[], int]:
    """Return the clock used to evaluate deadlines."""
    return unix_now


def get_signer_dep() -> Signer:
    """Return the process signer or answer 503 when none is configured."""
    try:
        return get_signer()
    except SignerNotConfigured as exc:
        raise http_error(exc) from exc


ClockDep = Annotated[Callable[[], int], Depends(get_clock)]
SignerDep = Annotated[Signer, Depends(get_signer_dep)]
SimilarityDep = Annotated[SimilarityClient | None, Depends(get_similarity_client)]


def get_token_store(session_factory: SessionFactoryDep) -> TokenStore:
    return TokenStore(session_factory)


TokenStoreDep = Annotated[TokenStore, Depends(get_token_store)]


def get_authorization_service(
    session_factory: SessionFactoryDep,
    store: TokenStoreDep,
    signer: SignerDep,
    clock: ClockDep,
    similarity: SimilarityDep,
) -> AuthorizationService:
    """Assemble the authorization service for one request."""
    return AuthorizationService(
        store,
        NonceAllocator(session_factory),
        signer,
        clock=clock,
        similarity=similarity,
    )


AuthorizationServiceDep = Annotated[AuthorizationService, Depends(get_authorization_service)]


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Return the operator named by a valid admin bearer token.

    Raises:
        HTTPException: 401 if the token is missing or invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_admin_token(credentials.credentials)
    except AdminTokenError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from err


# Type alias for admin dependency
AdminDep = Annotated[str, Depends(require_admin)]
