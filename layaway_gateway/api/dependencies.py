"""Dependency injection for FastAPI endpoints"""

from typing import Callable, Optional
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from layaway_gateway.api.errors import to_http_exception
from layaway_gateway.domain.authorization import require
from layaway_gateway.domain.exceptions import AuthenticationError, DomainException
from layaway_gateway.domain.models import Actor
from layaway_gateway.infrastructure.clients.identity import IdentityClient
from layaway_gateway.infrastructure.database.repositories import PlanRepository
from layaway_gateway.infrastructure.database.session import get_db
from layaway_gateway.services.engine import InstallmentEngine


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_identity_client() -> IdentityClient:
    """Provide Identity API client instance"""
    return IdentityClient()


def get_engine(db: Session = Depends(get_db)) -> InstallmentEngine:
    """Provide an installment engine bound to the request's session"""
    return InstallmentEngine(PlanRepository(db))


async def get_current_actor(
    request: Request,
    authorization: Optional[str] = Header(None),
    identity_client: IdentityClient = Depends(get_identity_client),
) -> Actor:
    """Resolve the caller from the bearer token"""
    request_id = get_request_id(request)
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise to_http_exception(AuthenticationError("Missing bearer token"), request_id)

    try:
        return await identity_client.current_user(token)
    except DomainException as e:
        raise to_http_exception(e, request_id)


def require_capability(capability: str) -> Callable[..., Actor]:
    """Dependency factory: the current actor, if their role grants `capability`"""

    def dependency(request: Request, actor: Actor = Depends(get_current_actor)) -> Actor:
        try:
            require(actor, capability)
        except DomainException as e:
            raise to_http_exception(e, get_request_id(request))
        return actor

    return dependency
