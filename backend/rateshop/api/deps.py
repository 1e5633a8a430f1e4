"""
Shared API dependencies and domain-error to HTTP mapping.
"""
import logging
from dataclasses import replace

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from rateshop.db.database import settings
from rateshop.models import Customer
from rateshop.services.errors import (
    AuthenticationError,
    ConfigurationError,
    CredentialError,
    GatewayError,
    NetworkError,
    UpstreamError,
)
from rateshop.services.quote_session import QuoteSession

logger = logging.getLogger(__name__)


def get_quote_session(request: Request) -> QuoteSession:
    """One QuoteSession per application; holds the token and carrier caches."""
    session = getattr(request.app.state, "quote_session", None)
    if session is None:
        session = QuoteSession.from_settings(settings)
        request.app.state.quote_session = session
    return session


def session_for_customer(session: QuoteSession, db: Session, customer_id) -> QuoteSession:
    """Copy of the session priced with a customer's margin overrides."""
    if not customer_id:
        return session
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Customer {customer_id} not found"
        )
    return replace(session, customer=customer)


def to_http_exception(e: Exception, action: str) -> HTTPException:
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, (CredentialError, AuthenticationError)):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    if isinstance(e, (GatewayError, NetworkError, UpstreamError)):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.exception("Unexpected error while %s", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error {action}: {str(e)}"
    )
