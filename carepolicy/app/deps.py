"""Dependency injection utilities."""
from collections.abc import Generator
from functools import lru_cache

import structlog
from fastapi import Depends
from sqlmodel import Session

from .config import Settings, get_settings
from .infra.db import SessionFactory, get_session
from .services.audit import AuditLogger, AuditSink, SQLAuditSink
from .services.engine import AccessDecisionEngine
from .services.resolvers import (
    SQLConsentResolver,
    SQLEmergencyResolver,
    SQLRelationshipResolver,
)
from .services.tokens import CapabilityTokenIssuer

logger = structlog.get_logger(__name__)


def session_factory() -> SessionFactory:
    return get_session


def db_session(
    factory: SessionFactory = Depends(session_factory),
) -> Generator[Session, None, None]:
    """Provide a scoped DB session to FastAPI endpoints."""
    with factory() as session:
        yield session


@lru_cache(maxsize=None)
def _sql_sink(factory: SessionFactory) -> SQLAuditSink:
    return SQLAuditSink(factory)


def audit_sink(factory: SessionFactory = Depends(session_factory)) -> AuditSink:
    return _sql_sink(factory)


def access_engine(
    factory: SessionFactory = Depends(session_factory),
    sink: AuditSink = Depends(audit_sink),
    settings: Settings = Depends(get_settings),
) -> AccessDecisionEngine:
    return AccessDecisionEngine(
        relationships=SQLRelationshipResolver(factory),
        consents=SQLConsentResolver(factory),
        emergencies=SQLEmergencyResolver(factory),
        audit=AuditLogger(sink, timeout=settings.audit_timeout),
        resolver_timeout=settings.resolver_timeout,
    )


@lru_cache(maxsize=1)
def token_issuer() -> CapabilityTokenIssuer:
    settings = get_settings()
    if settings.signing_key_hex:
        key = bytes.fromhex(settings.signing_key_hex)
    else:
        logger.warning("CAREPOLICY_SIGNING_KEY unset, tokens are signed with an ephemeral key")
        key = None
    return CapabilityTokenIssuer(key, ttl=settings.token_ttl)
