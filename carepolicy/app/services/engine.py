"""Access decision engine: consent, relationship and emergency checks with audit."""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from ..domain.capabilities import (
    EMERGENCY_OVERRIDE,
    CapabilitySet,
    ConsentTier,
    capabilities_for,
)
from ..domain.clock import utcnow
from ..domain.errors import InvalidRequest, ResolverUnavailable
from ..domain.models import (
    REASON_JUSTIFICATIONS,
    AccessDecision,
    ActorRole,
    AuditAction,
    AuditEntryCreate,
    DecisionReason,
    ResourceType,
)
from ..domain.policy import PolicyContext, is_clinician
from .audit import AuditLogger
from .resolvers import ConsentResolver, EmergencyResolver, RelationshipResolver

logger = structlog.get_logger(__name__)

T = TypeVar("T")

MAX_IDENTIFIER_LENGTH = 128


def validate_identifier(field: str, value: object) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidRequest(f"{field} must be a string")
    text = str(value).strip()
    if not text:
        raise InvalidRequest(f"{field} is empty")
    if len(text) > MAX_IDENTIFIER_LENGTH:
        raise InvalidRequest(f"{field} is longer than {MAX_IDENTIFIER_LENGTH} characters")
    if not text.isprintable():
        raise InvalidRequest(f"{field} contains control characters")
    return text


def _deny(reason: DecisionReason) -> AccessDecision:
    return AccessDecision(granted=False, capabilities=CapabilitySet.none(), reason=reason)


def _grant(capabilities: CapabilitySet, reason: DecisionReason, override: bool = False) -> AccessDecision:
    if not capabilities:
        return _deny(DecisionReason.NOT_REQUESTED)
    return AccessDecision(
        granted=True,
        capabilities=capabilities,
        via_emergency_override=override,
        reason=reason,
    )


class AccessDecisionEngine:
    """Decides what an actor may do with one patient's record.

    Stateless across calls; every dependency is injected. Each call yields
    exactly one audit entry, and a decision is only returned once that entry
    has been accepted by the audit sink.
    """

    def __init__(
        self,
        relationships: RelationshipResolver,
        consents: ConsentResolver,
        emergencies: EmergencyResolver,
        audit: AuditLogger,
        resolver_timeout: float = 2.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.relationships = relationships
        self.consents = consents
        self.emergencies = emergencies
        self.audit = audit
        self.resolver_timeout = resolver_timeout
        self.clock = clock

    async def authorize(
        self,
        actor_id: str,
        actor_role: ActorRole | str,
        patient_id: str,
        requested: Optional[CapabilitySet] = None,
        action: AuditAction = AuditAction.VIEW,
        resource_type: ResourceType = ResourceType.PATIENT_RECORD,
        resource_id: Optional[str] = None,
        justification: Optional[str] = None,
    ) -> AccessDecision:
        """Return the decision for one access attempt.

        Raises ``InvalidRequest`` for malformed input (no lookups are made)
        and ``AuditSinkUnavailable`` when the decision cannot be recorded.
        Resolver failures never escape; they become denials.
        """
        actor_id = validate_identifier("actor_id", actor_id)
        patient_id = validate_identifier("patient_id", patient_id)
        resource_id = validate_identifier("resource_id", resource_id) if resource_id else patient_id
        try:
            role = ActorRole(actor_role)
        except ValueError as exc:
            raise InvalidRequest(f"unknown actor_role {actor_role!r}") from exc
        wanted = CapabilitySet.all() if requested is None else requested

        log = logger.bind(actor_id=actor_id, actor_role=role.value, patient_id=patient_id)
        decision = await self._evaluate(actor_id, role, patient_id, wanted, log)

        entry = await self.audit.record(
            AuditEntryCreate(
                actor_id=actor_id,
                actor_role=role,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                patient_id=patient_id,
                granted=decision.granted,
                via_emergency_override=decision.via_emergency_override,
                reason=decision.reason,
                capabilities=decision.capabilities.names(),
                justification=justification or REASON_JUSTIFICATIONS[decision.reason],
            )
        )

        if decision.via_emergency_override:
            log.warning("emergency override granted", audit_id=entry.id)
        else:
            log.info(
                "access decided",
                granted=decision.granted,
                reason=decision.reason.value,
                audit_id=entry.id,
            )
        return decision.model_copy(update={"audit_id": entry.id})

    async def _evaluate(
        self,
        actor_id: str,
        role: ActorRole,
        patient_id: str,
        wanted: CapabilitySet,
        log,
    ) -> AccessDecision:
        if not is_clinician(PolicyContext(actor_id, role)):
            return _deny(DecisionReason.ROLE_NOT_PERMITTED)

        if wanted.view_emergency_info and await self._emergency_active(patient_id, log):
            return _grant(
                EMERGENCY_OVERRIDE & wanted, DecisionReason.EMERGENCY_OVERRIDE, override=True
            )

        related, consent = await asyncio.gather(
            self._call("relationship", self.relationships.has_active_relationship(actor_id, patient_id)),
            self._call("consent", self.consents.find_consent(patient_id, actor_id)),
            return_exceptions=True,
        )
        for result in (related, consent):
            if isinstance(result, BaseException):
                log.warning("resolver failed, denying", error=str(result))
                return _deny(DecisionReason.RESOLVER_UNAVAILABLE)

        if not related:
            return _deny(DecisionReason.NO_RELATIONSHIP)
        if consent is None:
            return _deny(DecisionReason.NO_CONSENT)
        if not consent.is_active:
            return _deny(DecisionReason.CONSENT_REVOKED)
        if consent.is_expired(self.clock()):
            return _deny(DecisionReason.CONSENT_EXPIRED)
        try:
            tier = ConsentTier(consent.tier)
        except ValueError:
            log.error("consent record has unknown tier", tier=str(consent.tier))
            return _deny(DecisionReason.NO_CONSENT)

        return _grant(capabilities_for(tier) & wanted, DecisionReason.GRANTED)

    async def _emergency_active(self, patient_id: str, log) -> bool:
        try:
            return bool(
                await self._call("emergency", self.emergencies.has_active_emergency(patient_id))
            )
        except ResolverUnavailable as exc:
            # unknown emergency state: no override
            log.warning("emergency status unavailable", error=str(exc))
            return False

    async def _call(self, name: str, pending: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(pending, timeout=self.resolver_timeout)
        except asyncio.TimeoutError as exc:
            raise ResolverUnavailable(name, exc) from exc
        except Exception as exc:
            raise ResolverUnavailable(name, exc) from exc
