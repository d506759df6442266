"""API I/O schemas."""
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .capabilities import Capability, CapabilitySet, ConsentTier
from .models import (
    AccessDecision,
    ActorRole,
    AppointmentStatus,
    AuditAction,
    EmergencyStatus,
    ResourceType,
)

DENIED_MESSAGE = "Access not permitted"


class AuthorizeRequest(BaseModel):
    actor_id: str
    actor_role: ActorRole
    patient_id: str
    requested_capability: Optional[List[Capability]] = Field(
        default=None,
        description="capabilities the caller needs; omitted means everything the tier allows",
    )
    action: AuditAction = AuditAction.VIEW
    resource_type: ResourceType = ResourceType.PATIENT_RECORD
    resource_id: Optional[str] = None
    justification: Optional[str] = None

    def requested(self) -> Optional[CapabilitySet]:
        if self.requested_capability is None:
            return None
        return CapabilitySet.of(self.requested_capability)


class AccessDecisionOut(BaseModel):
    granted: bool
    capabilities: Dict[str, bool]
    via_emergency_override: bool
    reason: str
    message: Optional[str] = None
    audit_id: Optional[str] = None
    token: Optional[str] = None

    @classmethod
    def from_decision(cls, decision: AccessDecision, token: Optional[str] = None) -> "AccessDecisionOut":
        return cls(
            granted=decision.granted,
            capabilities=asdict(decision.capabilities),
            via_emergency_override=decision.via_emergency_override,
            reason=decision.reason.value,
            message=None if decision.granted else DENIED_MESSAGE,
            audit_id=decision.audit_id,
            token=token,
        )


class ProjectRequest(AuthorizeRequest):
    record: Dict[str, Any]


class ProjectResponse(BaseModel):
    decision: AccessDecisionOut
    record: Optional[Dict[str, Any]] = None


class ConsentGrantIn(BaseModel):
    patient_id: str
    clinician_id: str
    tier: ConsentTier
    expires_at: Optional[datetime] = None


class AppointmentIn(BaseModel):
    clinician_id: str
    patient_id: str
    scheduled_for: Optional[datetime] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class RelationCheckOut(BaseModel):
    has_active_relation: bool


class EmergencyOpenIn(BaseModel):
    patient_id: str
    reason: Optional[str] = None


class EmergencyStatusUpdate(BaseModel):
    status: EmergencyStatus


class EmergencyCheckOut(BaseModel):
    has_active_emergency: bool


class FeatureCheckIn(BaseModel):
    role: str
    feature: str


class FeatureCheckOut(BaseModel):
    allowed: bool


class TokenVerifyIn(BaseModel):
    token: str


class TokenClaimsOut(BaseModel):
    actor_id: str
    patient_id: str
    capabilities: List[str]
    via_emergency_override: bool
    audit_id: Optional[str]
    issued_at: datetime
    expires_at: datetime


class ChainReportOut(BaseModel):
    ok: bool
    checked: int
    problems: List[str]
