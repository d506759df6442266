"""Domain models shared between the engine, API and persistence layers."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import JSON
from sqlmodel import Column, Field as SQLField, SQLModel

from .capabilities import CapabilitySet, ConsentTier
from .clock import as_utc


class ActorRole(str, Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"
    EMERGENCY_STAFF = "emergency_staff"


class AuditAction(str, Enum):
    VIEW = "view"
    MODIFY = "modify"
    CREATE = "create"
    DELETE = "delete"


class ResourceType(str, Enum):
    PATIENT_RECORD = "patient_record"
    APPOINTMENT = "appointment"
    EMERGENCY_TRANSPORT = "emergency_transport"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELED = "canceled"


class EmergencyStatus(str, Enum):
    REQUESTED = "requested"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELED = "canceled"


CLOSED_APPOINTMENT_STATUSES = {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED}
CLOSED_EMERGENCY_STATUSES = {EmergencyStatus.COMPLETED, EmergencyStatus.CANCELED}


class DecisionReason(str, Enum):
    GRANTED = "granted"
    EMERGENCY_OVERRIDE = "emergency_override"
    NO_RELATIONSHIP = "no_relationship"
    NO_CONSENT = "no_consent"
    CONSENT_REVOKED = "consent_revoked"
    CONSENT_EXPIRED = "consent_expired"
    RESOLVER_UNAVAILABLE = "resolver_unavailable"
    NOT_REQUESTED = "not_requested"
    ROLE_NOT_PERMITTED = "role_not_permitted"


REASON_JUSTIFICATIONS: Dict[DecisionReason, str] = {
    DecisionReason.GRANTED: "Consent-based access",
    DecisionReason.EMERGENCY_OVERRIDE: "Emergency access",
    DecisionReason.NO_RELATIONSHIP: "No active treatment relationship",
    DecisionReason.NO_CONSENT: "No patient consent on file",
    DecisionReason.CONSENT_REVOKED: "Patient consent revoked",
    DecisionReason.CONSENT_EXPIRED: "Patient consent expired",
    DecisionReason.RESOLVER_UNAVAILABLE: "Access checks unavailable",
    DecisionReason.NOT_REQUESTED: "Consent tier does not cover the request",
    DecisionReason.ROLE_NOT_PERMITTED: "Role may not access patient records",
}


class ConsentRecord(SQLModel, table=True):
    """Patient-owned consent grant. Revoked or expired, never deleted."""

    __tablename__ = "consent_records"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    patient_id: str = SQLField(index=True)
    clinician_id: str = SQLField(index=True)
    tier: ConsentTier
    granted_at: datetime = SQLField(default_factory=datetime.utcnow, nullable=False, index=True)
    expires_at: Optional[datetime] = SQLField(default=None)
    is_active: bool = SQLField(default=True)
    revoked_at: Optional[datetime] = SQLField(default=None)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and as_utc(self.expires_at) <= as_utc(now)

    def is_effective(self, now: datetime) -> bool:
        return self.is_active and not self.is_expired(now)


class ConsentRecordRead(BaseModel):
    id: str
    patient_id: str
    clinician_id: str
    tier: ConsentTier
    granted_at: datetime
    expires_at: Optional[datetime]
    is_active: bool
    revoked_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class Appointment(SQLModel, table=True):
    """Treatment relationship source: a booked clinician/patient appointment."""

    __tablename__ = "appointments"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    clinician_id: str = SQLField(index=True)
    patient_id: str = SQLField(index=True)
    status: AppointmentStatus = SQLField(default=AppointmentStatus.SCHEDULED, index=True)
    scheduled_for: Optional[datetime] = SQLField(default=None)
    created_at: datetime = SQLField(default_factory=datetime.utcnow, nullable=False)


class AppointmentRead(BaseModel):
    id: str
    clinician_id: str
    patient_id: str
    status: AppointmentStatus
    scheduled_for: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EmergencyEpisode(SQLModel, table=True):
    """Emergency-transport request as seen by the override check."""

    __tablename__ = "emergency_episodes"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    patient_id: str = SQLField(index=True)
    status: EmergencyStatus = SQLField(default=EmergencyStatus.REQUESTED, index=True)
    reason: Optional[str] = SQLField(default=None)
    opened_at: datetime = SQLField(default_factory=datetime.utcnow, nullable=False)
    closed_at: Optional[datetime] = SQLField(default=None)


class EmergencyEpisodeRead(BaseModel):
    id: str
    patient_id: str
    status: EmergencyStatus
    reason: Optional[str]
    opened_at: datetime
    closed_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class AuditEntry(SQLModel, table=True):
    """Append-only, hash-chained record of one access decision."""

    __tablename__ = "audit_entries"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    actor_id: str = SQLField(index=True)
    actor_role: ActorRole
    action: AuditAction
    resource_type: ResourceType = SQLField(index=True)
    resource_id: str = SQLField(index=True)
    patient_id: str = SQLField(index=True)
    granted: bool = SQLField(default=False)
    via_emergency_override: bool = SQLField(default=False)
    reason: DecisionReason
    capabilities: List[str] = SQLField(
        default_factory=list, sa_column=Column(JSON, nullable=False, server_default="[]")
    )
    justification: Optional[str] = SQLField(default=None)
    timestamp: datetime = SQLField(default_factory=datetime.utcnow, nullable=False, index=True)
    prev_hash: Optional[str] = SQLField(default=None)
    curr_hash: Optional[str] = SQLField(default=None, index=True)

    def hash_material(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "actor_id": self.actor_id,
            "actor_role": ActorRole(self.actor_role).value,
            "action": AuditAction(self.action).value,
            "resource_type": ResourceType(self.resource_type).value,
            "resource_id": self.resource_id,
            "patient_id": self.patient_id,
            "granted": self.granted,
            "via_emergency_override": self.via_emergency_override,
            "reason": DecisionReason(self.reason).value,
            "capabilities": list(self.capabilities),
            "justification": self.justification,
            "timestamp": self.timestamp.isoformat(),
        }


class AuditEntryCreate(BaseModel):
    actor_id: str
    actor_role: ActorRole
    action: AuditAction = AuditAction.VIEW
    resource_type: ResourceType = ResourceType.PATIENT_RECORD
    resource_id: str
    patient_id: str
    granted: bool
    via_emergency_override: bool = False
    reason: DecisionReason
    capabilities: List[str] = Field(default_factory=list)
    justification: Optional[str] = None


class AuditEntryRead(BaseModel):
    id: str
    actor_id: str
    actor_role: ActorRole
    action: AuditAction
    resource_type: ResourceType
    resource_id: str
    patient_id: str
    granted: bool
    via_emergency_override: bool
    reason: DecisionReason
    capabilities: List[str]
    justification: Optional[str]
    timestamp: datetime
    prev_hash: Optional[str]
    curr_hash: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class AccessDecision(BaseModel):
    """Outcome of one authorize call. Derived, never persisted."""

    granted: bool
    capabilities: CapabilitySet = Field(default_factory=CapabilitySet.none)
    via_emergency_override: bool = False
    reason: DecisionReason
    audit_id: Optional[str] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
