"""Role-level feature permissions."""
from dataclasses import dataclass
from typing import Dict, FrozenSet

from .models import ActorRole


@dataclass(frozen=True)
class PolicyContext:
    subject_id: str
    role: ActorRole


ROLE_FEATURES: Dict[ActorRole, FrozenSet[str]] = {
    ActorRole.DOCTOR: frozenset(
        {
            "view_patient_records",
            "schedule_appointments",
            "prescribe_medication",
            "emergency_access",
        }
    ),
    ActorRole.PATIENT: frozenset(
        {"view_own_records", "schedule_appointments", "emergency_request"}
    ),
    ActorRole.EMERGENCY_STAFF: frozenset({"emergency_access", "transport_management"}),
}

# roles that may hold a treatment relationship or take the emergency override
CLINICIAN_ROLES = frozenset({ActorRole.DOCTOR})


def can_access_feature(role: ActorRole | str, feature: str) -> bool:
    try:
        role = ActorRole(role)
    except ValueError:
        return False
    return feature in ROLE_FEATURES.get(role, frozenset())


def is_clinician(context: PolicyContext) -> bool:
    return context.role in CLINICIAN_ROLES
