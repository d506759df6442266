"""Capability sets and the consent-tier table."""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Dict, Iterable, List


class Capability(str, Enum):
    VIEW_MEDICAL_HISTORY = "view_medical_history"
    VIEW_CONTACT_INFO = "view_contact_info"
    VIEW_EMERGENCY_INFO = "view_emergency_info"
    MODIFY_RECORDS = "modify_records"
    PRESCRIBE = "prescribe"
    SCHEDULE_APPOINTMENTS = "schedule_appointments"


@dataclass(frozen=True)
class CapabilitySet:
    """Six independent permissions over one patient's data.

    The all-false set is the zero value and means no access.
    """

    view_medical_history: bool = False
    view_contact_info: bool = False
    view_emergency_info: bool = False
    modify_records: bool = False
    prescribe: bool = False
    schedule_appointments: bool = False

    @classmethod
    def none(cls) -> "CapabilitySet":
        return cls()

    @classmethod
    def all(cls) -> "CapabilitySet":
        return cls(**{f.name: True for f in fields(cls)})

    @classmethod
    def of(cls, capabilities: Iterable[Capability | str]) -> "CapabilitySet":
        """Build a set from capability names; unknown names raise ValueError."""
        return cls(**{Capability(c).value: True for c in capabilities})

    def names(self) -> List[str]:
        return [name for name, value in asdict(self).items() if value]

    def __bool__(self) -> bool:
        return any(asdict(self).values())

    def __and__(self, other: "CapabilitySet") -> "CapabilitySet":
        return CapabilitySet(
            **{f.name: getattr(self, f.name) and getattr(other, f.name) for f in fields(self)}
        )

    def __le__(self, other: "CapabilitySet") -> bool:
        return (self & other) == self


class ConsentTier(str, Enum):
    FULL_ACCESS = "full_access"
    CONSULTATION_ONLY = "consultation_only"
    EMERGENCY_ONLY = "emergency_only"


TIER_CAPABILITIES: Dict[ConsentTier, CapabilitySet] = {
    ConsentTier.FULL_ACCESS: CapabilitySet.all(),
    ConsentTier.CONSULTATION_ONLY: CapabilitySet(
        view_medical_history=True,
        modify_records=True,
        prescribe=True,
        schedule_appointments=True,
    ),
    ConsentTier.EMERGENCY_ONLY: CapabilitySet(view_emergency_info=True),
}

# every tier must resolve; a missing entry is an import-time failure
_missing = set(ConsentTier) - set(TIER_CAPABILITIES)
if _missing:
    raise RuntimeError(f"consent tiers without capabilities: {sorted(t.value for t in _missing)}")

EMERGENCY_OVERRIDE = CapabilitySet(view_emergency_info=True)


def capabilities_for(tier: ConsentTier) -> CapabilitySet:
    return TIER_CAPABILITIES[tier]
