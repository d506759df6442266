"""Field-level projection of patient records."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .capabilities import CapabilitySet

# (capability flag, fields removed when the flag is false)
GUARDED_FIELDS: Tuple[Tuple[str, frozenset], ...] = (
    ("view_contact_info", frozenset({"email", "phone", "address"})),
    (
        "view_medical_history",
        frozenset({"medical_history", "medicalHistory", "allergies", "medications"}),
    ),
    ("view_emergency_info", frozenset({"emergency_contact", "emergencyContact"})),
)

# financial data is never served through this path
ALWAYS_STRIPPED = frozenset({"insurance", "payment_info", "paymentInfo"})


def stripped_fields(capabilities: CapabilitySet) -> frozenset:
    removed = set(ALWAYS_STRIPPED)
    for flag, names in GUARDED_FIELDS:
        if not getattr(capabilities, flag):
            removed |= names
    return frozenset(removed)


def project(record: Mapping[str, Any], capabilities: CapabilitySet) -> Dict[str, Any]:
    """Return a copy of ``record`` without the fields ``capabilities`` do not cover."""
    removed = stripped_fields(capabilities)
    return {key: value for key, value in record.items() if key not in removed}


def project_many(
    records: Iterable[Mapping[str, Any]], capabilities: CapabilitySet
) -> List[Dict[str, Any]]:
    return [project(record, capabilities) for record in records]
