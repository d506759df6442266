from itertools import product

from carepolicy.app.domain.capabilities import CapabilitySet, ConsentTier, capabilities_for
from carepolicy.app.domain.projection import project, project_many

RECORD = {
    "id": "pat-1",
    "name": "Ada Patient",
    "email": "ada@example.org",
    "phone": "555-0100",
    "address": "1 Main St",
    "medical_history": ["asthma"],
    "allergies": ["penicillin"],
    "medications": ["albuterol"],
    "emergency_contact": {"name": "Bob", "phone": "555-0101"},
    "insurance": {"provider": "Acme"},
    "payment_info": {"card": "4111"},
    "paymentInfo": {"card": "4111"},
}


def _every_capability_set():
    for flags in product([False, True], repeat=6):
        yield CapabilitySet(*flags)


def test_financial_fields_never_survive():
    for caps in _every_capability_set():
        projected = project(RECORD, caps)
        assert "insurance" not in projected
        assert "payment_info" not in projected
        assert "paymentInfo" not in projected


def test_full_access_keeps_clinical_and_contact_fields():
    projected = project(RECORD, capabilities_for(ConsentTier.FULL_ACCESS))
    assert set(projected) == set(RECORD) - {"insurance", "payment_info", "paymentInfo"}


def test_consultation_only_strips_contact_and_emergency_contact():
    projected = project(RECORD, capabilities_for(ConsentTier.CONSULTATION_ONLY))
    for field in ("email", "phone", "address", "emergency_contact"):
        assert field not in projected
    assert projected["medical_history"] == ["asthma"]


def test_emergency_only_keeps_emergency_contact_only():
    projected = project(RECORD, capabilities_for(ConsentTier.EMERGENCY_ONLY))
    assert set(projected) == {"id", "name", "emergency_contact"}


def test_camel_case_fields_are_stripped_too():
    projected = project(
        {"medicalHistory": [], "emergencyContact": {}, "id": "x"}, CapabilitySet.none()
    )
    assert projected == {"id": "x"}


def test_projection_does_not_mutate_input():
    original = dict(RECORD)
    project(RECORD, CapabilitySet.none())
    assert RECORD == original


def test_projection_is_idempotent():
    for caps in _every_capability_set():
        once = project(RECORD, caps)
        assert project(once, caps) == once


def test_projection_is_monotone():
    sets = list(_every_capability_set())
    for narrow in sets:
        for wide in sets:
            if narrow <= wide:
                assert set(project(RECORD, narrow)) <= set(project(RECORD, wide))


def test_project_many():
    rows = project_many([RECORD, {"id": "y", "phone": "1"}], CapabilitySet.none())
    assert rows[1] == {"id": "y"}
