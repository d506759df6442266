import pytest

from carepolicy.app.domain.capabilities import (
    EMERGENCY_OVERRIDE,
    TIER_CAPABILITIES,
    Capability,
    CapabilitySet,
    ConsentTier,
    capabilities_for,
)


def test_zero_value_means_no_access():
    assert not CapabilitySet()
    assert CapabilitySet.none() == CapabilitySet()
    assert CapabilitySet.none().names() == []


def test_every_tier_has_capabilities():
    assert set(TIER_CAPABILITIES) == set(ConsentTier)


def test_full_access_grants_everything():
    assert capabilities_for(ConsentTier.FULL_ACCESS) == CapabilitySet.all()
    assert len(CapabilitySet.all().names()) == 6


def test_consultation_only_hides_contact_and_emergency_info():
    caps = capabilities_for(ConsentTier.CONSULTATION_ONLY)
    assert caps.view_medical_history
    assert caps.modify_records
    assert caps.prescribe
    assert caps.schedule_appointments
    assert not caps.view_contact_info
    assert not caps.view_emergency_info


def test_emergency_only_is_emergency_info_alone():
    assert capabilities_for(ConsentTier.EMERGENCY_ONLY).names() == ["view_emergency_info"]
    assert EMERGENCY_OVERRIDE == capabilities_for(ConsentTier.EMERGENCY_ONLY)


def test_intersection():
    a = CapabilitySet.of(["prescribe", Capability.VIEW_CONTACT_INFO])
    b = CapabilitySet.of([Capability.PRESCRIBE, Capability.MODIFY_RECORDS])
    assert (a & b).names() == ["prescribe"]


def test_subset_comparison():
    small = CapabilitySet(prescribe=True)
    assert small <= CapabilitySet.all()
    assert not CapabilitySet.all() <= small
    assert CapabilitySet.none() <= small


def test_sets_are_immutable():
    caps = CapabilitySet()
    with pytest.raises(Exception):
        caps.prescribe = True  # type: ignore[misc]
    assert not caps.prescribe


def test_unknown_capability_name_is_rejected():
    with pytest.raises(ValueError):
        CapabilitySet.of(["view_everything"])
