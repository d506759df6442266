from carepolicy.app.domain.models import ActorRole
from carepolicy.app.domain.policy import PolicyContext, can_access_feature, is_clinician


def test_doctor_features():
    assert can_access_feature("doctor", "prescribe_medication")
    assert can_access_feature(ActorRole.DOCTOR, "emergency_access")
    assert not can_access_feature("doctor", "transport_management")


def test_patient_and_staff_features():
    assert can_access_feature("patient", "view_own_records")
    assert not can_access_feature("patient", "view_patient_records")
    assert can_access_feature("emergency_staff", "transport_management")


def test_unknown_role_or_feature_is_denied():
    assert not can_access_feature("admin", "view_patient_records")
    assert not can_access_feature("doctor", "launch_rockets")


def test_only_doctors_count_as_clinicians():
    assert is_clinician(PolicyContext("doc-1", ActorRole.DOCTOR))
    assert not is_clinician(PolicyContext("es-1", ActorRole.EMERGENCY_STAFF))
