from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from carepolicy.app.domain.models import (
    ActorRole,
    AuditEntry,
    AuditEntryCreate,
    DecisionReason,
    ResourceType,
)
from carepolicy.app.services.audit import AuditQuery, MemoryAuditSink, SQLAuditSink
from carepolicy.trail import AuditTrail


def _entry(actor_id="doc-1", patient_id="pat-1", granted=True, **overrides):
    fields = dict(
        actor_id=actor_id,
        actor_role=ActorRole.DOCTOR,
        resource_id=patient_id,
        patient_id=patient_id,
        granted=granted,
        reason=DecisionReason.GRANTED if granted else DecisionReason.NO_CONSENT,
        capabilities=["prescribe"] if granted else [],
    )
    fields.update(overrides)
    return AuditEntryCreate(**fields)


def test_sql_sink_chains_entries(sql_scope):
    sink = SQLAuditSink(sql_scope)
    first = sink.append(_entry())
    second = sink.append(_entry(actor_id="doc-2", granted=False))

    assert first.prev_hash is None
    assert second.prev_hash == first.curr_hash
    with sql_scope() as session:
        report = AuditQuery(session).verify_chain()
    assert report.ok
    assert report.checked == 2


def test_chain_verification_detects_tampering(sql_scope):
    sink = SQLAuditSink(sql_scope)
    sink.append(_entry())
    target = sink.append(_entry(granted=False))
    sink.append(_entry())

    with sql_scope() as session:
        row = session.get(AuditEntry, target.id)
        row.granted = True
        session.add(row)

    with sql_scope() as session:
        report = AuditQuery(session).verify_chain()
    assert not report.ok
    assert report.problems == [f"entry {target.id}: curr_hash mismatch"]


def test_search_filters(sql_scope):
    sink = SQLAuditSink(sql_scope)
    sink.append(_entry(actor_id="doc-1", patient_id="pat-1"))
    sink.append(_entry(actor_id="doc-2", patient_id="pat-1"))
    sink.append(
        _entry(
            actor_id="doc-1",
            patient_id="pat-2",
            resource_type=ResourceType.APPOINTMENT,
            resource_id="appt-7",
        )
    )

    with sql_scope() as session:
        query = AuditQuery(session)
        assert len(query.search(actor_id="doc-1")) == 2
        assert len(query.search(patient_id="pat-1")) == 2
        [appt] = query.search(resource_type=ResourceType.APPOINTMENT)
        assert appt.resource_id == "appt-7"
        assert query.search(start=datetime.utcnow() + timedelta(minutes=1)) == []
        assert len(query.search(end=datetime.utcnow() + timedelta(minutes=1), limit=2)) == 2


def test_entries_are_newest_first(sql_scope):
    sink = SQLAuditSink(sql_scope)
    older = sink.append(_entry())
    newer = sink.append(_entry())
    with sql_scope() as session:
        ids = [e.id for e in AuditQuery(session).search()]
    assert ids == [newer.id, older.id]


def test_sql_sink_rows_are_durable(sql_scope):
    SQLAuditSink(sql_scope).append(_entry())
    with sql_scope() as session:
        assert len(session.exec(select(AuditEntry)).all()) == 1


def test_memory_sink_and_trail_roundtrip():
    sink = MemoryAuditSink()
    sink.append(_entry())
    sink.append(_entry(granted=False))
    sink.trail.seal()

    restored = AuditTrail.from_dict(sink.trail.to_dict())
    assert restored.verify().ok
    assert restored.root == sink.trail.root
    assert len(restored.entries) == 2


def test_sealed_trail_rejects_appends_and_detects_edits():
    trail = AuditTrail()
    trail.append(_entry())
    trail.seal()
    with pytest.raises(RuntimeError):
        trail.append(_entry())

    trail.entries[0].justification = "edited later"
    report = trail.verify()
    assert not report.ok
    assert "entry[0]: curr_hash mismatch" in report.problems


def test_patient_export_is_a_fresh_chain_with_ledger_ids(sql_scope):
    sink = SQLAuditSink(sql_scope)
    first = sink.append(_entry(patient_id="pat-1"))
    sink.append(_entry(patient_id="pat-2"))
    third = sink.append(_entry(patient_id="pat-1", granted=False))

    with sql_scope() as session:
        rows = AuditQuery(session).search(patient_id="pat-1")
        trail = AuditTrail.rechain(reversed(rows))

    assert [e.id for e in trail.entries] == [first.id, third.id]
    assert [e.timestamp for e in trail.entries] == [first.timestamp, third.timestamp]
    assert trail.sealed
    assert trail.entries[1].prev_hash == trail.entries[0].curr_hash
    assert trail.entries[1].curr_hash != third.curr_hash
    assert AuditTrail.from_dict(trail.to_dict()).verify().ok
