"""Audit logging: durable, hash-chained, append-only decision records."""
from __future__ import annotations

import asyncio
import threading
from datetime import datetime
from typing import List, Optional, Protocol

import structlog
from sqlmodel import Session, select

from ...trail import AuditTrail
from ..domain.chain import ChainReport, compute_chain_hash, verify_links
from ..domain.errors import AuditSinkUnavailable
from ..domain.models import AuditEntry, AuditEntryCreate, ResourceType
from ..infra.db import SessionFactory

logger = structlog.get_logger(__name__)


class AuditSink(Protocol):
    def append(self, entry_in: AuditEntryCreate) -> AuditEntry:
        """Durably append one entry or raise."""


class SQLAuditSink:
    """Append-only ledger backed by SQLModel and hash chaining.

    Each append runs in its own committed session so an accepted entry is
    durable before the decision is returned.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory
        self._lock = threading.Lock()

    def append(self, entry_in: AuditEntryCreate) -> AuditEntry:
        # one writer at a time keeps prev_hash linear within this process
        with self._lock, self.session_factory() as session:
            prev_hash = self._latest_hash(session)
            entry = AuditEntry(**entry_in.model_dump(), timestamp=datetime.utcnow())
            entry.prev_hash = prev_hash
            entry.curr_hash = compute_chain_hash(entry.hash_material(), prev_hash)
            session.add(entry)
            session.flush()
            session.refresh(entry)
            session.expunge(entry)
        return entry

    @staticmethod
    def _latest_hash(session: Session) -> Optional[str]:
        stmt = select(AuditEntry.curr_hash).order_by(AuditEntry.timestamp.desc()).limit(1)
        return session.exec(stmt).first()


class MemoryAuditSink:
    """In-process sink over an ``AuditTrail``."""

    def __init__(self, trail: Optional[AuditTrail] = None) -> None:
        self.trail = trail or AuditTrail()
        self._lock = threading.Lock()

    def append(self, entry_in: AuditEntryCreate) -> AuditEntry:
        with self._lock:
            return self.trail.append(entry_in)

    @property
    def entries(self) -> List[AuditEntry]:
        return list(self.trail.entries)


class AuditLogger:
    """Writes one entry per decision and fails loudly when it cannot."""

    def __init__(self, sink: AuditSink, timeout: float = 5.0) -> None:
        self.sink = sink
        self.timeout = timeout

    async def record(self, entry_in: AuditEntryCreate) -> AuditEntry:
        # shielded so a cancelled caller still leaves its decision on record
        write = asyncio.ensure_future(asyncio.to_thread(self.sink.append, entry_in))
        try:
            return await asyncio.wait_for(asyncio.shield(write), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.error("audit write timed out", actor_id=entry_in.actor_id, timeout=self.timeout)
            raise AuditSinkUnavailable("audit write timed out") from exc
        except asyncio.CancelledError:
            logger.warning("caller cancelled during audit write", actor_id=entry_in.actor_id)
            raise
        except Exception as exc:
            logger.error("audit write failed", actor_id=entry_in.actor_id, error=repr(exc))
            raise AuditSinkUnavailable(str(exc) or exc.__class__.__name__) from exc


class AuditQuery:
    """Read side of the ``audit_entries`` ledger."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def search(
        self,
        actor_id: Optional[str] = None,
        patient_id: Optional[str] = None,
        resource_type: Optional[ResourceType] = None,
        resource_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[AuditEntry]:
        stmt = select(AuditEntry)
        if actor_id:
            stmt = stmt.where(AuditEntry.actor_id == actor_id)
        if patient_id:
            stmt = stmt.where(AuditEntry.patient_id == patient_id)
        if resource_type:
            stmt = stmt.where(AuditEntry.resource_type == resource_type)
        if resource_id:
            stmt = stmt.where(AuditEntry.resource_id == resource_id)
        if start:
            stmt = stmt.where(AuditEntry.timestamp >= start)
        if end:
            stmt = stmt.where(AuditEntry.timestamp <= end)
        stmt = stmt.order_by(AuditEntry.timestamp.desc()).limit(limit)
        return list(self.session.exec(stmt).all())

    def verify_chain(self) -> ChainReport:
        stmt = select(AuditEntry).order_by(AuditEntry.timestamp.asc())
        entries = self.session.exec(stmt).all()
        return verify_links(
            (f"entry {e.id}", e.hash_material(), e.prev_hash, e.curr_hash) for e in entries
        )
