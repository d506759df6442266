"""In-memory, tamper-evident audit trail.

Entries are chained exactly like the ``audit_entries`` table, so a trail can
be exported as JSON, handed to a reviewer and verified offline.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .app.domain.chain import ChainReport, compute_chain_hash, verify_links
from .app.domain.clock import to_storage
from .app.domain.models import AuditEntry, AuditEntryCreate, AuditEntryRead


@dataclass
class AuditTrail:
    entries: List[AuditEntry] = field(default_factory=list)
    sealed: bool = False
    root: Optional[str] = None  # hash of the last entry at seal time

    @property
    def head(self) -> Optional[str]:
        return self.entries[-1].curr_hash if self.entries else None

    def append(
        self,
        entry_in: AuditEntryCreate,
        timestamp: Optional[datetime] = None,
        entry_id: Optional[str] = None,
    ) -> AuditEntry:
        if self.sealed:
            raise RuntimeError("audit trail already sealed")

        entry = AuditEntry(
            **entry_in.model_dump(), timestamp=to_storage(timestamp) or datetime.utcnow()
        )
        if entry_id:
            entry.id = entry_id
        entry.prev_hash = self.head
        entry.curr_hash = compute_chain_hash(entry.hash_material(), entry.prev_hash)
        self.entries.append(entry)
        return entry

    def seal(self) -> str:
        if not self.sealed:
            self.root = self.head or compute_chain_hash({}, None)
            self.sealed = True
        return self.root

    def verify(self) -> ChainReport:
        """Recompute every hash and check linkage and the sealed root."""
        report = verify_links(
            (f"entry[{idx}]", e.hash_material(), e.prev_hash, e.curr_hash)
            for idx, e in enumerate(self.entries)
        )
        if self.sealed and self.root != (self.head or compute_chain_hash({}, None)):
            report.problems.append("root mismatch")
        return report

    @classmethod
    def rechain(cls, entries: Iterable[AuditEntry]) -> "AuditTrail":
        """Sealed trail over stored entries, oldest first.

        Ids and timestamps are kept; hashes are recomputed, since a slice of
        the ledger (one patient, say) does not link on its own. The result is
        a fresh chain that verifies offline but whose hashes do not match
        ``audit_entries``.
        """
        trail = cls()
        for entry in entries:
            trail.append(
                AuditEntryCreate.model_validate(entry, from_attributes=True),
                timestamp=entry.timestamp,
                entry_id=entry.id,
            )
        trail.seal()
        return trail

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sealed": self.sealed,
            "root": self.root,
            "entries": [
                AuditEntryRead.model_validate(e).model_dump(mode="json") for e in self.entries
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditTrail":
        trail = cls(sealed=data.get("sealed", False), root=data.get("root"))
        for raw in data.get("entries", []):
            read = AuditEntryRead.model_validate(raw)
            trail.entries.append(AuditEntry(**read.model_dump()))
        return trail
