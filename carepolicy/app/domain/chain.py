"""Hash chaining for the audit trail."""
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple


def canonical_bytes(data: Mapping[str, Any]) -> bytes:
    """Serialize data with deterministic ordering for hashing and signing."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")


def compute_chain_hash(payload: Mapping[str, Any], prev_hash_hex: Optional[str]) -> str:
    """Return sha256(canonical payload || previous hash) as hex."""
    hasher = hashlib.sha256()
    hasher.update(canonical_bytes(payload))
    if prev_hash_hex:
        hasher.update(bytes.fromhex(prev_hash_hex))
    return hasher.hexdigest()


@dataclass
class ChainReport:
    checked: int = 0
    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def as_dict(self) -> dict:
        return {"ok": self.ok, "checked": self.checked, "problems": self.problems}


def verify_links(
    links: Iterable[Tuple[str, Mapping[str, Any], Optional[str], Optional[str]]],
) -> ChainReport:
    """Check (label, material, prev_hash, curr_hash) tuples in chain order."""
    report = ChainReport()
    expected_prev: Optional[str] = None
    for label, material, prev_hash, curr_hash in links:
        report.checked += 1
        if prev_hash != expected_prev:
            report.problems.append(f"{label}: prev_hash mismatch")
        if curr_hash != compute_chain_hash(material, prev_hash):
            report.problems.append(f"{label}: curr_hash mismatch")
        expected_prev = curr_hash
    return report
