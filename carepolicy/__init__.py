"""
carepolicy: patient-data access control and audit.

Decides whether an actor may see or change a patient's record, under which
capabilities, records every decision in a hash-chained audit trail, and
projects records down to what a decision allows. The engine is usable on its
own; ``carepolicy.app`` wraps it in a FastAPI service with reference stores.
"""

__all__ = [
    "AccessDecision",
    "AccessDecisionEngine",
    "AuditLogger",
    "AuditTrail",
    "CapabilitySet",
    "ConsentTier",
    "MemoryAuditSink",
    "project",
]

from .app.domain.capabilities import CapabilitySet, ConsentTier
from .app.domain.models import AccessDecision
from .app.domain.projection import project
from .app.services.audit import AuditLogger, MemoryAuditSink
from .app.services.engine import AccessDecisionEngine
from .trail import AuditTrail

__version__ = "0.1.0"
