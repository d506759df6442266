"""Audit routes."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..deps import db_session
from ..domain.models import AuditEntryRead, ResourceType
from ..domain.schemas import ChainReportOut
from ..services.audit import AuditQuery

router = APIRouter()


@router.get("/logs", response_model=List[AuditEntryRead])
def audit_logs(
    actor_id: Optional[str] = Query(None),
    patient_id: Optional[str] = Query(None),
    resource_type: Optional[ResourceType] = Query(None),
    resource_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    session: Session = Depends(db_session),
) -> List[AuditEntryRead]:
    return AuditQuery(session).search(
        actor_id=actor_id,
        patient_id=patient_id,
        resource_type=resource_type,
        resource_id=resource_id,
        start=start,
        end=end,
        limit=limit,
    )


@router.get("/verify", response_model=ChainReportOut)
def verify_chain(session: Session = Depends(db_session)) -> ChainReportOut:
    """Recompute the audit hash chain and report mismatches."""
    return ChainReportOut(**AuditQuery(session).verify_chain().as_dict())
