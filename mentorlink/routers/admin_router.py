# mentorlink/routers/admin_router.py
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from ..services import MentorshipService
from ..dependencies.auth_dependencies import require_admin
from ..dependencies.service_dependencies import get_mentorship_service
from ..schemas import ApiResponse, CapacityAuditEntry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])

@router.get("/capacity-audit", response_model=ApiResponse[List[CapacityAuditEntry]])
def capacity_audit(
    mentor_uid: Optional[str] = Query(None, alias="mentorUid"),
    mentorship_service: MentorshipService = Depends(get_mentorship_service)
):
    """Compare each mentor's counter with its ACTIVE edges"""
    return ApiResponse(success=True, data=mentorship_service.audit_capacity(mentor_uid))

@router.post("/capacity-repair", response_model=ApiResponse[List[CapacityAuditEntry]])
def capacity_repair(
    mentor_uid: Optional[str] = Query(None, alias="mentorUid"),
    mentorship_service: MentorshipService = Depends(get_mentorship_service)
):
    """Reset drifting counters; returns the mentors that were repaired"""
    repaired = mentorship_service.repair_capacity(mentor_uid)
    logger.info(f"Capacity repair touched {len(repaired)} mentor(s)")
    return ApiResponse(success=True, data=repaired)
