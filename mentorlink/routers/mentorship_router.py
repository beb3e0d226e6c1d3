# mentorlink/routers/mentorship_router.py
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from ..services import MentorshipService, MatchingService
from ..dependencies.auth_dependencies import ensure_acting_as
from ..dependencies.service_dependencies import get_mentorship_service, get_matching_service
from ..exceptions import CapacityExceededError, BusinessLogicError
from ..models import MentorshipEdge, UserType
from ..schemas import (
    ApiResponse,
    MentorshipEdgeResponse,
    MentorshipEntry,
    MentorshipRequestCreate,
    MentorshipRespond,
    MentorshipTerminate,
    PendingRequestView,
    StatusResult,
)
from ..security import CallerIdentity, get_current_identity
from ..utils.response_enricher import ResponseEnricher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["mentorship"])


def _status_result(edge: MentorshipEdge) -> StatusResult:
    return StatusResult(
        student_uid=edge.student_uid,
        mentor_uid=edge.mentor_uid,
        status=edge.status,
        current_mentees=edge.mentor.current_mentees,
        max_mentees=edge.mentor.max_mentees,
    )


@router.post("/mentorships", response_model=ApiResponse[MentorshipEdgeResponse], status_code=201)
def request_mentorship(
    body: MentorshipRequestCreate,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Create a pending mentorship request"""
    ensure_acting_as(identity, body.student_uid)
    edge = mentorship_service.request_mentorship(body.student_uid, body.mentor_uid)
    return ApiResponse(success=True, data=ResponseEnricher.edge_response(edge))


@router.post("/mentorships/respond", response_model=ApiResponse[StatusResult])
def respond_to_mentorship(
    body: MentorshipRespond,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
    matching_service: MatchingService = Depends(get_matching_service),
):
    """Accept or reject a pending mentorship request"""
    ensure_acting_as(identity, body.mentor_uid)
    try:
        edge = mentorship_service.respond_to_mentorship(body.student_uid, body.mentor_uid, body.decision)
    except CapacityExceededError as e:
        # Offer the student's next-best mentor alongside the failure
        try:
            alternative = matching_service.next_best_candidate(body.student_uid, body.mentor_uid)
        except BusinessLogicError as lookup_error:
            logger.warning(f"Could not compute an alternative mentor for {body.student_uid}: {lookup_error}")
            alternative = None
        e.details["alternative"] = alternative.model_dump(by_alias=True, mode="json") if alternative else None
        raise
    return ApiResponse(success=True, data=_status_result(edge))


@router.post("/mentorships/terminate", response_model=ApiResponse[StatusResult])
def terminate_mentorship(
    body: MentorshipTerminate,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """End an active mentorship (completed when graceful, terminated otherwise)"""
    if identity is not None and identity.uid == body.student_uid:
        ensure_acting_as(identity, body.student_uid)
    else:
        ensure_acting_as(identity, body.mentor_uid)
    edge = mentorship_service.terminate_mentorship(
        body.student_uid, body.mentor_uid, body.reason, graceful=body.graceful
    )
    return ApiResponse(success=True, data=_status_result(edge))


@router.get("/mentorships/history", response_model=ApiResponse[List[MentorshipEdgeResponse]])
def get_mentorship_history(
    student_uid: str = Query(..., alias="studentUid"),
    mentor_uid: str = Query(..., alias="mentorUid"),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Every edge ever recorded for a student/mentor pair, oldest first"""
    edges = mentorship_service.get_history(student_uid, mentor_uid)
    return ApiResponse(success=True, data=[ResponseEnricher.edge_response(edge) for edge in edges])


@router.post("/mentorships/goals", response_model=ApiResponse[MentorshipEdgeResponse])
def add_goal(
    body: MentorshipEntry,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Append a goal to the pair's open mentorship"""
    ensure_acting_as(identity, body.student_uid)
    edge = mentorship_service.add_goal(body.student_uid, body.mentor_uid, body.text)
    return ApiResponse(success=True, data=ResponseEnricher.edge_response(edge))


@router.post("/mentorships/notes", response_model=ApiResponse[MentorshipEdgeResponse])
def add_note(
    body: MentorshipEntry,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Append a note to the pair's open mentorship"""
    if identity is not None and identity.uid == body.student_uid:
        ensure_acting_as(identity, body.student_uid)
    else:
        ensure_acting_as(identity, body.mentor_uid)
    edge = mentorship_service.add_note(body.student_uid, body.mentor_uid, body.text)
    return ApiResponse(success=True, data=ResponseEnricher.edge_response(edge))


@router.get("/mentors/{mentor_uid}/pending-requests", response_model=ApiResponse[List[PendingRequestView]])
def get_mentor_pending_requests(
    mentor_uid: str,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Pending requests waiting on a mentor, oldest first"""
    ensure_acting_as(identity, mentor_uid)
    edges = mentorship_service.list_pending_for_mentor(mentor_uid)
    return ApiResponse(success=True, data=ResponseEnricher.edge_views(edges, UserType.MENTOR))


@router.get("/students/{student_uid}/pending-requests", response_model=ApiResponse[List[PendingRequestView]])
def get_student_pending_requests(
    student_uid: str,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Requests a student is still waiting on, oldest first"""
    ensure_acting_as(identity, student_uid)
    edges = mentorship_service.list_pending_for_student(student_uid)
    return ApiResponse(success=True, data=ResponseEnricher.edge_views(edges, UserType.STUDENT))


@router.get("/mentors/{mentor_uid}/mentorships", response_model=ApiResponse[List[PendingRequestView]])
def get_mentor_active_mentorships(
    mentor_uid: str,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Active mentorships of a mentor"""
    ensure_acting_as(identity, mentor_uid)
    edges = mentorship_service.list_active_for_mentor(mentor_uid)
    return ApiResponse(success=True, data=ResponseEnricher.edge_views(edges, UserType.MENTOR))


@router.get("/students/{student_uid}/mentorships", response_model=ApiResponse[List[PendingRequestView]])
def get_student_active_mentorships(
    student_uid: str,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    mentorship_service: MentorshipService = Depends(get_mentorship_service),
):
    """Active mentorships of a student"""
    ensure_acting_as(identity, student_uid)
    edges = mentorship_service.list_active_for_student(student_uid)
    return ApiResponse(success=True, data=ResponseEnricher.edge_views(edges, UserType.STUDENT))
