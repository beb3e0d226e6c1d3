# mentorlink/routers/matching_router.py
from fastapi import APIRouter, Depends, Path, Query
from typing import List, Optional

from ..services.matching_service import MatchingService
from ..dependencies.service_dependencies import get_matching_service
from ..schemas import ApiResponse, MentorSummary
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["matching"])


@router.get("/students/{student_uid}/candidates", response_model=ApiResponse[List[MentorSummary]])
def get_mentor_candidates(
    student_uid: str = Path(..., description="The uid of the student to find mentors for"),
    category: Optional[str] = Query(None, description="Only mentors listing this expertise category"),
    limit: Optional[int] = Query(None, ge=0, description="Clamped to MATCH_MAX_LIMIT"),
    matching_service: MatchingService = Depends(get_matching_service)
):
    """Ranked mentor suggestions for a student; empty when nobody is eligible"""
    recommendations = matching_service.find_candidates(student_uid, category=category, limit=limit)
    return ApiResponse(success=True, data=recommendations)

@router.get("/mentors", response_model=ApiResponse[List[MentorSummary]])
def list_mentors(
    category: Optional[str] = Query(None, description="Only mentors listing this expertise category"),
    limit: Optional[int] = Query(None, ge=0, description="Clamped to MATCH_MAX_LIMIT"),
    matching_service: MatchingService = Depends(get_matching_service)
):
    """Directory of active mentors, highest rated first"""
    return ApiResponse(success=True, data=matching_service.list_mentors(category=category, limit=limit))
